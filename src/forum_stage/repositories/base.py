"""Storage contract consumed by the vote ledger and karma service."""

from __future__ import annotations

from contextlib import AbstractContextManager
from dataclasses import dataclass
from typing import Protocol

from forum_stage.core.identity import VoterIdentity, VoteTarget

__all__ = ["TargetRecord", "VoteRecord", "VoteStore"]


@dataclass(frozen=True)
class VoteRecord:
    """A live vote as seen by the ledger."""

    id: int
    target: VoteTarget
    voter: VoterIdentity
    value: int


@dataclass(frozen=True)
class TargetRecord:
    """Author and cached counters of a votable post or comment."""

    author_id: int | None
    upvotes: int
    downvotes: int
    score: int


class VoteStore(Protocol):
    """Persistence operations the vote ledger is written against.

    Every call made between entering and leaving :meth:`transaction` must
    apply atomically: all of it on a clean exit, none of it if the block
    raises. Writes that collide with a concurrent writer raise
    :class:`~forum_stage.core.errors.StoreConflict`.
    """

    def transaction(self) -> AbstractContextManager[None]:
        """Return a context manager scoping one atomic unit of work."""
        ...

    def find_vote(self, target: VoteTarget, voter: VoterIdentity) -> VoteRecord | None:
        """Return the live vote ``voter`` holds on ``target``, if any."""
        ...

    def insert_vote(self, target: VoteTarget, voter: VoterIdentity, value: int) -> VoteRecord:
        """Insert a new vote and return it."""
        ...

    def update_vote(self, vote_id: int, value: int) -> None:
        """Change the value of an existing vote."""
        ...

    def delete_vote(self, vote_id: int) -> None:
        """Remove a vote."""
        ...

    def get_target(self, target: VoteTarget) -> TargetRecord | None:
        """Return the target's author and counters, or ``None`` if it does not exist."""
        ...

    def count_votes(self, target: VoteTarget) -> tuple[int, int]:
        """Return ``(upvotes, downvotes)`` counted over the target's live votes."""
        ...

    def set_target_counters(
        self,
        target: VoteTarget,
        upvotes: int,
        downvotes: int,
        score: int,
    ) -> None:
        """Overwrite the target's cached counters."""
        ...

    def adjust_author_karma(self, author_id: int, delta: int) -> bool:
        """Atomically add ``delta`` to the author's cached karma.

        Returns ``False`` (and changes nothing) when no such user exists.
        """
        ...

    def get_author_karma(self, author_id: int) -> int | None:
        """Return the author's cached karma, or ``None`` for an unknown user."""
        ...

    def set_author_karma(self, author_id: int, karma: int) -> None:
        """Overwrite the author's cached karma."""
        ...

    def author_scores(self, author_id: int) -> tuple[int, int]:
        """Return ``(post_score_sum, comment_score_sum)`` over the author's content."""
        ...
