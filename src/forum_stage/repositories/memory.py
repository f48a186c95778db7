"""In-process vote store.

Holds posts, comments, votes, and karma in dictionaries. Used by the test
suite and by tooling that needs the ledger without a database. Transactions
keep a per-thread undo journal, so a failed block rolls back only its own
writes and concurrent transactions on other targets are left alone.
"""
from __future__ import annotations

import itertools
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass

from forum_stage.core.errors import StoreConflict
from forum_stage.core.identity import (
    CommentTarget,
    PostTarget,
    VoterIdentity,
    VoteTarget,
)
from forum_stage.repositories.base import TargetRecord, VoteRecord

__all__ = ["InMemoryVoteStore"]


@dataclass
class _TargetRow:
    author_id: int | None
    upvotes: int = 0
    downvotes: int = 0
    score: int = 0


class InMemoryVoteStore:
    """Dictionary-backed implementation of the vote store contract."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._ids = itertools.count(1)
        self._targets: dict[VoteTarget, _TargetRow] = {}
        self._votes: dict[int, VoteRecord] = {}
        self._karma: dict[int, int] = {}
        self._journal = threading.local()

    # --- seeding ------------------------------------------------------------------
    def add_user(self, user_id: int, karma: int = 0) -> None:
        """Register a user with an initial cached karma."""
        with self._lock:
            self._karma[user_id] = karma

    def add_post(self, post_id: int, author_id: int | None = None) -> PostTarget:
        """Create an empty post and return its target."""
        target = PostTarget(post_id)
        with self._lock:
            self._targets[target] = _TargetRow(author_id=author_id)
        return target

    def add_comment(self, comment_id: int, author_id: int | None = None) -> CommentTarget:
        """Create an empty comment and return its target."""
        target = CommentTarget(comment_id)
        with self._lock:
            self._targets[target] = _TargetRow(author_id=author_id)
        return target

    def live_votes(self, target: VoteTarget) -> list[VoteRecord]:
        """Return every live vote on ``target``."""
        with self._lock:
            return [vote for vote in self._votes.values() if vote.target == target]

    # --- transactions -------------------------------------------------------------
    def _record_undo(self, undo: Callable[[], None]) -> None:
        journal: list[Callable[[], None]] | None = getattr(self._journal, "entries", None)
        if journal is not None:
            journal.append(undo)

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Undo this thread's writes if the block raises."""
        if getattr(self._journal, "entries", None) is not None:
            # Nested blocks join the enclosing transaction.
            yield
            return
        self._journal.entries = []
        try:
            yield
        except BaseException:
            with self._lock:
                for undo in reversed(self._journal.entries):
                    undo()
            raise
        finally:
            self._journal.entries = None

    # --- votes --------------------------------------------------------------------
    def find_vote(self, target: VoteTarget, voter: VoterIdentity) -> VoteRecord | None:
        with self._lock:
            for vote in self._votes.values():
                if vote.target == target and vote.voter == voter:
                    return vote
        return None

    def insert_vote(self, target: VoteTarget, voter: VoterIdentity, value: int) -> VoteRecord:
        """Insert a vote, rejecting a second live vote for the same pair."""
        with self._lock:
            if self.find_vote(target, voter) is not None:
                raise StoreConflict(f"{voter} already voted on {target}")
            vote = VoteRecord(id=next(self._ids), target=target, voter=voter, value=value)
            self._votes[vote.id] = vote
        self._record_undo(lambda: self._votes.pop(vote.id, None))
        return vote

    def update_vote(self, vote_id: int, value: int) -> None:
        with self._lock:
            previous = self._votes[vote_id]
            self._votes[vote_id] = VoteRecord(
                id=previous.id,
                target=previous.target,
                voter=previous.voter,
                value=value,
            )
        self._record_undo(lambda: self._votes.__setitem__(vote_id, previous))

    def delete_vote(self, vote_id: int) -> None:
        with self._lock:
            previous = self._votes.pop(vote_id, None)
        if previous is not None:
            self._record_undo(lambda: self._votes.__setitem__(vote_id, previous))

    # --- targets ------------------------------------------------------------------
    def get_target(self, target: VoteTarget) -> TargetRecord | None:
        with self._lock:
            row = self._targets.get(target)
            if row is None:
                return None
            return TargetRecord(
                author_id=row.author_id,
                upvotes=row.upvotes,
                downvotes=row.downvotes,
                score=row.score,
            )

    def count_votes(self, target: VoteTarget) -> tuple[int, int]:
        with self._lock:
            values = [vote.value for vote in self._votes.values() if vote.target == target]
        return values.count(1), values.count(-1)

    def set_target_counters(
        self,
        target: VoteTarget,
        upvotes: int,
        downvotes: int,
        score: int,
    ) -> None:
        with self._lock:
            row = self._targets[target]
            previous = (row.upvotes, row.downvotes, row.score)
            row.upvotes, row.downvotes, row.score = upvotes, downvotes, score

        def _undo() -> None:
            row.upvotes, row.downvotes, row.score = previous

        self._record_undo(_undo)

    # --- karma --------------------------------------------------------------------
    def adjust_author_karma(self, author_id: int, delta: int) -> bool:
        """Add ``delta`` under the store lock; the undo subtracts it again."""
        with self._lock:
            if author_id not in self._karma:
                return False
            self._karma[author_id] += delta

        def _undo() -> None:
            self._karma[author_id] -= delta

        self._record_undo(_undo)
        return True

    def get_author_karma(self, author_id: int) -> int | None:
        with self._lock:
            return self._karma.get(author_id)

    def set_author_karma(self, author_id: int, karma: int) -> None:
        with self._lock:
            previous = self._karma.get(author_id)
            self._karma[author_id] = karma

        def _undo() -> None:
            if previous is None:
                self._karma.pop(author_id, None)
            else:
                self._karma[author_id] = previous

        self._record_undo(_undo)

    def author_scores(self, author_id: int) -> tuple[int, int]:
        with self._lock:
            post_total = sum(
                row.score
                for target, row in self._targets.items()
                if isinstance(target, PostTarget) and row.author_id == author_id
            )
            comment_total = sum(
                row.score
                for target, row in self._targets.items()
                if isinstance(target, CommentTarget) and row.author_id == author_id
            )
        return post_total, comment_total
