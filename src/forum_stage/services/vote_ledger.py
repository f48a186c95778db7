"""Vote ledger: one live vote per voter and target, with consistent tallies.

Casting a vote is a three-way toggle. A first vote is recorded, re-sending
the same value retracts it, and sending the opposite value flips it in place.
Every cast then recounts the target's live votes, overwrites the cached
counters on the post or comment, and moves the author's karma by exactly the
score change the cast caused. All of it happens in one store transaction.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum

from forum_stage.core.errors import (
    ConcurrentModification,
    InvalidVoterIdentity,
    InvalidVoteValue,
    StoreConflict,
    TargetNotFound,
)
from forum_stage.core.identity import (
    AnonymousVoter,
    CommentTarget,
    PostTarget,
    RegisteredVoter,
    VoterIdentity,
    VoteTarget,
)
from forum_stage.core.settings import settings
from forum_stage.repositories.base import VoteStore

logger = logging.getLogger(__name__)

UPVOTE = 1
DOWNVOTE = -1


class VoteOutcome(str, Enum):
    """What a cast did to the voter's live vote."""

    CAST = "cast"
    RETRACTED = "retracted"
    CHANGED = "changed"


@dataclass(frozen=True)
class Tally:
    """Net vote counts derived from a target's live votes."""

    upvotes: int = 0
    downvotes: int = 0

    @property
    def score(self) -> int:
        """Upvotes minus downvotes."""
        return self.upvotes - self.downvotes


@dataclass(frozen=True)
class VoteResult:
    """Result of a single :meth:`VoteLedger.cast_vote` call."""

    outcome: VoteOutcome
    target: VoteTarget
    voter: VoterIdentity
    value: int | None
    tally: Tally
    karma_delta: int
    author_id: int | None
    vote_id: int


def validate_vote_value(value: object) -> int:
    """Return ``value`` if it is exactly +1 or -1.

    Raises:
        InvalidVoteValue: For any other value, including booleans and floats.
    """
    if isinstance(value, bool) or not isinstance(value, int) or value not in (UPVOTE, DOWNVOTE):
        raise InvalidVoteValue(value)
    return value


def _check_request(target: object, voter: object) -> None:
    if not isinstance(target, PostTarget | CommentTarget):
        raise InvalidVoterIdentity(f"Vote target must be a post or a comment, got {target!r}")
    if not isinstance(voter, RegisteredVoter | AnonymousVoter):
        raise InvalidVoterIdentity(f"Voter must be registered or anonymous, got {voter!r}")


class TargetLockRegistry:
    """Hands out one lock per vote target, dropping locks nobody holds."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[VoteTarget, list] = {}

    @contextmanager
    def hold(self, target: VoteTarget) -> Iterator[None]:
        """Serialize the block against every other holder of ``target``."""
        with self._guard:
            entry = self._locks.setdefault(target, [threading.Lock(), 0])
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._locks[target]

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)


_TARGET_LOCKS = TargetLockRegistry()


class VoteLedger:
    """Applies vote casts against an injected :class:`VoteStore`.

    The ledger never derives who is voting: callers resolve the voter once
    (see :func:`forum_stage.core.identity.resolve_voter_identity`) and pass
    the result in.
    """

    def __init__(
        self,
        store: VoteStore,
        *,
        max_retries: int | None = None,
        locks: TargetLockRegistry | None = None,
    ) -> None:
        self.store = store
        self.max_retries = settings.vote_max_retries if max_retries is None else max_retries
        self._locks = locks if locks is not None else _TARGET_LOCKS

    def cast_vote(self, target: VoteTarget, voter: VoterIdentity, value: int) -> VoteResult:
        """Cast, retract, or flip ``voter``'s vote on ``target``.

        Args:
            target: Post or comment being voted on.
            voter: Already-resolved voter identity.
            value: +1 for an upvote, -1 for a downvote.

        Returns:
            The outcome, the recounted tally, and the karma delta applied.

        Raises:
            InvalidVoteValue: If ``value`` is not +1 or -1.
            InvalidVoterIdentity: If ``target`` or ``voter`` is not a valid variant.
            TargetNotFound: If the post or comment does not exist.
            ConcurrentModification: If conflicting writers outlasted every retry.
        """
        value = validate_vote_value(value)
        _check_request(target, voter)

        attempts = self.max_retries + 1
        with self._locks.hold(target):
            for attempt in range(1, attempts + 1):
                try:
                    with self.store.transaction():
                        result = self._apply(target, voter, value)
                except StoreConflict as err:
                    logger.warning(
                        "Vote by %s on %s conflicted (attempt %d/%d): %s",
                        voter,
                        target,
                        attempt,
                        attempts,
                        err,
                    )
                    continue

                logger.debug(
                    "Vote by %s on %s %s; tally +%d/-%d, karma delta %d",
                    voter,
                    target,
                    result.outcome.value,
                    result.tally.upvotes,
                    result.tally.downvotes,
                    result.karma_delta,
                )
                return result

        logger.error("Giving up on vote by %s on %s after %d attempts", voter, target, attempts)
        raise ConcurrentModification(f"Vote on {target} kept conflicting; retry the request")

    def _apply(self, target: VoteTarget, voter: VoterIdentity, value: int) -> VoteResult:
        record = self.store.get_target(target)
        if record is None:
            raise TargetNotFound(target)

        existing = self.store.find_vote(target, voter)
        recorded: int | None
        if existing is None:
            vote_id = self.store.insert_vote(target, voter, value).id
            outcome, recorded, delta = VoteOutcome.CAST, value, value
        elif existing.value == value:
            vote_id = existing.id
            self.store.delete_vote(existing.id)
            outcome, recorded, delta = VoteOutcome.RETRACTED, None, -existing.value
        else:
            vote_id = existing.id
            self.store.update_vote(existing.id, value)
            outcome, recorded, delta = VoteOutcome.CHANGED, value, value - existing.value

        tally = self._write_counters(target)
        karma_applied = record.author_id is not None and self.store.adjust_author_karma(
            record.author_id, delta)

        return VoteResult(
            outcome=outcome,
            target=target,
            voter=voter,
            value=recorded,
            tally=tally,
            karma_delta=delta if karma_applied else 0,
            author_id=record.author_id,
            vote_id=vote_id,
        )

    def _write_counters(self, target: VoteTarget) -> Tally:
        tally = self.tally(target)
        self.store.set_target_counters(target, tally.upvotes, tally.downvotes, tally.score)
        return tally

    def tally(self, target: VoteTarget) -> Tally:
        """Recount ``target``'s live votes without writing anything."""
        upvotes, downvotes = self.store.count_votes(target)
        return Tally(upvotes=upvotes, downvotes=downvotes)

    def get_vote(self, target: VoteTarget, voter: VoterIdentity) -> int:
        """Return ``voter``'s live vote value on ``target``, or 0 when there is none."""
        _check_request(target, voter)
        vote = self.store.find_vote(target, voter)
        return vote.value if vote is not None else 0

    def reconcile_target(self, target: VoteTarget) -> Tally:
        """Rewrite ``target``'s cached counters from its live votes.

        Author karma is left untouched; follow up with
        :meth:`forum_stage.services.karma.KarmaService.reconcile_karma`.

        Raises:
            TargetNotFound: If the post or comment does not exist.
        """
        with self._locks.hold(target), self.store.transaction():
            record = self.store.get_target(target)
            if record is None:
                raise TargetNotFound(target)
            tally = self._write_counters(target)
            cached = (record.upvotes, record.downvotes, record.score)
            if cached != (tally.upvotes, tally.downvotes, tally.score):
                logger.warning(
                    "Repaired counters on %s: +%d/-%d (%d) -> +%d/-%d (%d)",
                    target,
                    *cached,
                    tally.upvotes,
                    tally.downvotes,
                    tally.score,
                )
            return tally
