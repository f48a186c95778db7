"""Concurrent casts against the in-memory store."""

from __future__ import annotations

import threading
import time
from concurrent.futures import ThreadPoolExecutor

from forum_stage.core.identity import AnonymousVoter, RegisteredVoter
from forum_stage.repositories import InMemoryVoteStore
from forum_stage.services.karma import KarmaService
from forum_stage.services.vote_ledger import TargetLockRegistry, VoteLedger, VoteOutcome


class SlowStore(InMemoryVoteStore):
    """Widens the gap between looking up a vote and writing it."""

    def find_vote(self, target, voter):
        found = super().find_vote(target, voter)
        time.sleep(0.001)
        return found


def _run_together(count: int, work) -> list:
    barrier = threading.Barrier(count)

    def _job(index: int):
        barrier.wait()
        return work(index)

    with ThreadPoolExecutor(max_workers=count) as pool:
        return list(pool.map(_job, range(count)))


def test_many_voters_on_one_post() -> None:
    store = SlowStore()
    store.add_user(1)
    target = store.add_post(1, author_id=1)
    ledger = VoteLedger(store, locks=TargetLockRegistry())

    results = _run_together(50, lambda i: ledger.cast_vote(target, AnonymousVoter(f"v{i}"), 1))

    assert all(result.outcome is VoteOutcome.CAST for result in results)
    record = store.get_target(target)
    assert (record.upvotes, record.downvotes, record.score) == (50, 0, 50)
    assert len(store.live_votes(target)) == 50
    assert store.get_author_karma(1) == 50


def test_same_voter_requests_serialize() -> None:
    """Ten identical concurrent casts alternate between cast and retract."""
    store = SlowStore()
    store.add_user(1)
    target = store.add_post(1, author_id=1)
    ledger = VoteLedger(store, locks=TargetLockRegistry())
    voter = RegisteredVoter(5)

    results = _run_together(10, lambda _: ledger.cast_vote(target, voter, 1))

    outcomes = [result.outcome for result in results]
    assert outcomes.count(VoteOutcome.CAST) == 5
    assert outcomes.count(VoteOutcome.RETRACTED) == 5
    assert store.live_votes(target) == []
    assert store.get_target(target).score == 0
    assert store.get_author_karma(1) == 0


def test_author_karma_across_parallel_targets() -> None:
    store = SlowStore()
    store.add_user(1)
    first = store.add_post(1, author_id=1)
    second = store.add_comment(2, author_id=1)
    ledger = VoteLedger(store, locks=TargetLockRegistry())

    def _vote(index: int):
        target = first if index % 2 else second
        value = 1 if index % 3 else -1
        return ledger.cast_vote(target, AnonymousVoter(f"v{index}"), value)

    _run_together(40, _vote)

    expected = KarmaService(store).compute_karma(1).total_karma
    assert store.get_author_karma(1) == expected
    assert sum(store.count_votes(first)) + sum(store.count_votes(second)) == 40
