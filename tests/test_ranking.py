"""Tests for hot scoring, newest-first ordering, and cursor pagination."""

from __future__ import annotations

import math
import random
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

import pytest

from forum_stage.core.errors import InvalidCursor
from forum_stage.core.ranking import (
    Cursor,
    Ordering,
    RankingEngine,
    hot_score,
    hot_sort_key,
    new_order,
)

EPOCH = datetime(2024, 1, 1, tzinfo=UTC)
DECAY = 45_000.0


@dataclass
class Item:
    id: int
    score: int
    created_at: datetime


@pytest.fixture()
def ranking() -> RankingEngine:
    return RankingEngine(epoch=EPOCH, decay_seconds=DECAY)


def _items(count: int, seed: int = 7, start_id: int = 1) -> list[Item]:
    rng = random.Random(seed)
    base = EPOCH + timedelta(days=600)
    return [
        Item(
            id=start_id + i,
            score=rng.randint(-20, 60),
            # Coarse timestamps force plenty of created_at ties.
            created_at=base + timedelta(hours=rng.randint(0, 40)),
        )
        for i in range(count)
    ]


def _drain(ranking: RankingEngine, items: list[Item], ordering: Ordering, limit: int) -> list[int]:
    seen: list[int] = []
    cursor = None
    while True:
        page = ranking.paginate(items, ordering, limit, cursor)
        seen.extend(item.id for item in page.items)
        if page.next_cursor is None:
            return seen
        cursor = page.next_cursor


def test_hot_score_is_zero_at_epoch_for_neutral_score(ranking: RankingEngine) -> None:
    assert ranking.hot_score(0, EPOCH) == 0.0


def test_hot_score_formula(ranking: RankingEngine) -> None:
    created = EPOCH + timedelta(seconds=DECAY)
    assert ranking.hot_score(10, created) == pytest.approx(2.0)
    assert ranking.hot_score(-100, created) == pytest.approx(-1.0)
    assert ranking.hot_score(1, created) == pytest.approx(1.0)
    assert ranking.hot_score(0, created) == pytest.approx(1.0)


def test_hot_score_matches_reference_constants() -> None:
    created = datetime(2024, 6, 1, 8, 30, tzinfo=UTC)
    expected = math.log10(25) + (created - EPOCH).total_seconds() / 45_000
    assert hot_score(25, created) == pytest.approx(expected)


def test_hot_score_monotonic_in_score(ranking: RankingEngine) -> None:
    created = EPOCH + timedelta(days=30)
    scores = [ranking.hot_score(score, created) for score in range(-200, 201)]
    assert all(a <= b for a, b in zip(scores, scores[1:]))
    positive = [ranking.hot_score(score, created) for score in range(1, 200)]
    assert all(a < b for a, b in zip(positive, positive[1:]))


def test_hot_score_monotonic_in_created_at(ranking: RankingEngine) -> None:
    for score in (-40, -1, 0, 1, 250):
        times = [EPOCH + timedelta(minutes=15 * step) for step in range(200)]
        values = [ranking.hot_score(score, created) for created in times]
        assert all(a < b for a, b in zip(values, values[1:]))


def test_hot_score_treats_naive_datetimes_as_utc(ranking: RankingEngine) -> None:
    aware = datetime(2025, 3, 4, 5, 6, 7, tzinfo=UTC)
    naive = aware.replace(tzinfo=None)
    assert ranking.hot_score(3, naive) == ranking.hot_score(3, aware)


def test_hot_score_does_not_depend_on_wall_clock(ranking: RankingEngine) -> None:
    created = EPOCH + timedelta(days=2)
    first = ranking.hot_score(5, created)
    later_engine = RankingEngine(epoch=EPOCH, decay_seconds=DECAY)
    assert later_engine.hot_score(5, created) == first


def test_decay_must_be_positive() -> None:
    with pytest.raises(ValueError):
        RankingEngine(epoch=EPOCH, decay_seconds=0)


def test_new_order_sorts_by_created_at_then_id(ranking: RankingEngine) -> None:
    created = EPOCH + timedelta(days=1)
    items = [
        Item(id=1, score=0, created_at=created),
        Item(id=2, score=0, created_at=created),
        Item(id=3, score=0, created_at=created - timedelta(seconds=1)),
        Item(id=4, score=0, created_at=created + timedelta(seconds=1)),
    ]
    assert [item.id for item in ranking.rank(items, Ordering.NEW)] == [4, 2, 1, 3]
    assert new_order(created, 2) > new_order(created, 1)


def test_hot_order_breaks_ties_by_created_at_then_id(ranking: RankingEngine) -> None:
    created = EPOCH + timedelta(days=1)
    items = [
        Item(id=10, score=5, created_at=created),
        Item(id=11, score=5, created_at=created),
        Item(id=12, score=500, created_at=created),
    ]
    assert [item.id for item in ranking.rank(items, Ordering.HOT)] == [12, 11, 10]
    assert hot_sort_key(5, created, 11) > hot_sort_key(5, created, 10)


def test_hot_order_prefers_recent_posts_with_equal_score(ranking: RankingEngine) -> None:
    older = Item(id=1, score=10, created_at=EPOCH + timedelta(days=3))
    newer = Item(id=2, score=10, created_at=EPOCH + timedelta(days=4))
    assert ranking.rank([older, newer], Ordering.HOT) == [newer, older]


@pytest.mark.parametrize("ordering", [Ordering.HOT, Ordering.NEW])
@pytest.mark.parametrize("limit", [1, 3, 7, 50])
def test_pagination_visits_every_item_once(
    ranking: RankingEngine, ordering: Ordering, limit: int
) -> None:
    items = _items(40)
    seen = _drain(ranking, items, ordering, limit)
    assert seen == [item.id for item in ranking.rank(items, ordering)]
    assert len(seen) == len(set(seen)) == 40


@pytest.mark.parametrize("ordering", [Ordering.HOT, Ordering.NEW])
def test_pagination_survives_inserts_between_pages(
    ranking: RankingEngine, ordering: Ordering
) -> None:
    first_snapshot = _items(30, seed=11)
    page = ranking.paginate(first_snapshot, ordering, 8)

    # New posts arrive after the first page was served.
    second_snapshot = first_snapshot + _items(15, seed=12, start_id=100)
    seen = [item.id for item in page.items]
    cursor = page.next_cursor
    while cursor is not None:
        page = ranking.paginate(second_snapshot, ordering, 8, cursor)
        seen.extend(item.id for item in page.items)
        cursor = page.next_cursor

    assert len(seen) == len(set(seen))
    assert {item.id for item in first_snapshot} <= set(seen)


def test_pagination_skips_items_deleted_between_pages(ranking: RankingEngine) -> None:
    items = _items(12)
    page = ranking.paginate(items, Ordering.NEW, 5)
    ranked = ranking.rank(items, Ordering.NEW)
    doomed = ranked[6]
    remaining = [item for item in items if item.id != doomed.id]

    rest = ranking.paginate(remaining, Ordering.NEW, 50, page.next_cursor)
    assert [item.id for item in rest.items] == [item.id for item in ranked[5:] if item is not doomed]


def test_last_page_has_no_cursor(ranking: RankingEngine) -> None:
    items = _items(4)
    page = ranking.paginate(items, Ordering.HOT, 4)
    assert len(page.items) == 4
    assert page.next_cursor is None


def test_empty_input_yields_empty_page(ranking: RankingEngine) -> None:
    page = ranking.paginate([], Ordering.NEW, 10)
    assert page.items == []
    assert page.next_cursor is None


def test_cursor_from_other_ordering_is_rejected(ranking: RankingEngine) -> None:
    items = _items(5)
    hot_cursor = ranking.paginate(items, Ordering.HOT, 2).next_cursor
    assert hot_cursor is not None
    with pytest.raises(InvalidCursor):
        ranking.paginate(items, Ordering.NEW, 2, hot_cursor)


@pytest.mark.parametrize("token", ["", "not-base64!!", "eyJmb28iOiAxfQ", "WzEsMiwzXQ"])
def test_malformed_cursor_is_rejected(ranking: RankingEngine, token: str) -> None:
    with pytest.raises(InvalidCursor):
        ranking.paginate(_items(3), Ordering.HOT, 2, token)


def test_cursor_round_trips_its_key(ranking: RankingEngine) -> None:
    item = Item(id=9, score=3, created_at=EPOCH + timedelta(days=9, microseconds=123456))
    token = ranking.cursor_for(Ordering.HOT, item)
    assert Cursor.decode(token, Ordering.HOT).key == ranking.sort_key(Ordering.HOT, item)


def test_limit_must_be_positive(ranking: RankingEngine) -> None:
    with pytest.raises(ValueError):
        ranking.paginate(_items(3), Ordering.NEW, 0)
