"""Feed ordering: hot score, newest-first, and cursor pagination.

The hot score blends vote magnitude with recency against a fixed epoch, so a
post's score only moves when its votes change, never as the clock advances.
That keeps a cursor taken from one page valid while new posts arrive.
"""

from __future__ import annotations

import base64
import binascii
import json
import math
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Generic, Protocol, TypeVar

from forum_stage.core.clock import ensure_utc
from forum_stage.core.errors import InvalidCursor
from forum_stage.core.settings import settings


class Ordering(str, Enum):
    """Feed orderings supported by the ranking engine."""

    HOT = "hot"
    NEW = "new"


class Rankable(Protocol):
    """Anything carrying the fields feed ordering needs."""

    id: int
    score: int
    created_at: datetime


T = TypeVar("T", bound=Rankable)

SortKey = tuple[float, ...]


@dataclass(frozen=True)
class Cursor:
    """Position of the last item on a page within one ordering."""

    ordering: Ordering
    key: SortKey

    def encode(self) -> str:
        """Return the cursor as an opaque URL-safe token."""
        raw = json.dumps(
            {"o": self.ordering.value, "k": list(self.key)},
            separators=(",", ":"),
        ).encode("utf-8")
        return base64.urlsafe_b64encode(raw).decode().rstrip("=")

    @classmethod
    def decode(cls, token: str, ordering: Ordering) -> Cursor:
        """Parse a token produced by :meth:`encode` for ``ordering``.

        Raises:
            InvalidCursor: If the token is malformed or was issued by another ordering.
        """
        padding = "=" * (-len(token) % 4)
        try:
            payload = json.loads(base64.urlsafe_b64decode(token + padding))
            kind = Ordering(payload["o"])
            key = tuple(float(part) for part in payload["k"])
        except (binascii.Error, ValueError, KeyError, TypeError) as err:
            raise InvalidCursor("Malformed pagination cursor") from err

        if kind is not ordering:
            raise InvalidCursor(f"Cursor was issued for the {kind.value!r} feed")
        expected = 3 if ordering is Ordering.HOT else 2
        if len(key) != expected:
            raise InvalidCursor("Malformed pagination cursor")
        return cls(ordering=kind, key=key)


@dataclass
class Page(Generic[T]):
    """One page of ranked items plus the cursor for the next page."""

    items: list[T] = field(default_factory=list)
    next_cursor: str | None = None


def _sign(value: int) -> int:
    if value > 0:
        return 1
    if value < 0:
        return -1
    return 0


class RankingEngine:
    """Stateless producer of comparable sort keys for feed ordering.

    Keys compare so that a larger key sorts earlier in the feed; every key
    ends with the item id, which makes the order total.
    """

    def __init__(
        self,
        *,
        epoch: datetime | None = None,
        decay_seconds: float | None = None,
    ) -> None:
        self.epoch = ensure_utc(epoch if epoch is not None else settings.hot_score_epoch)
        self.decay_seconds = float(
            decay_seconds if decay_seconds is not None else settings.hot_score_decay_seconds
        )
        if self.decay_seconds <= 0:
            raise ValueError("decay_seconds must be positive")

    def hot_score(self, score: int, created_at: datetime) -> float:
        """Return the hot score for a net vote score and creation time.

        Args:
            score: Net score (upvotes minus downvotes).
            created_at: When the item was created.

        Returns:
            ``sign(score) * log10(max(|score|, 1)) + age / decay`` where age is
            measured in seconds from the fixed epoch.
        """
        order = math.log10(max(abs(score), 1))
        age_seconds = (ensure_utc(created_at) - self.epoch).total_seconds()
        return _sign(score) * order + age_seconds / self.decay_seconds

    def hot_sort_key(self, score: int, created_at: datetime, item_id: int) -> SortKey:
        """Return the hot ordering key: hot score, then recency, then id."""
        return (
            self.hot_score(score, created_at),
            ensure_utc(created_at).timestamp(),
            float(item_id),
        )

    def new_sort_key(self, created_at: datetime, item_id: int) -> SortKey:
        """Return the newest-first ordering key: creation time, then id."""
        return (ensure_utc(created_at).timestamp(), float(item_id))

    def sort_key(self, ordering: Ordering, item: Rankable) -> SortKey:
        """Return ``item``'s key under ``ordering``."""
        if ordering is Ordering.HOT:
            return self.hot_sort_key(item.score, item.created_at, item.id)
        return self.new_sort_key(item.created_at, item.id)

    def rank(self, items: Iterable[T], ordering: Ordering) -> list[T]:
        """Return ``items`` sorted for display, first item first."""
        return sorted(items, key=lambda item: self.sort_key(ordering, item), reverse=True)

    def paginate(
        self,
        items: Iterable[T],
        ordering: Ordering,
        limit: int,
        cursor: str | None = None,
    ) -> Page[T]:
        """Return the page of ``items`` that follows ``cursor``.

        Items whose key is not strictly below the cursor key are excluded, so
        consecutive pages never repeat an item. Items removed between requests
        simply stop appearing.

        Raises:
            InvalidCursor: If ``cursor`` cannot be used with ``ordering``.
            ValueError: If ``limit`` is not positive.
        """
        if limit < 1:
            raise ValueError("limit must be positive")

        keyed = [(self.sort_key(ordering, item), item) for item in items]
        if cursor is not None:
            after = Cursor.decode(cursor, ordering).key
            keyed = [pair for pair in keyed if pair[0] < after]
        keyed.sort(key=lambda pair: pair[0], reverse=True)

        window = keyed[: limit + 1]
        page_items = [item for _, item in window[:limit]]
        next_cursor = None
        if len(window) > limit:
            next_cursor = Cursor(ordering, window[limit - 1][0]).encode()
        return Page(items=page_items, next_cursor=next_cursor)

    def cursor_for(self, ordering: Ordering, item: Rankable) -> str:
        """Return a cursor positioned just after ``item``."""
        return Cursor(ordering, self.sort_key(ordering, item)).encode()


def hot_score(score: int, created_at: datetime) -> float:
    """Return the hot score using the configured epoch and decay."""
    return RankingEngine().hot_score(score, created_at)


def hot_sort_key(score: int, created_at: datetime, item_id: int = 0) -> SortKey:
    """Return the hot sort key for an item using the configured epoch and decay."""
    return RankingEngine().hot_sort_key(score, created_at, item_id)


def new_order(created_at: datetime, item_id: int = 0) -> SortKey:
    """Return the newest-first sort key for an item."""
    return RankingEngine().new_sort_key(created_at, item_id)

