"""Karma aggregation for registered authors."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from forum_stage.repositories.base import VoteStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class KarmaBreakdown:
    """Karma recomputed from an author's content."""

    post_karma: int = 0
    comment_karma: int = 0

    @property
    def total_karma(self) -> int:
        """Post karma plus comment karma."""
        return self.post_karma + self.comment_karma


class KarmaService:
    """Full recomputation and repair of cached author karma.

    The vote ledger keeps karma current incrementally; this service is the
    batch path it must always agree with.
    """

    def __init__(self, store: VoteStore) -> None:
        self.store = store

    def compute_karma(self, user_id: int) -> KarmaBreakdown:
        """Sum the scores of every post and comment ``user_id`` authored."""
        post_karma, comment_karma = self.store.author_scores(user_id)
        return KarmaBreakdown(post_karma=post_karma, comment_karma=comment_karma)

    def cached_karma(self, user_id: int) -> int | None:
        """Return the incrementally maintained karma, or ``None`` for an unknown user."""
        return self.store.get_author_karma(user_id)

    def reconcile_karma(self, user_id: int) -> int:
        """Overwrite the cached karma with a full recomputation.

        Returns:
            The drift that was corrected (recomputed minus cached); 0 when the
            cache was already right or the user is unknown.
        """
        with self.store.transaction():
            cached = self.store.get_author_karma(user_id)
            if cached is None:
                return 0
            expected = self.compute_karma(user_id).total_karma
            drift = expected - cached
            if drift:
                logger.warning(
                    "Karma for user %s drifted by %d (cached %d, recomputed %d)",
                    user_id,
                    drift,
                    cached,
                    expected,
                )
                self.store.set_author_karma(user_id, expected)
        return drift
