"""Feed listing queries over posts and comments."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime

from sqlalchemy import and_, or_, select
from sqlalchemy.orm import Session

from forum_stage.core.errors import CategoryNotFound
from forum_stage.core.ranking import Cursor, Ordering, RankingEngine
from forum_stage.core.settings import settings
from forum_stage.models import Category, Comment, Post

__all__ = ["FeedPage", "FeedService"]


@dataclass
class FeedPage:
    """A page of posts and the cursor for the next one."""

    posts: list[Post] = field(default_factory=list)
    next_cursor: str | None = None


class FeedService:
    """Read-only feed queries; they may observe slightly stale counters."""

    def __init__(self, db: Session, ranking: RankingEngine | None = None) -> None:
        self.db = db
        self.ranking = ranking or RankingEngine()

    def clamp_limit(self, limit: int | None) -> int:
        """Return ``limit`` bounded by the configured pagination limits."""
        if limit is None:
            return settings.pagination_default_limit
        return max(1, min(limit, settings.pagination_max_limit))

    def _posts_query(self, category_slug: str | None):
        # Reload rows already in the session so comment_count is current.
        stmt = select(Post).execution_options(populate_existing=True)
        if category_slug:
            category_id = self.db.execute(
                select(Category.id).where(Category.slug == category_slug)
            ).scalar_one_or_none()
            if category_id is None:
                raise CategoryNotFound(f"Category {category_slug!r} not found")
            stmt = stmt.where(Post.category_id == category_id)
        return stmt

    def list_hot(
        self,
        *,
        limit: int | None = None,
        cursor: str | None = None,
        category_slug: str | None = None,
    ) -> FeedPage:
        """Return posts ordered by hot score, then recency, then id.

        Hot scores are never stored, so candidates are ranked in process.

        Raises:
            CategoryNotFound: If ``category_slug`` does not exist.
            InvalidCursor: If ``cursor`` is not a hot-feed cursor.
        """
        candidates = self.db.execute(self._posts_query(category_slug)).scalars().all()
        page = self.ranking.paginate(candidates, Ordering.HOT, self.clamp_limit(limit), cursor)
        return FeedPage(posts=page.items, next_cursor=page.next_cursor)

    def list_new(
        self,
        *,
        limit: int | None = None,
        cursor: str | None = None,
        category_slug: str | None = None,
    ) -> FeedPage:
        """Return posts newest first using a keyset on ``(created_at, id)``.

        Raises:
            CategoryNotFound: If ``category_slug`` does not exist.
            InvalidCursor: If ``cursor`` is not a new-feed cursor.
        """
        limit = self.clamp_limit(limit)
        stmt = self._posts_query(category_slug)
        if cursor is not None:
            created_ts, last_id = Cursor.decode(cursor, Ordering.NEW).key
            created_at = datetime.fromtimestamp(created_ts, UTC)
            stmt = stmt.where(
                or_(
                    Post.created_at < created_at,
                    and_(Post.created_at == created_at, Post.id < int(last_id)),
                )
            )
        stmt = stmt.order_by(Post.created_at.desc(), Post.id.desc()).limit(limit + 1)
        posts = list(self.db.execute(stmt).scalars())

        next_cursor = None
        if len(posts) > limit:
            posts = posts[:limit]
            next_cursor = self.ranking.cursor_for(Ordering.NEW, posts[-1])
        return FeedPage(posts=posts, next_cursor=next_cursor)

    def list_by_user(self, user_id: int) -> list[Post]:
        """Return every post authored by ``user_id``, newest first."""
        stmt = (
            select(Post)
            .where(Post.user_id == user_id)
            .execution_options(populate_existing=True)
            .order_by(Post.created_at.desc(), Post.id.desc())
        )
        return list(self.db.execute(stmt).scalars())

    def list_comments(self, post_id: int) -> list[Comment]:
        """Return a post's comments, highest score first, oldest first on ties."""
        stmt = (
            select(Comment)
            .where(Comment.post_id == post_id)
            .order_by(Comment.score.desc(), Comment.created_at.asc(), Comment.id.asc())
        )
        return list(self.db.execute(stmt).scalars())
