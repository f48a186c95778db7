"""SQLAlchemy models for posts."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from forum_stage.core.clock import utcnow
from forum_stage.db.session import Base


class Post(Base):
    """Top-level content entity that can be voted on and commented.

    ``upvotes``, ``downvotes`` and ``score`` are denormalized from the vote
    table and rewritten by the vote ledger after every vote mutation.
    ``comment_count`` is not stored; it is counted from the comment table
    whenever the post is loaded (see :mod:`forum_stage.models`).
    """

    __tablename__ = "post"
    __table_args__ = (
        Index("ix_post_created_at_id", "created_at", "id"),
        Index("ix_post_user_id", "user_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    body: Mapped[str] = mapped_column(Text, nullable=False, default="")

    category_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("category.id"),
        nullable=True,
    )

    # Author is either a registered user or an anonymous client id, never both.
    user_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("user_account.id"),
        nullable=True,
    )
    anonymous_id: Mapped[str | None] = mapped_column(String(64), nullable=True)

    upvotes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    downvotes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    score: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
