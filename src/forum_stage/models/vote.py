"""Models capturing voting interactions on posts and comments."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    SmallInteger,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from forum_stage.core.clock import utcnow
from forum_stage.db.session import Base


class Vote(Base):
    """A single live vote by one voter on one post or comment.

    Absence of a row is the neutral state; there is no zero-valued vote.
    """

    __tablename__ = "vote"
    __table_args__ = (
        CheckConstraint("value IN (1, -1)", name="ck_vote_value"),
        CheckConstraint(
            "(post_id IS NULL) <> (comment_id IS NULL)",
            name="ck_vote_single_target",
        ),
        CheckConstraint(
            "(user_id IS NULL) <> (anonymous_id IS NULL)",
            name="ck_vote_single_voter",
        ),
        # One live vote per (target, voter); NULL columns never collide.
        UniqueConstraint("post_id", "user_id", name="uq_vote_post_user"),
        UniqueConstraint("post_id", "anonymous_id", name="uq_vote_post_anonymous"),
        UniqueConstraint("comment_id", "user_id", name="uq_vote_comment_user"),
        UniqueConstraint("comment_id", "anonymous_id", name="uq_vote_comment_anonymous"),
        Index("ix_vote_post_id", "post_id"),
        Index("ix_vote_comment_id", "comment_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    post_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("post.id", ondelete="CASCADE"),
        nullable=True,
    )
    comment_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("comment.id", ondelete="CASCADE"),
        nullable=True,
    )

    user_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("user_account.id", ondelete="CASCADE"),
        nullable=True,
    )
    anonymous_id: Mapped[str | None] = mapped_column(String(64), nullable=True)

    # 1 = upvote, -1 = downvote.
    value: Mapped[int] = mapped_column(SmallInteger, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
