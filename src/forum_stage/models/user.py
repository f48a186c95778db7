"""SQLAlchemy models for registered user accounts."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from forum_stage.core.clock import utcnow
from forum_stage.db.session import Base


class User(Base):
    """Registered account that can author content and accumulate karma.

    Credentials live with the account service; this row only carries what the
    vote ledger and profile pages need.
    """

    __tablename__ = "user_account"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)

    # Cached sum of the scores of every post and comment this user authored.
    karma: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
