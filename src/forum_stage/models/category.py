"""SQLAlchemy model for post categories."""

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from forum_stage.db.session import Base


class Category(Base):
    """Fixed topical bucket a post is filed under."""

    __tablename__ = "category"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    slug: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
