"""SQLAlchemy models for the forum application."""

from sqlalchemy import func, select
from sqlalchemy.orm import column_property

from .category import Category
from .comment import Comment
from .post import Post
from .user import User
from .vote import Vote

# Needs both mappers, so it is attached once they are defined.
Post.comment_count = column_property(
    select(func.count(Comment.id))
    .where(Comment.post_id == Post.id)
    .correlate_except(Comment)
    .scalar_subquery()
)

__all__ = [
    "Category",
    "Comment",
    "Post",
    "User",
    "Vote",
]
