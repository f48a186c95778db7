"""Post and feed Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class PostResponse(BaseModel):
    """Schema for post information returned by the API."""

    id: int
    title: str
    body: str
    category_id: int | None
    user_id: int | None
    upvotes: int
    downvotes: int
    score: int
    comment_count: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CommentResponse(BaseModel):
    """Schema for comment information returned by the API."""

    id: int
    post_id: int
    parent_id: int | None
    body: str
    user_id: int | None
    upvotes: int
    downvotes: int
    score: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class FeedResponse(BaseModel):
    """A page of the hot or new feed."""

    posts: list[PostResponse]
    next_cursor: str | None = Field(None, description="Pass back as `cursor` for the next page")


class HotScoreRequest(BaseModel):
    """Inputs for a standalone hot score calculation."""

    upvotes: int = Field(..., ge=0, description="Non-negative upvote count")
    downvotes: int = Field(..., ge=0, description="Non-negative downvote count")
    created_at: datetime = Field(..., description="ISO 8601 creation timestamp")


class HotScoreResponse(BaseModel):
    """Result of a standalone hot score calculation."""

    hot_score: float
