"""User-related Pydantic schemas."""

from pydantic import BaseModel, Field


class KarmaResponse(BaseModel):
    """Karma breakdown for a registered user."""

    user_id: int
    post_karma: int = Field(..., description="Sum of the scores of the user's posts")
    comment_karma: int = Field(..., description="Sum of the scores of the user's comments")
    total_karma: int
    cached_karma: int = Field(..., description="Incrementally maintained karma")
