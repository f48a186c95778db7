"""Vote-related Pydantic schemas."""

from typing import Literal

from pydantic import BaseModel, Field


class VoteCast(BaseModel):
    """Schema for casting a vote on a post or comment.

    ``value`` must be a JSON integer; booleans, numeric strings and floats are
    rejected at validation. The ledger owns the +1/-1 rule and reports other
    integers as a client error.
    """

    value: int = Field(..., strict=True, description="1 for upvote, -1 for downvote")
    anonymous_id: str | None = Field(
        None,
        max_length=64,
        description="Client-generated anonymous id; takes precedence over the session user",
    )


class VoteResponse(BaseModel):
    """Outcome of a vote cast together with the recounted tally."""

    outcome: Literal["cast", "retracted", "changed"]
    value: int = Field(..., description="Caller's vote after the cast; 0 when retracted")
    upvotes: int
    downvotes: int
    score: int


class MyVoteResponse(BaseModel):
    """Caller's current vote on a target."""

    value: int = Field(..., description="1, -1, or 0 when the caller has not voted")
