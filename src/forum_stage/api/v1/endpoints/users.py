"""User profile endpoints: karma and authored posts."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, status

from forum_stage.schemas.post import PostResponse
from forum_stage.schemas.user import KarmaResponse

from ..dependencies import FeedServiceDep, KarmaServiceDep

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/{user_id}/karma", response_model=KarmaResponse)
async def get_user_karma(user_id: int, karma: KarmaServiceDep) -> KarmaResponse:
    """Return a user's karma recomputed from their content alongside the cached value."""
    cached = karma.cached_karma(user_id)
    if cached is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    breakdown = karma.compute_karma(user_id)
    return KarmaResponse(
        user_id=user_id,
        post_karma=breakdown.post_karma,
        comment_karma=breakdown.comment_karma,
        total_karma=breakdown.total_karma,
        cached_karma=cached,
    )


@router.get("/{user_id}/posts", response_model=list[PostResponse])
async def list_user_posts(user_id: int, feed: FeedServiceDep) -> list[PostResponse]:
    """List posts authored by a user, newest first."""
    return [PostResponse.model_validate(post) for post in feed.list_by_user(user_id)]
