"""Post-related endpoints for the forum API."""

from fastapi import APIRouter, HTTPException, status
from sqlalchemy.orm import Session

from forum_stage.models import Comment, Post
from forum_stage.schemas.post import (
    CommentResponse,
    HotScoreRequest,
    HotScoreResponse,
    PostResponse,
)

from ..dependencies import FeedServiceDep, RankingDep, SessionDep

router = APIRouter(prefix="/posts", tags=["posts"])


def _get_post_or_404(db: Session, post_id: int) -> Post:
    post = db.get(Post, post_id, populate_existing=True)
    if post is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Post not found")
    return post


@router.post("/calculate-hot-score", response_model=HotScoreResponse)
async def calculate_hot_score(payload: HotScoreRequest, ranking: RankingDep) -> HotScoreResponse:
    """Compute the hot score for arbitrary vote counts and a creation time."""
    score = payload.upvotes - payload.downvotes
    return HotScoreResponse(hot_score=ranking.hot_score(score, payload.created_at))


@router.get("/{post_id}", response_model=PostResponse)
async def get_post(post_id: int, db: SessionDep) -> Post:
    """Get a specific post by ID.

    Raises:
        HTTPException: If the post does not exist
    """
    return _get_post_or_404(db, post_id)


@router.get("/{post_id}/comments", response_model=list[CommentResponse])
async def list_post_comments(post_id: int, db: SessionDep, feed: FeedServiceDep) -> list[Comment]:
    """List a post's comments, best first."""
    _get_post_or_404(db, post_id)
    return feed.list_comments(post_id)
