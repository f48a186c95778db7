"""Hot and new feed endpoints."""

from fastapi import APIRouter, HTTPException, Query, status

from forum_stage.core.errors import CategoryNotFound, InvalidCursor
from forum_stage.schemas.post import FeedResponse, PostResponse
from forum_stage.services.feed import FeedPage

from ..dependencies import FeedServiceDep

router = APIRouter(prefix="/feed", tags=["feed"])


def _to_response(page: FeedPage) -> FeedResponse:
    return FeedResponse(
        posts=[PostResponse.model_validate(post) for post in page.posts],
        next_cursor=page.next_cursor,
    )


@router.get("/hot", response_model=FeedResponse)
async def list_hot(
    feed: FeedServiceDep,
    limit: int | None = Query(None, ge=1, description="Page size, capped by configuration"),
    cursor: str | None = Query(None, description="Cursor returned by the previous page"),
    category: str | None = Query(None, description="Filter by category slug"),
) -> FeedResponse:
    """List posts by hot score.

    Raises:
        HTTPException: 400 for a foreign or malformed cursor, 404 for an unknown category
    """
    try:
        page = feed.list_hot(limit=limit, cursor=cursor, category_slug=category)
    except InvalidCursor as err:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(err)) from err
    except CategoryNotFound as err:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(err)) from err
    return _to_response(page)


@router.get("/new", response_model=FeedResponse)
async def list_new(
    feed: FeedServiceDep,
    limit: int | None = Query(None, ge=1, description="Page size, capped by configuration"),
    cursor: str | None = Query(None, description="Cursor returned by the previous page"),
    category: str | None = Query(None, description="Filter by category slug"),
) -> FeedResponse:
    """List posts newest first."""
    try:
        page = feed.list_new(limit=limit, cursor=cursor, category_slug=category)
    except InvalidCursor as err:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(err)) from err
    except CategoryNotFound as err:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(err)) from err
    return _to_response(page)
