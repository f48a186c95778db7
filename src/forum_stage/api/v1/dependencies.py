"""Shared API dependencies for sessions, identity, and services."""

from functools import lru_cache
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.orm import Session

from forum_stage.core.ranking import RankingEngine
from forum_stage.core.security import decode_access_token
from forum_stage.db.session import get_db
from forum_stage.models import User
from forum_stage.repositories import SqlAlchemyVoteStore
from forum_stage.services import FeedService, KarmaService, VoteLedger

# Voting and reading are open to anonymous clients, so a missing token is not an error.
bearer_scheme = HTTPBearer(auto_error=False)

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]


def get_session_user_id(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    db: SessionDep,
) -> int | None:
    """Return the registered user behind the bearer token, if one was sent.

    Args:
        credentials: Optional HTTP Bearer token credentials
        db: Database session

    Returns:
        The user id, or None for an unauthenticated request

    Raises:
        HTTPException: If a token was sent but is invalid or names an unknown user
    """
    if credentials is None:
        return None
    try:
        user_id = decode_access_token(credentials.credentials)
    except ValueError as err:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
        ) from err

    exists = db.execute(select(User.id).where(User.id == user_id)).scalar_one_or_none()
    if exists is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )
    return user_id


@lru_cache(maxsize=1)
def get_ranking_engine() -> RankingEngine:
    """Return the shared ranking engine built from settings."""
    return RankingEngine()


def get_vote_ledger(db: SessionDep) -> VoteLedger:
    """Return a vote ledger bound to the request's session."""
    return VoteLedger(SqlAlchemyVoteStore(db))


def get_karma_service(db: SessionDep) -> KarmaService:
    """Return a karma service bound to the request's session."""
    return KarmaService(SqlAlchemyVoteStore(db))


def get_feed_service(
    db: SessionDep,
    ranking: Annotated[RankingEngine, Depends(get_ranking_engine)],
) -> FeedService:
    """Return a feed service bound to the request's session."""
    return FeedService(db, ranking)


SessionUserDep = Annotated[int | None, Depends(get_session_user_id)]
RankingDep = Annotated[RankingEngine, Depends(get_ranking_engine)]
VoteLedgerDep = Annotated[VoteLedger, Depends(get_vote_ledger)]
KarmaServiceDep = Annotated[KarmaService, Depends(get_karma_service)]
FeedServiceDep = Annotated[FeedService, Depends(get_feed_service)]
