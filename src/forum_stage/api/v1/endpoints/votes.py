"""Vote-related endpoints for the forum API."""

from __future__ import annotations

from typing import NoReturn

from fastapi import APIRouter, HTTPException, Query, status

from forum_stage.core.errors import (
    ConcurrentModification,
    InvalidVoterIdentity,
    InvalidVoteValue,
    TargetNotFound,
    VoteError,
)
from forum_stage.core.identity import (
    CommentTarget,
    PostTarget,
    VoteTarget,
    resolve_voter_identity,
)
from forum_stage.schemas.vote import MyVoteResponse, VoteCast, VoteResponse
from forum_stage.services.vote_ledger import VoteLedger, VoteResult

from ..dependencies import SessionUserDep, VoteLedgerDep

router = APIRouter(prefix="/votes", tags=["votes"])


def _raise_for(err: VoteError) -> NoReturn:
    if isinstance(err, InvalidVoteValue | InvalidVoterIdentity):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(err)) from err
    if isinstance(err, TargetNotFound):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(err)) from err
    if isinstance(err, ConcurrentModification):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(err)) from err
    raise err


def _to_response(result: VoteResult) -> VoteResponse:
    return VoteResponse(
        outcome=result.outcome.value,
        value=result.value or 0,
        upvotes=result.tally.upvotes,
        downvotes=result.tally.downvotes,
        score=result.tally.score,
    )


def _cast(
    target: VoteTarget,
    vote_data: VoteCast,
    session_user_id: int | None,
    ledger: VoteLedger,
) -> VoteResponse:
    try:
        # Resolved exactly once, here; the ledger never sees the session.
        voter = resolve_voter_identity(
            anonymous_id=vote_data.anonymous_id,
            session_user_id=session_user_id,
        )
        result = ledger.cast_vote(target, voter, vote_data.value)
    except VoteError as err:
        _raise_for(err)
    return _to_response(result)


@router.post("/posts/{post_id}", response_model=VoteResponse)
def cast_post_vote(
    post_id: int,
    vote_data: VoteCast,
    session_user_id: SessionUserDep,
    ledger: VoteLedgerDep,
) -> VoteResponse:
    """Cast, retract, or flip a vote on a post."""
    return _cast(PostTarget(post_id), vote_data, session_user_id, ledger)


@router.post("/comments/{comment_id}", response_model=VoteResponse)
def cast_comment_vote(
    comment_id: int,
    vote_data: VoteCast,
    session_user_id: SessionUserDep,
    ledger: VoteLedgerDep,
) -> VoteResponse:
    """Cast, retract, or flip a vote on a comment."""
    return _cast(CommentTarget(comment_id), vote_data, session_user_id, ledger)


def _my_vote(
    target: VoteTarget,
    anonymous_id: str | None,
    session_user_id: int | None,
    ledger: VoteLedger,
) -> MyVoteResponse:
    try:
        voter = resolve_voter_identity(anonymous_id=anonymous_id, session_user_id=session_user_id)
    except InvalidVoterIdentity:
        # Nobody to look up: an unidentified caller has no vote.
        return MyVoteResponse(value=0)
    return MyVoteResponse(value=ledger.get_vote(target, voter))


@router.get("/posts/{post_id}/my-vote", response_model=MyVoteResponse)
async def get_my_post_vote(
    post_id: int,
    session_user_id: SessionUserDep,
    ledger: VoteLedgerDep,
    anonymous_id: str | None = Query(None, max_length=64),
) -> MyVoteResponse:
    """Get the caller's current vote on a post."""
    return _my_vote(PostTarget(post_id), anonymous_id, session_user_id, ledger)


@router.get("/comments/{comment_id}/my-vote", response_model=MyVoteResponse)
async def get_my_comment_vote(
    comment_id: int,
    session_user_id: SessionUserDep,
    ledger: VoteLedgerDep,
    anonymous_id: str | None = Query(None, max_length=64),
) -> MyVoteResponse:
    """Get the caller's current vote on a comment."""
    return _my_vote(CommentTarget(comment_id), anonymous_id, session_user_id, ledger)
