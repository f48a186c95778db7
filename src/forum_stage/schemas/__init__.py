"""Pydantic schemas for the forum API."""

from .post import CommentResponse, FeedResponse, HotScoreRequest, HotScoreResponse, PostResponse
from .user import KarmaResponse
from .vote import MyVoteResponse, VoteCast, VoteResponse

__all__ = [
    "CommentResponse",
    "FeedResponse",
    "HotScoreRequest",
    "HotScoreResponse",
    "KarmaResponse",
    "MyVoteResponse",
    "PostResponse",
    "VoteCast",
    "VoteResponse",
]
