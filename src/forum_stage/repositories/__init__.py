"""Vote store contract and its implementations."""

from .base import TargetRecord, VoteRecord, VoteStore
from .memory import InMemoryVoteStore
from .vote_repo import SqlAlchemyVoteStore

__all__ = [
    "InMemoryVoteStore",
    "SqlAlchemyVoteStore",
    "TargetRecord",
    "VoteRecord",
    "VoteStore",
]
