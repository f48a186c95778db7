"""Service layer for the forum application."""

from .feed import FeedPage, FeedService
from .karma import KarmaBreakdown, KarmaService
from .vote_ledger import Tally, VoteLedger, VoteOutcome, VoteResult

__all__ = [
    "FeedPage",
    "FeedService",
    "KarmaBreakdown",
    "KarmaService",
    "Tally",
    "VoteLedger",
    "VoteOutcome",
    "VoteResult",
]
