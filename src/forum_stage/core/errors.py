"""Exceptions raised by the vote ledger, ranking, and feed services."""

from __future__ import annotations


class VoteError(RuntimeError):
    """Base exception for vote ledger failures.

    Every subclass is scoped to a single request; none of them leave partial
    state behind.
    """


class InvalidVoteValue(VoteError):
    """Raised when a vote value is anything other than +1 or -1."""

    def __init__(self, value: object) -> None:
        super().__init__(f"Vote value must be 1 or -1, got {value!r}")
        self.value = value


class InvalidVoterIdentity(VoteError):
    """Raised when no usable voter identity (or target) accompanies a vote."""


class TargetNotFound(VoteError):
    """Raised when the voted post or comment does not exist."""

    def __init__(self, target: object) -> None:
        super().__init__(f"{target} not found")
        self.target = target


class ConcurrentModification(VoteError):
    """Raised when a vote kept conflicting after every retry.

    The request did not apply and is safe to resend.
    """


class StoreConflict(RuntimeError):
    """Raised by a vote store when a write collides with a concurrent writer."""


class InvalidCursor(ValueError):
    """Raised when a pagination cursor is malformed or belongs to another ordering."""


class CategoryNotFound(LookupError):
    """Raised when a feed is filtered by an unknown category slug."""
