"""Voter identities and vote targets as closed sum types.

Each variant carries exactly one identifier, so a vote can never reference
both a registered user and an anonymous client, or both a post and a comment.
"""

from __future__ import annotations

from dataclasses import dataclass

from forum_stage.core.errors import InvalidVoterIdentity


@dataclass(frozen=True, slots=True)
class RegisteredVoter:
    """Voter authenticated as a registered user."""

    user_id: int

    def __post_init__(self) -> None:
        if isinstance(self.user_id, bool) or not isinstance(self.user_id, int):
            raise InvalidVoterIdentity(f"Registered user id must be an integer, got {self.user_id!r}")

    def __str__(self) -> str:
        return f"user:{self.user_id}"


@dataclass(frozen=True, slots=True)
class AnonymousVoter:
    """Voter identified only by a client-generated anonymous id."""

    anonymous_id: str

    def __post_init__(self) -> None:
        if not isinstance(self.anonymous_id, str) or not self.anonymous_id.strip():
            raise InvalidVoterIdentity("Anonymous id must be a non-empty string")

    def __str__(self) -> str:
        return f"anon:{self.anonymous_id}"


VoterIdentity = RegisteredVoter | AnonymousVoter


@dataclass(frozen=True, slots=True)
class PostTarget:
    """A vote aimed at a post."""

    post_id: int

    def __str__(self) -> str:
        return f"Post {self.post_id}"


@dataclass(frozen=True, slots=True)
class CommentTarget:
    """A vote aimed at a comment."""

    comment_id: int

    def __str__(self) -> str:
        return f"Comment {self.comment_id}"


VoteTarget = PostTarget | CommentTarget


def resolve_voter_identity(
    *,
    anonymous_id: str | None,
    session_user_id: int | None,
) -> VoterIdentity:
    """Resolve the single identity a vote request is cast under.

    An explicitly supplied anonymous id always wins, even when the request
    also carries an authenticated session; the session user is only used
    when no anonymous id was given, and a blank anonymous id counts as not
    given. Callers must resolve once and hand the result to the ledger,
    which never looks at the session itself.

    Args:
        anonymous_id: Anonymous id supplied with the request, if any.
        session_user_id: Registered user derived from the request session, if any.

    Returns:
        The resolved voter identity.

    Raises:
        InvalidVoterIdentity: If neither identity is available.
    """
    if anonymous_id is not None and anonymous_id.strip():
        return AnonymousVoter(anonymous_id)
    if session_user_id is not None:
        return RegisteredVoter(session_user_id)
    raise InvalidVoterIdentity("An anonymous id or an authenticated session is required to vote")
