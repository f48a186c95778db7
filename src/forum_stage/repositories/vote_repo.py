"""SQLAlchemy-backed vote store."""
from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import case, func, select, update
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from forum_stage.core.errors import StoreConflict
from forum_stage.core.identity import (
    AnonymousVoter,
    CommentTarget,
    PostTarget,
    RegisteredVoter,
    VoterIdentity,
    VoteTarget,
)
from forum_stage.models import Comment, Post, User, Vote
from forum_stage.repositories.base import TargetRecord, VoteRecord

__all__ = ["SqlAlchemyVoteStore", "target_row_statement"]

# serialization_failure, deadlock_detected, lock_not_available
_CONTENTION_SQLSTATES = frozenset({"40001", "40P01", "55P03"})
_CONTENTION_MESSAGES = ("database is locked", "database table is locked")


def _is_contention(err: OperationalError) -> bool:
    """Tell lock and serialization failures apart from broken schemas or connections."""
    orig = err.orig
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if sqlstate in _CONTENTION_SQLSTATES:
        return True
    message = str(orig).lower()
    return any(fragment in message for fragment in _CONTENTION_MESSAGES)


def target_row_statement(target: VoteTarget):
    """Select a target's author and counters, row-locked until the transaction ends.

    The lock serializes casts on one target across worker processes, so no
    recount can overwrite a newer one. SQLite ignores ``FOR UPDATE``.
    """
    model, target_id = _target_model(target)
    return (
        select(model.user_id, model.upvotes, model.downvotes, model.score)
        .where(model.id == target_id)
        .with_for_update()
    )


def _target_model(target: VoteTarget) -> tuple[type[Post] | type[Comment], int]:
    if isinstance(target, PostTarget):
        return Post, target.post_id
    return Comment, target.comment_id


def _target_clause(target: VoteTarget):
    if isinstance(target, PostTarget):
        return Vote.post_id == target.post_id
    return Vote.comment_id == target.comment_id


def _voter_clause(voter: VoterIdentity):
    if isinstance(voter, RegisteredVoter):
        return Vote.user_id == voter.user_id
    return Vote.anonymous_id == voter.anonymous_id


def _to_record(vote: Vote) -> VoteRecord:
    target: VoteTarget
    if vote.post_id is not None:
        target = PostTarget(vote.post_id)
    else:
        target = CommentTarget(vote.comment_id)  # type: ignore[arg-type]
    voter: VoterIdentity
    if vote.user_id is not None:
        voter = RegisteredVoter(vote.user_id)
    else:
        voter = AnonymousVoter(vote.anonymous_id)  # type: ignore[arg-type]
    return VoteRecord(id=vote.id, target=target, voter=voter, value=vote.value)


class SqlAlchemyVoteStore:
    """Vote store over a synchronous SQLAlchemy session.

    Each transaction commits the session on success and rolls it back on
    failure. Unique-constraint violations and lock contention surface as
    :class:`StoreConflict` so the ledger can retry.
    """

    def __init__(self, session: Session) -> None:
        """Initialize the store with a SQLAlchemy session."""
        self.session = session

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Commit the session when the block succeeds, roll it back otherwise."""
        try:
            yield
            self.session.commit()
        except IntegrityError as err:
            self.session.rollback()
            raise StoreConflict(str(err.orig)) from err
        except OperationalError as err:
            self.session.rollback()
            if _is_contention(err):
                raise StoreConflict(str(err.orig)) from err
            raise
        except StaleDataError as err:
            # A concurrent retract already deleted the row this one targeted.
            self.session.rollback()
            raise StoreConflict(str(err)) from err
        except Exception:
            self.session.rollback()
            raise

    def find_vote(self, target: VoteTarget, voter: VoterIdentity) -> VoteRecord | None:
        """Return the live vote ``voter`` holds on ``target``, if any."""
        vote = self.session.execute(
            select(Vote).where(_target_clause(target), _voter_clause(voter))
        ).scalars().first()
        return _to_record(vote) if vote is not None else None

    def insert_vote(self, target: VoteTarget, voter: VoterIdentity, value: int) -> VoteRecord:
        """Insert a vote and flush so the unique constraints are checked now."""
        vote = Vote(value=value)
        if isinstance(target, PostTarget):
            vote.post_id = target.post_id
        else:
            vote.comment_id = target.comment_id
        if isinstance(voter, RegisteredVoter):
            vote.user_id = voter.user_id
        else:
            vote.anonymous_id = voter.anonymous_id
        self.session.add(vote)
        self.session.flush()
        return _to_record(vote)

    def update_vote(self, vote_id: int, value: int) -> None:
        self.session.execute(update(Vote).where(Vote.id == vote_id).values(value=value))
        self.session.flush()

    def delete_vote(self, vote_id: int) -> None:
        vote = self.session.get(Vote, vote_id)
        if vote is not None:
            self.session.delete(vote)
            self.session.flush()

    def get_target(self, target: VoteTarget) -> TargetRecord | None:
        """Return the target's author and counters, or ``None`` if it does not exist."""
        row = self.session.execute(target_row_statement(target)).first()
        if row is None:
            return None
        return TargetRecord(
            author_id=row.user_id,
            upvotes=row.upvotes,
            downvotes=row.downvotes,
            score=row.score,
        )

    def count_votes(self, target: VoteTarget) -> tuple[int, int]:
        """Count live up and down votes for ``target`` straight from the vote table."""
        row = self.session.execute(
            select(
                func.coalesce(func.sum(case((Vote.value == 1, 1), else_=0)), 0),
                func.coalesce(func.sum(case((Vote.value == -1, 1), else_=0)), 0),
            ).where(_target_clause(target))
        ).one()
        return int(row[0]), int(row[1])

    def set_target_counters(
        self,
        target: VoteTarget,
        upvotes: int,
        downvotes: int,
        score: int,
    ) -> None:
        model, target_id = _target_model(target)
        self.session.execute(
            update(model)
            .where(model.id == target_id)
            .values(upvotes=upvotes, downvotes=downvotes, score=score)
        )

    def adjust_author_karma(self, author_id: int, delta: int) -> bool:
        """Apply ``delta`` in SQL so concurrent adjustments never overwrite each other.

        Returns whether ``author_id`` names an existing user.
        """
        if delta == 0:
            return self.get_author_karma(author_id) is not None
        result = self.session.execute(
            update(User).where(User.id == author_id).values(karma=User.karma + delta)
        )
        return result.rowcount == 1

    def get_author_karma(self, author_id: int) -> int | None:
        return self.session.execute(
            select(User.karma).where(User.id == author_id)
        ).scalar_one_or_none()

    def set_author_karma(self, author_id: int, karma: int) -> None:
        self.session.execute(update(User).where(User.id == author_id).values(karma=karma))

    def author_scores(self, author_id: int) -> tuple[int, int]:
        """Sum the cached scores of the author's posts and comments."""
        post_total = self.session.execute(
            select(func.coalesce(func.sum(Post.score), 0)).where(Post.user_id == author_id)
        ).scalar_one()
        comment_total = self.session.execute(
            select(func.coalesce(func.sum(Comment.score), 0)).where(Comment.user_id == author_id)
        ).scalar_one()
        return int(post_total), int(comment_total)
