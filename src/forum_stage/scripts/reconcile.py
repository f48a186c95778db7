"""Rebuild cached vote counters and karma from the vote table.

Usage:
    python -m forum_stage.scripts.reconcile [--dry-run]

Counters are recomputed first so that karma, which sums cached scores, is
rebuilt from corrected values.
"""
from __future__ import annotations

import argparse
import logging
import sys

from sqlalchemy import select
from sqlalchemy.orm import Session

from forum_stage.core.identity import CommentTarget, PostTarget
from forum_stage.db.session import SessionLocal
from forum_stage.models import Comment, Post, User
from forum_stage.repositories import SqlAlchemyVoteStore
from forum_stage.services import KarmaService, VoteLedger

logger = logging.getLogger(__name__)


def reconcile(db: Session, *, dry_run: bool = False) -> dict[str, int]:
    """Recompute every target's counters and every user's karma.

    Args:
        db: Database session to work in.
        dry_run: Count drift without writing corrections.

    Returns:
        Counts of repaired targets and users.
    """
    store = SqlAlchemyVoteStore(db)
    ledger = VoteLedger(store)
    karma = KarmaService(store)

    targets = [PostTarget(post_id) for post_id in db.execute(select(Post.id)).scalars()]
    targets += [CommentTarget(comment_id) for comment_id in db.execute(select(Comment.id)).scalars()]

    repaired_targets = 0
    for target in targets:
        # Commit per target so the row lock taken by get_target is released.
        with store.transaction():
            cached = store.get_target(target)
            fresh = ledger.tally(target)
        if cached is None:
            continue
        if (cached.upvotes, cached.downvotes, cached.score) == (
            fresh.upvotes,
            fresh.downvotes,
            fresh.score,
        ):
            continue
        repaired_targets += 1
        if not dry_run:
            ledger.reconcile_target(target)

    repaired_users = 0
    for user_id in db.execute(select(User.id)).scalars().all():
        if dry_run:
            cached_karma = karma.cached_karma(user_id)
            if cached_karma != karma.compute_karma(user_id).total_karma:
                repaired_users += 1
        elif karma.reconcile_karma(user_id):
            repaired_users += 1

    return {"targets": repaired_targets, "users": repaired_users}


def main(argv: list[str] | None = None) -> int:
    """CLI entry point."""
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--dry-run", action="store_true", help="Report drift without fixing it")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    with SessionLocal() as db:
        counts = reconcile(db, dry_run=args.dry_run)
    verb = "would repair" if args.dry_run else "repaired"
    print(f"[reconcile] {verb} {counts['targets']} target(s) and {counts['users']} user(s)")
    return 0


if __name__ == "__main__":
    sys.exit(main())
