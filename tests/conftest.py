from __future__ import annotations

import os
from collections.abc import Callable, Generator, Iterator
from datetime import UTC, datetime, timedelta
from itertools import count

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("DATABASE_URL", "sqlite://")

from forum_stage.core.security import create_access_token
from forum_stage.db.session import Base
from forum_stage.db.session import get_db as app_get_session
from forum_stage.main import app as fastapi_app
from forum_stage.models import Category, Comment, Post, User
from forum_stage.repositories import InMemoryVoteStore, SqlAlchemyVoteStore
from forum_stage.services.vote_ledger import TargetLockRegistry, VoteLedger

TEST_DB_URL = "sqlite://"
BASE_TIME = datetime(2026, 1, 1, 12, 0, tzinfo=UTC)

_USERNAME_COUNTER = count(1)
_SLUG_COUNTER = count(1)


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    SessionLocal = sessionmaker(
        bind=engine,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        # The ledger commits, so each test wipes the tables instead of rolling back.
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def override_session_dependency(app: FastAPI, db_session: Session) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    try:
        yield
    finally:
        app.dependency_overrides.pop(app_get_session, None)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


# --- persisted rows -----------------------------------------------------------------


@pytest.fixture()
def make_user(db_session: Session) -> Callable[..., User]:
    """Return a factory persisting registered users."""

    def _make(username: str | None = None, karma: int = 0) -> User:
        user = User(username=username or f"user{next(_USERNAME_COUNTER)}", karma=karma)
        db_session.add(user)
        db_session.commit()
        return user

    return _make


@pytest.fixture()
def test_user(make_user: Callable[..., User]) -> User:
    """Create the primary test user."""
    return make_user("alice")


@pytest.fixture()
def other_user(make_user: Callable[..., User]) -> User:
    """Create a second test user."""
    return make_user("bob")


@pytest.fixture()
def category(db_session: Session) -> Category:
    """Create a default category."""
    slug = f"work-{next(_SLUG_COUNTER)}"
    category = Category(slug=slug, name="Work")
    db_session.add(category)
    db_session.commit()
    return category


@pytest.fixture()
def make_post(db_session: Session) -> Callable[..., Post]:
    """Return a factory persisting posts with controllable creation times."""

    def _make(
        author: User | None = None,
        *,
        created_at: datetime | None = None,
        category: Category | None = None,
        anonymous_id: str | None = None,
        title: str = "Printer jammed again",
    ) -> Post:
        post = Post(
            title=title,
            body="",
            user_id=author.id if author is not None else None,
            anonymous_id=anonymous_id if author is None else None,
            category_id=category.id if category is not None else None,
            created_at=created_at or BASE_TIME,
        )
        db_session.add(post)
        db_session.commit()
        return post

    return _make


@pytest.fixture()
def test_post(make_post: Callable[..., Post], test_user: User) -> Post:
    """Create a post authored by the primary test user."""
    return make_post(test_user)


@pytest.fixture()
def make_comment(db_session: Session) -> Callable[..., Comment]:
    """Return a factory persisting comments."""

    def _make(
        post: Post,
        author: User | None = None,
        *,
        created_at: datetime | None = None,
        body: str = "Same here",
    ) -> Comment:
        comment = Comment(
            post_id=post.id,
            body=body,
            user_id=author.id if author is not None else None,
            anonymous_id=None if author is not None else "anon-author",
            created_at=created_at or BASE_TIME + timedelta(minutes=1),
        )
        db_session.add(comment)
        db_session.commit()
        return comment

    return _make


@pytest.fixture()
def test_comment(make_comment: Callable[..., Comment], test_post: Post, test_user: User) -> Comment:
    """Create a comment on the test post authored by the primary test user."""
    return make_comment(test_post, test_user)


@pytest.fixture()
def auth_token(test_user: User) -> dict[str, str]:
    """Return authorization headers for the primary test user."""
    return {"Authorization": f"Bearer {create_access_token(test_user.id)}"}


@pytest.fixture()
def other_auth_token(other_user: User) -> dict[str, str]:
    """Return authorization headers for the secondary test user."""
    return {"Authorization": f"Bearer {create_access_token(other_user.id)}"}


# --- ledgers ------------------------------------------------------------------------


@pytest.fixture()
def memory_store() -> InMemoryVoteStore:
    return InMemoryVoteStore()


@pytest.fixture()
def memory_ledger(memory_store: InMemoryVoteStore) -> VoteLedger:
    return VoteLedger(memory_store, locks=TargetLockRegistry())


@pytest.fixture()
def sql_store(db_session: Session) -> SqlAlchemyVoteStore:
    return SqlAlchemyVoteStore(db_session)


@pytest.fixture()
def sql_ledger(sql_store: SqlAlchemyVoteStore) -> VoteLedger:
    return VoteLedger(sql_store, locks=TargetLockRegistry())
