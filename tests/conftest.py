"""
pytest Fixtures for the Review Feed API Tests

Fixtures provide test resources (database session, Redis, HTTP client)
and sample data (accounts, reviews).

For database tests we use:
- session scope for the engine (created once)
- function scope for sessions: every test runs inside an outer
  transaction that is rolled back afterwards

Services commit and sometimes roll back on their own, so the session
joins the outer transaction with SAVEPOINTs
(join_transaction_mode="create_savepoint"): a service-level commit or
rollback only ends a savepoint, never the outer transaction.
"""

# =============================================================================
# TEST ENVIRONMENT SETUP
# =============================================================================
# Set environment variables BEFORE importing the app: settings are cached
# on first use.
import os

os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["SCHEDULER_ENABLED"] = "false"
os.environ["SECRET_KEY"] = "test-secret-key-for-unit-tests-at-least-32-characters-long"
os.environ["NAVER_CLIENT_ID"] = "test-naver-client-id"
os.environ["NAVER_CLIENT_SECRET"] = "test-naver-client-secret"
os.environ["KAKAO_CLIENT_ID"] = "test-kakao-client-id"
os.environ["KAKAO_CLIENT_SECRET"] = "test-kakao-client-secret"

import fnmatch
import itertools
from collections.abc import Callable, Generator
from datetime import datetime

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from reviewhub.database import Base, get_db
from reviewhub.main import app
from reviewhub.models import Account, Review, ReviewImage, ReviewTag
from reviewhub.services import cache, events
from reviewhub.services.security import hash_password


# =============================================================================
# IN-MEMORY REDIS
# =============================================================================
class FakeRedis:
    """
    In-memory stand-in for the sync redis client (decode_responses=True).

    Implements the commands the application uses and records every
    published message in `published` as (channel, message).
    """

    def __init__(self):
        self.store: dict[str, str] = {}
        self.ttls: dict[str, int] = {}
        self.published: list[tuple[str, str]] = []

    def ping(self) -> bool:
        return True

    def get(self, key):
        return self.store.get(key)

    def set(self, key, value, ex=None):
        self.store[key] = str(value)
        if ex is not None:
            self.ttls[key] = ex
        return True

    def setex(self, key, ttl, value):
        self.store[key] = str(value)
        self.ttls[key] = ttl
        return True

    def incr(self, key, amount=1):
        value = int(self.store.get(key, "0")) + amount
        self.store[key] = str(value)
        return value

    def getdel(self, key):
        self.ttls.pop(key, None)
        return self.store.pop(key, None)

    def delete(self, *keys):
        removed = 0
        for key in keys:
            if self.store.pop(key, None) is not None:
                removed += 1
            self.ttls.pop(key, None)
        return removed

    def mget(self, keys):
        return [self.store.get(key) for key in keys]

    def scan_iter(self, match=None, count=None):
        for key in list(self.store):
            if match is None or fnmatch.fnmatchcase(key, match):
                yield key

    def publish(self, channel, message):
        self.published.append((channel, message))
        return 0

    def info(self, section=None):
        return {"keyspace_hits": 0, "keyspace_misses": 0}

    def dbsize(self):
        return len(self.store)

    def close(self):
        pass


@pytest.fixture(autouse=True)
def fake_redis(monkeypatch) -> FakeRedis:
    """Install a fresh in-memory Redis as the shared cache client."""
    client = FakeRedis()
    monkeypatch.setattr(cache, "_redis_client", client)
    return client


@pytest.fixture
def redis_down(monkeypatch) -> None:
    """Make every cache helper behave as if Redis were unreachable."""
    monkeypatch.setattr(cache, "get_redis_client", lambda: None)
    monkeypatch.setattr(events, "get_redis_client", lambda: None)


# =============================================================================
# DATABASE FIXTURES
# =============================================================================
# SQLite in-memory: fast and isolated. StaticPool keeps the single
# connection alive so the in-memory database survives between uses.
#
# pysqlite's own transaction handling breaks SAVEPOINT; the two listeners
# below hand BEGIN over to SQLAlchemy.

@pytest.fixture(scope="session")
def engine():
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def _disable_pysqlite_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")

    Base.metadata.create_all(bind=engine)

    yield engine

    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db_session(engine) -> Generator[Session, None, None]:
    """
    Session for one test; everything it writes is rolled back afterwards.
    """
    connection = engine.connect()
    transaction = connection.begin()
    session = Session(
        bind=connection,
        autoflush=False,
        join_transaction_mode="create_savepoint",
    )

    yield session

    session.close()
    transaction.rollback()
    connection.close()


@pytest.fixture(scope="function")
def client(db_session: Session) -> Generator[TestClient, None, None]:
    """
    Test client whose requests use the test session.
    """

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


# =============================================================================
# SAMPLE DATA FIXTURES
# =============================================================================

_sequence = itertools.count(1)


@pytest.fixture
def make_account(db_session: Session) -> Callable[..., Account]:
    """Factory for accounts with unique email/nickname."""

    def _make(nickname: str | None = None, password: str = "SecurePass123", **fields) -> Account:
        n = next(_sequence)
        nickname = nickname or f"user{n}"
        account = Account(
            email=fields.pop("email", f"{nickname}.{n}@example.com"),
            nickname=nickname,
            hashed_password=hash_password(password),
            **fields,
        )
        db_session.add(account)
        db_session.commit()
        db_session.refresh(account)
        return account

    return _make


@pytest.fixture
def alice(make_account) -> Account:
    return make_account("alice", email="alice@example.com")


@pytest.fixture
def bob(make_account) -> Account:
    return make_account("bob", email="bob@example.com")


@pytest.fixture
def carol(make_account) -> Account:
    return make_account("carol", email="carol@example.com")


@pytest.fixture
def make_review(db_session: Session) -> Callable[..., Review]:
    """
    Factory for reviews.

    Extra keyword arguments set Review columns directly (e.g. created_at,
    view_count); tags and images are lists of names / paths.
    """

    def _make(
        author: Account,
        title: str = "A review",
        content: str = "Some thoughts",
        score: int = 4,
        tags: list[str] | None = None,
        images: list[str] | None = None,
        created_at: datetime | None = None,
        **fields,
    ) -> Review:
        review = Review(
            account_id=author.id,
            title=title,
            content=content,
            score=score,
            tags=[ReviewTag(tag_name=name) for name in tags or []],
            images=[
                ReviewImage(img_path=path, position=position)
                for position, path in enumerate(images or [])
            ],
            **fields,
        )
        if created_at is not None:
            review.created_at = created_at
        db_session.add(review)
        db_session.commit()
        db_session.refresh(review)
        return review

    return _make


@pytest.fixture
def sample_review(make_review, alice: Account) -> Review:
    return make_review(alice, title="Best ramen in town", content="Rich broth", tags=["food"])
