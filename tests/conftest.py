# tests/conftest.py

import os

# Settings are read at import time, so the environment must be ready first.
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("DATABASE_URL_LOCAL", "sqlite:///./smartqueue_test.db")
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["SCHEDULER_ENABLED"] = "false"
os.environ["CREATE_TABLES_ON_STARTUP"] = "false"

import pytest
from starlette.testclient import TestClient
from unittest.mock import MagicMock

from smartqueue.main import app
from smartqueue.api import deps
from smartqueue.db.base_class import Base
from smartqueue.db.session import build_engine, make_session_factory
from smartqueue.schemas.token import TokenPayload
from smartqueue.services.notification_service import NotificationDispatcher

import smartqueue.models  # noqa: F401  (registers every table on Base.metadata)


# --- Database Setup ---
# A file-backed SQLite database per test so worker threads can share it.
@pytest.fixture(scope="function")
def engine(tmp_path):
    test_engine = build_engine(f"sqlite:///{tmp_path / 'smartqueue_test.db'}")
    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    test_engine.dispose()


@pytest.fixture(scope="function")
def session_factory(engine):
    return make_session_factory(engine)


@pytest.fixture(scope="function")
def db_session(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture(scope="function")
def notifier():
    """A dispatcher that records calls instead of delivering them."""
    return MagicMock(spec=NotificationDispatcher)


# --- Mock Dependencies Setup ---
class CurrentUser:
    """Mutable stand-in for the authenticated caller of the test client."""

    def __init__(self):
        self.payload = TokenPayload(sub="user_a")

    def login(self, user_id: str, role: str | None = None) -> TokenPayload:
        self.payload = TokenPayload(sub=user_id, role=role)
        return self.payload


@pytest.fixture(scope="function")
def current_user():
    return CurrentUser()


# --- Test Client Fixtures ---
@pytest.fixture(scope="function")
def test_client(session_factory, notifier, current_user):
    """
    Provides a TestClient backed by the per-test database, with authentication
    and notification delivery mocked.
    """

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[deps.get_db] = override_get_db
    app.dependency_overrides[deps.get_current_user] = lambda: current_user.payload
    app.dependency_overrides[deps.get_notifier] = lambda: notifier

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def test_client_real_auth(session_factory, notifier):
    """Same as test_client, but bearer tokens are decoded for real."""

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[deps.get_db] = override_get_db
    app.dependency_overrides[deps.get_notifier] = lambda: notifier

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()
