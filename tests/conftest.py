"""
tests/conftest.py — Shared Test Fixtures
=========================================
"""

from __future__ import annotations

import os

# ---------------------------------------------------------------------------
# Ensure a valid JWT_SECRET is always set for test runs.
# This must happen before any import of playhub.api.deps which validates
# the secret at module-load time.
# ---------------------------------------------------------------------------
_TEST_JWT_SECRET = "test-secret-for-pytest-only-" + "x" * 40  # > 32 chars
os.environ.setdefault("JWT_SECRET", _TEST_JWT_SECRET)

import pytest  # noqa: E402
from sqlalchemy import Engine, create_engine  # noqa: E402
from sqlalchemy.orm import Session  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from playhub.database.engine import init_db  # noqa: E402
from playhub.engine.throttle import ActionThrottle  # noqa: E402
from playhub.identity import Identity  # noqa: E402
from playhub.services import user_service  # noqa: E402
from playhub.services.catalog import StaticGameCatalog  # noqa: E402

KNOWN_GAMES = ("celeste", "hades", "outer-wilds")


@pytest.fixture
def db_engine() -> Engine:
    """In-memory SQLite engine with all PlayHub tables and the default catalogue.

    Uses StaticPool so all threads share the same in-memory database
    (FastAPI runs sync routes and background tasks in a threadpool).
    """
    engine = create_engine(
        "sqlite://",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    return engine


@pytest.fixture
def db_session(db_engine: Engine):
    """Provide a session for direct assertions; rolled back after each test."""
    with Session(db_engine) as session:
        yield session
        session.rollback()


@pytest.fixture
def catalog() -> StaticGameCatalog:
    return StaticGameCatalog(KNOWN_GAMES)


@pytest.fixture
def throttle() -> ActionThrottle:
    """A throttle with a long window, so a second hit is always rejected."""
    return ActionThrottle(window_seconds=60.0)


@pytest.fixture
def make_member(db_engine: Engine):
    """Factory: create a user row and return the caller identity for it."""

    def _make(name: str, *, is_admin: bool = False) -> Identity:
        user = user_service.create_user(db_engine, name)
        return Identity(user_id=user.id, display_name=name, is_admin=is_admin)

    return _make


@pytest.fixture
def alice(make_member) -> Identity:
    return make_member("Alice")


@pytest.fixture
def bob(make_member) -> Identity:
    return make_member("Bob")


@pytest.fixture
def admin(make_member) -> Identity:
    return make_member("Moderator", is_admin=True)


def make_token(user_id: int, name: str = "Player", *, is_admin: bool = False) -> str:
    """Create a signed access token as the identity provider would."""
    import jwt

    from playhub.api.deps import JWT_ALGORITHM, JWT_SECRET

    return jwt.encode(
        {"sub": str(user_id), "name": name, "is_admin": is_admin},
        JWT_SECRET,
        algorithm=JWT_ALGORITHM,
    )


@pytest.fixture
def auth_headers():
    """Factory: ``Authorization`` header for an :class:`Identity`."""

    def _headers(identity: Identity) -> dict:
        token = make_token(
            identity.user_id, identity.display_name, is_admin=identity.is_admin,
        )
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def client(db_engine, catalog):
    """FastAPI TestClient wired to the in-memory database.

    The lifespan is not entered, so the engine, catalog and throttle
    dependencies are overridden directly.
    """
    from fastapi.testclient import TestClient

    from playhub.api.deps import get_catalog, get_engine, get_throttle
    from playhub.api.main import app

    test_throttle = ActionThrottle(window_seconds=60.0)
    app.dependency_overrides[get_engine] = lambda: db_engine
    app.dependency_overrides[get_catalog] = lambda: catalog
    app.dependency_overrides[get_throttle] = lambda: test_throttle
    try:
        yield TestClient(app, raise_server_exceptions=False)
    finally:
        app.dependency_overrides.clear()
