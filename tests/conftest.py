"""
tests/conftest.py — Shared Test Fixtures
=========================================
"""

from __future__ import annotations

import os

# ---------------------------------------------------------------------------
# Ensure a valid JWT_SECRET is always set for test runs.
# Must happen before any import of triplace.api.deps, which validates the
# secret at module-load time.
# ---------------------------------------------------------------------------
_TEST_JWT_SECRET = "test-secret-for-pytest-only-" + "x" * 40  # > 32 chars
os.environ.setdefault("JWT_SECRET", _TEST_JWT_SECRET)

from datetime import UTC, datetime, timedelta  # noqa: E402

import pytest  # noqa: E402
from sqlalchemy import Engine, create_engine, event  # noqa: E402

# ---------------------------------------------------------------------------
# Make JSONB columns work in SQLite: render the PG type as TEXT.  Values
# still round-trip through SQLAlchemy's generic JSON processor.
# ---------------------------------------------------------------------------
from sqlalchemy.dialects.postgresql import JSONB as PG_JSONB  # noqa: E402
from sqlalchemy.ext.compiler import compiles  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from triplace.config import TriPlaceConfig  # noqa: E402
from triplace.database.models import Base  # noqa: E402
from triplace.services import community_service, event_service, user_service  # noqa: E402


@compiles(PG_JSONB, "sqlite")
def _compile_jsonb_as_text(type_, compiler, **kw):
    return "TEXT"


# San Francisco and two reference points
SF = (37.7749, -122.4194)
OAKLAND = (37.8044, -122.2711)        # ~10 mi from SF
SACRAMENTO = (38.5816, -121.4944)     # ~75 mi from SF
LOS_ANGELES = (34.0522, -118.2437)    # ~350 mi from SF


@pytest.fixture
def db_engine() -> Engine:
    """In-memory SQLite engine with all TriPlace tables.

    StaticPool so every thread (TestClient, ``asyncio.to_thread``) shares the
    same in-memory database.  Foreign keys are enforced as on PostgreSQL.
    """
    engine = create_engine(
        "sqlite://",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def _enforce_foreign_keys(dbapi_connection, _record):
        dbapi_connection.execute("PRAGMA foreign_keys=ON")

    Base.metadata.create_all(engine)
    return engine


@pytest.fixture
def config() -> TriPlaceConfig:
    return TriPlaceConfig()


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------
@pytest.fixture
def make_user(db_engine):
    """Factory: ``make_user("alice", interests=[...], coords=SF)``."""
    def _make(handle: str, *, interests=None, coords=None, **extra):
        data = {
            "firebase_uid": f"uid-{handle}",
            "email": f"{handle}@example.com",
            "name": handle.title(),
            "interests": interests or [],
            **extra,
        }
        if coords is not None:
            data["latitude"], data["longitude"] = coords
        return user_service.create_user(db_engine, data)
    return _make


@pytest.fixture
def make_community(db_engine):
    def _make(name: str, *, description: str = "", category: str = "social", **extra):
        return community_service.create_community(db_engine, {
            "name": name,
            "description": description or f"{name} meetups",
            "category": category,
            **extra,
        })
    return _make


@pytest.fixture
def make_event(db_engine):
    def _make(title: str, *, days: float = 7, category: str = "music", **extra):
        return event_service.create_event(db_engine, {
            "title": title,
            "description": f"{title} description",
            "organizer": "Test Org",
            "date": datetime.now(UTC) + timedelta(days=days),
            "location": "Somewhere",
            "address": "1 Test St",
            "category": category,
            **extra,
        })
    return _make


# ---------------------------------------------------------------------------
# API
# ---------------------------------------------------------------------------
@pytest.fixture
def admin_token():
    """Generate a valid admin JWT for use in API integration tests."""
    return make_admin_token()


def make_admin_token(sub: str = "99999", username: str = "FixtureAdmin") -> str:
    """Create an admin JWT.  Usable as both a fixture and a factory function."""
    import jwt

    from triplace.api.deps import JWT_ALGORITHM, JWT_SECRET

    return jwt.encode(
        {"sub": sub, "username": username, "is_admin": True},
        JWT_SECRET,
        algorithm=JWT_ALGORITHM,
    )


@pytest.fixture
def client(db_engine, config):
    """TestClient bound to the in-memory engine and default config."""
    from fastapi.testclient import TestClient

    from triplace.api import main

    # The objects the routers captured at import, which survive a reload of deps.
    app = main.app
    app.dependency_overrides[main.get_engine] = lambda: db_engine
    app.dependency_overrides[main.get_config] = lambda: config
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()
