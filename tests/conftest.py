"""
tests/conftest.py -- Shared test fixtures for ProjectDesk tests.

This module provides:
  - hasher / clock / token_service / users / auth_service: unit-test collaborators
    built on the doubles in tests/fakes.py
  - _make_test_store() / _patch_lifespan(): isolated app wiring
  - _reset_rate_limits: autouse; empties the app's limiter tables per test
  - api_client: TestClient over the real FastAPI app with a patched lifespan

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs sync route handlers in a thread pool. Plain :memory:
DBs are per-connection and would present a blank schema to each worker thread.

DEBUG and BCRYPT_ROUNDS must be set before any core/auth/api import so
get_settings() auto-generates SECRET_KEY and hashing stays fast.
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager

# CRITICAL: Set before any core/auth/api import so get_settings() runs in dev mode.
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import pytest
from fastapi.testclient import TestClient

from api.main import api_limiter, app, auth_limiter
from auth.passwords import PasswordHasher
from auth.service import AuthService, build_auth_service
from auth.store import UserStore
from auth.tokens import TokenService
from core.config import get_settings

from tests.fakes import TEST_SECRET, FakeClock, InMemoryUsers


# ---------------------------------------------------------------------------
# Unit-test collaborators
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def hasher() -> PasswordHasher:
    """bcrypt at the minimum cost factor -- production uses >= 10."""
    return PasswordHasher(rounds=4)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def token_service(clock: FakeClock) -> TokenService:
    return TokenService(TEST_SECRET, "1h", production=True, clock=clock)


@pytest.fixture
def users() -> InMemoryUsers:
    return InMemoryUsers()


@pytest.fixture
def auth_service(users: InMemoryUsers, hasher: PasswordHasher, token_service: TokenService) -> AuthService:
    return AuthService(users, hasher, token_service)


# ---------------------------------------------------------------------------
# App wiring helpers
# ---------------------------------------------------------------------------


def _make_test_store(db_suffix: str) -> UserStore:
    """Create an isolated named shared-memory SQLite store.

    Args:
        db_suffix: Unique string appended to the DB name so test modules
                   don't share state.
    """
    return UserStore(f"sqlite:///file:test_auth_{db_suffix}?mode=memory&cache=shared&uri=true")


def _patch_lifespan(user_store: UserStore):
    """Return an async context manager that replaces the real lifespan.

    Wires the pre-created test store into app.state so TestClient routes see
    an isolated database rather than the configured DATABASE_URL.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.user_store = user_store
        app.state.auth_service = build_auth_service(get_settings(), user_store)
        yield

    return test_lifespan


@pytest.fixture(autouse=True)
def _reset_rate_limits() -> Generator[None, None, None]:
    """Every test starts with empty limiter tables (the app's limiters are module-level)."""
    auth_limiter.reset()
    api_limiter.reset()
    yield
    auth_limiter.reset()
    api_limiter.reset()


@pytest.fixture(scope="module")
def api_client() -> Generator[TestClient, None, None]:
    """Yield a TestClient over the real app with an isolated user store.

    Each module gets its own database so registrations in one module do
    not collide with emails used in another.
    """
    user_store = _make_test_store(uuid.uuid4().hex[:8])
    app.router.lifespan_context = _patch_lifespan(user_store)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client

    user_store.close()
