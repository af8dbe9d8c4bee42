"""
tests/conftest.py -- Shared test fixtures for NeonThreads integration tests.

This module provides:
  - _make_test_stores(): creates isolated in-memory DBs for users + products
  - _patch_lifespan(): wires test stores and a fixed-secret TokenService into
    app.state, bypassing real startup
  - api_client: TestClient plus three users (levels 0, 1, 2) and their tokens
  - cookie(): builds the Cookie header that carries a token

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs sync route handlers in a thread pool. Plain :memory:
DBs are per-connection and would present a blank schema to each worker thread.

JWT_SECRET must be set before any api/ import: api/main.py reads settings at
import time for the CORS origins, and get_settings() refuses to build without
a secret.
"""

from __future__ import annotations

import os
from collections.abc import Generator
from contextlib import asynccontextmanager
from typing import NamedTuple

# CRITICAL: set before any api/ or core/ import.
os.environ.setdefault("JWT_SECRET", "neonthreads-test-secret-0123456789abcdef")
os.environ.setdefault("LOGIN_RATE_LIMIT", "1000/minute")

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.gate import AccessGate
from auth.models import User
from auth.store import UserStore
from auth.tokens import TokenConfig, TokenService, hash_password
from catalog.store import ProductStore
from core.config import get_settings

TEST_SECRET = os.environ["JWT_SECRET"]


# ---------------------------------------------------------------------------
# Store helpers
# ---------------------------------------------------------------------------


def _test_db_url(db_suffix: str) -> str:
    return f"sqlite:///file:test_neonthreads_{db_suffix}?mode=memory&cache=shared&uri=true"


def _make_test_stores(db_suffix: str) -> tuple[UserStore, ProductStore]:
    """Create isolated named shared-memory SQLite stores for test isolation.

    Both stores share one in-memory database, as they share one database in
    production.

    Args:
        db_suffix: Unique string appended to the DB name so test modules
                   don't share state (e.g. 'api', 'health').
    """
    url = _test_db_url(db_suffix)
    return UserStore(url), ProductStore(url)


def _patch_lifespan(tokens: TokenService, user_store: UserStore, product_store: ProductStore):
    """Return an async context manager that replaces the real lifespan.

    Wires pre-created test stores into app.state so TestClient routes see
    isolated test DBs rather than the configured database.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.settings = get_settings()
        app.state.tokens = tokens
        app.state.user_store = user_store
        app.state.product_store = product_store
        app.state.gate = AccessGate(tokens, user_store)
        yield

    return test_lifespan


def cookie(token: str) -> dict[str, str]:
    """Headers carrying token in the credential cookie.

    The login cookie is scoped to Domain=localhost, so TestClient (host
    "testserver") never stores it -- each request sends it explicitly.
    """
    return {"Cookie": f"{get_settings().cookie_name}={token}"}


# ---------------------------------------------------------------------------
# Module-scoped fixture -- one TestClient per test module for speed
# ---------------------------------------------------------------------------


class ApiEnv(NamedTuple):
    client: TestClient
    db_url: str
    tokens: TokenService
    user_store: UserStore
    product_store: ProductStore
    staff_id: int
    editor_id: int
    customer_id: int
    staff_token: str
    editor_token: str
    customer_token: str


def _start_env(db_suffix: str) -> Generator[ApiEnv, None, None]:
    user_store, product_store = _make_test_stores(db_suffix)
    tokens = TokenService(TokenConfig(secret=TEST_SECRET, expire_seconds=3600))

    ids = {}
    for username, level in (("staff", 0), ("editor", 1), ("customer", 2)):
        ids[username] = user_store.create_user(
            User(username=username, level=level, hashed_password=hash_password(f"{username}-pass-123"))
        )

    app.router.lifespan_context = _patch_lifespan(tokens, user_store, product_store)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield ApiEnv(
            client=client,
            db_url=_test_db_url(db_suffix),
            tokens=tokens,
            user_store=user_store,
            product_store=product_store,
            staff_id=ids["staff"],
            editor_id=ids["editor"],
            customer_id=ids["customer"],
            staff_token=tokens.issue(ids["staff"]),
            editor_token=tokens.issue(ids["editor"]),
            customer_token=tokens.issue(ids["customer"]),
        )

    user_store.close()
    product_store.close()


@pytest.fixture(scope="module")
def api_client(request) -> Generator[ApiEnv, None, None]:
    """Yield an ApiEnv backed by a per-module in-memory database.

    Users created up front (password is "<username>-pass-123"):
      staff    -- level 0
      editor   -- level 1
      customer -- level 2
    """
    yield from _start_env(request.module.__name__.rsplit(".", 1)[-1])
