"""
tests/conftest.py -- Shared test fixtures for Warden unit and integration tests.

This module provides:
  - FakeHasher / FakeDirectory: in-memory collaborators for auth core unit tests
  - _make_test_store(): creates an isolated in-memory user store
  - _patch_lifespan(): wires test services into app.state, bypassing real startup
  - user_store: per-test UserStore for store and service tests
  - api_client: TestClient plus one token per role for API integration tests

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs route handlers in a thread pool. Plain :memory: DBs
are per-connection and would present a blank schema to each worker thread.
The named URI format (file:name?mode=memory&cache=shared&uri=true) shares
one in-memory instance across all connections in the same process.

The DEBUG env var must be set before any auth module import so get_settings()
auto-generates SECRET_KEY in dev mode rather than raising ValueError.
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager
from dataclasses import replace

# CRITICAL: Set DEBUG before any auth/core import so get_settings() can
# auto-generate SECRET_KEY in dev mode instead of raising ValueError.
os.environ.setdefault("DEBUG", "true")

import pytest
from fastapi.testclient import TestClient

from api.limiter import limiter
from api.main import app, wire_services
from auth.errors import DuplicateEmail, NotFound
from auth.models import NewUser, Role, User
from auth.passwords import BcryptHasher
from auth.tokens import JWTSigner, TokenIssuer
from users.service import UserService
from users.store import UserStore

TEST_SECRET = "warden-test-secret-key-0123456789abcdef"

# Password shared by every account the api_client fixture seeds.
TEST_PASSWORD = "password123"


# ---------------------------------------------------------------------------
# Fake collaborators
# ---------------------------------------------------------------------------


class FakeHasher:
    """PasswordHasher that records every call and never touches bcrypt."""

    def __init__(self) -> None:
        self.hash_calls: list[tuple[str, int]] = []
        self.compare_calls: list[tuple[str, str]] = []

    def hash(self, plain: str, cost: int = 10) -> str:
        self.hash_calls.append((plain, cost))
        return f"hashed${cost}${plain}"

    def compare(self, plain: str, hashed: str) -> bool:
        self.compare_calls.append((plain, hashed))
        return hashed.startswith("hashed$") and hashed.rsplit("$", 1)[-1] == plain


class FakeDirectory:
    """UserDirectory backed by a dict, keyed by id."""

    def __init__(self) -> None:
        self.users: dict[str, User] = {}

    def find_by_email(self, email: str) -> User | None:
        return next((u for u in self.users.values() if u.email == email), None)

    def find_by_id(self, user_id: str) -> User | None:
        return self.users.get(user_id)

    def create(self, new_user: NewUser) -> User:
        if self.find_by_email(new_user.email) is not None:
            raise DuplicateEmail()
        user = User(
            id=str(uuid.uuid4()),
            email=new_user.email,
            username=new_user.username,
            password_hash=new_user.password_hash,
            role=new_user.role,
            permissions=list(new_user.permissions),
            is_active=new_user.is_active,
            created_at="2024-01-01T00:00:00+00:00",
            updated_at="2024-01-01T00:00:00+00:00",
        )
        self.users[user.id] = user
        return user

    def update(self, user_id: str, **fields) -> User:
        if user_id not in self.users:
            raise NotFound(user_id)
        self.users[user_id] = replace(self.users[user_id], **fields)
        return self.users[user_id]


@pytest.fixture
def fake_hasher() -> FakeHasher:
    return FakeHasher()


@pytest.fixture
def fake_directory() -> FakeDirectory:
    return FakeDirectory()


@pytest.fixture
def signer() -> JWTSigner:
    return JWTSigner(TEST_SECRET, expire_seconds=3600)


@pytest.fixture
def issuer(signer: JWTSigner) -> TokenIssuer:
    return TokenIssuer(signer)


# ---------------------------------------------------------------------------
# Store helpers
# ---------------------------------------------------------------------------


def _make_test_store(db_suffix: str) -> UserStore:
    """Create an isolated named shared-memory SQLite user store.

    Named URIs allow multiple connections (from different threads in TestClient)
    to access the same in-memory database. Plain ':memory:' would give each
    thread a blank schema, causing 'no such table' errors on the first query.

    Args:
        db_suffix: Unique string appended to the DB name so test modules
                   don't share state.
    """
    return UserStore(db_url=f"sqlite:///file:test_users_{db_suffix}?mode=memory&cache=shared&uri=true")


def _patch_lifespan(user_store: UserStore, signer: JWTSigner):
    """Return an async context manager that replaces the real lifespan.

    Wires the test store and signer into app.state through the same
    wire_services() the real lifespan uses, so routes run the production
    object graph against an isolated DB.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        wire_services(app.state, user_store, signer)
        yield

    return test_lifespan


@pytest.fixture
def user_store() -> Generator[UserStore, None, None]:
    """Fresh, empty store per test."""
    store = _make_test_store(uuid.uuid4().hex)
    yield store
    store.close()


# ---------------------------------------------------------------------------
# Module-scoped API fixture -- one TestClient per test module for speed
# ---------------------------------------------------------------------------


@pytest.fixture(scope="module")
def api_client(request) -> Generator[tuple[TestClient, dict[str, str], dict[str, str]], None, None]:
    """Yield (client, tokens, user_ids) for API integration tests.

    One account per role is created before the client starts:
    <role>@example.com / <role>name, all with TEST_PASSWORD and the role's
    default permissions. tokens and user_ids are keyed by role value.

    Rate limiting is switched off for the duration of the module; the login
    and register limits would otherwise trip across a module's requests.
    """
    user_store = _make_test_store(request.module.__name__.rsplit(".", 1)[-1])
    signer = JWTSigner(TEST_SECRET, expire_seconds=3600)
    issuer = TokenIssuer(signer)
    service = UserService(user_store, BcryptHasher())

    tokens: dict[str, str] = {}
    user_ids: dict[str, str] = {}
    for role in Role:
        user = service.create(f"{role.value}@example.com", f"{role.value}name", TEST_PASSWORD, role=role)
        tokens[role.value] = issuer.issue(user).access_token
        user_ids[role.value] = user.id

    app.router.lifespan_context = _patch_lifespan(user_store, signer)
    limiter.enabled = False

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client, tokens, user_ids

    limiter.enabled = True
    user_store.close()