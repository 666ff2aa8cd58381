"""Pytest configuration and fixtures for Petfeeder tests.

Test isolation strategy:
- Every test gets a fresh environment and a cleared settings cache
- Apps are built with an in-memory identity store per test
- SQL store tests use in-memory SQLite (one StaticPool connection)
- Every provider / object API call is mocked with respx; nothing hits the network
"""

import sys
from collections.abc import Generator
from pathlib import Path

# Add repo root to sys.path for importing top-level packages (e.g., apps)
_repo_root = Path(__file__).parent.parent.parent
if str(_repo_root) not in sys.path:
    sys.path.insert(0, str(_repo_root))

import pytest
import respx
from fastapi import FastAPI
from fastapi.testclient import TestClient

from petfeeder.app import add_request_id_middleware, create_app
from petfeeder.auth.passwords import CredentialHasher
from petfeeder.auth.session_token import SessionTokenCodec
from petfeeder.config import clear_settings_cache
from petfeeder.db.engine import create_db_engine, init_schema
from petfeeder.db.session import create_session_factory
from petfeeder.storage import InMemoryIdentityStore, SqlIdentityStore
from tests.helpers import TEST_ENV, TEST_TOKEN_SECRET


@pytest.fixture(autouse=True)
def test_env(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Pin the environment and reset the settings cache around each test."""
    for key, value in TEST_ENV.items():
        monkeypatch.setenv(key, value)
    monkeypatch.delenv("DATABASE_URL", raising=False)
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def identity_store() -> InMemoryIdentityStore:
    return InMemoryIdentityStore()


@pytest.fixture
def sql_store() -> Generator[SqlIdentityStore, None, None]:
    """SqlIdentityStore over a private in-memory SQLite database."""
    engine = create_db_engine("sqlite://")
    init_schema(engine)
    yield SqlIdentityStore(create_session_factory(engine))
    engine.dispose()


@pytest.fixture
def hasher() -> CredentialHasher:
    """Cheapest argon2 parameters the library accepts."""
    return CredentialHasher(time_cost=1, memory_cost_kib=1024, parallelism=1)


@pytest.fixture
def token_codec() -> SessionTokenCodec:
    return SessionTokenCodec(TEST_TOKEN_SECRET)


@pytest.fixture
def app(identity_store: InMemoryIdentityStore) -> FastAPI:
    """App with session gate, CORS and request-id middleware, as deployed."""
    app = create_app(identity_store=identity_store)
    add_request_id_middleware(app, log_requests=False)
    return app


@pytest.fixture
def client(app: FastAPI) -> Generator[TestClient, None, None]:
    """Test client with the lifespan running (shared httpx client available)."""
    with TestClient(app) as client:
        yield client


@pytest.fixture
def upstream() -> Generator[respx.MockRouter, None, None]:
    """respx router for provider and object API calls.

    Unmatched requests raise, so a test can never reach the real network.
    """
    with respx.mock(assert_all_called=False) as router:
        yield router
