"""Pytest fixtures for backend tests."""

from __future__ import annotations

import os

import pytest
from fastapi.testclient import TestClient


def _set_default_env() -> None:
    os.environ.setdefault("SUPABASE_URL", "https://example.supabase.co")
    os.environ.setdefault("SUPABASE_SERVICE_KEY", "service-key")
    os.environ.setdefault("SECRET", "test-secret")
    os.environ.setdefault("TONAPI_KEY", "tonapi-key")
    os.environ.setdefault("PROOF_DOMAIN", "grouche.com")
    os.environ.setdefault("ENABLE_SCHEDULER", "false")
    os.environ.setdefault("ACCESS_COOKIE_SECURE", "false")
    os.environ.setdefault("WEBHOOK_INCOMING_TOKEN", "hook-token")


# Settings are read at import time by the application modules.
_set_default_env()

from tests.fakes import FakeSupabase, FakeTonApi  # noqa: E402
from tests.helpers import ADMIN, NOW  # noqa: E402


@pytest.fixture(scope="session")
def client() -> TestClient:
    """Create a FastAPI test client."""
    from tonfund.main import app

    return TestClient(app)


@pytest.fixture
def db() -> FakeSupabase:
    """Empty in-memory database whose clock reads ``NOW``."""
    return FakeSupabase(now=NOW)


@pytest.fixture
def tonapi() -> FakeTonApi:
    return FakeTonApi()


@pytest.fixture
def api(db: FakeSupabase, tonapi: FakeTonApi, monkeypatch: pytest.MonkeyPatch):
    """Test client wired to the fakes, with ``ADMIN`` configured as moderator."""
    from tonfund import dependencies
    from tonfund.config import settings
    from tonfund.main import app

    monkeypatch.setattr(settings, "admin_wallets", ADMIN)
    app.dependency_overrides[dependencies.get_db_client] = lambda: db
    app.dependency_overrides[dependencies.get_tonapi] = lambda: tonapi
    app.dependency_overrides[dependencies.get_tonapi_factory] = lambda: (lambda network: tonapi)
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
