"""Shared fixtures for web API tests."""

from unittest.mock import patch

import pytest
from cryptography.fernet import Fernet
from fastapi.testclient import TestClient
from jose import jwt

from cli.retry import llm_retry
from fakes import FakeProvider
from web.deps import get_config
from web.rate_limit import reset_rate_limits
from web.user_store import init_db


@pytest.fixture
def secret_key():
    return Fernet.generate_key().decode()


@pytest.fixture
def jwt_secret():
    return "test-jwt-secret"


def _make_auth_token(jwt_secret, user_id, email="u@test.com", name="U"):
    return jwt.encode(
        {"sub": user_id, "email": email, "name": name},
        jwt_secret,
        algorithm="HS256",
    )


@pytest.fixture
def auth_token(jwt_secret):
    return _make_auth_token(jwt_secret, "user-123", "test@example.com", "Test")


@pytest.fixture
def auth_headers(auth_token):
    return {"Authorization": f"Bearer {auth_token}"}


@pytest.fixture
def auth_token_b(jwt_secret):
    """Second user token for isolation tests."""
    return _make_auth_token(jwt_secret, "user-456", "b@test.com", "UserB")


@pytest.fixture
def auth_headers_b(auth_token_b):
    return {"Authorization": f"Bearer {auth_token_b}"}


@pytest.fixture
def users_db(tmp_path):
    """Fresh database for each test."""
    db_path = tmp_path / "personasim.db"
    init_db(db_path)
    return db_path


@pytest.fixture
def client(jwt_secret, secret_key, users_db, monkeypatch):
    """Test client against a temp database with a shared Gemini key configured."""
    monkeypatch.setenv("JWT_SECRET", jwt_secret)
    monkeypatch.setenv("SECRET_KEY", secret_key)
    monkeypatch.setenv("GEMINI_API_KEY", "AIza-test-key")
    for var in ("STRIPE_SECRET_KEY", "STRIPE_WEBHOOK_SECRET", "APP_URL", "STRIPE_PRICE_ID_PERSONA_SLOT"):
        monkeypatch.delenv(var, raising=False)
    get_config.cache_clear()
    reset_rate_limits()

    with patch("web.user_store._DEFAULT_DB_PATH", users_db):
        from web.app import app

        yield TestClient(app)

    get_config.cache_clear()
    reset_rate_limits()


@pytest.fixture
def fake_llm(client):
    """Route flow calls to a FakeProvider; tests push responses onto ``.responses``."""
    provider = FakeProvider()
    no_wait = lambda: llm_retry(max_attempts=1, min_wait=0, max_wait=0)  # noqa: E731
    patches = []
    for module in ("personas", "chat", "messages"):
        patches.append(patch(f"web.routes.{module}.get_flow_provider", return_value=provider))
        patches.append(patch(f"web.routes.{module}.get_flow_retry", side_effect=no_wait))
    for p in patches:
        p.start()
    yield provider
    for p in reversed(patches):
        p.stop()
