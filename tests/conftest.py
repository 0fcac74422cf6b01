"""Shared test fixtures."""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient

from tests.helpers.accounts import ADMIN_SECRET, register_and_login
from tests.helpers.fake_redis import FakeRedis


@pytest.fixture(autouse=True)
def _mock_settings(monkeypatch):
    """Provide default settings for all tests."""
    monkeypatch.setenv("STOREFRONT_JWT_SECRET", "test-jwt-secret")
    monkeypatch.setenv("STOREFRONT_ADMIN_REGISTRATION_PASSWORD", ADMIN_SECRET)
    monkeypatch.setenv("STOREFRONT_BCRYPT_ROUNDS", "4")
    monkeypatch.setenv("STOREFRONT_LOG_JSON", "false")
    monkeypatch.setenv("STOREFRONT_LOG_LEVEL", "debug")

    # Reset cached settings and operator profiles
    import storefront.config.loader as loader
    from storefront.config.query_operators import reset_profiles_cache
    loader._settings = None
    reset_profiles_cache()
    yield
    loader._settings = None
    reset_profiles_cache()


@pytest.fixture
def fake_redis(monkeypatch):
    """Install an in-memory Redis as the store's connection pool."""
    fake = FakeRedis()
    monkeypatch.setattr("storefront.store.redis._pool", fake)
    return fake


@pytest.fixture
def client(fake_redis):
    """Create a FastAPI test client over HTTPS so Secure cookies round-trip."""
    from storefront.main import app

    with (
        patch("storefront.main.redis_store.init_redis", new_callable=AsyncMock, return_value=fake_redis),
        patch("storefront.main.redis_store.close_redis", new_callable=AsyncMock),
        patch("storefront.main.register_reload_handler"),
    ):
        with TestClient(app, base_url="https://testserver", raise_server_exceptions=False) as c:
            yield c


@pytest.fixture
def csrf_token(client) -> str:
    """Obtain a CSRF token; the client's cookie jar now holds the cookie."""
    resp = client.get("/")
    return resp.headers["x-csrf-token"]


@pytest.fixture
def csrf_headers(csrf_token) -> dict[str, str]:
    return {"X-CSRF-Token": csrf_token}


@pytest.fixture
def user_headers(client, csrf_headers) -> dict[str, str]:
    """CSRF + bearer headers for a regular user."""
    login = register_and_login(client, csrf_headers, "user@example.com")
    return {**csrf_headers, "Authorization": f"Bearer {login['token']}"}


@pytest.fixture
def admin_headers(client, csrf_headers) -> dict[str, str]:
    """CSRF + bearer headers for an admin."""
    login = register_and_login(client, csrf_headers, "admin@example.com", role="admin", name="Root")
    return {**csrf_headers, "Authorization": f"Bearer {login['token']}"}
