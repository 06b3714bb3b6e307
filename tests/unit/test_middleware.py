"""
Unit tests for middleware helpers.
"""

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.exc import DBAPIError, IntegrityError, InterfaceError, OperationalError

from bookshelf.api.middleware import get_cors_config, redact_sensitive_data, setup_exception_handlers
from bookshelf.api.middleware.logging import REDACTED
from bookshelf.storage.models import is_transient_store_error


class TestRedaction:

    def test_password_redacted(self):
        body = {"username": "ada", "password": "correct horse"}

        assert redact_sensitive_data(body, {"password"}) == {"username": "ada", "password": REDACTED}

    def test_nested_and_case_insensitive(self):
        body = {"items": [{"Token": "abc", "rating": 4}]}

        assert redact_sensitive_data(body, {"token"}) == {"items": [{"Token": REDACTED, "rating": 4}]}


class TestCorsConfig:

    def test_environment_origins(self):
        assert "http://localhost:5173" in get_cors_config("development").allowed_origins
        assert get_cors_config("production").allowed_origins == []

    def test_extra_origins_from_env(self, monkeypatch):
        monkeypatch.setenv("CORS_ALLOWED_ORIGINS", "https://books.example.org, https://admin.example.org")

        config = get_cors_config("production")

        assert config.allowed_origins == ["https://books.example.org", "https://admin.example.org"]
        # Shared defaults are not mutated
        monkeypatch.delenv("CORS_ALLOWED_ORIGINS")
        assert get_cors_config("production").allowed_origins == []

    def test_credentials_allowed_for_session_cookie(self):
        assert get_cors_config("test").allow_credentials is True


DRIVER_ERRORS = {
    "operational": OperationalError("SELECT 1", {}, Exception("database is locked")),
    "interface": InterfaceError("SELECT 1", {}, Exception("connection closed")),
    "disconnect": DBAPIError("SELECT 1", {}, Exception("server gone"), connection_invalidated=True),
    "integrity": IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed")),
}


@pytest.fixture
def failing_app():
    app = FastAPI()
    setup_exception_handlers(app)

    @app.get("/fail/{kind}")
    async def fail(kind: str):
        raise DRIVER_ERRORS[kind]

    return app


class TestStoreErrors:

    @pytest.mark.parametrize("kind, expected", [
        ("operational", True),
        ("interface", True),
        ("disconnect", True),
        ("integrity", False),
    ])
    def test_transient_classification(self, kind, expected):
        assert is_transient_store_error(DRIVER_ERRORS[kind]) is expected

    @pytest.mark.asyncio
    @pytest.mark.parametrize("kind, status_code, code", [
        ("operational", 503, "STORE_UNAVAILABLE"),
        ("interface", 503, "STORE_UNAVAILABLE"),
        ("disconnect", 503, "STORE_UNAVAILABLE"),
        ("integrity", 500, "INTERNAL_ERROR"),
    ])
    async def test_driver_errors_mapped(self, failing_app, kind, status_code, code):
        transport = ASGITransport(app=failing_app)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            response = await client.get(f"/fail/{kind}")

        assert response.status_code == status_code
        assert response.json()["code"] == code
