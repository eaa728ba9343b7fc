"""
Unit tests for API middleware helpers.
"""

import logging

import pytest
from fastapi import FastAPI
from httpx import AsyncClient, ASGITransport

from profile_service.api.middleware import (
    LoggingConfig,
    format_validation_errors,
    get_cors_config,
    redact_sensitive_data,
    setup_logging,
    status_for,
)
from profile_service.profiles.errors import (
    ConflictError,
    InvalidOperationError,
    InvalidReferenceError,
    NotFoundError,
)


class TestErrorMapping:
    """Tests for domain error to status translation."""

    @pytest.mark.parametrize(
        "error, expected",
        [
            (NotFoundError("User"), 404),
            (ConflictError("Username is already taken"), 400),
            (InvalidReferenceError("One or more genres are not valid"), 400),
            (InvalidOperationError("You cannot follow yourself"), 400),
        ],
    )
    def test_status_for(self, error, expected):
        assert status_for(error) == expected

    def test_not_found_message(self):
        assert NotFoundError("Profile", 4).message == "Profile not found"

    def test_format_validation_errors(self):
        raw = [
            {"loc": ("body", "favoriteGenres", 1), "type": "int_type", "msg": "Input should be a valid integer"},
            {"loc": ("path", "user_id"), "type": "greater_than", "msg": "Input should be greater than 0"},
        ]

        assert format_validation_errors(raw) == [
            {"field": "favoriteGenres.1", "rule": "int_type", "message": "Input should be a valid integer"},
            {"field": "user_id", "rule": "greater_than", "message": "Input should be greater than 0"},
        ]


class TestRedaction:
    """Tests for log redaction."""

    def test_image_payloads_are_redacted(self):
        body = {"profilePicture": "data:image/png;base64,AAAA", "nested": [{"banner": "BBBB"}], "username": "alice"}

        redacted = redact_sensitive_data(body, LoggingConfig().redacted_fields)

        assert redacted == {
            "profilePicture": "[REDACTED]",
            "nested": [{"banner": "[REDACTED]"}],
            "username": "alice",
        }


class TestCorsConfig:
    """Tests for CORS configuration per environment."""

    def test_development_allows_any_origin(self):
        assert get_cors_config("development").allow_all_origins

    def test_production_uses_configured_origins(self):
        config = get_cors_config("production", "https://a.example.com, https://b.example.com,")

        assert not config.allow_all_origins
        assert config.allowed_origins == ["https://a.example.com", "https://b.example.com"]


class TestRequestLogging:
    """Tests for the request logging middleware."""

    @pytest.mark.asyncio
    async def test_request_id_is_echoed(self):
        app = FastAPI()
        setup_logging(app, structured=False)

        @app.get("/ping")
        async def ping():
            return {"ok": True}

        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            response = await ac.get("/ping", headers={"X-Request-ID": "abc123"})
            generated = await ac.get("/ping")

        assert response.headers["X-Request-ID"] == "abc123"
        assert len(generated.headers["X-Request-ID"]) == 8

    @pytest.mark.asyncio
    async def test_logged_body_hides_images(self, caplog):
        app = FastAPI()
        setup_logging(app, config=LoggingConfig(log_request_body=True), structured=False)

        @app.patch("/banner")
        async def banner():
            return {"ok": True}

        api_logger = logging.getLogger("profile_service.api")
        api_logger.addHandler(caplog.handler)
        caplog.set_level(logging.INFO, logger="profile_service.api")
        try:
            transport = ASGITransport(app=app)
            async with AsyncClient(transport=transport, base_url="http://test") as ac:
                response = await ac.patch("/banner", json={"banner": "data:image/png;base64,AAAA"})
        finally:
            api_logger.removeHandler(caplog.handler)

        assert response.status_code == 200
        record = next(r for r in caplog.records if r.getMessage().startswith("PATCH /banner"))
        assert record.request["body"] == '{"banner": "[REDACTED]"}'
        assert "AAAA" not in caplog.text
