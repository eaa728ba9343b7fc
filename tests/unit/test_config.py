"""
Unit tests for settings and model mapping.
"""

import pytest
from sqlalchemy import inspect

from profile_service.api.dependencies import Settings
from profile_service.storage.models import Book, Follow, User, UserFavoriteGenre


class TestSettings:
    """Tests for environment-driven settings."""

    def test_defaults_are_not_development(self, monkeypatch):
        monkeypatch.delenv("ENVIRONMENT", raising=False)

        settings = Settings.from_env()

        assert settings.environment == "production"
        assert not settings.is_development

    def test_development_is_explicit(self, monkeypatch):
        monkeypatch.setenv("ENVIRONMENT", "development")

        assert Settings.from_env().is_development

    def test_values_from_environment(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "postgresql+asyncpg://u:p@db/profiles")
        monkeypatch.setenv("NOTIFICATION_TIMEOUT_SECONDS", "2.5")
        monkeypatch.setenv("PORT", "8080")
        monkeypatch.setenv("DATABASE_CREATE_TABLES", "false")

        settings = Settings.from_env()

        assert settings.database_url == "postgresql+asyncpg://u:p@db/profiles"
        assert settings.notification_timeout_seconds == 2.5
        assert settings.port == 8080
        assert settings.database_create_tables is False


class TestModels:
    """Models map plain columns; queries join explicitly."""

    @pytest.mark.parametrize("model", [User, Book, UserFavoriteGenre, Follow])
    def test_no_orm_relationships(self, model):
        assert list(inspect(model).relationships) == []

    def test_follow_pair_is_unique(self):
        constraints = {c.name for c in Follow.__table__.constraints}

        assert "uq_follows_pair" in constraints
