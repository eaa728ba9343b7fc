"""
Dependency injection for FastAPI routes.

Provides injectable dependencies for:
- Configuration
- Database sessions
- The profile service
"""

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import AsyncGenerator, Optional

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from ..notifications.client import NotificationClient
from ..profiles.service import ProfileService
from ..storage.database import Database
from ..storage.profile_repository import ProfileRepository


# =============================================================================
# Configuration
# =============================================================================

@dataclass
class Settings:
    """Application settings loaded from environment."""

    # Database
    database_url: str = "sqlite+aiosqlite:///./profiles.db"
    database_echo: bool = False
    database_create_tables: bool = True

    # Notification service
    notification_service_url: str = "http://localhost:4000/api"
    notification_timeout_seconds: float = 5.0

    # HTTP
    host: str = "0.0.0.0"
    port: int = 3000
    cors_origins: str = ""

    # Environment
    environment: str = "production"
    debug: bool = False

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @classmethod
    def from_env(cls) -> "Settings":
        """Load settings from environment variables."""
        return cls(
            database_url=os.getenv("DATABASE_URL", cls.database_url),
            database_echo=os.getenv("DATABASE_ECHO", "false").lower() == "true",
            database_create_tables=os.getenv("DATABASE_CREATE_TABLES", "true").lower() == "true",
            notification_service_url=os.getenv("NOTIFICATION_SERVICE_URL", cls.notification_service_url),
            notification_timeout_seconds=float(
                os.getenv("NOTIFICATION_TIMEOUT_SECONDS", cls.notification_timeout_seconds)
            ),
            host=os.getenv("HOST", cls.host),
            port=int(os.getenv("PORT", cls.port)),
            cors_origins=os.getenv("CORS_ORIGINS", cls.cors_origins),
            environment=os.getenv("ENVIRONMENT", cls.environment),
            debug=os.getenv("DEBUG", "false").lower() == "true",
        )


@lru_cache()
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings.from_env()


# =============================================================================
# Service Container
# =============================================================================

class ServiceContainer:
    """
    Process-wide resources built at startup.

    Holds the database (engine and pool) and the notification client.
    Request-scoped objects (sessions, repositories, services) are built
    from it per request.
    """

    def __init__(
        self,
        settings: Settings,
        database: Database,
        notifier: Optional[NotificationClient] = None,
    ):
        self.settings = settings
        self.database = database
        self.notifier = notifier

    @classmethod
    def from_settings(cls, settings: Settings) -> "ServiceContainer":
        database = Database.from_url(settings.database_url, echo=settings.database_echo)
        notifier = NotificationClient(
            base_url=settings.notification_service_url,
            timeout_seconds=settings.notification_timeout_seconds,
        )
        return cls(settings, database, notifier)


def get_service_container(request: Request) -> ServiceContainer:
    """Get the container stored on the application during startup."""
    container = getattr(request.app.state, "services", None)
    if container is None:
        raise RuntimeError("Services not initialized. Is the application lifespan running?")
    return container


# =============================================================================
# Request-scoped Dependencies
# =============================================================================

async def get_db(
    container: ServiceContainer = Depends(get_service_container),
) -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency that provides a database session.

    Yields:
        AsyncSession for database operations.
    """
    async with container.database.session() as session:
        yield session


def get_profile_repository(db: AsyncSession = Depends(get_db)) -> ProfileRepository:
    """Dependency for the profile repository."""
    return ProfileRepository(db)


def get_profile_service(
    repository: ProfileRepository = Depends(get_profile_repository),
    container: ServiceContainer = Depends(get_service_container),
) -> ProfileService:
    """Dependency for the profile service."""
    return ProfileService(repository, notifier=container.notifier)
