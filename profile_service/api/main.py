"""
Profile Service API

FastAPI application entry point.
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncGenerator, Optional

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

from fastapi import FastAPI

from .schemas import HealthResponse
from .routes import profile
from .middleware import (
    setup_cors,
    setup_logging,
    setup_exception_handlers,
    LoggingConfig,
    get_cors_config,
)
from .dependencies import (
    get_settings,
    ServiceContainer,
    Settings,
)
from ..notifications.background import drain_background_tasks
from ..storage.database import describe_url

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

SERVICE_NAME = "Profile Service"
VERSION = "1.0.0"
DOCS_URL = "/api-docs"


# =============================================================================
# Application Lifespan
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.

    Handles startup and shutdown tasks:
    - Connect to the database (exit if unreachable)
    - Create missing tables when enabled
    - Wait for pending notifications and close connections on shutdown
    """
    settings: Settings = app.state.settings
    logger.info(f"Starting {SERVICE_NAME} in {settings.environment} mode")

    # Tests may install their own container before startup
    services: Optional[ServiceContainer] = getattr(app.state, "services", None)
    if services is None:
        services = ServiceContainer.from_settings(settings)
        app.state.services = services

    try:
        await services.database.ping()
    except Exception as e:
        logger.critical(
            f"Failed to connect to the database at {describe_url(settings.database_url)}: {e}"
        )
        await services.database.dispose()
        raise SystemExit(1)
    logger.info("Database connection established")

    if settings.database_create_tables:
        await services.database.create_tables()

    logger.info(f"{SERVICE_NAME} started; API documentation at {DOCS_URL}")

    try:
        yield
    finally:
        logger.info(f"Shutting down {SERVICE_NAME}...")
        await drain_background_tasks(timeout=settings.notification_timeout_seconds)
        await services.database.dispose()
        logger.info("Shutdown complete")


# =============================================================================
# Application Factory
# =============================================================================

def create_app(settings: Settings = None, services: Optional[ServiceContainer] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Application settings. If None, loads from environment.
        services: Pre-built resources. If None, built from settings at startup.

    Returns:
        Configured FastAPI application.
    """
    if settings is None:
        settings = get_settings()

    app = FastAPI(
        title=SERVICE_NAME,
        description="User profiles, favorite genres and the follow graph.",
        version=VERSION,
        docs_url=DOCS_URL,
        redoc_url=None,
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.settings = settings
    if services is not None:
        app.state.services = services

    # ==========================================================================
    # Middleware (order matters - last added = outermost)
    # ==========================================================================

    setup_cors(app, config=get_cors_config(settings.environment, settings.cors_origins))

    setup_logging(
        app,
        config=LoggingConfig(
            enabled=True,
            log_request_body=settings.debug,
        ),
        structured=not settings.is_development,
    )

    setup_exception_handlers(app, expose_errors=settings.is_development)

    # ==========================================================================
    # Routers
    # ==========================================================================

    app.include_router(profile.router, prefix="/api")

    # ==========================================================================
    # Root Routes
    # ==========================================================================

    @app.get("/", include_in_schema=False)
    async def root():
        """Root endpoint with API info."""
        return {
            "message": f"{SERVICE_NAME} API is working!",
            "version": VERSION,
            "documentation": DOCS_URL,
            "endpoints": {
                "ownProfile": "GET /api/profile/me/{userId}",
                "userProfile": "GET /api/profile/user/{userId}",
                "updateProfilePicture": "PATCH /api/profile/profile-picture/{userId}",
                "updateBanner": "PATCH /api/profile/banner/{userId}",
                "updateProfileInfo": "PATCH /api/profile/info/{userId}",
                "toggleFollow": "POST /api/profile/follow/{userId}/{targetUserId}",
            },
        }

    @app.get("/health", response_model=HealthResponse, tags=["System"])
    async def health_check() -> HealthResponse:
        """Liveness check."""
        return HealthResponse(
            message="Server is running",
            timestamp=datetime.now(timezone.utc),
        )

    return app


# =============================================================================
# Application Instance
# =============================================================================

app = create_app()


# =============================================================================
# CLI Entry Point
# =============================================================================

def main():
    """Run the application using uvicorn."""
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        "profile_service.api.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level="debug" if settings.debug else "info",
    )


if __name__ == "__main__":
    main()
