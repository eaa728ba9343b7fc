"""
CORS Configuration

Configures Cross-Origin Resource Sharing settings.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware


@dataclass
class CORSConfig:
    """CORS configuration settings."""

    allowed_origins: List[str] = field(default_factory=list)

    allow_credentials: bool = True

    allowed_methods: List[str] = field(default_factory=lambda: [
        "GET", "POST", "PATCH", "OPTIONS"
    ])

    allowed_headers: List[str] = field(default_factory=lambda: [
        "Accept",
        "Accept-Language",
        "Content-Type",
        "Content-Language",
        "Authorization",
        "X-Request-ID",
    ])

    expose_headers: List[str] = field(default_factory=lambda: [
        "X-Request-ID",
    ])

    # Max age for preflight cache (in seconds)
    max_age: int = 3600

    # Allow all origins (development only!)
    allow_all_origins: bool = False


def get_cors_config(environment: str, origins: Optional[str] = None) -> CORSConfig:
    """
    Build the CORS configuration for an environment.

    Args:
        environment: "development", "staging", "production", ...
        origins: Comma-separated allowed origins.

    Returns:
        CORSConfig. Development allows any origin.
    """
    allowed = [origin.strip() for origin in (origins or "").split(",") if origin.strip()]

    if environment == "development":
        return CORSConfig(allowed_origins=allowed, allow_all_origins=True)

    return CORSConfig(allowed_origins=allowed)


def setup_cors(app: FastAPI, config: Optional[CORSConfig] = None) -> None:
    """Add CORS middleware to the application."""
    if config is None:
        config = CORSConfig()

    if config.allow_all_origins:
        # Browsers reject credentials with a wildcard origin
        origins = ["*"]
        allow_credentials = False
    else:
        origins = config.allowed_origins
        allow_credentials = config.allow_credentials

    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=allow_credentials,
        allow_methods=config.allowed_methods,
        allow_headers=config.allowed_headers,
        expose_headers=config.expose_headers,
        max_age=config.max_age,
    )
