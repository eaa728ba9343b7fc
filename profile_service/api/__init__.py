"""
Profile Service - FastAPI Backend.

HTTP API for user profiles and the follow graph.
"""

from .main import app, create_app, main
from .dependencies import (
    Settings,
    get_settings,
    get_db,
    get_service_container,
    get_profile_service,
    ServiceContainer,
)
from .schemas import (
    ApiResponse,
    ErrorResponse,
    ErrorDetail,
    UpdateProfilePictureRequest,
    UpdateBannerRequest,
    UpdateProfileInfoRequest,
    OwnProfileResponse,
    PublicProfileResponse,
    ProfilePictureResponse,
    BannerResponse,
    ProfileInfoResponse,
    FollowResponse,
    HealthResponse,
)

__all__ = [
    # Application
    "app",
    "create_app",
    "main",
    # Dependencies
    "Settings",
    "get_settings",
    "get_db",
    "get_service_container",
    "get_profile_service",
    "ServiceContainer",
    # Schemas
    "ApiResponse",
    "ErrorResponse",
    "ErrorDetail",
    "UpdateProfilePictureRequest",
    "UpdateBannerRequest",
    "UpdateProfileInfoRequest",
    "OwnProfileResponse",
    "PublicProfileResponse",
    "ProfilePictureResponse",
    "BannerResponse",
    "ProfileInfoResponse",
    "FollowResponse",
    "HealthResponse",
]
