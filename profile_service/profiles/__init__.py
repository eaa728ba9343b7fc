"""
Profiles Module

Domain layer for user profiles and the follow graph.
"""

from profile_service.profiles.errors import (
    ProfileError,
    NotFoundError,
    ConflictError,
    InvalidReferenceError,
    InvalidOperationError,
)
from profile_service.profiles.models import (
    OwnProfile,
    PublicProfile,
    ProfileInfoUpdate,
    FollowResult,
)
from profile_service.profiles.service import ProfileService

__all__ = [
    # Errors
    "ProfileError",
    "NotFoundError",
    "ConflictError",
    "InvalidReferenceError",
    "InvalidOperationError",
    # Models
    "OwnProfile",
    "PublicProfile",
    "ProfileInfoUpdate",
    "FollowResult",
    # Service
    "ProfileService",
]
