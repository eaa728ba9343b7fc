"""
API Routes for the profile service

Route modules:
- profile: profile reads, edits and the follow toggle
"""

from profile_service.api.routes.profile import router as profile_router

__all__ = [
    "profile_router",
]
