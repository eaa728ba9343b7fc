"""
Storage Module for the profile service

Relational persistence for profiles and the follow graph:
- SQLAlchemy models for the shared schema
- Async engine/session management
- Profile repository (queries and transactional mutations)
"""

from profile_service.storage.database import Database
from profile_service.storage.models import (
    Base,
    Book,
    BookLike,
    Follow,
    Genre,
    User,
    UserFavoriteGenre,
    UserFriend,
)
from profile_service.storage.profile_repository import (
    AuthorRecord,
    BannerRecord,
    BookRecord,
    FollowAction,
    GenreRecord,
    LikedBookRecord,
    OwnStats,
    ProfileInfoRecord,
    ProfilePictureRecord,
    ProfileRepository,
    PublicStats,
    UserRecord,
)

__all__ = [
    # Database
    "Database",
    # Models
    "Base",
    "Book",
    "BookLike",
    "Follow",
    "Genre",
    "User",
    "UserFavoriteGenre",
    "UserFriend",
    # Repository
    "ProfileRepository",
    "FollowAction",
    "UserRecord",
    "GenreRecord",
    "AuthorRecord",
    "LikedBookRecord",
    "BookRecord",
    "OwnStats",
    "PublicStats",
    "ProfilePictureRecord",
    "BannerRecord",
    "ProfileInfoRecord",
]
