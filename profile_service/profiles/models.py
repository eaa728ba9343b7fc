"""
Profile projections and update commands.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from profile_service.storage.profile_repository import (
    BookRecord,
    FollowAction,
    GenreRecord,
    LikedBookRecord,
    OwnStats,
    PublicStats,
    UserRecord,
)


@dataclass
class OwnProfile:
    """Everything a user sees on their own profile, email included."""

    id: int
    username: str
    email: str
    friend_code: Optional[str]
    profile_picture: Optional[str]
    banner: Optional[str]
    biography: Optional[str]
    created_at: Optional[datetime]
    favorite_genres: list[GenreRecord]
    liked_books: list[LikedBookRecord]
    own_books: list[BookRecord]
    stats: OwnStats

    @classmethod
    def build(
        cls,
        user: UserRecord,
        favorite_genres: list[GenreRecord],
        liked_books: list[LikedBookRecord],
        own_books: list[BookRecord],
        stats: OwnStats,
    ) -> "OwnProfile":
        return cls(
            id=user.id,
            username=user.username,
            email=user.email,
            friend_code=user.friend_code,
            profile_picture=user.profile_picture,
            banner=user.banner,
            biography=user.biography,
            created_at=user.created_at,
            favorite_genres=favorite_genres,
            liked_books=liked_books,
            own_books=own_books,
            stats=stats,
        )


@dataclass
class PublicProfile:
    """What other users see. Never carries the email address."""

    id: int
    username: str
    friend_code: Optional[str]
    profile_picture: Optional[str]
    banner: Optional[str]
    biography: Optional[str]
    created_at: Optional[datetime]
    favorite_genres: list[GenreRecord]
    published_books: list[BookRecord]
    stats: PublicStats

    @classmethod
    def build(
        cls,
        user: UserRecord,
        favorite_genres: list[GenreRecord],
        published_books: list[BookRecord],
        stats: PublicStats,
    ) -> "PublicProfile":
        return cls(
            id=user.id,
            username=user.username,
            friend_code=user.friend_code,
            profile_picture=user.profile_picture,
            banner=user.banner,
            biography=user.biography,
            created_at=user.created_at,
            favorite_genres=favorite_genres,
            published_books=published_books,
            stats=stats,
        )


@dataclass
class ProfileInfoUpdate:
    """
    A validated profile-info patch.

    `None` means "not part of the patch". Empty values are meaningful:
    `biography=""` clears the biography and `favorite_genres=[]` clears
    every favorite.
    """

    username: Optional[str] = None
    biography: Optional[str] = None
    favorite_genres: Optional[list[int]] = field(default=None)


@dataclass
class FollowResult:
    action: FollowAction
