"""
API Schemas for the profile service

Pydantic models for request validation and response serialization:
- Request bodies for the mutating endpoints
- Profile, book and stats projections
- The `{success, message, data, errors}` envelope

Design Decisions:
1. camelCase on the wire, snake_case in Python (alias generator)
2. Identifiers are serialized as decimal strings so large ids survive
   JavaScript clients
3. Optional request fields reject explicit nulls: a field is either
   present with a value or absent
"""

from datetime import datetime
from typing import Annotated, Generic, Optional, TypeVar

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PlainSerializer,
    field_validator,
)
from pydantic.alias_generators import to_camel

from profile_service.profiles.models import ProfileInfoUpdate
from profile_service.storage.profile_repository import FollowAction


Identifier = Annotated[int, PlainSerializer(str, return_type=str)]
GenreId = Annotated[int, Field(strict=True, gt=0)]

DataT = TypeVar("DataT")


class CamelModel(BaseModel):
    """Base model with camelCase aliases."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# =============================================================================
# Envelope
# =============================================================================

class ErrorDetail(BaseModel):
    """One validation violation."""

    field: str
    rule: str
    message: str


class ApiResponse(BaseModel, Generic[DataT]):
    """Successful response envelope."""

    success: bool = True
    message: Optional[str] = None
    data: Optional[DataT] = None


class ErrorResponse(BaseModel):
    """Error response envelope."""

    success: bool = False
    message: str
    errors: Optional[list[ErrorDetail]] = None
    error: Optional[str] = None


# =============================================================================
# Request Schemas
# =============================================================================

class UpdateProfilePictureRequest(CamelModel):
    """Profile picture update request."""

    profile_picture: str = Field(
        ...,
        min_length=1,
        description="Image reference (URL or base64 data)",
    )


class UpdateBannerRequest(CamelModel):
    """Banner update request."""

    banner: str = Field(
        ...,
        min_length=1,
        description="Image reference (URL or base64 data)",
    )


class UpdateProfileInfoRequest(CamelModel):
    """Profile info update request (partial)."""

    username: Optional[str] = Field(
        None,
        min_length=3,
        max_length=50,
        pattern=r"^[a-zA-Z0-9_]+$",
    )
    biography: Optional[str] = Field(None, max_length=500)
    favorite_genres: Optional[list[GenreId]] = None

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "username": "newname123",
                "biography": "Science fiction writer",
                "favoriteGenres": [1, 2],
            }
        }
    )

    @field_validator("username", "biography", "favorite_genres", mode="before")
    @classmethod
    def reject_null(cls, value):
        if value is None:
            raise ValueError("must not be null; omit the field to leave it unchanged")
        return value

    def to_update(self) -> ProfileInfoUpdate:
        return ProfileInfoUpdate(
            username=self.username,
            biography=self.biography,
            favorite_genres=self.favorite_genres,
        )


# =============================================================================
# Response Schemas
# =============================================================================

class GenreResponse(CamelModel):
    id: Identifier
    name: str


class AuthorResponse(CamelModel):
    username: str


class LikedBookResponse(CamelModel):
    id: Identifier
    title: str
    description: Optional[str] = None
    cover_image: Optional[str] = None
    author: AuthorResponse


class OwnBookResponse(CamelModel):
    id: Identifier
    title: str
    description: Optional[str] = None
    cover_image: Optional[str] = None
    published: bool
    created_at: datetime


class PublishedBookResponse(CamelModel):
    id: Identifier
    title: str
    description: Optional[str] = None
    cover_image: Optional[str] = None
    created_at: datetime


class OwnStatsResponse(CamelModel):
    friends_count: int
    followers_count: int
    books_written: int
    books_liked: int


class PublicStatsResponse(CamelModel):
    followers_count: int
    books_published: int


class OwnProfileResponse(CamelModel):
    """Private profile, only served to the profile owner."""

    id: Identifier
    username: str
    email: str
    friend_code: Optional[str] = None
    profile_picture: Optional[str] = None
    banner: Optional[str] = None
    biography: Optional[str] = None
    created_at: Optional[datetime] = None
    favorite_genres: list[GenreResponse]
    liked_books: list[LikedBookResponse]
    own_books: list[OwnBookResponse]
    stats: OwnStatsResponse


class PublicProfileResponse(CamelModel):
    """Profile as shown to other users."""

    id: Identifier
    username: str
    friend_code: Optional[str] = None
    profile_picture: Optional[str] = None
    banner: Optional[str] = None
    biography: Optional[str] = None
    created_at: Optional[datetime] = None
    favorite_genres: list[GenreResponse]
    published_books: list[PublishedBookResponse]
    stats: PublicStatsResponse


class ProfilePictureResponse(CamelModel):
    id: Identifier
    username: str
    profile_picture: Optional[str] = None


class BannerResponse(CamelModel):
    id: Identifier
    username: str
    banner: Optional[str] = None


class ProfileInfoResponse(CamelModel):
    id: Identifier
    username: str
    biography: Optional[str] = None
    favorite_genres: list[GenreResponse]


class FollowResponse(CamelModel):
    action: FollowAction


class HealthResponse(BaseModel):
    """Health check response."""

    success: bool = True
    message: str
    timestamp: datetime
