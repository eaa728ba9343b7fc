"""
Profile Service

Use cases behind the profile endpoints. Each method orchestrates a few
repository calls, enforces the rules the database does not (username
uniqueness across users, genre references, no self-follow) and returns a
projection for the API layer to render.

Business-rule failures are raised as `ProfileError` subclasses so the
boundary can map them to status codes.
"""

from typing import Optional, Protocol

from loguru import logger
from sqlalchemy.exc import IntegrityError

from profile_service.notifications.background import spawn_background
from profile_service.profiles.errors import (
    ConflictError,
    InvalidOperationError,
    InvalidReferenceError,
    NotFoundError,
)
from profile_service.profiles.models import (
    FollowResult,
    OwnProfile,
    ProfileInfoUpdate,
    PublicProfile,
)
from profile_service.storage.profile_repository import (
    BannerRecord,
    FollowAction,
    ProfileInfoRecord,
    ProfilePictureRecord,
    ProfileRepository,
)


class Notifier(Protocol):
    async def send_new_follower(self, followed_id: int, follower_username: str) -> None:
        ...


class ProfileService:
    """Profile reads, edits and the follow toggle."""

    def __init__(self, repository: ProfileRepository, notifier: Optional[Notifier] = None):
        self.repository = repository
        self.notifier = notifier

    async def get_own_profile(self, user_id: int) -> OwnProfile:
        """Full private profile: email, liked books, drafts and all stats."""
        user = await self.repository.get_user(user_id)
        if user is None:
            raise NotFoundError("Profile", user_id)

        return OwnProfile.build(
            user,
            favorite_genres=await self.repository.get_favorite_genres(user_id),
            liked_books=await self.repository.get_liked_books(user_id),
            own_books=await self.repository.get_own_books(user_id),
            stats=await self.repository.get_own_stats(user_id),
        )

    async def get_public_profile(self, user_id: int) -> PublicProfile:
        """Profile as seen by others: no email, published books only."""
        user = await self.repository.get_user(user_id)
        if user is None:
            raise NotFoundError("User", user_id)

        return PublicProfile.build(
            user,
            favorite_genres=await self.repository.get_favorite_genres(user_id),
            published_books=await self.repository.get_published_books(user_id),
            stats=await self.repository.get_public_stats(user_id),
        )

    async def update_profile_picture(self, user_id: int, profile_picture: str) -> ProfilePictureRecord:
        await self._require_user(user_id)

        updated = await self.repository.update_profile_picture(user_id, profile_picture)
        if updated is None:
            raise NotFoundError("User", user_id)
        logger.info(f"Updated profile picture for user {user_id}")
        return updated

    async def update_banner(self, user_id: int, banner: str) -> BannerRecord:
        await self._require_user(user_id)

        updated = await self.repository.update_banner(user_id, banner)
        if updated is None:
            raise NotFoundError("User", user_id)
        logger.info(f"Updated banner for user {user_id}")
        return updated

    async def update_profile_info(self, user_id: int, changes: ProfileInfoUpdate) -> ProfileInfoRecord:
        """
        Apply a partial profile update.

        Keeping one's own current username is allowed; taking another
        user's is a conflict. Every favorite genre id must exist. The
        field update and genre replacement are committed together.
        """
        await self._require_user(user_id)

        if changes.username is not None:
            if await self.repository.username_exists(changes.username, exclude_user_id=user_id):
                raise ConflictError("Username is already taken")

        if changes.favorite_genres:
            if not await self.repository.genres_exist(changes.favorite_genres):
                raise InvalidReferenceError("One or more genres are not valid")

        try:
            updated = await self.repository.update_profile_info(
                user_id,
                username=changes.username,
                biography=changes.biography,
                favorite_genres=changes.favorite_genres,
            )
        except IntegrityError:
            # Another request claimed the username between check and write
            if changes.username is not None:
                raise ConflictError("Username is already taken")
            raise

        if updated is None:
            raise NotFoundError("User", user_id)
        logger.info(f"Updated profile info for user {user_id}")
        return updated

    async def toggle_follow(self, follower_id: int, followed_id: int) -> FollowResult:
        """
        Follow `followed_id` if not already following, otherwise unfollow.

        A new follow schedules a notification to the followed user in the
        background; its outcome never reaches the caller.
        """
        if follower_id == followed_id:
            raise InvalidOperationError("You cannot follow yourself")

        # A missing follower or target is an invalid reference
        follower = await self.repository.get_user(follower_id)
        if follower is None or not await self.repository.user_exists(followed_id):
            raise InvalidReferenceError("User not found")

        action = await self.repository.toggle_follow(follower_id, followed_id)

        if action is FollowAction.FOLLOWED and self.notifier is not None:
            spawn_background(
                self.notifier.send_new_follower(followed_id, follower.username),
                description=f"new follower notification {follower_id} -> {followed_id}",
            )

        return FollowResult(action=action)

    async def _require_user(self, user_id: int) -> None:
        if not await self.repository.user_exists(user_id):
            raise NotFoundError("User", user_id)
