"""
Unit tests for the profile service use cases.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio

from profile_service.notifications.background import drain_background_tasks
from profile_service.profiles.errors import (
    ConflictError,
    InvalidOperationError,
    InvalidReferenceError,
    NotFoundError,
)
from profile_service.profiles.models import ProfileInfoUpdate
from profile_service.profiles.service import ProfileService
from profile_service.storage.profile_repository import FollowAction, ProfileRepository

from tests.conftest import RecordingNotifier, count_follows, favorite_genre_ids

pytestmark = pytest.mark.asyncio


@pytest_asyncio.fixture
async def service(database, seeded, notifier):
    async with database.session_factory() as session:
        yield ProfileService(ProfileRepository(session), notifier=notifier)


class TestProfileReads:
    """Tests for own and public profiles."""

    async def test_own_profile(self, service, seeded):
        profile = await service.get_own_profile(seeded.alice)

        assert profile.email == "alice@example.com"
        assert [book.title for book in profile.own_books] == ["Alice Draft", "Alice Published"]
        assert [book.title for book in profile.liked_books] == ["Bob Book"]
        assert profile.stats.books_written == 2

    async def test_own_profile_missing(self, service, seeded):
        with pytest.raises(NotFoundError) as exc_info:
            await service.get_own_profile(seeded.missing)

        assert exc_info.value.message == "Profile not found"

    async def test_public_profile_hides_private_data(self, service, seeded):
        profile = await service.get_public_profile(seeded.alice)

        assert not hasattr(profile, "email")
        assert [book.title for book in profile.published_books] == ["Alice Published"]
        assert profile.stats.books_published == 1

    async def test_public_profile_missing(self, service, seeded):
        with pytest.raises(NotFoundError) as exc_info:
            await service.get_public_profile(seeded.missing)

        assert exc_info.value.message == "User not found"


class TestImageUpdates:
    """Tests for profile picture and banner updates."""

    async def test_update_banner(self, service, seeded):
        updated = await service.update_banner(seeded.bob, "https://cdn.example.com/b.png")

        assert updated.username == "bob"
        assert updated.banner == "https://cdn.example.com/b.png"

    async def test_update_picture_missing_user(self, service, seeded):
        with pytest.raises(NotFoundError):
            await service.update_profile_picture(seeded.missing, "x.png")


class TestProfileInfoUpdate:
    """Tests for the partial profile update."""

    async def test_keeping_own_username_is_allowed(self, service, seeded):
        updated = await service.update_profile_info(seeded.alice, ProfileInfoUpdate(username="alice"))

        assert updated.username == "alice"

    async def test_taken_username_conflicts(self, service, seeded):
        with pytest.raises(ConflictError) as exc_info:
            await service.update_profile_info(seeded.alice, ProfileInfoUpdate(username="bob"))

        assert exc_info.value.message == "Username is already taken"

    async def test_unknown_genre_is_rejected(self, service, seeded):
        with pytest.raises(InvalidReferenceError) as exc_info:
            await service.update_profile_info(
                seeded.alice, ProfileInfoUpdate(favorite_genres=[seeded.scifi, 42])
            )

        assert exc_info.value.message == "One or more genres are not valid"
        profile = await service.get_own_profile(seeded.alice)
        assert [g.id for g in profile.favorite_genres] == [seeded.mystery]

    async def test_missing_user(self, service, seeded):
        with pytest.raises(NotFoundError):
            await service.update_profile_info(seeded.missing, ProfileInfoUpdate(biography="hi"))

    async def test_combined_update(self, service, database, seeded):
        updated = await service.update_profile_info(
            seeded.alice,
            ProfileInfoUpdate(username="newname123", favorite_genres=[seeded.scifi, seeded.fantasy]),
        )

        assert updated.username == "newname123"
        assert updated.biography == "Science fiction writer"
        assert [g.name for g in updated.favorite_genres] == ["Science Fiction", "Fantasy"]
        assert await favorite_genre_ids(database, seeded.alice) == [1, 2]


class TestToggleFollow:
    """Tests for the follow toggle use case."""

    async def test_self_follow_never_reaches_storage(self):
        repository = MagicMock(spec=ProfileRepository)
        repository.get_user = AsyncMock()
        repository.toggle_follow = AsyncMock()
        service = ProfileService(repository, notifier=RecordingNotifier())

        with pytest.raises(InvalidOperationError) as exc_info:
            await service.toggle_follow(7, 7)

        assert exc_info.value.message == "You cannot follow yourself"
        repository.get_user.assert_not_called()
        repository.toggle_follow.assert_not_called()

    async def test_missing_target(self, service, seeded):
        service.repository.toggle_follow = AsyncMock()

        with pytest.raises(InvalidReferenceError) as exc_info:
            await service.toggle_follow(seeded.alice, seeded.missing)

        assert exc_info.value.message == "User not found"
        service.repository.toggle_follow.assert_not_called()

    async def test_missing_follower(self, service, seeded):
        with pytest.raises(InvalidReferenceError):
            await service.toggle_follow(seeded.missing, seeded.alice)

    async def test_follow_sends_notification(self, service, notifier, seeded):
        result = await service.toggle_follow(seeded.alice, seeded.bob)
        await drain_background_tasks(timeout=1)

        assert result.action is FollowAction.FOLLOWED
        assert notifier.sent == [(seeded.bob, "alice")]

    async def test_unfollow_sends_nothing(self, service, notifier, seeded):
        result = await service.toggle_follow(seeded.carol, seeded.alice)
        await drain_background_tasks(timeout=1)

        assert result.action is FollowAction.UNFOLLOWED
        assert notifier.sent == []

    async def test_notification_failure_does_not_fail_follow(self, database, seeded):
        notifier = RecordingNotifier(error=RuntimeError("notification service down"))

        async with database.session_factory() as session:
            service = ProfileService(ProfileRepository(session), notifier=notifier)
            result = await service.toggle_follow(seeded.bob, seeded.carol)

        await drain_background_tasks(timeout=1)

        assert result.action is FollowAction.FOLLOWED
        assert notifier.sent == [(seeded.carol, "bob")]
        assert await count_follows(database, seeded.bob, seeded.carol) == 1

    async def test_without_notifier(self, database, seeded):
        async with database.session_factory() as session:
            service = ProfileService(ProfileRepository(session))
            result = await service.toggle_follow(seeded.bob, seeded.alice)

        assert result.action is FollowAction.FOLLOWED
