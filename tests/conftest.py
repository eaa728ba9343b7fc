"""
Pytest configuration and fixtures for profile service tests.
"""

from datetime import datetime
from types import SimpleNamespace
from typing import AsyncGenerator, Optional

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy import func, select
from sqlalchemy.pool import StaticPool

from profile_service.api.main import create_app
from profile_service.api.dependencies import Settings, ServiceContainer
from profile_service.storage.database import Database
from profile_service.storage.models import (
    Book,
    BookLike,
    Follow,
    Genre,
    User,
    UserFavoriteGenre,
    UserFriend,
)


# =============================================================================
# Test Settings
# =============================================================================

def get_test_settings(environment: str = "test") -> Settings:
    """Return settings configured for testing."""
    return Settings(
        database_url="sqlite+aiosqlite://",
        database_echo=False,
        database_create_tables=True,
        notification_service_url="http://notifications.test/api",
        notification_timeout_seconds=0.5,
        environment=environment,
        debug=False,
    )


# =============================================================================
# Fakes
# =============================================================================

class RecordingNotifier:
    """Stands in for NotificationClient and records what would be sent."""

    def __init__(self, error: Optional[Exception] = None):
        self.sent = []
        self.error = error

    async def send_new_follower(self, followed_id: int, follower_username: str) -> None:
        self.sent.append((followed_id, follower_username))
        if self.error is not None:
            raise self.error


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest_asyncio.fixture(scope="function")
async def database() -> AsyncGenerator[Database, None]:
    """In-memory database shared by every session of one test."""
    db = Database.from_url(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await db.create_tables()

    yield db

    await db.dispose()


@pytest_asyncio.fixture(scope="function")
async def seeded(database) -> SimpleNamespace:
    """
    Populate a small social graph.

    alice: two books (one draft), likes bob's book and an orphaned book,
           friends with bob, followed by carol, favorite genre Mystery.
    bob:   one published book, likes alice's published book.
    carol: no books.
    """
    async with database.session_factory() as session:
        session.add_all([
            User(id=1, username="alice", email="alice@example.com", friend_code="#ALICE1",
                 biography="Science fiction writer", created_at=datetime(2024, 1, 1)),
            User(id=2, username="bob", email="bob@example.com", created_at=datetime(2024, 1, 2)),
            User(id=3, username="carol", email="carol@example.com", created_at=datetime(2024, 1, 3)),
            Genre(id=1, name="Science Fiction"),
            Genre(id=2, name="Fantasy"),
            Genre(id=3, name="Mystery"),
        ])
        await session.flush()

        session.add_all([
            UserFavoriteGenre(user_id=1, genre_id=3),
            Book(id=10, title="Alice Draft", author_id=1, published=False,
                 created_at=datetime(2024, 3, 1)),
            Book(id=11, title="Alice Published", description="A space opera", cover_image="cover.png",
                 author_id=1, published=True, created_at=datetime(2024, 2, 1)),
            Book(id=12, title="Bob Book", author_id=2, published=True, created_at=datetime(2024, 2, 15)),
            Book(id=13, title="Orphan Book", author_id=None, published=True, created_at=datetime(2024, 1, 15)),
        ])
        await session.flush()

        session.add_all([
            BookLike(user_id=1, book_id=12),
            BookLike(user_id=1, book_id=13),
            BookLike(user_id=2, book_id=11),
            UserFriend(user_id=1, friend_id=2),
            UserFriend(user_id=2, friend_id=1),
            Follow(follower_id=3, followed_id=1),
        ])
        await session.commit()

    return SimpleNamespace(alice=1, bob=2, carol=3, scifi=1, fantasy=2, mystery=3, missing=999)


async def count_follows(database: Database, follower_id: int, followed_id: int) -> int:
    """Count Follow rows for an ordered pair using a short-lived session."""
    async with database.session_factory() as session:
        return await session.scalar(
            select(func.count()).select_from(Follow).where(
                Follow.follower_id == follower_id,
                Follow.followed_id == followed_id,
            )
        )


async def favorite_genre_ids(database: Database, user_id: int) -> list[int]:
    async with database.session_factory() as session:
        rows = await session.scalars(
            select(UserFavoriteGenre.genre_id)
            .where(UserFavoriteGenre.user_id == user_id)
            .order_by(UserFavoriteGenre.genre_id)
        )
        return list(rows)


async def load_user(database: Database, user_id: int) -> Optional[User]:
    async with database.session_factory() as session:
        return await session.get(User, user_id)


# =============================================================================
# Application Fixtures
# =============================================================================

@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest_asyncio.fixture(scope="function")
async def app(database, notifier):
    """Create FastAPI application wired to the test database."""
    settings = get_test_settings()
    services = ServiceContainer(settings, database, notifier)
    application = create_app(settings, services=services)

    yield application


@pytest_asyncio.fixture(scope="function")
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Provide async HTTP client for API tests."""
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
