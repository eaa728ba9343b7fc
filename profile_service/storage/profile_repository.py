"""
Profile Repository

Data access for user profiles, favorite genres, books and follows.

Each method is one query or one transactional mutation. The repository
never decides whether an action is allowed; that is the service's job.
Failures are logged and re-raised unchanged.
"""

import asyncio
import functools
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Iterable, Optional

from loguru import logger
from sqlalchemy import delete, func, insert, select, update
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from .models import Book, BookLike, Follow, Genre, User, UserFavoriteGenre, UserFriend


# =============================================================================
# Records
# =============================================================================

@dataclass
class UserRecord:
    """Core user fields."""

    id: int
    username: str
    email: str
    friend_code: Optional[str] = None
    profile_picture: Optional[str] = None
    banner: Optional[str] = None
    biography: Optional[str] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_model(cls, model: User) -> "UserRecord":
        return cls(
            id=model.id,
            username=model.username,
            email=model.email,
            friend_code=model.friend_code,
            profile_picture=model.profile_picture,
            banner=model.banner,
            biography=model.biography,
            created_at=model.created_at,
        )


@dataclass
class GenreRecord:
    id: int
    name: str


@dataclass
class AuthorRecord:
    username: str


@dataclass
class LikedBookRecord:
    """A book the user likes, with its author's username."""

    id: int
    title: str
    author: AuthorRecord
    description: Optional[str] = None
    cover_image: Optional[str] = None


@dataclass
class BookRecord:
    """A book written by the user."""

    id: int
    title: str
    published: bool
    created_at: datetime
    description: Optional[str] = None
    cover_image: Optional[str] = None


@dataclass
class OwnStats:
    friends_count: int
    followers_count: int
    books_written: int
    books_liked: int


@dataclass
class PublicStats:
    followers_count: int
    books_published: int


@dataclass
class ProfilePictureRecord:
    id: int
    username: str
    profile_picture: Optional[str]


@dataclass
class BannerRecord:
    id: int
    username: str
    banner: Optional[str]


@dataclass
class ProfileInfoRecord:
    """Editable profile fields as they stand after an update."""

    id: int
    username: str
    biography: Optional[str]
    favorite_genres: list[GenreRecord] = field(default_factory=list)


class FollowAction(str, Enum):
    """Outcome of a follow toggle."""
    FOLLOWED = "followed"
    UNFOLLOWED = "unfollowed"


# SQLite lock conflicts between concurrent follow toggles
LOCK_RETRY_ATTEMPTS = 5
LOCK_RETRY_DELAY_SECONDS = 0.05


def _is_lock_conflict(error: OperationalError) -> bool:
    return "locked" in str(error.orig).lower()


def _logged(method):
    """Log storage failures with the repository method name, then re-raise."""

    @functools.wraps(method)
    async def wrapper(self, *args, **kwargs):
        try:
            return await method(self, *args, **kwargs)
        except SQLAlchemyError as e:
            logger.error(f"ProfileRepository.{method.__name__} failed: {type(e).__name__}: {e}")
            raise

    return wrapper


# =============================================================================
# Repository
# =============================================================================

class ProfileRepository:
    """
    Repository for profile reads and writes.

    Usage:
        async with database.session_factory() as session:
            repo = ProfileRepository(session)
            user = await repo.get_user(1)
            action = await repo.toggle_follow(1, 2)

    Mutating methods commit their own transaction so the caller sees
    durable state as soon as they return.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    @_logged
    async def get_user(self, user_id: int) -> Optional[UserRecord]:
        user = await self.session.scalar(select(User).where(User.id == user_id))
        if user is None:
            return None
        return UserRecord.from_model(user)

    @_logged
    async def get_favorite_genres(self, user_id: int) -> list[GenreRecord]:
        stmt = (
            select(Genre.id, Genre.name)
            .join(UserFavoriteGenre, UserFavoriteGenre.genre_id == Genre.id)
            .where(UserFavoriteGenre.user_id == user_id)
            .order_by(Genre.id)
        )
        rows = (await self.session.execute(stmt)).all()
        return [GenreRecord(id=row.id, name=row.name) for row in rows]

    @_logged
    async def get_liked_books(self, user_id: int) -> list[LikedBookRecord]:
        """
        Books the user likes.

        The inner join on the author drops likes whose book has no
        resolvable author.
        """
        stmt = (
            select(
                Book.id,
                Book.title,
                Book.description,
                Book.cover_image,
                User.username.label("author_username"),
            )
            .join(BookLike, BookLike.book_id == Book.id)
            .join(User, User.id == Book.author_id)
            .where(BookLike.user_id == user_id)
            .order_by(BookLike.created_at.desc(), Book.id)
        )
        rows = (await self.session.execute(stmt)).all()
        return [
            LikedBookRecord(
                id=row.id,
                title=row.title,
                description=row.description,
                cover_image=row.cover_image,
                author=AuthorRecord(username=row.author_username),
            )
            for row in rows
        ]

    @_logged
    async def get_own_books(self, user_id: int) -> list[BookRecord]:
        """All books authored by the user, newest first."""
        return await self._books_by_author(user_id, published_only=False)

    @_logged
    async def get_published_books(self, user_id: int) -> list[BookRecord]:
        """Published books authored by the user, newest first."""
        return await self._books_by_author(user_id, published_only=True)

    async def _books_by_author(self, user_id: int, published_only: bool) -> list[BookRecord]:
        stmt = select(Book).where(Book.author_id == user_id)
        if published_only:
            stmt = stmt.where(Book.published.is_(True))
        stmt = stmt.order_by(Book.created_at.desc(), Book.id.desc())

        books = (await self.session.scalars(stmt)).all()
        return [
            BookRecord(
                id=book.id,
                title=book.title,
                description=book.description,
                cover_image=book.cover_image,
                published=book.published,
                created_at=book.created_at,
            )
            for book in books
        ]

    @_logged
    async def get_own_stats(self, user_id: int) -> OwnStats:
        return OwnStats(
            friends_count=await self._count(UserFriend, UserFriend.user_id == user_id),
            followers_count=await self._count(Follow, Follow.followed_id == user_id),
            books_written=await self._count(Book, Book.author_id == user_id),
            books_liked=await self._count(BookLike, BookLike.user_id == user_id),
        )

    @_logged
    async def get_public_stats(self, user_id: int) -> PublicStats:
        return PublicStats(
            followers_count=await self._count(Follow, Follow.followed_id == user_id),
            books_published=await self._count(
                Book, Book.author_id == user_id, Book.published.is_(True)
            ),
        )

    async def _count(self, model, *criteria) -> int:
        stmt = select(func.count()).select_from(model).where(*criteria)
        return int(await self.session.scalar(stmt) or 0)

    # -------------------------------------------------------------------------
    # Existence checks
    # -------------------------------------------------------------------------

    @_logged
    async def user_exists(self, user_id: int) -> bool:
        found = await self.session.scalar(select(User.id).where(User.id == user_id))
        return found is not None

    @_logged
    async def username_exists(self, username: str, exclude_user_id: Optional[int] = None) -> bool:
        """Whether `username` is taken, optionally ignoring one user."""
        stmt = select(User.id).where(User.username == username)
        if exclude_user_id is not None:
            stmt = stmt.where(User.id != exclude_user_id)
        found = await self.session.scalar(stmt.limit(1))
        return found is not None

    @_logged
    async def genres_exist(self, genre_ids: Iterable[int]) -> bool:
        """True when every distinct id in `genre_ids` names a genre."""
        requested = set(genre_ids)
        if not requested:
            return True
        matched = await self._count(Genre, Genre.id.in_(requested))
        return matched == len(requested)

    @_logged
    async def is_following(self, follower_id: int, followed_id: int) -> bool:
        stmt = select(Follow.id).where(
            Follow.follower_id == follower_id,
            Follow.followed_id == followed_id,
        )
        found = await self.session.scalar(stmt.limit(1))
        return found is not None

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    @_logged
    async def update_profile_picture(self, user_id: int, profile_picture: str) -> Optional[ProfilePictureRecord]:
        row = await self._update_user_column(user_id, User.profile_picture, profile_picture)
        if row is None:
            return None
        return ProfilePictureRecord(id=row.id, username=row.username, profile_picture=row.value)

    @_logged
    async def update_banner(self, user_id: int, banner: str) -> Optional[BannerRecord]:
        row = await self._update_user_column(user_id, User.banner, banner)
        if row is None:
            return None
        return BannerRecord(id=row.id, username=row.username, banner=row.value)

    async def _update_user_column(self, user_id: int, column, value):
        try:
            await self.session.execute(
                update(User).where(User.id == user_id).values({column: value})
            )
            row = (
                await self.session.execute(
                    select(User.id, User.username, column.label("value")).where(User.id == user_id)
                )
            ).one_or_none()
            await self.session.commit()
            return row
        except Exception:
            await self.session.rollback()
            raise

    @_logged
    async def update_profile_info(
        self,
        user_id: int,
        username: Optional[str] = None,
        biography: Optional[str] = None,
        favorite_genres: Optional[list[int]] = None,
    ) -> Optional[ProfileInfoRecord]:
        """
        Apply a profile-info patch in one transaction.

        `None` leaves a field untouched. An empty `biography` clears it and
        an empty `favorite_genres` list removes every favorite. A genre list
        replaces the whole set: existing rows are deleted and the new ones
        inserted, then the result is re-read before commit. Any failure
        rolls the whole patch back.
        """
        try:
            values = {}
            if username is not None:
                values["username"] = username
            if biography is not None:
                values["biography"] = biography
            if values:
                await self.session.execute(
                    update(User).where(User.id == user_id).values(**values)
                )

            if favorite_genres is not None:
                await self.session.execute(
                    delete(UserFavoriteGenre).where(UserFavoriteGenre.user_id == user_id)
                )
                genre_ids = list(dict.fromkeys(favorite_genres))
                if genre_ids:
                    await self.session.execute(
                        insert(UserFavoriteGenre),
                        [{"user_id": user_id, "genre_id": genre_id} for genre_id in genre_ids],
                    )

            row = (
                await self.session.execute(
                    select(User.id, User.username, User.biography).where(User.id == user_id)
                )
            ).one_or_none()
            if row is None:
                await self.session.rollback()
                return None

            genres = await self.get_favorite_genres(user_id)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        return ProfileInfoRecord(
            id=row.id,
            username=row.username,
            biography=row.biography,
            favorite_genres=genres,
        )

    @_logged
    async def toggle_follow(self, follower_id: int, followed_id: int) -> FollowAction:
        """
        Flip the follow state of an ordered (follower, followed) pair.

        Deletes the row when present, inserts it otherwise. The insert runs
        inside a SAVEPOINT: if a concurrent request inserted the same pair
        first, the unique constraint rejects ours, the savepoint is rolled
        back and the re-read state decides the outcome.

        SQLite reports the same race as a lock conflict instead. The
        transaction is rolled back and the pair re-read: if the concurrent
        toggle already produced the state this one was heading for, that is
        the outcome. Otherwise the toggle is retried a few times.
        """
        for attempt in range(1, LOCK_RETRY_ATTEMPTS + 1):
            intended: Optional[FollowAction] = None
            try:
                if await self.is_following(follower_id, followed_id):
                    intended = FollowAction.UNFOLLOWED
                    await self.session.execute(
                        delete(Follow).where(
                            Follow.follower_id == follower_id,
                            Follow.followed_id == followed_id,
                        )
                    )
                else:
                    intended = FollowAction.FOLLOWED
                    await self._insert_follow(follower_id, followed_id)
                await self.session.commit()
            except OperationalError as e:
                await self.session.rollback()
                if not _is_lock_conflict(e) or attempt == LOCK_RETRY_ATTEMPTS:
                    raise
                if intended is not None and await self._settled_as(intended, follower_id, followed_id):
                    logger.info(
                        f"Follow {follower_id} -> {followed_id} was {intended.value} concurrently"
                    )
                    action = intended
                    break
                await asyncio.sleep(LOCK_RETRY_DELAY_SECONDS * attempt)
            except Exception:
                await self.session.rollback()
                raise
            else:
                action = intended
                break

        logger.info(f"User {follower_id} {action.value} user {followed_id}")
        return action

    async def _settled_as(self, action: FollowAction, follower_id: int, followed_id: int) -> bool:
        """Whether the pair is now in the state `action` would have left it in."""
        try:
            following = await self.is_following(follower_id, followed_id)
        finally:
            # Release the read lock before anyone retries
            await self.session.rollback()
        return following == (action is FollowAction.FOLLOWED)

    async def _insert_follow(self, follower_id: int, followed_id: int) -> None:
        try:
            async with self.session.begin_nested():
                self.session.add(Follow(follower_id=follower_id, followed_id=followed_id))
                await self.session.flush()
        except IntegrityError:
            if not await self.is_following(follower_id, followed_id):
                raise
            logger.info(
                f"Follow {follower_id} -> {followed_id} was inserted concurrently; keeping existing row"
            )
