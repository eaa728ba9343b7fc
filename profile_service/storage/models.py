"""
Database models for the profile service.

The schema is owned by the wider platform; these models describe the
tables this service reads and writes.
"""

from datetime import datetime

from sqlalchemy import (
    BigInteger,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base

Base = declarative_base()

# SQLite only autoincrements INTEGER PRIMARY KEY columns
Identifier = BigInteger().with_variant(Integer, "sqlite")


class User(Base):
    """User account and public profile fields."""
    __tablename__ = "users"

    id = Column(Identifier, primary_key=True, autoincrement=True)
    username = Column(String(50), unique=True, index=True, nullable=False)
    email = Column(String(255), unique=True, nullable=False)
    friend_code = Column(String(32), unique=True)
    profile_picture = Column(Text)
    banner = Column(Text)
    biography = Column(Text)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class Genre(Base):
    __tablename__ = "genres"

    id = Column(Identifier, primary_key=True, autoincrement=True)
    name = Column(String(100), unique=True, nullable=False)


class UserFavoriteGenre(Base):
    """Association between a user and one of their favorite genres."""
    __tablename__ = "user_favorite_genres"

    user_id = Column(Identifier, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    genre_id = Column(Identifier, ForeignKey("genres.id", ondelete="CASCADE"), primary_key=True)


class Book(Base):
    __tablename__ = "books"

    id = Column(Identifier, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    description = Column(Text)
    cover_image = Column(Text)
    published = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    author_id = Column(Identifier, ForeignKey("users.id", ondelete="SET NULL"), index=True)


class BookLike(Base):
    """A user liking a book."""
    __tablename__ = "book_likes"

    user_id = Column(Identifier, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    book_id = Column(Identifier, ForeignKey("books.id", ondelete="CASCADE"), primary_key=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class UserFriend(Base):
    """Mutual friendship entry, maintained by the friends service."""
    __tablename__ = "user_friends"

    user_id = Column(Identifier, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    friend_id = Column(Identifier, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)


class Follow(Base):
    """
    Directional follow relationship.

    The unique constraint on the ordered pair is what keeps concurrent
    toggles from producing duplicate rows.
    """
    __tablename__ = "follows"

    id = Column(Identifier, primary_key=True, autoincrement=True)
    follower_id = Column(Identifier, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    followed_id = Column(Identifier, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("follower_id", "followed_id", name="uq_follows_pair"),
    )
