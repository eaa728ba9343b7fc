"""
Database engine and session management.

A single Database instance is created at startup and shared by all
requests; each request gets its own AsyncSession from it.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from loguru import logger
from sqlalchemy import event, text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from .models import Base


def _enable_sqlite_savepoints(engine: AsyncEngine) -> None:
    """
    Let SQLAlchemy own transaction demarcation on SQLite.

    The sqlite3 driver delays BEGIN until the first write, which breaks
    SAVEPOINT handling. Turning its own transaction management off and
    emitting BEGIN ourselves restores it.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def do_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def do_begin(conn):
        conn.exec_driver_sql("BEGIN")


class Database:
    """Owns the engine/connection pool and hands out sessions."""

    def __init__(self, engine: AsyncEngine):
        self.engine = engine
        self.session_factory = async_sessionmaker(
            engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @classmethod
    def from_url(cls, database_url: str, echo: bool = False, **engine_kwargs) -> "Database":
        """Create the engine for `database_url` and wrap it."""
        engine = create_async_engine(
            database_url,
            echo=echo,
            pool_pre_ping=True,
            **engine_kwargs,
        )
        if engine.dialect.name == "sqlite":
            _enable_sqlite_savepoints(engine)
        return cls(engine)

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """
        Yield a session scoped to one unit of work.

        Work left uncommitted by the caller is committed on a clean exit
        and rolled back if an exception escapes.
        """
        async with self.session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def ping(self) -> None:
        """Round-trip a trivial query; raises if the store is unreachable."""
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))

    async def create_tables(self) -> None:
        """Create any missing tables."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        await self.engine.dispose()
        logger.info("Database connections closed")


def describe_url(database_url: Optional[str]) -> str:
    """Return the URL with any password masked, for logging."""
    if not database_url:
        return "<unset>"
    from sqlalchemy.engine import make_url

    return make_url(database_url).render_as_string(hide_password=True)
