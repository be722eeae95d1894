"""
Database Connection Module

Wraps the SQLAlchemy async engine and session factory in a Database object
with an explicit lifecycle:

    database = Database.from_settings(get_settings())   # process start
    async with database.session() as session: ...        # reads
    async with database.transaction() as session: ...    # writes
    await database.dispose()                             # shutdown

Services receive the Database instance instead of importing a global engine.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy import event, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from food_ordering.core.config import Settings
from food_ordering.core.exceptions import StorageError

logger = logging.getLogger(__name__)


# Base class for all our models
class Base(DeclarativeBase):
    pass


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    """SQLite ignores FOREIGN KEY clauses unless asked per connection."""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """
    Owns the connection pool for one process.

    Attributes:
        url: Async SQLAlchemy URL
        engine: The underlying AsyncEngine
    """

    def __init__(
        self,
        url: str,
        echo: bool = False,
        pool_size: int = 5,
        max_overflow: int = 10,
    ):
        self.url = url

        engine_kwargs = {"echo": echo}
        if url.startswith("sqlite"):
            # SQLite uses its own pool classes that do not accept sizing
            engine_kwargs["connect_args"] = {"timeout": 30}
        else:
            engine_kwargs["pool_size"] = pool_size
            engine_kwargs["max_overflow"] = max_overflow
            engine_kwargs["pool_pre_ping"] = True

        self.engine: AsyncEngine = create_async_engine(url, **engine_kwargs)

        if url.startswith("sqlite"):
            event.listen(self.engine.sync_engine, "connect", _enable_sqlite_foreign_keys)

        # Objects remain accessible after commit
        self._session_maker = async_sessionmaker(
            bind=self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        """Build a Database from application settings."""
        return cls(
            settings.database_url,
            echo=settings.database_echo,
            pool_size=settings.database_pool_size,
            max_overflow=settings.database_max_overflow,
        )

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """
        Yield a session for reads.

        The session (and its connection) is returned to the pool on every
        exit path.
        """
        async with self._session_maker() as session:
            yield session

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[AsyncSession]:
        """
        Yield a session inside a single transaction.

        Commits when the block exits normally. Any exception rolls the
        transaction back before the session is released; database errors
        are re-raised as StorageError, domain errors propagate unchanged.
        """
        async with self._session_maker() as session:
            try:
                async with session.begin():
                    yield session
            except SQLAlchemyError as e:
                logger.error(f"Transaction rolled back: {e}")
                raise StorageError("Database transaction failed") from e

    async def create_all(self) -> None:
        """
        Create all tables in database.
        Called once at application startup.
        """
        # Register every mapped table on Base.metadata
        import food_ordering.models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables created")

    async def ping(self) -> bool:
        """Run a trivial query to verify connectivity."""
        try:
            async with self.session() as session:
                await session.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.error(f"Database health check failed: {e}")
            return False

    async def dispose(self) -> None:
        """Close every pooled connection."""
        await self.engine.dispose()
        logger.info("Database connections closed")

