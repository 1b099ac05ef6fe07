"""Database abstraction layer using SQLAlchemy 2.0 async.

This module provides the database session management and engine configuration
for SQLAlchemy with async support. SQLite (aiosqlite) is the default driver.
"""

from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from asthma_api.core.config import Settings, get_settings
from asthma_api.core.logging import get_logger

logger = get_logger(__name__)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


class DatabaseManager:
    """Database connection and session manager.

    This class manages the async database engine and session factory.
    """

    def __init__(self, database_url: str | None = None, echo: bool | None = None) -> None:
        if database_url is None or echo is None:
            settings = get_settings()
            database_url = database_url or settings.database_url
            echo = settings.db_echo if echo is None else echo
        self.database_url = database_url
        self.echo = echo
        self._engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "DatabaseManager":
        """Build a manager for the database named in ``settings``."""
        return cls(database_url=settings.database_url, echo=settings.db_echo)

    @property
    def engine(self) -> AsyncEngine:
        """Get or create the database engine."""
        if self._engine is None:
            self._engine = create_async_engine(
                self.database_url,
                echo=self.echo,
                connect_args={"check_same_thread": False}
                if self.database_url.startswith("sqlite")
                else {},
            )
            logger.info(
                "Database engine created",
                database_url=self._engine.url.render_as_string(hide_password=True),
            )
        return self._engine

    @property
    def session_factory(self) -> async_sessionmaker[AsyncSession]:
        """Get or create the session factory."""
        if self._session_factory is None:
            self._session_factory = async_sessionmaker(
                bind=self.engine,
                class_=AsyncSession,
                expire_on_commit=False,
                autoflush=False,
            )
        return self._session_factory

    async def create_tables(self) -> None:
        """Create all database tables defined on ``Base``."""
        # Import models so they register with Base.metadata
        from asthma_api.infrastructure.persistence import models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables created")

    async def disconnect(self) -> None:
        """Close the database engine and all connections."""
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None
            logger.info("Database engine disposed")

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Provide a session that rolls back on error.

        Example:
            async with db.session() as session:
                user = await UserRepository(session).get_by_id(user_id)
        """
        async with self.session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    async def check_connection(self) -> bool:
        """Check if database connection is working."""
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.error("Database connection check failed", error=str(e))
            return False


# Global database manager instance
_db_manager: DatabaseManager | None = None


def get_db_manager() -> DatabaseManager:
    """Get the global database manager instance."""
    global _db_manager
    if _db_manager is None:
        _db_manager = DatabaseManager()
    return _db_manager


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency yielding a database session."""
    db = get_db_manager()
    async with db.session() as session:
        yield session


async def init_database(settings: Settings | None = None) -> None:
    """Initialize the database.

    Creates the SQLite directory if needed, checks connectivity and creates
    tables from model metadata.

    Args:
        settings: When given, the global manager is rebuilt for
            ``settings.database_url`` instead of the cached settings.

    Raises:
        RuntimeError: If the database cannot be reached.
    """
    global _db_manager
    if settings is not None:
        if _db_manager is not None:
            await _db_manager.disconnect()
        _db_manager = DatabaseManager.from_settings(settings)
    db = get_db_manager()

    if db.database_url.startswith("sqlite") and ":memory:" not in db.database_url:
        db_path = Path(db.database_url.split(":///")[-1])
        db_path.parent.mkdir(parents=True, exist_ok=True)

    if not await db.check_connection():
        logger.error("Database connection failed")
        raise RuntimeError("Failed to connect to database")

    await db.create_tables()


async def close_database() -> None:
    """Dispose of the global engine."""
    global _db_manager
    if _db_manager is not None:
        await _db_manager.disconnect()
        _db_manager = None
