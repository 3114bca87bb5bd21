"""Database connection and session management."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any, AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from payroll_admin.models import Base

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine

    from payroll_admin.config import Settings


class Database:
    """Owns the async engine and its connection pool.

    Constructed by the application factory and opened/closed by the app
    lifespan. Tests build their own instance against a throwaway database.
    """

    def __init__(self, url: str, **engine_options: Any) -> None:
        self.url = url
        self._engine_options = engine_options
        self._engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> Database:
        """Create a database for the configured URL with production pool sizing."""
        if settings.is_sqlite:
            return cls(settings.database_url)
        return cls(
            settings.database_url,
            pool_pre_ping=True,
            pool_size=10,
            max_overflow=20,
        )

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            raise RuntimeError("Database is not open")
        return self._engine

    async def open(self) -> None:
        """Create the engine and session factory."""
        if self._engine is not None:
            return
        self._engine = create_async_engine(self.url, echo=False, **self._engine_options)
        self._session_factory = async_sessionmaker(
            self._engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    async def close(self) -> None:
        """Dispose of the pool, releasing every connection."""
        if self._engine is None:
            return
        await self._engine.dispose()
        self._engine = None
        self._session_factory = None

    async def create_all(self) -> None:
        """Create all tables (development and tests only)."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    def session(self) -> AsyncSession:
        """Return a new session bound to one pooled connection."""
        if self._session_factory is None:
            raise RuntimeError("Database is not open")
        return self._session_factory()


@asynccontextmanager
async def atomic(session: AsyncSession) -> AsyncGenerator[AsyncSession, None]:
    """Commit the work done inside the block, or roll all of it back.

    The rollback always completes before the exception propagates.
    """
    try:
        yield session
        await session.commit()
    except Exception:
        await session.rollback()
        raise
