"""Database configuration and session management."""

import threading
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from subway.core.config import settings

logger = structlog.get_logger(__name__)

# Module-level globals for lazy initialization (fork-safety)
_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None

# Thread locks for thread-safe singleton initialization
_engine_lock = threading.Lock()
_session_factory_lock = threading.Lock()


def get_engine() -> AsyncEngine:
    """
    Get or create database engine (lazy initialization).

    Lazy initialization prevents forked worker processes from inheriting
    the parent's engine with asyncio primitives bound to the parent's event loop.

    Thread-safe implementation using double-checked locking ensures only one
    engine instance is created even with concurrent access.

    Returns:
        AsyncEngine: SQLAlchemy async engine
    """
    global _engine  # noqa: PLW0603
    if _engine is None:
        with _engine_lock:
            if _engine is None:  # Double-checked locking
                if settings.DEBUG:
                    # NullPool doesn't accept pool_size/max_overflow parameters
                    _engine = create_async_engine(
                        settings.DATABASE_URL,
                        echo=settings.DATABASE_ECHO,
                        poolclass=NullPool,
                    )
                else:
                    _engine = create_async_engine(
                        settings.DATABASE_URL,
                        echo=settings.DATABASE_ECHO,
                        pool_size=settings.DATABASE_POOL_SIZE,
                        max_overflow=settings.DATABASE_MAX_OVERFLOW,
                        pool_pre_ping=True,
                    )
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """
    Get or create session factory (lazy initialization).

    Returns:
        async_sessionmaker[AsyncSession]: SQLAlchemy async session factory
    """
    global _session_factory  # noqa: PLW0603
    if _session_factory is None:
        with _session_factory_lock:
            if _session_factory is None:  # Double-checked locking
                _session_factory = async_sessionmaker(
                    get_engine(),
                    class_=AsyncSession,
                    expire_on_commit=False,
                    autoflush=False,
                )
    return _session_factory


async def get_db() -> AsyncGenerator[AsyncSession]:
    """
    Dependency for getting async database sessions.

    Yields:
        AsyncSession: Database session
    """
    async with get_session_factory()() as session:
        try:
            yield session
        finally:
            await session.close()


@asynccontextmanager
async def unit_of_work(db: AsyncSession, *, read_only: bool = False) -> AsyncGenerator[AsyncSession]:
    """
    Run a block of work inside one transactional scope.

    Write scopes commit when the block finishes and roll back on any
    exception, so a failed operation leaves no partial changes behind.
    Read-only scopes never commit and run with autoflush disabled so that
    queries cannot push pending state to the database.

    Args:
        db: Database session
        read_only: Whether the block only reads

    Yields:
        AsyncSession: The same session, for convenience
    """
    try:
        if read_only:
            with db.no_autoflush:
                yield db
        else:
            yield db
            await db.commit()
    except Exception:
        await db.rollback()
        logger.debug("unit_of_work_rolled_back", read_only=read_only)
        raise
