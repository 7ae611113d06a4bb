"""Database session management for the reservation store."""

from typing import Optional

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import AsyncAdaptedQueuePool, StaticPool

from core.config import settings


def normalize_database_url(url: str) -> str:
    """Ensure an async driver is used."""
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)
    if url.startswith("sqlite://") and not url.startswith("sqlite+aiosqlite://"):
        return url.replace("sqlite://", "sqlite+aiosqlite://", 1)
    return url


def create_engine(
    url: Optional[str] = None,
    pool_size: int = settings.db_pool_size,
    max_overflow: int = settings.db_max_overflow,
    echo: bool = settings.db_echo,
) -> AsyncEngine:
    """
    Create async SQLAlchemy engine.

    Args:
        url: Database URL (defaults to settings.database_url)
        pool_size: Number of connections to maintain in pool
        max_overflow: Max number of connections to create beyond pool_size
        echo: Whether to log all SQL statements

    Returns:
        Async SQLAlchemy engine
    """
    url = normalize_database_url(url or settings.database_url)

    if url.startswith("sqlite+aiosqlite://"):
        # One shared connection so an in-memory database survives between sessions
        return create_async_engine(url, echo=echo, poolclass=StaticPool)

    return create_async_engine(
        url,
        echo=echo,
        poolclass=AsyncAdaptedQueuePool,
        pool_size=pool_size,
        max_overflow=max_overflow,
        pool_pre_ping=True,
        connect_args={
            "server_settings": {
                "application_name": "availability_engine",
            },
            "command_timeout": 60,
            "timeout": 10,
        },
    )


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker:
    """Async session factory bound to ``engine``."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


_engine: Optional[AsyncEngine] = None


def get_engine() -> AsyncEngine:
    """Get or create the application engine."""
    global _engine
    if _engine is None:
        _engine = create_engine()
    return _engine


async def init_db(engine: Optional[AsyncEngine] = None) -> None:
    """Initialize database by creating all tables."""
    from .base import Base
    from . import models_sqlalchemy  # noqa: F401 - registers the tables

    engine = engine or get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def drop_db(engine: Optional[AsyncEngine] = None) -> None:
    """Drop all database tables. Use with caution!"""
    from .base import Base

    engine = engine or get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


async def close_db(engine: Optional[AsyncEngine] = None) -> None:
    """Close database engine and all connections."""
    global _engine
    target = engine or _engine
    if target is not None:
        await target.dispose()
    if target is _engine:
        _engine = None
