"""
Database Connection Management

Async SQLAlchemy engine and session handling for PostgreSQL.

Usage in routers:
    async def handler(db: DbSession): ...

Usage in scripts and background jobs:
    async with get_db_context() as db:
        ...
"""

import logging
from contextlib import asynccontextmanager
from typing import Annotated, AsyncGenerator

from fastapi import Depends
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from src.config import get_settings

logger = logging.getLogger(__name__)

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def get_engine() -> AsyncEngine:
    """Get (or lazily create) the global async engine."""
    global _engine
    if _engine is None:
        settings = get_settings()
        _engine = create_async_engine(
            settings.database_url,
            echo=settings.debug,
            pool_size=settings.database_pool_size,
            max_overflow=settings.database_max_overflow,
            pool_pre_ping=True,
        )
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Get (or lazily create) the global session factory."""
    global _session_factory
    if _session_factory is None:
        _session_factory = async_sessionmaker(
            get_engine(),
            class_=AsyncSession,
            expire_on_commit=False,
        )
    return _session_factory


def reset_db_state() -> None:
    """
    Forget the global engine and session factory.

    Used by tests so that settings changes take effect.
    """
    global _engine, _session_factory
    _engine = None
    _session_factory = None


async def init_db() -> None:
    """Create the engine and verify connectivity."""
    engine = get_engine()
    async with engine.connect():
        pass


async def close_db() -> None:
    """Dispose of the engine's connection pool."""
    global _engine
    if _engine is not None:
        await _engine.dispose()
    reset_db_state()


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency yielding a session per request.

    Commits when the request handler returns, rolls back when it raises.
    """
    async with get_session_factory()() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


@asynccontextmanager
async def get_db_context() -> AsyncGenerator[AsyncSession, None]:
    """Session context manager for code running outside a request."""
    async with get_session_factory()() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


DbSession = Annotated[AsyncSession, Depends(get_db)]
