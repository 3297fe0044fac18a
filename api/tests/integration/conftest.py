"""
Pytest configuration for integration tests.

Integration tests run against the PostgreSQL database named by
MARKETPLACE_DATABASE_URL. The schema is created from the ORM metadata and
every table is truncated before each test. Tests are skipped when the
database is unreachable.
"""

from typing import AsyncGenerator, Awaitable, Callable

import pytest
import pytest_asyncio
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from src.config import get_settings
from src.models.orm import Base


@pytest_asyncio.fixture
async def async_engine() -> AsyncGenerator[AsyncEngine, None]:
    """
    Engine with the marketplace schema in place and every table empty.

    Uses NullPool so no connection outlives the test's event loop.
    """
    engine = create_async_engine(get_settings().database_url, poolclass=NullPool)
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
            tables = ", ".join(f'"{table.name}"' for table in Base.metadata.sorted_tables)
            await conn.execute(text(f"TRUNCATE TABLE {tables} CASCADE"))
    except (OSError, SQLAlchemyError) as e:
        await engine.dispose()
        pytest.skip(f"PostgreSQL not available: {e}")

    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(async_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Independent sessions, one per simulated request."""
    return async_sessionmaker(async_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def store_rows(
    session_factory: async_sessionmaker[AsyncSession],
) -> Callable[..., Awaitable[None]]:
    """Commit ORM instances in a session of their own."""

    async def store(*rows) -> None:
        async with session_factory() as session:
            session.add_all(rows)
            await session.commit()

    return store
