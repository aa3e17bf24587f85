"""Async engine and session management for the scheduling database."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from clinic_scheduler.config import settings

logger = structlog.get_logger(__name__)

_ASYNC_DRIVER = "postgresql+asyncpg://"
_SYNC_PREFIXES = ("postgresql+psycopg2://", "postgresql://", "postgres://")


def to_async_url(url: str) -> str:
    """
    Point a PostgreSQL URL at the asyncpg driver.

    Args:
        url: Database URL as configured, with or without a driver

    Returns:
        Same URL using ``postgresql+asyncpg://``
    """
    for prefix in _SYNC_PREFIXES:
        if url.startswith(prefix):
            return _ASYNC_DRIVER + url[len(prefix) :]
    return url


DATABASE_URL = to_async_url(settings.database_url)

engine: AsyncEngine = create_async_engine(
    DATABASE_URL,
    echo=settings.debug,
    pool_pre_ping=True,
    pool_size=settings.db_pool_size,
    max_overflow=settings.db_max_overflow,
    pool_recycle=3600,
    connect_args={
        "server_settings": {
            "application_name": settings.app_name,
            "timezone": "UTC",
        },
    },
)

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Request-scoped session. Repositories commit their own writes."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


@asynccontextmanager
async def session_scope() -> AsyncGenerator[AsyncSession, None]:
    """Session for work outside a request, such as the background reminder sweep."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception as e:
            await session.rollback()
            logger.error("session_rolled_back", error=str(e))
            raise


async def check_database_connection() -> bool:
    """Check if database connection is healthy."""
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True
    except Exception:
        return False
