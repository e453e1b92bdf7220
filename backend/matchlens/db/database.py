"""Database connection and session management.

SQLAlchemy 2.0 async engine over asyncpg (PostgreSQL + pgvector) with
aiosqlite accepted for local experiments.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from matchlens.core.config import settings

logger = logging.getLogger(__name__)


def _get_async_database_url(url: str) -> str:
    """Convert sync database URL to async format.

    - postgres:// and postgresql:// -> postgresql+asyncpg://
    - sqlite:// -> sqlite+aiosqlite://
    """
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql+asyncpg://", 1)
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)
    if url.startswith("sqlite://"):
        return url.replace("sqlite://", "sqlite+aiosqlite://", 1)
    return url


_database_url = _get_async_database_url(settings.database_url)
_is_sqlite = _database_url.startswith("sqlite")

# NullPool for tests and SQLite, the default QueuePool otherwise
_pool_class = NullPool if (settings.app_env == "test" or _is_sqlite) else None

_engine_kwargs: dict[str, Any] = {
    "echo": settings.debug,
    "poolclass": _pool_class,
}

if not _is_sqlite and _pool_class is None:
    _engine_kwargs.update(
        {
            "pool_pre_ping": True,
            "pool_size": 5,
            "max_overflow": 10,
            "pool_recycle": 3600,
        }
    )

engine = create_async_engine(_database_url, **_engine_kwargs)

async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)

# Alias used by the Unit of Work
async_session_factory = async_session_maker


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency for getting database sessions.

    Usage:
        @router.get("/items")
        async def get_items(db: AsyncSession = Depends(get_db)):
            ...
    """
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


@asynccontextmanager
async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Context manager for sessions outside FastAPI dependency injection.

    Usage:
        async with get_session() as session:
            result = await session.execute(select(Team))
    """
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def init_db() -> None:
    """Create the pgvector extension and all tables."""
    from matchlens.db.models import Base

    async with engine.begin() as conn:
        if not _is_sqlite:
            await conn.execute(text("CREATE EXTENSION IF NOT EXISTS vector"))
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database schema initialized")


async def check_db_connection() -> bool:
    """Return True when a trivial query succeeds."""
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
    return True


async def close_db() -> None:
    """Close database connections."""
    await engine.dispose()
