"""
Database Connection
===================
Async SQLAlchemy engine and session management.
"""

from pathlib import Path
from typing import Any

import structlog
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from backend.config import settings
from backend.models.base import Base

logger = structlog.get_logger()


def _engine_options() -> dict[str, Any]:
    if settings.is_sqlite:
        return {"connect_args": {"timeout": 30}}
    return {
        "pool_size": settings.database_pool_size,
        "max_overflow": settings.database_max_overflow,
        "pool_pre_ping": True,
    }


engine = create_async_engine(
    settings.database_url,
    echo=settings.app_debug,
    **_engine_options(),
)

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


def _ensure_sqlite_directory(url: str) -> None:
    """Create the parent directory of a file-backed SQLite database."""
    database = make_url(url).database
    if database and database != ":memory:":
        Path(database).parent.mkdir(parents=True, exist_ok=True)


async def init_db() -> None:
    """Create tables if they do not exist yet."""
    if settings.is_sqlite:
        _ensure_sqlite_directory(settings.database_url)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    logger.info("Database schema ready", url=make_url(settings.database_url).render_as_string())


async def close_db() -> None:
    """Dispose of the engine connection pool."""
    await engine.dispose()
