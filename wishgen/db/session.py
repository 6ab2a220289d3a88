"""Async engine and session handling for the message store.

One engine per process, created lazily from ``Settings.database_url``.
SQLite URLs (aiosqlite) and PostgreSQL URLs (asyncpg) are both accepted;
connection pool sizing only applies to the latter.
"""

import logging
from collections.abc import AsyncGenerator, Callable
from typing import Any

from sqlalchemy.engine import Connection
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlmodel import SQLModel

from wishgen.core.config import Settings, get_settings

logger = logging.getLogger(__name__)

_engine: AsyncEngine | None = None
_async_session_maker: async_sessionmaker[AsyncSession] | None = None


def _engine_options(settings: Settings) -> dict[str, Any]:
    options: dict[str, Any] = {
        "echo": settings.log_level == "DEBUG",
        "pool_pre_ping": True,
    }
    if not settings.is_sqlite:
        options.update(pool_size=10, max_overflow=20)
    return options


def get_engine(settings: Settings | None = None) -> AsyncEngine:
    """Return the process-wide engine, creating it on first use.

    Args:
        settings: Settings to build the engine from. Falls back to the
            global settings. Ignored once the engine exists.
    """
    global _engine

    if _engine is not None:
        return _engine

    settings = settings or get_settings()
    try:
        _engine = create_async_engine(settings.database_url, **_engine_options(settings))
    except Exception as e:
        logger.error(f"Cannot create engine for {settings.database_url}: {e}", exc_info=True)
        raise

    logger.info(f"Database engine ready ({'sqlite' if settings.is_sqlite else 'server'})")
    return _engine


def get_session_maker(settings: Settings | None = None) -> async_sessionmaker[AsyncSession]:
    global _async_session_maker

    if _async_session_maker is None:
        # Records are read back after commit, so keep attributes loaded.
        _async_session_maker = async_sessionmaker(
            get_engine(settings),
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )
    return _async_session_maker


async def get_async_session(settings: Settings | None = None) -> AsyncGenerator[AsyncSession, None]:
    """Yield one session; roll it back if the caller raises.

    Yields:
        An AsyncSession bound to the process-wide engine.
    """
    async with get_session_maker(settings)() as session:
        try:
            yield session
        except SQLAlchemyError as e:
            logger.error(f"Session rolled back after database error: {e}", exc_info=True)
            await session.rollback()
            raise
        except Exception:
            await session.rollback()
            raise


async def _run_ddl(
    action: Callable[[Connection], None],
    settings: Settings | None,
    label: str,
) -> None:
    # Table classes register themselves on SQLModel.metadata at import time.
    from wishgen.db import models  # noqa: F401

    engine = get_engine(settings)
    try:
        async with engine.begin() as conn:
            await conn.run_sync(action)
    except Exception as e:
        logger.error(f"{label} failed: {e}", exc_info=True)
        raise


async def create_all_tables(settings: Settings | None = None) -> None:
    """Create the message tables if they do not exist yet."""
    await _run_ddl(SQLModel.metadata.create_all, settings, "Table creation")
    logger.info("Message tables are in place")


async def drop_all_tables(settings: Settings | None = None) -> None:
    """Drop the message tables.

    Every stored message is lost.
    """
    logger.warning("Dropping message tables")
    await _run_ddl(SQLModel.metadata.drop_all, settings, "Table drop")
    logger.warning("Message tables dropped")


async def init_db(settings: Settings | None = None) -> None:
    """Prepare the database for serving requests."""
    await create_all_tables(settings)


async def close_db() -> None:
    """Dispose of the engine and forget the session maker.

    The next call to :func:`get_engine` builds a fresh engine.
    """
    global _engine, _async_session_maker

    engine = _engine
    _engine = None
    _async_session_maker = None

    if engine is None:
        return
    try:
        await engine.dispose()
    except Exception as e:
        logger.error(f"Engine dispose failed: {e}", exc_info=True)
        raise
    logger.info("Database engine disposed")
