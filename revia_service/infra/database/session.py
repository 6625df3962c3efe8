"""Async database session management.

The engine and session factory are created on first use from
``DatabaseSettings`` so tests can point the service at another URL before
anything connects.
"""

from __future__ import annotations

import logging

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from revia_service.core.database import Base
from revia_service.core.settings import get_db_settings

logger = logging.getLogger(__name__)

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def get_engine() -> AsyncEngine:
    """Get (creating on first call) the process-wide async engine."""
    global _engine
    if _engine is None:
        db_settings = get_db_settings()
        _engine = create_async_engine(db_settings.url, echo=db_settings.echo)
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Get (creating on first call) the session factory bound to the engine."""
    global _session_factory
    if _session_factory is None:
        _session_factory = async_sessionmaker(
            get_engine(),
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )
    return _session_factory


async def init_database(*, create_tables: bool | None = None) -> None:
    """Check connectivity and create missing tables.

    Args:
        create_tables: Override ``DatabaseSettings.create_tables``.
    """
    db_settings = get_db_settings()
    should_create = db_settings.create_tables if create_tables is None else create_tables
    engine = get_engine()

    try:
        async with engine.begin() as conn:
            await conn.execute(text("SELECT 1"))
            if should_create:
                # Model modules register their tables on import
                import revia_service.features.notifications.models  # noqa: F401

                await conn.run_sync(Base.metadata.create_all)
    except Exception as e:
        logger.error(
            "Failed to initialize database",
            extra={"url": engine.url.render_as_string(hide_password=True), "error": str(e)},
        )
        raise

    logger.info(
        "Database initialized",
        extra={"url": engine.url.render_as_string(hide_password=True), "tables_created": should_create},
    )


async def close_database() -> None:
    """Dispose of the engine. Call during application shutdown."""
    global _engine, _session_factory
    if _engine is None:
        return

    logger.info("Closing database connection")
    try:
        await _engine.dispose()
        logger.info("Database connection closed successfully")
    except Exception as e:
        logger.exception("Error closing database connection", extra={"error": str(e)})
    finally:
        _engine = None
        _session_factory = None


__all__ = [
    "close_database",
    "get_engine",
    "get_session_factory",
    "init_database",
]
