"""
Database configuration - SQLAlchemy 2.0 Async
Project: GST Ledger

Defines the engine, the session factory and the FastAPI dependency that
hands out one unit of work per request.
"""

import logging
from typing import AsyncGenerator, Optional

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from gst_ledger.core.config import settings

# Logger for this module
logger = logging.getLogger(__name__)

# ------------------------------------------------------------
# Async SQLAlchemy 2.0 engine
# ------------------------------------------------------------
_engine: Optional[AsyncEngine] = None
_session_factory: Optional[async_sessionmaker[AsyncSession]] = None


def get_engine() -> AsyncEngine:
    """
    Return the process-wide engine, creating it on first use.

    Returns:
        AsyncEngine: engine bound to settings.database_url
    """
    global _engine
    if _engine is None:
        _engine = create_async_engine(
            settings.database_url,
            echo=settings.debug,  # Log SQL in debug mode
            pool_pre_ping=True,   # Check the connection before using it
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
        )
    return _engine


# ------------------------------------------------------------
# Session factory
# ------------------------------------------------------------
def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Return the session factory bound to the engine."""
    global _session_factory
    if _session_factory is None:
        _session_factory = async_sessionmaker(
            bind=get_engine(),
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )
    return _session_factory


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency yielding a plain session.

    Used by read-only endpoints; ledger mutations go through a unit of work.

    Yields:
        AsyncSession: async database session
    """
    async with get_session_factory()() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


async def init_db() -> None:
    """
    Check that the database is reachable.

    Raises:
        Exception: the connection test failed
    """
    try:
        async with get_engine().begin() as conn:
            await conn.execute(text("SELECT 1"))
        logger.info("Database connection established")
    except Exception as e:
        logger.error("Database connection error: %s", e)
        raise


async def create_tables() -> None:
    """Create all ledger tables (development bootstrap)."""
    # Importing the package registers every model on Base.metadata
    from gst_ledger.models import Base

    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Ledger tables created")


async def drop_tables() -> None:
    """Drop all ledger tables (development reset)."""
    from gst_ledger.models import Base

    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    logger.warning("Ledger tables dropped")


async def close_db() -> None:
    """
    Close the database connections.

    Called on application shutdown.
    """
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
        _engine = None
        _session_factory = None
    logger.info("Database connections closed")
