"""
Database initialization and connection management.

This module provides functions for:
1. Creating the async engine and session factory
2. Creating the schema
3. Disposing of the engine on shutdown
"""

from typing import Any, Optional

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine
)

from mathquiz.common.logger import app_logger
from mathquiz.database.base import metadata

# Setup module logger
logger = app_logger.getChild("database.init_db")

# Global engine and session factory
_engine: Optional[AsyncEngine] = None
_session_factory: Optional[async_sessionmaker] = None


def get_session_factory() -> async_sessionmaker:
    """Get the global async session factory."""
    if _session_factory is None:
        raise RuntimeError("Database engine not initialized. Call initialize_database() first.")
    return _session_factory


async def create_schema(engine: AsyncEngine) -> None:
    """Create all tables registered on the shared metadata."""
    # Register models on the metadata before creating tables
    import mathquiz.progress.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)


async def initialize_database(
    database_url: str,
    echo: bool = False,
    **engine_options: Any
) -> AsyncEngine:
    """
    Initialize the async database engine and create the schema.

    Args:
        database_url: Database connection URL
        echo: Whether to echo SQL statements
        engine_options: Extra keyword arguments for create_async_engine

    Returns:
        AsyncEngine instance
    """
    global _engine, _session_factory

    try:
        logger.info(f"Initializing database with URL: {database_url[:16]}...")

        _engine = create_async_engine(database_url, echo=echo, **engine_options)
        _session_factory = async_sessionmaker(_engine, class_=AsyncSession, expire_on_commit=False)

        # Test connection
        async with _engine.connect() as conn:
            await conn.execute(text("SELECT 1"))

        await create_schema(_engine)

        logger.info("Database engine initialized successfully")
        return _engine

    except Exception as e:
        logger.error(f"Failed to initialize async database: {str(e)}")
        raise


async def close_database() -> None:
    """Close the database engine and all connections."""
    global _engine, _session_factory

    if _engine:
        try:
            await _engine.dispose()
            logger.info("Database engine closed successfully")
        except Exception as e:
            logger.error(f"Error closing database engine: {str(e)}")
            raise
        finally:
            _engine = None
            _session_factory = None
