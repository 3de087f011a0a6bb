"""
Database configuration.
Implements connection pooling, async sessions and schema creation.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import asyncpg
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import AsyncAdaptedQueuePool
from sqlmodel import SQLModel

from .config import settings

logger = logging.getLogger(__name__)

# Create async engine with pool settings
engine = create_async_engine(
    str(settings.database.url),
    echo=bool(settings.performance.enable_query_logging or settings.database.echo),
    future=True,
    pool_pre_ping=True,
    pool_size=settings.database.pool_size,
    max_overflow=settings.database.max_overflow,
    pool_timeout=settings.database.pool_timeout,
    pool_recycle=settings.database.pool_recycle,
    poolclass=AsyncAdaptedQueuePool,
    connect_args={
        "server_settings": {
            "application_name": settings.app.app_name,
        },
        "command_timeout": 60,
        "timeout": 30,
    },
)

# Create async session factory
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,  # Prevent additional queries after commit
    autoflush=False,
    autocommit=False,
)


@asynccontextmanager
async def get_cleanup_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Create an isolated session for scripts and scheduled jobs.

    Commits when the block finishes without error, rolls back otherwise.

    Example:
        async with get_cleanup_session() as db:
            await ImeiRestrictionService.expire_lapsed_restrictions(db)
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def ensure_database_exists() -> None:
    """
    Ensure the database exists, create it if it doesn't.
    Connects to the default postgres database first to create the target database.
    """
    database_url = settings.database.database_url_sync

    if "/" not in database_url:
        raise ValueError("Invalid database URL format")

    db_name = database_url.split("/")[-1]
    base_url = "/".join(database_url.split("/")[:-1]) + "/postgres"

    try:
        conn = await asyncpg.connect(database_url)
        await conn.close()
        return
    except asyncpg.InvalidCatalogNameError:
        pass

    conn = await asyncpg.connect(base_url)
    try:
        await conn.execute(f'CREATE DATABASE "{db_name}"')
        logger.info(f"Created database {db_name}")
    except asyncpg.DuplicateDatabaseError:
        pass
    finally:
        await conn.close()


async def init_db() -> None:
    """
    Initialize database tables.
    First ensures the database exists, then creates all tables that are missing.
    """
    # Register table metadata before create_all
    import db.models  # noqa: F401

    await ensure_database_exists()

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)


async def close_db() -> None:
    """
    Close database connections.
    Should be called on application shutdown.
    """
    await engine.dispose()
