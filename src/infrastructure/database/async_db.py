from __future__ import annotations

"""
Asynchronous Database Module

This module manages the asyncio SQLAlchemy engine used by every repository,
the FastAPI session dependency, schema creation and the health probe.

PostgreSQL is reached through asyncpg; SQLite through aiosqlite. Both drivers
receive a command timeout so a stuck store surfaces as a retryable failure
instead of a hanging request.

Key Components:
    - build_engine: Creates an engine for a URL with driver-specific options.
    - engine / AsyncSessionFactory: The process-wide engine and session factory.
    - get_db: FastAPI dependency yielding an AsyncSession.
    - create_async_db_and_tables: Creates all SQLModel tables.
    - check_database_health: Runs ``SELECT 1`` with retry logic.
"""

import asyncio
import time
from typing import AsyncGenerator

from sqlalchemy import event
from sqlalchemy.exc import OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
from sqlalchemy.sql import text
from sqlmodel import SQLModel
from structlog import get_logger
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

import src.domain.entities  # noqa: F401  (registers tables on SQLModel.metadata)
from src.core.config.settings import settings

logger = get_logger(__name__)

# Store failures that are transient: a timeout, a locked database or a lost
# connection. Callers surface them as a retryable 503.
STORE_UNAVAILABLE_ERRORS = (OperationalError, PoolTimeoutError, asyncio.TimeoutError)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_engine(url: str, echo: bool = False) -> AsyncEngine:
    """Create an async engine for `url`.

    In-memory SQLite databases share a single connection (``StaticPool``) so
    every session sees the same data; file-based SQLite and PostgreSQL use a
    regular pool bounded by the configured timeouts.

    Args:
        url: SQLAlchemy URL with an asyncio driver.
        echo: Log every statement (development only).

    Returns:
        AsyncEngine: The configured engine.
    """
    if url.startswith("sqlite"):
        options = {
            "connect_args": {
                "check_same_thread": False,
                "timeout": settings.DATABASE_COMMAND_TIMEOUT,
            }
        }
        if ":memory:" in url or url.rstrip("/").endswith("sqlite+aiosqlite:"):
            options["poolclass"] = StaticPool
        engine = create_async_engine(url, echo=echo, **options)
        event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
        return engine

    return create_async_engine(
        url,
        echo=echo,
        pool_size=settings.DATABASE_POOL_SIZE,
        max_overflow=settings.DATABASE_MAX_OVERFLOW,
        pool_timeout=settings.DATABASE_POOL_TIMEOUT,
        pool_pre_ping=True,
        connect_args={"command_timeout": settings.DATABASE_COMMAND_TIMEOUT},
    )


def build_session_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind=bind, class_=AsyncSession, expire_on_commit=False)


engine = build_engine(settings.DATABASE_URL, echo=settings.DATABASE_ECHO)
AsyncSessionFactory = build_session_factory(engine)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that yields an AsyncSession.

    The transaction is rolled back if the request fails and the session is
    always closed afterwards.

    Yields:
        AsyncSession: An asynchronous database session.
    """
    async with AsyncSessionFactory() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            logger.warning("database_session_rolled_back")
            raise


async def create_async_db_and_tables(bind: AsyncEngine = None) -> None:
    """
    Create every SQLModel table that does not exist yet.
    """
    start_time = time.time()
    async with (bind or engine).begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    logger.info(
        "database_tables_created",
        execution_time=time.time() - start_time,
        tables=list(SQLModel.metadata.tables.keys()),
    )


@retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=0.5, min=0.5, max=4),
    retry=retry_if_exception_type(OperationalError),
    reraise=True,
)
async def _ping(bind: AsyncEngine) -> None:
    async with bind.connect() as conn:
        await conn.execute(text("SELECT 1"))


async def check_database_health(bind: AsyncEngine = None) -> bool:
    """
    Performs a health check on the database connection.

    Transient connection errors are retried with exponential backoff before
    the store is reported as unavailable.

    Returns:
        bool: True if database is healthy and responsive, False otherwise.
    """
    start_time = time.time()
    try:
        await _ping(bind or engine)
    except Exception as e:
        logger.error(
            "database_health_check_failed",
            error=str(e),
            execution_time=time.time() - start_time,
        )
        return False
    logger.debug("database_health_check_success", execution_time=time.time() - start_time)
    return True
