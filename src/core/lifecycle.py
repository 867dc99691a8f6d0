"""Application lifecycle management.

This module handles application startup and shutdown events, ensuring the
schema exists before the first request and the database engine is released
on shutdown.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from src.core.config.settings import settings
from src.core.logging import logger
from src.infrastructure.database.async_db import (
    check_database_health,
    create_async_db_and_tables,
    engine,
)


def create_lifespan_manager():
    """Create the application lifespan manager.

    Returns:
        AsyncContextManager: The lifespan manager for the FastAPI application
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Check the database, create missing tables, and dispose the engine on exit.

        Raises:
            RuntimeError: If the database is unavailable during startup
        """
        if not await check_database_health():
            logger.error("database_unavailable_on_startup")
            raise RuntimeError("Database unavailable")
        await create_async_db_and_tables()
        logger.info(
            "application_startup",
            env=settings.APP_ENV,
            version=settings.VERSION,
            rate_limit_storage=settings.RATE_LIMIT_STORAGE_URL.split("://", 1)[0],
        )

        yield

        await engine.dispose()
        logger.info("application_shutdown", env=settings.APP_ENV)

    return lifespan
