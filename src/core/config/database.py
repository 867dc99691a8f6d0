"""
Database connection settings.
"""
from pydantic import Field
from pydantic_settings import BaseSettings


class DatabaseSettings(BaseSettings):
    """
    Defines settings for connecting to the relational store.

    DATABASE_URL must name an asyncio driver: ``postgresql+asyncpg://`` in
    production, ``sqlite+aiosqlite://`` for local development and tests.

    Performance Note:
        - Tune DATABASE_POOL_SIZE and DATABASE_MAX_OVERFLOW based on application
          load and database server capacity (ignored for SQLite).
        - DATABASE_POOL_TIMEOUT and DATABASE_COMMAND_TIMEOUT bound how long a
          request may wait on the store before it is failed as retryable.
    """
    DATABASE_URL: str = "sqlite+aiosqlite:///./userdesk.db"
    DATABASE_ECHO: bool = False
    DATABASE_POOL_SIZE: int = Field(ge=1, default=10)
    DATABASE_MAX_OVERFLOW: int = Field(ge=0, default=20)
    DATABASE_POOL_TIMEOUT: float = Field(gt=0, default=5.0)
    DATABASE_COMMAND_TIMEOUT: float = Field(gt=0, default=5.0)
