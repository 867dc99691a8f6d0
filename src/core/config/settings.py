"""Settings composition.

The app, database, auth and rate-limit mixins are merged into one `Settings`
class. `APP_ENV` picks the env file: `.env.test`, `.env.staging` or
`.env.production` when present, otherwise `.env`. Real environment variables
always win over file values.
"""

import logging
import os
from pathlib import Path

from pydantic_settings import SettingsConfigDict

from .app import AppSettings
from .auth import AuthSettings
from .database import DatabaseSettings
from .rate_limit import RateLimitSettings

logger = logging.getLogger(__name__)
logging.getLogger("passlib").setLevel(logging.ERROR)


class Settings(AppSettings, DatabaseSettings, AuthSettings, RateLimitSettings):
    """The main settings class that aggregates all application configurations.

    It inherits from all the specialized settings classes, providing a unified
    interface to all configuration parameters.

    Usage:
        - Access settings via the singleton instance `settings` throughout the application.
    """

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=True, extra="ignore"
    )


def create_settings() -> Settings:
    """Create settings instance with environment-specific configuration.

    Returns:
        Settings: Configured settings instance
    """
    env = os.getenv("APP_ENV", "development")

    env_file = {
        "test": ".env.test",
        "staging": ".env.staging",
        "production": ".env.production",
    }.get(env)

    if env_file and Path(env_file).exists():
        logger.info("Loading environment configuration from %s", env_file)
        return Settings(_env_file=env_file)
    return Settings()


# Create a singleton instance of the settings to be used across the application.
settings = create_settings()
