"""
Application settings: identity, server, logging and HTTP limits.
"""
from typing import List, Union

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class AppSettings(BaseSettings):
    """
    Settings that shape the HTTP application itself.

    Attributes:
        VERSION: Reported by the health endpoint.
        LOG_JSON: Render logs as JSON lines; the console renderer is used otherwise.
        ALLOWED_ORIGINS: CORS origins, as a list or a comma-separated string.
        MAX_REQUEST_BODY_BYTES: Ceiling on the declared request body size;
            larger requests are answered with 413 before routing.
    """
    PROJECT_NAME: str = "userdesk"
    VERSION: str = "1.0"
    DESCRIPTION: str = "User management API with token authentication and tiered rate limits."
    APP_ENV: str = "development"
    DEBUG: bool = False

    # uvicorn
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000
    API_WORKERS: int = Field(ge=1, default=1)
    RELOAD: bool = False

    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True

    ALLOWED_ORIGINS: Union[str, List[str]] = Field(default="http://localhost:8000")
    MAX_REQUEST_BODY_BYTES: int = Field(ge=1, default=5 * 1024 * 1024)

    @field_validator("ALLOWED_ORIGINS", mode="before")
    @classmethod
    def split_origins(cls, value: Union[str, List[str]]) -> List[str]:
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value
