"""Application factory for creating and configuring the FastAPI application.

This module provides a factory function to create a properly configured FastAPI application
with its rate limiter, middleware, exception handlers, and routers registered.
"""

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from src.adapters.api import api_router
from src.core.config.settings import settings
from src.core.handlers import register_exception_handlers
from src.core.lifecycle import create_lifespan_manager
from src.core.middleware import configure_middleware
from src.core.rate_limiting import RateLimiter, build_rate_limit_tiers


def create_application() -> FastAPI:
    """Create and configure the FastAPI application.

    Each call builds its own `RateLimiter`, so counters are never shared
    between two application instances in the same process unless they point
    at the same external storage.

    Returns:
        FastAPI: The configured FastAPI application instance
    """
    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        description=settings.DESCRIPTION,
        debug=settings.DEBUG,
        lifespan=create_lifespan_manager(),
        default_response_class=JSONResponse,
    )

    app.state.rate_limiter = RateLimiter(
        build_rate_limit_tiers(settings),
        storage_url=settings.RATE_LIMIT_STORAGE_URL,
        enabled=settings.RATE_LIMIT_ENABLED,
    )

    configure_middleware(app)

    register_exception_handlers(app)

    app.include_router(api_router, prefix="/api")

    return app
