"""Middleware configuration for the FastAPI application.

This module registers CORS, the request-context binding used by the
structured logger, the request body ceiling and the security response
headers.
"""

import uuid

import structlog
from fastapi import FastAPI, Request

from fastapi.middleware.cors import CORSMiddleware

from src.core.config.settings import settings
from src.core.exceptions import PayloadTooLargeError
from src.core.handlers import payload_too_large_error_handler

logger = structlog.get_logger(__name__)

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "X-XSS-Protection": "1; mode=block",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Content-Security-Policy": "default-src 'self'",
    "Strict-Transport-Security": "max-age=31536000; includeSubDomains",
}


def configure_middleware(app: FastAPI) -> None:
    """Configure all middleware for the FastAPI application.

    Starlette runs the last registered middleware first, so security headers
    wrap every response, including the 413 produced by the body ceiling.

    Args:
        app (FastAPI): The FastAPI application instance
    """
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.middleware("http")(limit_request_body_middleware)
    app.middleware("http")(request_context_middleware)
    app.middleware("http")(security_headers_middleware)


async def limit_request_body_middleware(request: Request, call_next):
    """Reject requests whose declared body exceeds ``MAX_REQUEST_BODY_BYTES``."""
    declared = request.headers.get("content-length")
    if declared and declared.isdigit() and int(declared) > settings.MAX_REQUEST_BODY_BYTES:
        logger.warning(
            "request_payload_too_large",
            content_length=int(declared),
            limit=settings.MAX_REQUEST_BODY_BYTES,
            path=request.url.path,
        )
        exc = PayloadTooLargeError(settings.MAX_REQUEST_BODY_BYTES)
        return await payload_too_large_error_handler(request, exc)
    return await call_next(request)


async def request_context_middleware(request: Request, call_next):
    """Bind a request id to every log line emitted while handling the request.

    A client-supplied ``X-Request-ID`` is reused, otherwise one is generated;
    either way it is echoed on the response.
    """
    request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(
        request_id=request_id,
        method=request.method,
        path=request.url.path,
    )
    try:
        response = await call_next(request)
    finally:
        structlog.contextvars.clear_contextvars()
    response.headers["X-Request-ID"] = request_id
    return response


async def security_headers_middleware(request: Request, call_next):
    response = await call_next(request)
    for header, value in SECURITY_HEADERS.items():
        response.headers.setdefault(header, value)
    return response
