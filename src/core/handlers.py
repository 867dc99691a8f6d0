from __future__ import annotations

"""
Global exception handlers for the FastAPI application.

Every handler renders the error envelope from `src.adapters.api.envelope`, so
clients see the same ``{"status": "error", "message", "errors"?}`` shape for
domain errors, framework validation errors and unmatched routes.
"""

from typing import Dict, List

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette import status
from starlette.exceptions import HTTPException as StarletteHTTPException
from structlog import get_logger

from src.adapters.api.envelope import error_response
from src.core.exceptions import (
    GENERAL_ERROR_MESSAGE,
    AuthenticationError,
    DatabaseError,
    PayloadTooLargeError,
    RateLimitExceededError,
    StoreUnavailableError,
    UnexpectedError,
    UserdeskError,
    UserNotFoundError,
    ValidationError,
)
from src.domain.services.validation import message as field_message

__all__ = [
    "AVAILABLE_ENDPOINTS",
    "validation_error_handler",
    "request_validation_error_handler",
    "authentication_error_handler",
    "user_not_found_error_handler",
    "rate_limit_exceeded_error_handler",
    "payload_too_large_error_handler",
    "store_unavailable_error_handler",
    "database_error_handler",
    "unexpected_error_handler",
    "userdesk_error_handler",
    "http_exception_handler",
    "unhandled_exception_handler",
    "register_exception_handlers",
]

logger = get_logger(__name__)

# Numeric codes whose starlette constant names differ between releases.
HTTP_413_CONTENT_TOO_LARGE = 413
HTTP_422_UNPROCESSABLE = 422

AVAILABLE_ENDPOINTS = [
    "POST /api/auth/login",
    "POST /api/auth/register",
    "POST /api/auth/logout",
    "POST /api/auth/refresh",
    "GET /api/auth/me",
    "GET /api/users",
    "POST /api/users",
    "GET /api/users/{id}",
    "PUT /api/users/{id}",
    "PATCH /api/users/{id}",
    "DELETE /api/users/{id}",
    "GET /api/health",
]


def _client_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"


async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    """Handles `ValidationError` and its subclasses, returning a `422`."""
    return error_response(
        exc.message,
        HTTP_422_UNPROCESSABLE,
        errors=exc.errors,
    )


async def request_validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handles FastAPI's own request validation, returning the same `422` shape.

    A missing body field reads "The email field is required."; a body that is
    not a JSON object is reported under ``general``.
    """
    errors: Dict[str, List[str]] = {}
    for error in exc.errors():
        location = [part for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        name = str(location[0]) if location and isinstance(location[0], str) else "general"
        error_type = error.get("type", "")

        if error_type == "json_invalid":
            text = "The request body must be valid JSON."
            name = "general"
        elif error_type == "missing" and name != "general":
            text = field_message(name, "required")
        elif name == "general":
            text = "The request body must be a JSON object."
        else:
            text = error.get("msg", "Invalid value.")

        messages = errors.setdefault(name, [])
        if text not in messages:
            messages.append(text)

    return error_response(
        "Validation failed",
        HTTP_422_UNPROCESSABLE,
        errors=errors,
    )


async def authentication_error_handler(request: Request, exc: AuthenticationError) -> JSONResponse:
    """Handles `AuthenticationError`, returning a `401 Unauthorized`."""
    logger.info(
        "authentication_failed",
        error=exc.code,
        client_ip=_client_ip(request),
        path=request.url.path,
    )
    return error_response(
        exc.message,
        status.HTTP_401_UNAUTHORIZED,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def user_not_found_error_handler(request: Request, exc: UserNotFoundError) -> JSONResponse:
    """Handles `UserNotFoundError`, returning a `404 Not Found`."""
    return error_response(exc.message, status.HTTP_404_NOT_FOUND, errors=exc.errors)


async def rate_limit_exceeded_error_handler(
    request: Request, exc: RateLimitExceededError
) -> JSONResponse:
    """Handles `RateLimitExceededError`, returning a `429` with the retry hint."""
    return error_response(
        exc.message,
        status.HTTP_429_TOO_MANY_REQUESTS,
        headers={"Retry-After": str(exc.retry_after)},
        retry_after=exc.retry_after,
    )


async def payload_too_large_error_handler(
    request: Request, exc: PayloadTooLargeError
) -> JSONResponse:
    """Handles `PayloadTooLargeError`, returning a `413`."""
    return error_response(
        exc.message,
        HTTP_413_CONTENT_TOO_LARGE,
        errors=exc.errors,
    )


async def store_unavailable_error_handler(
    request: Request, exc: StoreUnavailableError
) -> JSONResponse:
    """Handles `StoreUnavailableError`, returning a retryable `503`."""
    logger.warning(
        "store_unavailable",
        error_message=str(exc.__cause__ or exc),
        path=request.url.path,
    )
    return error_response(
        exc.message,
        status.HTTP_503_SERVICE_UNAVAILABLE,
        headers={"Retry-After": str(exc.retry_after)},
        retry_after=exc.retry_after,
    )


async def database_error_handler(request: Request, exc: DatabaseError) -> JSONResponse:
    """Handles `DatabaseError`, hiding the driver error from the client."""
    logger.critical(
        "database_error",
        error_message=str(exc),
        path=request.url.path,
    )
    return error_response(
        "A database error occurred",
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        errors={"general": [GENERAL_ERROR_MESSAGE]},
    )


async def unexpected_error_handler(request: Request, exc: UnexpectedError) -> JSONResponse:
    """Handles `UnexpectedError` raised at an operation boundary.

    The boundary already logged the failure with its context.
    """
    return error_response(
        exc.message,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        errors=exc.errors,
    )


async def userdesk_error_handler(request: Request, exc: UserdeskError) -> JSONResponse:
    """Fallback for application errors without a more specific handler."""
    logger.error(
        "unhandled_application_error",
        error_code=exc.code,
        error_message=exc.message,
        path=request.url.path,
    )
    return error_response(
        "An unexpected error occurred",
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        errors={"general": [GENERAL_ERROR_MESSAGE]},
    )


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Wraps framework HTTP errors in the envelope.

    An unmatched route answers with the list of endpoints the API serves.
    """
    if exc.status_code == status.HTTP_404_NOT_FOUND:
        return error_response(
            "Route not found",
            status.HTTP_404_NOT_FOUND,
            available_endpoints=AVAILABLE_ENDPOINTS,
        )
    return error_response(
        str(exc.detail),
        exc.status_code,
        headers=getattr(exc, "headers", None),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last resort for exceptions raised outside an operation boundary."""
    logger.error(
        "unhandled_exception",
        error_type=type(exc).__name__,
        error_message=str(exc),
        path=request.url.path,
        method=request.method,
    )
    return error_response(
        "An unexpected error occurred",
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        errors={"general": [GENERAL_ERROR_MESSAGE]},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Registers all exception handlers with the FastAPI application.

    Starlette picks the handler of the most specific class in the exception's
    MRO, so subclasses such as `DuplicateEmailError` reach the 422 handler and
    `StoreUnavailableError` reaches the 503 handler.

    Args:
        app: The `FastAPI` application instance.
    """
    app.add_exception_handler(ValidationError, validation_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
    app.add_exception_handler(AuthenticationError, authentication_error_handler)
    app.add_exception_handler(UserNotFoundError, user_not_found_error_handler)
    app.add_exception_handler(RateLimitExceededError, rate_limit_exceeded_error_handler)
    app.add_exception_handler(PayloadTooLargeError, payload_too_large_error_handler)
    app.add_exception_handler(StoreUnavailableError, store_unavailable_error_handler)
    app.add_exception_handler(DatabaseError, database_error_handler)
    app.add_exception_handler(UnexpectedError, unexpected_error_handler)
    app.add_exception_handler(UserdeskError, userdesk_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
