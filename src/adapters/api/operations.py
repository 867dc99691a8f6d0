"""Operation boundary shared by every route.

``@guarded_operation("create_user", "Failed to create user")`` lets classified
errors (`UserdeskError`, framework HTTP errors) through to their handlers,
turns store timeouts into a retryable `StoreUnavailableError`, and turns
anything else into `UnexpectedError` after logging it with the operation name
and the redacted input. No route can crash with an unclassified exception.
"""

import functools
from typing import Any, Awaitable, Callable, Mapping, TypeVar

from pydantic import BaseModel
from starlette.exceptions import HTTPException
from starlette.requests import Request
from structlog import get_logger

from src.core.exceptions import StoreUnavailableError, UnexpectedError, UserdeskError
from src.domain.events.audit_events import REDACTED
from src.infrastructure.database.async_db import STORE_UNAVAILABLE_ERRORS

logger = get_logger(__name__)

T = TypeVar("T")

REDACTED_KEYS = frozenset({"password", "token", "authorization"})


def redact(value: Any) -> Any:
    """Return a log-safe copy of a route argument, or None when it is not data."""
    if isinstance(value, BaseModel):
        value = value.model_dump(exclude_unset=True)
    if isinstance(value, Mapping):
        return {
            key: REDACTED if str(key).lower() in REDACTED_KEYS else redact(item)
            for key, item in value.items()
        }
    if isinstance(value, (list, tuple)):
        return [redact(item) for item in value]
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    return None


def _loggable_input(kwargs: Mapping[str, Any]) -> dict:
    logged = {}
    for name, value in kwargs.items():
        if name.lower() in REDACTED_KEYS:
            logged[name] = REDACTED
            continue
        if isinstance(value, Request):
            continue
        safe = redact(value)
        if safe is not None:
            logged[name] = safe
    return logged


def guarded_operation(
    name: str, failure_message: str
) -> Callable[[Callable[..., Awaitable[T]]], Callable[..., Awaitable[T]]]:
    """Wrap an async route so every failure leaves as a classified error.

    Args:
        name: Operation name written to the log.
        failure_message: Envelope message of the generic 500 response.
    """

    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            try:
                return await func(*args, **kwargs)
            except (UserdeskError, HTTPException):
                raise
            except STORE_UNAVAILABLE_ERRORS as exc:
                logger.warning(
                    "operation_store_unavailable",
                    operation=name,
                    error_type=type(exc).__name__,
                    error=str(exc),
                )
                raise StoreUnavailableError() from exc
            except Exception as exc:
                logger.error(
                    "operation_failed",
                    operation=name,
                    error_type=type(exc).__name__,
                    error=str(exc),
                    input=_loggable_input(kwargs),
                    exc_info=True,
                )
                raise UnexpectedError(failure_message) from exc

        return wrapper

    return decorator
