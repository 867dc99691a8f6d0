from __future__ import annotations

"""Centralized, structured exception hierarchy for userdesk.

Each exception carries a machine-readable `code` for programmatic error
handling and a human-readable `message` that becomes the `message` of the
error envelope. Field-level failures additionally carry an `errors` mapping of
field name to a list of messages.

The hierarchy is designed to:
- Provide clear, specific errors for different failure scenarios.
- Map cleanly to HTTP status codes in the API layer (see `src.core.handlers`).
- Offer a consistent structure for logging and monitoring.
"""

from typing import Dict, Final, List, Optional

__all__: Final = [
    "UserdeskError",
    "ValidationError",
    "DuplicateEmailError",
    "InvalidCredentialsError",
    "AuthenticationError",
    "UserNotFoundError",
    "RateLimitExceededError",
    "PayloadTooLargeError",
    "DatabaseError",
    "StoreUnavailableError",
    "TokenIssueConflictError",
    "UnexpectedError",
    "GENERAL_ERROR_MESSAGE",
]

GENERAL_ERROR_MESSAGE: Final = "An unexpected error occurred"


class UserdeskError(Exception):
    """Base exception class for all custom errors in the application.

    Attributes:
        message (str): A human-readable error message.
        code (str): A unique, machine-readable error code.
    """

    message: str
    code: str = "generic_error"

    def __init__(self, message: str, code: str = "generic_error"):
        self.message = message
        self.code = code
        Exception.__init__(self, self.message)

    def __str__(self) -> str:
        return self.message


# ---------------------------------------------------------------------------
# Validation errors (422 Unprocessable Entity)
# ---------------------------------------------------------------------------


class ValidationError(UserdeskError):
    """Raised when a payload violates one or more field rules.

    Attributes:
        errors: Mapping of field name to every message produced for that field.
    """

    def __init__(
        self,
        errors: Dict[str, List[str]],
        message: str = "Validation failed",
        code: str = "validation_error",
    ):
        self.errors = errors
        super().__init__(message, code)


class DuplicateEmailError(ValidationError):
    """Raised when the store rejects a normalized email that is already taken.

    The credential validator only pre-checks uniqueness; the unique constraint
    is the source of truth and surfaces here when a concurrent insert wins.
    """

    def __init__(self, message: str = "The email has already been taken."):
        super().__init__({"email": [message]}, code="duplicate_email")


class InvalidCredentialsError(ValidationError):
    """Raised when a login email/password pair does not match a user.

    The same message is used for an unknown email and a wrong password so the
    response cannot be used to enumerate accounts.
    """

    def __init__(self, message: str = "The provided credentials are incorrect."):
        super().__init__({"email": [message]}, code="invalid_credentials")


# ---------------------------------------------------------------------------
# Auth-related errors
# ---------------------------------------------------------------------------


class AuthenticationError(UserdeskError):
    """Raised when a request carries no bearer token or one that does not resolve.

    Maps to a `401 Unauthorized` HTTP status code.
    """

    def __init__(self, message: str = "Unauthenticated.", code: str = "unauthenticated"):
        super().__init__(message, code)


class UserNotFoundError(UserdeskError):
    """Raised when a requested user is not found in the database.

    This typically maps to a `404 Not Found` HTTP status code.
    """

    def __init__(self, message: str = "User not found", code: str = "user_not_found"):
        super().__init__(message, code)
        self.errors = {"general": ["No user exists with the given ID"]}


# ---------------------------------------------------------------------------
# Operational errors
# ---------------------------------------------------------------------------


class RateLimitExceededError(UserdeskError):
    """Raised when a request exceeds the capacity of its rate-limit tier.

    Attributes:
        retry_after: Seconds until the exhausted window resets.
        tier: Name of the tier that rejected the request.
    """

    def __init__(
        self,
        retry_after: int = 60,
        message: str = "Too many requests. Please slow down.",
        tier: str = "api",
        code: str = "rate_limit_exceeded",
    ):
        self.retry_after = retry_after
        self.tier = tier
        super().__init__(message, code)


class PayloadTooLargeError(UserdeskError):
    """Raised when the declared request body exceeds the configured ceiling."""

    def __init__(self, limit_bytes: int, message: str = "Request payload too large"):
        self.limit_bytes = limit_bytes
        megabytes = limit_bytes / (1024 * 1024)
        size = f"{megabytes:g}MB" if megabytes >= 1 else f"{limit_bytes} bytes"
        self.errors = {"general": [f"Request body exceeds maximum allowed size of {size}"]}
        super().__init__(message, "payload_too_large")


class DatabaseError(UserdeskError):
    """Raised for low-level database interaction errors.

    This exception wraps underlying driver errors and maps to a
    `500 Internal Server Error` HTTP status.
    """

    def __init__(self, message: str, code: str = "database_error"):
        super().__init__(message, code)


class StoreUnavailableError(DatabaseError):
    """Raised when the store times out or is locked; the request may be retried.

    Maps to `503 Service Unavailable` with a `Retry-After` header.
    """

    def __init__(
        self,
        message: str = "Service temporarily unavailable",
        retry_after: int = 1,
        code: str = "store_unavailable",
    ):
        self.retry_after = retry_after
        super().__init__(message, code)


class TokenIssueConflictError(DatabaseError):
    """Raised when a concurrent issue for the same user won the token slot."""

    def __init__(self, user_id: Optional[int] = None):
        self.user_id = user_id
        super().__init__("Concurrent token issue for the same user", "token_issue_conflict")


class UnexpectedError(UserdeskError):
    """An unclassified failure caught at an operation boundary.

    The message names the failed operation ("Failed to create user"); the
    original exception is chained but never shown to the caller.
    """

    def __init__(self, message: str, code: str = "unexpected_error"):
        super().__init__(message, code)
        self.errors = {"general": [GENERAL_ERROR_MESSAGE]}
