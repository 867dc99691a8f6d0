from __future__ import annotations

from dataclasses import dataclass
from typing import Annotated, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from structlog import get_logger

from src.infrastructure.database.async_db import STORE_UNAVAILABLE_ERRORS
from src.core.exceptions import AuthenticationError, StoreUnavailableError
from src.domain.entities.user import User
from src.domain.services.auth.token import TokenIssuer
from src.infrastructure.dependency_injection.auth_dependencies import get_token_issuer

__all__ = [
    "AuthContext",
    "resolve_bearer_token",
    "get_auth_context",
    "get_current_user",
    "CurrentAuth",
    "CurrentUser",
]

logger = get_logger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class AuthContext:
    """The authenticated user and the plaintext token the request carried."""

    user: User
    token: str


async def resolve_bearer_token(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    token_issuer: TokenIssuer = Depends(get_token_issuer),
) -> Optional[AuthContext]:
    """Resolve the bearer token if there is one, without rejecting the request.

    A resolved user is stored on ``request.state.user`` so user-keyed rate
    limit tiers can find it; anonymous requests and unknown tokens are keyed
    by network address instead. Declare this before the api tier and
    `get_auth_context` after it, so failed authentication attempts are
    counted too.

    Raises:
        StoreUnavailableError: If the token store timed out or is locked.
    """
    request.state.user = None
    token = credentials.credentials if credentials else None
    if not token:
        return None

    try:
        user, _ = await token_issuer.authenticate(token)
    except AuthenticationError:
        return None
    except STORE_UNAVAILABLE_ERRORS as exc:
        logger.warning(
            "token_lookup_store_unavailable",
            error_type=type(exc).__name__,
            error=str(exc),
        )
        raise StoreUnavailableError() from exc

    request.state.user = user
    return AuthContext(user=user, token=token)


async def get_auth_context(
    context: Optional[AuthContext] = Depends(resolve_bearer_token),
) -> AuthContext:
    """Require an authenticated request.

    Raises:
        AuthenticationError: If the header is missing, not a bearer token, or
            the token is unknown or revoked.
    """
    if context is None:
        raise AuthenticationError()
    return context


async def get_current_user(context: AuthContext = Depends(get_auth_context)) -> User:
    return context.user


CurrentAuth = Annotated[AuthContext, Depends(get_auth_context)]
CurrentUser = Annotated[User, Depends(get_current_user)]
