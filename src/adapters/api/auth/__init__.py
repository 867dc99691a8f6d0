"""Authentication router package: register, login, logout, refresh and me."""

from fastapi import APIRouter, Depends

from src.core.dependencies.auth import get_auth_context, resolve_bearer_token
from src.core.rate_limit import rate_limit
from src.core.rate_limiting import API_TIER

from .routes import login as login_route
from .routes import logout as logout_route
from .routes import me as me_route
from .routes import refresh as refresh_route
from .routes import register as register_route

router = APIRouter(prefix="/auth", tags=["auth"])

# The token is resolved, the request counted against the api tier (by user,
# or by address when the token does not resolve) and only then rejected.
authenticated = [
    Depends(resolve_bearer_token),
    Depends(rate_limit(API_TIER)),
    Depends(get_auth_context),
]

router.include_router(register_route.router, prefix="/register")
router.include_router(login_route.router, prefix="/login")
router.include_router(logout_route.router, prefix="/logout", dependencies=authenticated)
router.include_router(refresh_route.router, prefix="/refresh", dependencies=authenticated)
router.include_router(me_route.router, prefix="/me", dependencies=authenticated)

__all__ = ["router"]
