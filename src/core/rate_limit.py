"""Rate-limit dependency for routes.

``Depends(rate_limit("auth"))`` counts the request against the named tier of
the limiter stored on ``app.state.rate_limiter`` and rejects it with a 429 when
the tier is exhausted. Declare it after the auth dependency on authenticated
routes so user-keyed tiers see the resolved user.
"""

from typing import Awaitable, Callable

from fastapi import Request
from slowapi.util import get_remote_address
from structlog import get_logger

from src.core.exceptions import RateLimitExceededError
from src.core.rate_limiting import RateLimiter, Throttled, subject_for

logger = get_logger(__name__)


def rate_limit(tier_name: str) -> Callable[[Request], Awaitable[None]]:
    """Return a FastAPI dependency that admits requests through `tier_name`."""

    async def _dependency(request: Request) -> None:
        limiter: RateLimiter = request.app.state.rate_limiter
        tier = limiter.tier(tier_name)

        user = getattr(request.state, "user", None)
        address = get_remote_address(request) or "unknown"
        subject = subject_for(tier, getattr(user, "id", None), address)

        admission = await limiter.admit(subject, tier)
        if isinstance(admission, Throttled):
            logger.warning(
                "rate_limit_exceeded",
                tier=tier.name,
                subject=subject,
                path=request.url.path,
                retry_after=admission.retry_after,
            )
            raise RateLimitExceededError(
                retry_after=admission.retry_after,
                message=tier.message,
                tier=tier.name,
            )

    _dependency.__name__ = f"rate_limit_{tier_name}"
    return _dependency
