"""Rate limiting core module.

Tiers are plain configuration built at application start and handed to a
single `RateLimiter`; routes declare the tiers they belong to through the
`src.core.rate_limit.rate_limit` dependency.
"""

from .limiter import (
    API_TIER,
    AUTH_TIER,
    WRITES_TIER,
    Admission,
    Allowed,
    RateLimiter,
    RateLimitTier,
    SubjectKey,
    Throttled,
    build_rate_limit_tiers,
    subject_for,
)

__all__ = [
    "API_TIER",
    "AUTH_TIER",
    "WRITES_TIER",
    "Admission",
    "Allowed",
    "RateLimiter",
    "RateLimitTier",
    "SubjectKey",
    "Throttled",
    "build_rate_limit_tiers",
    "subject_for",
]
