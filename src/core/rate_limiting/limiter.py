"""Tiered fixed-window rate limiter.

Each tier is a named policy: one or more windows (``limits`` items), the
subject a bucket is keyed on, and the message shown when it is exhausted.
Counters live in a ``limits`` async storage, so increments are atomic both
in memory and in Redis.
"""

from __future__ import annotations

import math
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Sequence, Tuple, Union

from limits import RateLimitItem, parse_many
from limits.aio.strategies import FixedWindowRateLimiter
from limits.storage import storage_from_string
from structlog import get_logger

from src.core.exceptions import StoreUnavailableError

logger = get_logger(__name__)

DEFAULT_RETRY_AFTER = 60

API_TIER = "api"
AUTH_TIER = "auth"
WRITES_TIER = "writes"


class SubjectKey(str, Enum):
    """What a tier's buckets are keyed on.

    USER falls back to the network address for anonymous requests.
    """

    USER = "user"
    ADDRESS = "address"


@dataclass(frozen=True)
class RateLimitTier:
    name: str
    windows: Tuple[RateLimitItem, ...]
    key_by: SubjectKey = SubjectKey.USER
    message: str = "Too many requests. Please slow down."

    @classmethod
    def from_string(
        cls,
        name: str,
        limits: str,
        key_by: SubjectKey = SubjectKey.USER,
        message: str = "Too many requests. Please slow down.",
    ) -> "RateLimitTier":
        """Build a tier from ``limits`` notation, e.g. ``"5/minute;20/hour"``."""
        return cls(name=name, windows=tuple(parse_many(limits)), key_by=key_by, message=message)


@dataclass(frozen=True)
class Allowed:
    allowed: bool = field(default=True, init=False)


@dataclass(frozen=True)
class Throttled:
    retry_after: int = DEFAULT_RETRY_AFTER
    allowed: bool = field(default=False, init=False)


Admission = Union[Allowed, Throttled]


def build_rate_limit_tiers(config) -> Dict[str, RateLimitTier]:
    """Return the api, auth and writes tiers configured in `config`."""
    return {
        API_TIER: RateLimitTier.from_string(
            API_TIER,
            config.RATE_LIMIT_API,
            key_by=SubjectKey.USER,
            message="Too many requests. Please slow down.",
        ),
        AUTH_TIER: RateLimitTier.from_string(
            AUTH_TIER,
            config.RATE_LIMIT_AUTH,
            key_by=SubjectKey.ADDRESS,
            message="Too many authentication attempts. Please try again later.",
        ),
        WRITES_TIER: RateLimitTier.from_string(
            WRITES_TIER,
            config.RATE_LIMIT_WRITES,
            key_by=SubjectKey.USER,
            message="Too many write operations. Please slow down.",
        ),
    }


class RateLimiter:
    """Admits or throttles requests per (subject, tier).

    Every admission attempt increments every window of the tier, rejected
    attempts included, so retrying while throttled never earns extra budget.
    A tier with several windows throttles as soon as any of them is full.

    Attributes:
        tiers: Tier name to policy.
        enabled: When False every request is admitted without counting.
    """

    def __init__(
        self,
        tiers: Dict[str, RateLimitTier],
        storage_url: str = "async+memory://",
        enabled: bool = True,
    ):
        self.tiers = dict(tiers)
        self.enabled = enabled
        options = {}
        if storage_url.startswith(("async+redis://", "async+rediss://")):
            # Shared counters go through redis-py's asyncio client.
            options["implementation"] = "redispy"
        self.storage = storage_from_string(storage_url, **options)
        self.strategy = FixedWindowRateLimiter(self.storage)

    def tier(self, name: str) -> RateLimitTier:
        try:
            return self.tiers[name]
        except KeyError:
            raise ValueError(f"Unknown rate limit tier: {name}") from None

    async def admit(self, subject: str, tier: Union[str, RateLimitTier]) -> Admission:
        """Count one request of `subject` against `tier`.

        Returns:
            Allowed, or Throttled with the seconds until the fullest window
            resets.

        Raises:
            StoreUnavailableError: If the counter storage cannot be reached.
        """
        policy = tier if isinstance(tier, RateLimitTier) else self.tier(tier)
        if not self.enabled:
            return Allowed()

        try:
            exhausted = [
                window
                for window in policy.windows
                if not await self.strategy.hit(window, policy.name, subject)
            ]
        except Exception as exc:
            logger.error("rate_limit_storage_failed", tier=policy.name, error=str(exc))
            raise StoreUnavailableError() from exc

        if not exhausted:
            return Allowed()
        return Throttled(retry_after=await self._retry_after(exhausted, policy.name, subject))

    async def reset(self) -> None:
        """Clear every counter."""
        await self.storage.reset()

    async def _retry_after(
        self, windows: Sequence[RateLimitItem], *identifiers: str
    ) -> int:
        resets = []
        for window in windows:
            try:
                stats = await self.strategy.get_window_stats(window, *identifiers)
            except Exception as exc:
                logger.warning("rate_limit_window_stats_failed", error=str(exc))
                continue
            resets.append(stats.reset_time)

        if not resets:
            return DEFAULT_RETRY_AFTER
        return max(1, math.ceil(max(resets) - time.time()))


def subject_for(tier: RateLimitTier, user_id: Optional[int], address: str) -> str:
    """Return the bucket subject of a request under `tier`."""
    if tier.key_by is SubjectKey.USER and user_id is not None:
        return f"user:{user_id}"
    return f"ip:{address}"
