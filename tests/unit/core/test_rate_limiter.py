import time

import pytest

from src.core.config.settings import settings
from src.core.rate_limiting import (
    API_TIER,
    AUTH_TIER,
    Allowed,
    RateLimiter,
    RateLimitTier,
    SubjectKey,
    Throttled,
    build_rate_limit_tiers,
    subject_for,
)


def _limiter(**tiers: str) -> RateLimiter:
    return RateLimiter(
        {name: RateLimitTier.from_string(name, limits) for name, limits in tiers.items()}
    )


@pytest.mark.asyncio
async def test_nth_plus_one_request_is_throttled():
    limiter = _limiter(api="3/minute")

    results = [await limiter.admit("ip:1.2.3.4", "api") for _ in range(4)]

    assert all(isinstance(result, Allowed) for result in results[:3])
    assert isinstance(results[3], Throttled)
    assert 1 <= results[3].retry_after <= 60


@pytest.mark.asyncio
async def test_subjects_and_tiers_have_separate_buckets():
    limiter = _limiter(api="1/minute", writes="1/minute")

    assert isinstance(await limiter.admit("user:1", "api"), Allowed)
    assert isinstance(await limiter.admit("user:2", "api"), Allowed)
    assert isinstance(await limiter.admit("user:1", "writes"), Allowed)
    assert isinstance(await limiter.admit("user:1", "api"), Throttled)


@pytest.mark.asyncio
async def test_every_window_of_a_tier_must_have_room():
    limiter = _limiter(auth="5/minute;2/hour")

    assert isinstance(await limiter.admit("ip:a", "auth"), Allowed)
    assert isinstance(await limiter.admit("ip:a", "auth"), Allowed)
    throttled = await limiter.admit("ip:a", "auth")

    assert isinstance(throttled, Throttled)
    # the hourly window is the one that is full
    assert throttled.retry_after > 60


@pytest.mark.asyncio
async def test_rejected_attempts_still_count():
    limiter = _limiter(api="2/minute")
    for _ in range(5):
        await limiter.admit("ip:x", "api")

    stats = await limiter.strategy.get_window_stats(limiter.tier("api").windows[0], "api", "ip:x")
    assert stats.remaining == 0


@pytest.mark.asyncio
async def test_window_elapsing_admits_again():
    limiter = _limiter(api="1/second")

    assert isinstance(await limiter.admit("ip:y", "api"), Allowed)
    assert isinstance(await limiter.admit("ip:y", "api"), Throttled)
    time.sleep(1.1)
    assert isinstance(await limiter.admit("ip:y", "api"), Allowed)


@pytest.mark.asyncio
async def test_disabled_limiter_admits_everything():
    limiter = RateLimiter({"api": RateLimitTier.from_string("api", "1/minute")}, enabled=False)
    for _ in range(3):
        assert isinstance(await limiter.admit("ip:z", "api"), Allowed)


def test_unknown_tier_is_a_programming_error():
    with pytest.raises(ValueError):
        _limiter(api="1/minute").tier("nope")


def test_configured_tiers():
    tiers = build_rate_limit_tiers(settings)

    assert set(tiers) == {"api", "auth", "writes"}
    assert tiers[AUTH_TIER].key_by is SubjectKey.ADDRESS
    assert [window.amount for window in tiers[AUTH_TIER].windows] == [5, 20]
    assert tiers[AUTH_TIER].message == "Too many authentication attempts. Please try again later."
    assert tiers[API_TIER].windows[0].amount == 60


def test_subject_selection():
    tiers = build_rate_limit_tiers(settings)

    assert subject_for(tiers[API_TIER], 7, "1.1.1.1") == "user:7"
    assert subject_for(tiers[API_TIER], None, "1.1.1.1") == "ip:1.1.1.1"
    assert subject_for(tiers[AUTH_TIER], 7, "1.1.1.1") == "ip:1.1.1.1"
