"""
LimitsRateLimiter against the in-process moving-window storage.
"""
import asyncio
from datetime import timedelta
from unittest.mock import AsyncMock

import pytest

from src.adapter.services.rate_limiter import LimitsRateLimiter
from src.app.services.rate_limiter import RateLimiterUnavailable, RateLimitPolicy
from src.domain.base import utcnow

MONTHLY = RateLimitPolicy("username-change", 2, timedelta(days=30))


@pytest.mark.asyncio
async def test_quota_admits_exactly_limit():
    limiter = LimitsRateLimiter("async+memory://")

    first = await limiter.limit(MONTHLY, "username-change:u1")
    second = await limiter.limit(MONTHLY, "username-change:u1")
    third = await limiter.limit(MONTHLY, "username-change:u1")

    assert first.allowed and first.remaining == 1
    assert second.allowed and second.remaining == 0
    assert not third.allowed
    assert third.remaining == 0
    assert third.total == 2
    # reset is when the oldest counted hit leaves the 30 day window
    assert timedelta(days=29) < third.reset_at - utcnow() <= timedelta(days=30)


@pytest.mark.asyncio
async def test_keys_are_independent():
    limiter = LimitsRateLimiter()

    await limiter.limit(MONTHLY, "username-change:u1")
    await limiter.limit(MONTHLY, "username-change:u1")

    other = await limiter.limit(MONTHLY, "username-change:new-u1")
    assert other.allowed


@pytest.mark.asyncio
async def test_peek_does_not_consume():
    limiter = LimitsRateLimiter()

    before = await limiter.peek(MONTHLY, "k")
    again = await limiter.peek(MONTHLY, "k")
    await limiter.limit(MONTHLY, "k")
    after = await limiter.peek(MONTHLY, "k")

    assert before.remaining == again.remaining == 2
    assert after.remaining == 1


@pytest.mark.asyncio
async def test_concurrent_hits_never_exceed_limit():
    limiter = LimitsRateLimiter()
    policy = RateLimitPolicy("signup", 5, timedelta(minutes=15))

    decisions = await asyncio.gather(*[limiter.limit(policy, "signup:1.2.3.4") for _ in range(20)])

    assert sum(d.allowed for d in decisions) == 5


@pytest.mark.asyncio
async def test_window_slides():
    limiter = LimitsRateLimiter()
    policy = RateLimitPolicy("api", 1, timedelta(seconds=1))

    assert (await limiter.limit(policy, "api:ip")).allowed
    assert not (await limiter.limit(policy, "api:ip")).allowed

    await asyncio.sleep(1.1)

    assert (await limiter.limit(policy, "api:ip")).allowed


@pytest.mark.asyncio
async def test_storage_failure_raises_unavailable():
    limiter = LimitsRateLimiter()
    limiter.strategy.hit = AsyncMock(side_effect=ConnectionError("redis down"))

    with pytest.raises(RateLimiterUnavailable):
        await limiter.limit(MONTHLY, "k")


@pytest.mark.asyncio
async def test_reset_clears_counters():
    limiter = LimitsRateLimiter()
    await limiter.limit(MONTHLY, "username-change:u1")
    await limiter.limit(MONTHLY, "username-change:u1")

    await limiter.reset()

    assert (await limiter.limit(MONTHLY, "username-change:u1")).allowed
