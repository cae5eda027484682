"""
Sliding-window rate limiter backed by the ``limits`` library.

The moving-window strategy keeps one timestamp per counted operation, so a
quota of N per window never admits N+1 operations inside any window-length
interval. Storage is chosen by URI: ``async+memory://`` for a single
process, ``async+redis://...`` when several workers must share counters.
"""

import logging
from datetime import UTC, datetime

from limits import RateLimitItem, RateLimitItemPerSecond
from limits.aio.strategies import MovingWindowRateLimiter
from limits.storage import storage_from_string

from src.app.services.rate_limiter import (
    IRateLimiter,
    RateLimitDecision,
    RateLimiterUnavailable,
    RateLimitPolicy,
)

logger = logging.getLogger(__name__)


def _to_item(policy: RateLimitPolicy) -> RateLimitItem:
    return RateLimitItemPerSecond(policy.limit, int(policy.window.total_seconds()))


def _from_epoch(ts: float) -> datetime:
    return datetime.fromtimestamp(ts, UTC).replace(tzinfo=None)


class LimitsRateLimiter(IRateLimiter):
    def __init__(self, storage_uri: str = "async+memory://"):
        self.storage = storage_from_string(storage_uri)
        self.strategy = MovingWindowRateLimiter(self.storage)

    async def limit(self, policy: RateLimitPolicy, key: str) -> RateLimitDecision:
        item = _to_item(policy)
        try:
            allowed = await self.strategy.hit(item, key)
            stats = await self.strategy.get_window_stats(item, key)
        except Exception as e:
            logger.error(f"Rate limit store failure for {policy.name}: {e}")
            raise RateLimiterUnavailable(str(e)) from e

        if not allowed:
            logger.warning(f"Rate limit exceeded for {key}")

        return RateLimitDecision(
            allowed=allowed,
            remaining=stats.remaining,
            total=policy.limit,
            reset_at=_from_epoch(stats.reset_time),
        )

    async def peek(self, policy: RateLimitPolicy, key: str) -> RateLimitDecision:
        item = _to_item(policy)
        try:
            stats = await self.strategy.get_window_stats(item, key)
        except Exception as e:
            logger.error(f"Rate limit store failure for {policy.name}: {e}")
            raise RateLimiterUnavailable(str(e)) from e

        return RateLimitDecision(
            allowed=stats.remaining > 0,
            remaining=stats.remaining,
            total=policy.limit,
            reset_at=_from_epoch(stats.reset_time),
        )

    async def reset(self):
        """Clear every counter (tests and admin tooling)"""
        await self.storage.reset()
