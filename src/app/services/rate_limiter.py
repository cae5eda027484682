"""
Rate limiter interface - application layer.

A policy is a quota over a sliding window; callers pass a key (user id,
``new-{user_id}`` or client IP) and get back a decision with the quota
metadata needed for user-facing messages.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timedelta

from src.domain.base import utcnow


class RateLimiterUnavailable(Exception):
    """The shared counter store could not be reached; never bypass the limit"""


@dataclass(frozen=True)
class RateLimitPolicy:
    name: str
    limit: int
    window: timedelta


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    remaining: int
    total: int
    reset_at: datetime

    @property
    def retry_after_seconds(self) -> int:
        return max(0, int((self.reset_at - utcnow()).total_seconds()))

    def to_dict(self) -> dict:
        return {
            "limit": self.total,
            "remaining": self.remaining,
            "reset_at": self.reset_at.isoformat(),
        }


class IRateLimiter(ABC):
    """Sliding-window rate limiter"""

    @abstractmethod
    async def limit(self, policy: RateLimitPolicy, key: str) -> RateLimitDecision:
        """
        Count one operation for ``key`` if the quota allows it.

        The check and the increment are one atomic operation in the backing store.

        Raises:
            RateLimiterUnavailable: backing store failure
        """
        pass

    @abstractmethod
    async def peek(self, policy: RateLimitPolicy, key: str) -> RateLimitDecision:
        """Current quota for ``key`` without consuming any of it"""
        pass
