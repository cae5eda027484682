from fastapi import Depends, Request

from src.api.error import RateLimitedError
from src.api.utils.client_ip import get_client_ip
from src.app.services.rate_limiter import IRateLimiter, RateLimitPolicy
from src.depends import get_general_api_policy, get_rate_limiter
from src.libs.result import Error


async def general_rate_limit(
    request: Request,
    rate_limiter: IRateLimiter = Depends(get_rate_limiter),
    policy: RateLimitPolicy = Depends(get_general_api_policy),
):
    """Per-IP request quota shared by the profile and verification routes"""
    decision = await rate_limiter.limit(policy, f"{policy.name}:{get_client_ip(request)}")
    if not decision.allowed:
        raise RateLimitedError(
            Error(
                "RATE_LIMITED",
                "Too many requests. Please slow down.",
                details={**decision.to_dict(), "retry_after": decision.retry_after_seconds},
            )
        )
    return decision
