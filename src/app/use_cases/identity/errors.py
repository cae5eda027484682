"""Error builders shared by the identity use cases."""

from src.libs.result import Error
from src.app.services.rate_limiter import RateLimitDecision, RateLimitPolicy


def describe_retry_window(seconds: int) -> str:
    """Human-readable wait, e.g. 'in 3 days'"""
    if seconds >= 86400:
        days = -(-seconds // 86400)
        return f"in {days} day{'s' if days != 1 else ''}"
    if seconds >= 3600:
        hours = -(-seconds // 3600)
        return f"in {hours} hour{'s' if hours != 1 else ''}"
    if seconds >= 60:
        minutes = -(-seconds // 60)
        return f"in {minutes} minute{'s' if minutes != 1 else ''}"
    return "in a moment"


def rate_limited_error(
    decision: RateLimitDecision, policy: RateLimitPolicy, action: str
) -> Error:
    retry_after = decision.retry_after_seconds
    return Error(
        "RATE_LIMITED",
        f"Rate limit exceeded. You can only {action} {policy.limit} times "
        f"per {policy.window.days} days. Try again {describe_retry_window(retry_after)}.",
        details={**decision.to_dict(), "retry_after": retry_after},
    )
