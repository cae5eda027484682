"""
Identity change policy.

Quotas, windows and token lifetimes for username/email changes. Accounts
younger than ``new_user_window_days`` draw from a separate bucket keyed
``new-{user_id}`` so onboarding users can settle on a name.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Optional, Tuple

from src.domain.entities import ChangeType, User
from .rate_limiter import RateLimitPolicy


@dataclass(frozen=True)
class IdentityChangePolicy:
    username_change: RateLimitPolicy = field(
        default_factory=lambda: RateLimitPolicy("username-change", 2, timedelta(days=30))
    )
    username_change_new_user: RateLimitPolicy = field(
        default_factory=lambda: RateLimitPolicy("username-change", 5, timedelta(days=30))
    )
    email_change: RateLimitPolicy = field(
        default_factory=lambda: RateLimitPolicy("email-change", 2, timedelta(days=30))
    )
    email_change_new_user: RateLimitPolicy = field(
        default_factory=lambda: RateLimitPolicy("email-change", 5, timedelta(days=30))
    )
    username_token_ttl_minutes: int = 15
    email_token_ttl_minutes: int = 30
    new_user_window_days: int = 7

    def bucket_for(
        self, user: User, change_type: ChangeType, now: Optional[datetime] = None
    ) -> Tuple[RateLimitPolicy, str, bool]:
        """
        Pick the rate-limit bucket for a user.

        Returns:
            (policy, key, is_new_user)
        """
        is_new_user = user.is_new_account(self.new_user_window_days, now)
        if change_type == ChangeType.USERNAME_CHANGE:
            policy = self.username_change_new_user if is_new_user else self.username_change
        elif change_type == ChangeType.EMAIL_CHANGE:
            policy = self.email_change_new_user if is_new_user else self.email_change
        else:
            raise ValueError(f"No rate-limit bucket for {change_type}")

        identity = f"new-{user.id}" if is_new_user else str(user.id)
        return policy, f"{policy.name}:{identity}", is_new_user
