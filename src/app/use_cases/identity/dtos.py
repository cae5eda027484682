"""
Identity Change DTOs (Data Transfer Objects)

Request context and all Response classes for the identity domain.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from src.app.services.rate_limiter import RateLimitDecision


@dataclass(frozen=True)
class RequestContext:
    """Where a request came from - for audit entries and security alerts"""

    ip_address: Optional[str] = None
    user_agent: Optional[str] = None


# ============================================================================
# Response DTOs
# ============================================================================


class RateLimitInfo(BaseModel):
    """Quota metadata so clients can render 'N changes remaining'"""

    limit: int
    remaining: int
    reset_at: datetime

    @classmethod
    def from_decision(cls, decision: RateLimitDecision) -> "RateLimitInfo":
        return cls(
            limit=decision.total,
            remaining=decision.remaining,
            reset_at=decision.reset_at,
        )


class UsernameChangeRequestResponse(BaseModel):
    """Response for request username change use case"""

    status: str  # "pending" or "unchanged"
    username: str
    message: str
    expires_in_minutes: Optional[int] = None
    rate_limit: Optional[RateLimitInfo] = None


class EmailChangeRequestResponse(BaseModel):
    """Response for request email change use case"""

    status: str  # "pending" or "unchanged"
    new_email: str
    message: str
    expires_in_minutes: Optional[int] = None
    rate_limit: Optional[RateLimitInfo] = None


class UsernameChangeConfirmResponse(BaseModel):
    """Response for confirm username change use case"""

    status: str
    username: str
    message: str


class EmailChangeConfirmResponse(BaseModel):
    """Response for confirm email change use case"""

    status: str
    email: str
    message: str


class UsernameClaimResponse(BaseModel):
    """Response for claim username use case"""

    status: str  # "claimed" or "unchanged"
    username: str


class ChangeQuotaResponse(BaseModel):
    """Response for change quota use case"""

    change_type: str
    remaining: int
    total: int
    reset_at: datetime
    is_new_user: bool
