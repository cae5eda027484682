"""
Identity Change Use Cases

Username and email changes gated by email verification and rate limits.
"""

from .request_username_change_use_case import RequestUsernameChangeUseCase
from .confirm_username_change_use_case import ConfirmUsernameChangeUseCase
from .request_email_change_use_case import RequestEmailChangeUseCase
from .confirm_email_change_use_case import ConfirmEmailChangeUseCase
from .claim_username_use_case import ClaimUsernameUseCase
from .get_change_quota_use_case import GetChangeQuotaUseCase
from .dtos import (
    ChangeQuotaResponse,
    EmailChangeConfirmResponse,
    EmailChangeRequestResponse,
    RateLimitInfo,
    RequestContext,
    UsernameChangeConfirmResponse,
    UsernameChangeRequestResponse,
    UsernameClaimResponse,
)

__all__ = [
    # Use Cases
    "RequestUsernameChangeUseCase",
    "ConfirmUsernameChangeUseCase",
    "RequestEmailChangeUseCase",
    "ConfirmEmailChangeUseCase",
    "ClaimUsernameUseCase",
    "GetChangeQuotaUseCase",
    # DTOs
    "RequestContext",
    "RateLimitInfo",
    "UsernameChangeRequestResponse",
    "UsernameChangeConfirmResponse",
    "EmailChangeRequestResponse",
    "EmailChangeConfirmResponse",
    "UsernameClaimResponse",
    "ChangeQuotaResponse",
]
