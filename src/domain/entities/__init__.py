"""
Domain Entities

All domain entities organized by model.
Each entity in its own file for better maintainability.
"""

# Export all enums
from .enums import (
    AuthProvider,
    ChangeType,
    UserStatus,
)

# Export all entities
from .user import User
from .verification_token import VerificationToken
from .audit_event import AuditEvent

# Export token payloads
from .token_payloads import (
    AccountVerificationPayload,
    EmailChangePayload,
    InvalidPayloadError,
    PasswordResetPayload,
    TokenPayload,
    UsernameChangePayload,
    dump_payload,
    parse_payload,
)

__all__ = [
    # Enums
    "AuthProvider",
    "ChangeType",
    "UserStatus",
    # Entities
    "User",
    "VerificationToken",
    "AuditEvent",
    # Payloads
    "AccountVerificationPayload",
    "EmailChangePayload",
    "InvalidPayloadError",
    "PasswordResetPayload",
    "TokenPayload",
    "UsernameChangePayload",
    "dump_payload",
    "parse_payload",
]
