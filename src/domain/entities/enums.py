"""
Domain Enums

All enumeration types used across domain entities.
"""

from enum import Enum


class UserStatus(str, Enum):
    """User account status"""

    active = "active"
    disabled = "disabled"


class AuthProvider(str, Enum):
    """How the account signs in"""

    credentials = "credentials"
    google = "google"


class ChangeType(str, Enum):
    """What a verification token authorizes"""

    USERNAME_CHANGE = "USERNAME_CHANGE"
    EMAIL_CHANGE = "EMAIL_CHANGE"
    ACCOUNT_VERIFICATION = "ACCOUNT_VERIFICATION"
    PASSWORD_RESET = "PASSWORD_RESET"
