"""
Identity input sanitization and validation.

Sanitizers strip anything outside the allow-listed character set and
lowercase the result; validators then enforce the format rules and return
a Result so use cases can surface INVALID_INPUT without raising.
"""

import re
from typing import Any

from pydantic import EmailStr, TypeAdapter, ValidationError

from src.libs.result import Error, Result, Return

USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 20
EMAIL_MAX_LENGTH = 254

USERNAME_PATTERN = re.compile(r"^[a-z0-9]+$")

RESERVED_USERNAMES = frozenset(
    {
        "admin",
        "root",
        "api",
        "www",
        "mail",
        "ftp",
        "support",
        "help",
        "contact",
        "about",
        "login",
        "signup",
        "register",
        "dashboard",
        "profile",
        "settings",
        "account",
        "user",
        "users",
        "moderator",
        "mod",
        "administrator",
        "system",
        "service",
        "bot",
        "null",
        "undefined",
    }
)

_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")
_SCRIPT_PROTOCOLS = re.compile(r"(javascript|data|vbscript):", re.IGNORECASE)
_HTML_ENTITIES = re.compile(r"&#x?[0-9a-f]+;?", re.IGNORECASE)
_HTML_TAGS = re.compile(r"<[^>]*>")

_email_adapter = TypeAdapter(EmailStr)


def sanitize_string(value: Any) -> str:
    """Strip control characters, script protocols, entities and tags"""
    if value is None:
        return ""
    if not isinstance(value, str):
        value = str(value)

    cleaned = _CONTROL_CHARS.sub("", value)
    cleaned = _SCRIPT_PROTOCOLS.sub("", cleaned)
    cleaned = _HTML_ENTITIES.sub("", cleaned)
    cleaned = _HTML_TAGS.sub("", cleaned)
    return cleaned.strip()


def sanitize_username(value: Any) -> str:
    return re.sub(r"[^a-z0-9]", "", sanitize_string(value), flags=re.IGNORECASE).lower()


def sanitize_email(value: Any) -> str:
    return re.sub(r"[^a-zA-Z0-9@._+-]", "", sanitize_string(value)).lower()


def validate_username(username: str) -> Result[str]:
    """
    Validate an already-sanitized username.

    Rules: 3-20 characters, lowercase letters and digits only, not reserved.
    """
    if len(username) < USERNAME_MIN_LENGTH:
        return Return.err(
            Error("INVALID_INPUT", f"Username must be at least {USERNAME_MIN_LENGTH} characters")
        )
    if len(username) > USERNAME_MAX_LENGTH:
        return Return.err(
            Error("INVALID_INPUT", f"Username must be at most {USERNAME_MAX_LENGTH} characters")
        )
    if not USERNAME_PATTERN.match(username):
        return Return.err(
            Error("INVALID_INPUT", "Username can only contain lowercase letters and numbers")
        )
    if username in RESERVED_USERNAMES:
        return Return.err(Error("INVALID_INPUT", "Username is reserved"))
    return Return.ok(username)


def validate_email(email: str) -> Result[str]:
    """Validate an already-sanitized email address"""
    if not email:
        return Return.err(Error("INVALID_INPUT", "Email address is required"))
    if len(email) > EMAIL_MAX_LENGTH:
        return Return.err(Error("INVALID_INPUT", "Email address is too long"))
    if ".." in email or re.search(r"[<>'\"&]", email):
        return Return.err(Error("INVALID_INPUT", "Please enter a valid email address"))
    try:
        _email_adapter.validate_python(email)
    except ValidationError:
        return Return.err(Error("INVALID_INPUT", "Please enter a valid email address"))
    return Return.ok(email)


def mask_email(email: str) -> str:
    """ab***@example.com - for log lines"""
    local, sep, domain = email.partition("@")
    if not sep:
        return "***"
    return f"{local[:2]}***@{domain}"


def short_id(user_id: Any) -> str:
    """Last 8 characters of an id - for log lines"""
    return str(user_id)[-8:]
