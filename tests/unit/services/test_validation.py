import pytest

from src.app.validation import (
    mask_email,
    sanitize_email,
    sanitize_username,
    short_id,
    validate_email,
    validate_username,
)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("Alice", "alice"),
        ("  bob_smith-99 ", "bobsmith99"),
        ("<b>eve</b>", "eve"),
        ("javascript:mallory", "mallory"),
        (None, ""),
    ],
)
def test_sanitize_username(raw, expected):
    assert sanitize_username(raw) == expected


def test_sanitize_email_strips_and_lowercases():
    assert sanitize_email(" John.Doe+tag@Example.COM ") == "john.doe+tag@example.com"
    assert sanitize_email("a<b>@x.com") == "a@x.com"


@pytest.mark.parametrize("username", ["abc", "a" * 20, "user42"])
def test_valid_usernames(username):
    assert validate_username(username).is_ok()


@pytest.mark.parametrize("username", ["ab", "a" * 21, "Alice", "al ice", "admin", "null", "root"])
def test_invalid_usernames(username):
    result = validate_username(username)
    assert result.is_err()
    assert result.error.code == "INVALID_INPUT"


@pytest.mark.parametrize("email", ["user@example.com", "first.last+tag@sub.example.org"])
def test_valid_emails(email):
    assert validate_email(email).is_ok()


@pytest.mark.parametrize(
    "email",
    ["", "plain", "a..b@example.com", "a@b", "x" * 250 + "@example.com", "o'brien@example.com"],
)
def test_invalid_emails(email):
    result = validate_email(email)
    assert result.is_err()
    assert result.error.code == "INVALID_INPUT"


def test_log_helpers():
    assert mask_email("alice@example.com") == "al***@example.com"
    assert mask_email("broken") == "***"
    assert short_id("123e4567-e89b-12d3-a456-426614174000") == "14174000"
