"""
Unit tests for RequestUsernameChangeUseCase

Tests business logic with mocked repositories and a recording email sender.
"""
from datetime import timedelta
from uuid import uuid4

import pytest

from src.app.repositories.verification_token_repository import IssuedToken
from src.app.services.rate_limiter import RateLimiterUnavailable
from src.app.use_cases.identity import RequestContext, RequestUsernameChangeUseCase
from src.domain.base import utcnow
from src.domain.entities import ChangeType, User, VerificationToken
from tests.utils.fakes import audited_actions, make_decision


def _user(username="oldname", age=timedelta(days=60), **kwargs):
    return User(
        id=uuid4(),
        email="owner@example.com",
        username=username,
        password_hash="x",
        created_at=utcnow() - age,
        **kwargs,
    )


def _issue(mock_uow, token="a" * 64):
    captured = {}

    async def capture(**kwargs):
        captured.update(kwargs)
        record = VerificationToken(
            token_hash="h" * 64,
            subject_user_id=kwargs["subject_user_id"],
            change_type=kwargs["change_type"],
            payload=kwargs["payload"],
            destination_contact=kwargs["destination_contact"],
            expires_at=utcnow() + timedelta(minutes=kwargs["ttl_minutes"]),
        )
        return IssuedToken(token=token, record=record)

    mock_uow.verification_tokens.create.side_effect = capture
    return captured


@pytest.fixture
def use_case(mock_uow, rate_limiter, email_sender, composer, audit_sink):
    return RequestUsernameChangeUseCase(
        mock_uow, rate_limiter, email_sender, composer, audit_sink
    )


@pytest.mark.asyncio
async def test_request_sends_verification_to_current_email(
    use_case, mock_uow, rate_limiter, email_sender, audit_sink
):
    """Valid request mints a 15 minute token and emails the link to the current address"""
    # Arrange
    user = _user()
    mock_uow.users.get_by_id.return_value = user
    captured = _issue(mock_uow, token="f" * 64)

    # Act
    result = await use_case.execute(user.id, "alice", RequestContext(ip_address="1.2.3.4"))

    # Assert
    assert result.is_ok()
    assert result.value.status == "pending"
    assert result.value.username == "alice"
    assert result.value.expires_in_minutes == 15
    assert result.value.rate_limit.remaining == 1

    assert captured["change_type"] == ChangeType.USERNAME_CHANGE
    assert captured["payload"]["new_username"] == "alice"
    assert captured["destination_contact"] == "owner@example.com"
    assert captured["ttl_minutes"] == 15
    mock_uow.commit.assert_called_once()

    assert len(email_sender.sent) == 1
    to, message = email_sender.sent[0]
    assert to == "owner@example.com"
    assert "/verify/username?token=" + "f" * 64 in message.text

    policy, key = rate_limiter.limit.call_args.args
    assert key == f"username-change:{user.id}"
    assert policy.limit == 2
    assert audited_actions(audit_sink) == ["username_change_requested"]


@pytest.mark.asyncio
async def test_request_sanitizes_input_before_validation(use_case, mock_uow):
    """Mixed case and stray symbols are stripped to the canonical form"""
    user = _user()
    mock_uow.users.get_by_id.return_value = user
    captured = _issue(mock_uow)

    result = await use_case.execute(user.id, "  Alice_99! ")

    assert result.is_ok()
    assert result.value.username == "alice99"
    assert captured["payload"]["new_username"] == "alice99"


@pytest.mark.asyncio
@pytest.mark.parametrize("desired", ["ab", "a" * 21, "admin", "!!!"])
async def test_invalid_username_consumes_no_quota(use_case, mock_uow, rate_limiter, desired):
    """Validation failures return INVALID_INPUT before the limiter is touched"""
    result = await use_case.execute(uuid4(), desired)

    assert result.is_err()
    assert result.error.code == "INVALID_INPUT"
    rate_limiter.limit.assert_not_called()
    mock_uow.verification_tokens.create.assert_not_called()


@pytest.mark.asyncio
async def test_same_username_is_noop(use_case, mock_uow, rate_limiter, email_sender):
    """Requesting the current username mints nothing and spends no quota"""
    user = _user(username="alice")
    mock_uow.users.get_by_id.return_value = user

    result = await use_case.execute(user.id, "ALICE")

    assert result.is_ok()
    assert result.value.status == "unchanged"
    rate_limiter.limit.assert_not_called()
    mock_uow.verification_tokens.create.assert_not_called()
    assert email_sender.sent == []


@pytest.mark.asyncio
async def test_unknown_session_user(use_case, mock_uow):
    mock_uow.users.get_by_id.return_value = None

    result = await use_case.execute(uuid4(), "alice")

    assert result.is_err()
    assert result.error.code == "USER_NOT_FOUND"


@pytest.mark.asyncio
async def test_rate_limited_request_carries_quota(use_case, mock_uow, rate_limiter, audit_sink):
    """Third request in the window is rejected with limit, remaining and reset_at"""
    user = _user()
    mock_uow.users.get_by_id.return_value = user
    rate_limiter.limit.return_value = make_decision(
        allowed=False, remaining=0, total=2, reset_in=timedelta(days=3)
    )

    result = await use_case.execute(user.id, "alice")

    assert result.is_err()
    assert result.error.code == "RATE_LIMITED"
    assert result.error.details["limit"] == 2
    assert result.error.details["remaining"] == 0
    assert "reset_at" in result.error.details
    assert result.error.details["retry_after"] > 2 * 86400
    assert "in 3 days" in result.error.message
    mock_uow.verification_tokens.create.assert_not_called()

    audit_sink.log.assert_called_once()
    assert audit_sink.log.call_args.args[1] == "username_change_rate_limited"
    assert audit_sink.log.call_args.kwargs["success"] is False


@pytest.mark.asyncio
async def test_new_account_uses_separate_bucket(use_case, mock_uow, rate_limiter):
    """Accounts younger than 7 days draw from the new-{id} bucket"""
    user = _user(age=timedelta(days=2))
    mock_uow.users.get_by_id.return_value = user
    _issue(mock_uow)

    await use_case.execute(user.id, "alice")

    policy, key = rate_limiter.limit.call_args.args
    assert key == f"username-change:new-{user.id}"
    assert policy.limit == 5


@pytest.mark.asyncio
async def test_taken_username_conflicts(use_case, mock_uow):
    """A username held by another account is rejected without minting"""
    user = _user()
    mock_uow.users.get_by_id.return_value = user
    mock_uow.users.get_by_username.return_value = _user(username="alice")

    result = await use_case.execute(user.id, "alice")

    assert result.is_err()
    assert result.error.code == "CONFLICT"
    mock_uow.verification_tokens.create.assert_not_called()
    mock_uow.commit.assert_not_called()


@pytest.mark.asyncio
async def test_dispatch_failure_discards_token(use_case, mock_uow, email_sender, audit_sink):
    """If the email cannot be sent the token is deleted and DISPATCH_FAILURE returned"""
    user = _user()
    mock_uow.users.get_by_id.return_value = user
    _issue(mock_uow, token="d" * 64)
    email_sender.failing.add("owner@example.com")

    result = await use_case.execute(user.id, "alice")

    assert result.is_err()
    assert result.error.code == "DISPATCH_FAILURE"
    mock_uow.verification_tokens.delete.assert_called_once_with("d" * 64)
    assert mock_uow.commit.call_count == 2
    assert "username_change_requested" not in audited_actions(audit_sink)


@pytest.mark.asyncio
async def test_dispatch_failure_survives_cleanup_error(use_case, mock_uow, email_sender):
    """Cleanup failure is logged; the caller still gets DISPATCH_FAILURE"""
    user = _user()
    mock_uow.users.get_by_id.return_value = user
    _issue(mock_uow)
    email_sender.failing.add("owner@example.com")
    mock_uow.verification_tokens.delete.side_effect = RuntimeError("db gone")

    result = await use_case.execute(user.id, "alice")

    assert result.is_err()
    assert result.error.code == "DISPATCH_FAILURE"


@pytest.mark.asyncio
async def test_limiter_outage_is_not_bypassed(use_case, mock_uow, rate_limiter):
    """A failing counter store propagates instead of admitting the request"""
    user = _user()
    mock_uow.users.get_by_id.return_value = user
    rate_limiter.limit.side_effect = RateLimiterUnavailable("redis down")

    with pytest.raises(RateLimiterUnavailable):
        await use_case.execute(user.id, "alice")

    mock_uow.verification_tokens.create.assert_not_called()
