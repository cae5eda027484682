from uuid import uuid4

import pytest

from src.app.use_cases.identity import ClaimUsernameUseCase
from src.domain.entities import User
from tests.utils.fakes import audited_actions


def _user(username=None):
    return User(id=uuid4(), email="owner@example.com", username=username, password_hash="x")


@pytest.fixture
def use_case(mock_uow, audit_sink):
    return ClaimUsernameUseCase(mock_uow, audit_sink)


@pytest.mark.asyncio
async def test_first_claim_applies_immediately(use_case, mock_uow, audit_sink):
    """Accounts without a username claim one without a token or quota"""
    user = _user()
    mock_uow.users.get_by_id.return_value = user

    result = await use_case.execute(user.id, "Alice")

    assert result.is_ok()
    assert result.value.status == "claimed"
    assert result.value.username == "alice"
    assert user.username == "alice"
    mock_uow.verification_tokens.create.assert_not_called()
    mock_uow.commit.assert_called_once()
    assert audited_actions(audit_sink) == ["username_claimed"]


@pytest.mark.asyncio
async def test_existing_username_must_use_change_flow(use_case, mock_uow):
    user = _user(username="bob")
    mock_uow.users.get_by_id.return_value = user

    result = await use_case.execute(user.id, "alice")

    assert result.is_err()
    assert result.error.code == "USERNAME_ALREADY_SET"
    assert user.username == "bob"


@pytest.mark.asyncio
async def test_claim_same_value_is_noop(use_case, mock_uow):
    user = _user(username="alice")
    mock_uow.users.get_by_id.return_value = user

    result = await use_case.execute(user.id, "alice")

    assert result.is_ok()
    assert result.value.status == "unchanged"
    mock_uow.commit.assert_not_called()


@pytest.mark.asyncio
async def test_claim_taken_username(use_case, mock_uow):
    user = _user()
    mock_uow.users.get_by_id.return_value = user
    mock_uow.users.get_by_username.return_value = _user(username="alice")

    result = await use_case.execute(user.id, "alice")

    assert result.is_err()
    assert result.error.code == "CONFLICT"
    mock_uow.commit.assert_not_called()


@pytest.mark.asyncio
async def test_claim_reserved_username(use_case, mock_uow):
    result = await use_case.execute(uuid4(), "admin")

    assert result.is_err()
    assert result.error.code == "INVALID_INPUT"
    mock_uow.users.get_by_id.assert_not_called()
