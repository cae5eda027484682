from unittest.mock import AsyncMock, MagicMock

import pytest

from src.adapter.services.email_templates import JinjaEmailComposer
from tests.utils.fakes import RecordingEmailSender, make_decision


@pytest.fixture
def mock_uow():
    uow = MagicMock()
    uow.__aenter__ = AsyncMock(return_value=uow)
    uow.__aexit__ = AsyncMock(return_value=False)  # Must return False to not suppress exceptions
    uow.commit = AsyncMock()
    uow.rollback = AsyncMock()

    uow.users = MagicMock()
    uow.users.get_by_id = AsyncMock()
    uow.users.get_by_email = AsyncMock(return_value=None)
    uow.users.get_by_username = AsyncMock(return_value=None)
    uow.users.create = AsyncMock(side_effect=lambda user: user)
    uow.users.update = AsyncMock(side_effect=lambda user: user)

    uow.verification_tokens = MagicMock()
    uow.verification_tokens.create = AsyncMock()
    uow.verification_tokens.redeem = AsyncMock()
    uow.verification_tokens.delete = AsyncMock(return_value=True)
    uow.verification_tokens.purge_expired = AsyncMock(return_value=0)

    uow.audit_events = MagicMock()
    uow.audit_events.create = AsyncMock()
    uow.audit_events.get_by_user_id = AsyncMock(return_value=[])
    return uow


@pytest.fixture
def rate_limiter():
    limiter = MagicMock()
    limiter.limit = AsyncMock(return_value=make_decision())
    limiter.peek = AsyncMock(return_value=make_decision(remaining=2))
    return limiter


@pytest.fixture
def email_sender():
    return RecordingEmailSender()


@pytest.fixture
def composer():
    return JinjaEmailComposer(base_url="https://skills.test")


@pytest.fixture
def audit_sink():
    sink = MagicMock()
    sink.log = AsyncMock()
    return sink
