"""
Two accounts confirming the same new username or email at the same time,
each on its own session against a real SQLite database.
"""
import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel, select
from sqlmodel.ext.asyncio.session import AsyncSession

from src.adapter.repositories.verification_token_repository import VerificationTokenRepository
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.app.use_cases.identity import ConfirmEmailChangeUseCase, ConfirmUsernameChangeUseCase
from src.domain.entities import (
    ChangeType,
    EmailChangePayload,
    User,
    UsernameChangePayload,
    dump_payload,
)


@pytest_asyncio.fixture
async def session_factory(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'identity.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)
    await engine.dispose()


@pytest_asyncio.fixture
async def users(session_factory):
    async with session_factory() as session:
        alice = User(email="alice@example.com", username="alice", password_hash="x")
        bob = User(email="bob@example.com", username="bob", password_hash="x")
        session.add_all([alice, bob])
        await session.commit()
    return alice, bob


def _audit_sink():
    sink = MagicMock()
    sink.log = AsyncMock()
    return sink


async def _issue(session_factory, user, change_type, payload, destination):
    async with session_factory() as session:
        issued = await VerificationTokenRepository(session).create(
            user.id, change_type, dump_payload(payload), destination, 15
        )
        await session.commit()
    return issued.token


async def _confirm(session_factory, use_case_cls, user, token):
    async with session_factory() as session:
        use_case = use_case_cls(SqlAlchemyUnitOfWork(session), _audit_sink())
        result = await use_case.execute(user.id, token)
    return "OK" if result.is_ok() else result.error.code


@pytest.mark.asyncio
async def test_concurrent_username_confirm_single_winner(session_factory, users):
    alice, bob = users
    payload = UsernameChangePayload(new_username="swapmaster")
    alice_token = await _issue(session_factory, alice, ChangeType.USERNAME_CHANGE, payload, alice.email)
    bob_token = await _issue(session_factory, bob, ChangeType.USERNAME_CHANGE, payload, bob.email)

    results = await asyncio.gather(
        _confirm(session_factory, ConfirmUsernameChangeUseCase, alice, alice_token),
        _confirm(session_factory, ConfirmUsernameChangeUseCase, bob, bob_token),
    )

    assert sorted(results) == ["CONFLICT", "OK"]
    async with session_factory() as session:
        owners = (await session.exec(select(User).where(User.username == "swapmaster"))).all()
    assert len(owners) == 1
    winner = alice if results[0] == "OK" else bob
    assert owners[0].id == winner.id


@pytest.mark.asyncio
async def test_concurrent_email_confirm_single_winner(session_factory, users):
    alice, bob = users
    alice_token = await _issue(
        session_factory,
        alice,
        ChangeType.EMAIL_CHANGE,
        EmailChangePayload(new_email="shared@example.com", old_email=alice.email),
        "shared@example.com",
    )
    bob_token = await _issue(
        session_factory,
        bob,
        ChangeType.EMAIL_CHANGE,
        EmailChangePayload(new_email="shared@example.com", old_email=bob.email),
        "shared@example.com",
    )

    results = await asyncio.gather(
        _confirm(session_factory, ConfirmEmailChangeUseCase, alice, alice_token),
        _confirm(session_factory, ConfirmEmailChangeUseCase, bob, bob_token),
    )

    assert sorted(results) == ["CONFLICT", "OK"]
    async with session_factory() as session:
        owners = (await session.exec(select(User).where(User.email == "shared@example.com"))).all()
    assert len(owners) == 1
    # both links were consumed, winner's and loser's alike
    async with session_factory() as session:
        repo = VerificationTokenRepository(session)
        assert await repo.get_active(alice.id, ChangeType.EMAIL_CHANGE) is None
        assert await repo.get_active(bob.id, ChangeType.EMAIL_CHANGE) is None
