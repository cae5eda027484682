import hashlib
import secrets
from datetime import datetime, timedelta
from typing import Callable, Optional
from uuid import UUID

from sqlalchemy import delete
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from src.app.repositories.verification_token_repository import (
    IssuedToken,
    IVerificationTokenRepository,
    RedemptionStatus,
    TokenRedemption,
)
from src.domain.base import utcnow
from src.domain.entities import ChangeType, VerificationToken


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode()).hexdigest()


class VerificationTokenRepository(IVerificationTokenRepository):
    """VerificationToken repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession, clock: Callable[[], datetime] = utcnow):
        self.session = session
        self.clock = clock

    async def create(
        self,
        subject_user_id: UUID,
        change_type: ChangeType,
        payload: dict,
        destination_contact: str,
        ttl_minutes: int,
    ) -> IssuedToken:
        """Supersede the subject's live token of this type and mint a new one"""
        await self.session.exec(
            delete(VerificationToken).where(
                VerificationToken.subject_user_id == subject_user_id,
                VerificationToken.change_type == change_type,
            )
        )

        # 32 random bytes = 256 bits; only the hash is stored
        token = secrets.token_hex(32)
        now = self.clock()
        record = VerificationToken(
            token_hash=hash_token(token),
            subject_user_id=subject_user_id,
            change_type=change_type,
            payload=payload,
            destination_contact=destination_contact,
            created_at=now,
            expires_at=now + timedelta(minutes=ttl_minutes),
        )
        self.session.add(record)
        await self.session.flush()
        await self.session.refresh(record)
        return IssuedToken(token=token, record=record)

    async def redeem(
        self, token: str, subject_user_id: Optional[UUID] = None
    ) -> TokenRedemption:
        """
        Consume a token exactly once.

        The row is removed with a conditional DELETE on its id; two concurrent
        redemptions can both read the row, but only one DELETE reports a
        removed row and only that caller gets OK.
        """
        stmt = select(VerificationToken).where(
            VerificationToken.token_hash == hash_token(token)
        )
        result = await self.session.exec(stmt)
        record = result.one_or_none()

        if record is None:
            return TokenRedemption(RedemptionStatus.INVALID)

        if subject_user_id is not None and record.subject_user_id != subject_user_id:
            return TokenRedemption(RedemptionStatus.WRONG_SUBJECT)

        deleted = await self.session.exec(
            delete(VerificationToken)
            .where(VerificationToken.id == record.id)
            .execution_options(synchronize_session=False)
        )
        self.session.expunge(record)
        if deleted.rowcount != 1:
            return TokenRedemption(RedemptionStatus.INVALID)

        if record.is_expired(self.clock()):
            return TokenRedemption(RedemptionStatus.EXPIRED, record)

        return TokenRedemption(RedemptionStatus.OK, record)

    async def delete(self, token: str) -> bool:
        """Delete a token by its plain value"""
        result = await self.session.exec(
            delete(VerificationToken).where(
                VerificationToken.token_hash == hash_token(token)
            )
        )
        return result.rowcount > 0

    async def get_active(
        self, subject_user_id: UUID, change_type: ChangeType
    ) -> Optional[VerificationToken]:
        """Get the live token for a subject and type"""
        stmt = select(VerificationToken).where(
            VerificationToken.subject_user_id == subject_user_id,
            VerificationToken.change_type == change_type,
            VerificationToken.expires_at >= self.clock(),
        )
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def purge_expired(self, now: Optional[datetime] = None) -> int:
        """Delete every expired token"""
        result = await self.session.exec(
            delete(VerificationToken).where(
                VerificationToken.expires_at < (now or self.clock())
            )
        )
        await self.session.flush()
        return result.rowcount
