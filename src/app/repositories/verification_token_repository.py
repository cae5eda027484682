from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID

from src.domain.entities import ChangeType, VerificationToken


class RedemptionStatus(str, Enum):
    OK = "OK"
    INVALID = "INVALID"
    EXPIRED = "EXPIRED"
    WRONG_SUBJECT = "WRONG_SUBJECT"


@dataclass(frozen=True)
class IssuedToken:
    """A freshly minted token: the plain bearer value plus its stored record"""

    token: str
    record: VerificationToken


@dataclass(frozen=True)
class TokenRedemption:
    status: RedemptionStatus
    record: Optional[VerificationToken] = None

    @property
    def ok(self) -> bool:
        return self.status == RedemptionStatus.OK


class IVerificationTokenRepository(ABC):
    """VerificationToken repository interface - application layer"""

    @abstractmethod
    async def create(
        self,
        subject_user_id: UUID,
        change_type: ChangeType,
        payload: dict,
        destination_contact: str,
        ttl_minutes: int,
    ) -> IssuedToken:
        """
        Mint a token for a subject, superseding any live token of the same type.

        Returns:
            IssuedToken with the plain token (never stored) and the record
        """
        pass

    @abstractmethod
    async def redeem(
        self, token: str, subject_user_id: Optional[UUID] = None
    ) -> TokenRedemption:
        """
        Consume a token exactly once.

        Only the caller whose conditional delete removed the row gets OK.
        Expired tokens are deleted and reported EXPIRED. When subject_user_id
        is given and does not own the token, WRONG_SUBJECT is returned and
        the token is left in place.
        """
        pass

    @abstractmethod
    async def delete(self, token: str) -> bool:
        """Delete a token by its plain value; True if a row was removed"""
        pass

    @abstractmethod
    async def get_active(
        self, subject_user_id: UUID, change_type: ChangeType
    ) -> Optional[VerificationToken]:
        """Get the live (unexpired) token for a subject and type, if any"""
        pass

    @abstractmethod
    async def purge_expired(self, now: Optional[datetime] = None) -> int:
        """Delete every expired token; returns number of rows removed"""
        pass
