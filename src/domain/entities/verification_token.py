"""
VerificationToken Entity

Single-use bearer tokens that authorize a pending identity change.
"""

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import UniqueConstraint
from sqlmodel import JSON, Column, DateTime, Field, Index, SQLModel

from src.domain.base import utcnow
from .enums import ChangeType


class VerificationToken(SQLModel, table=True):
    """
    VerificationToken entity - one pending change per user and type.

    Business Rules:
    - Token is SHA-256 hash of 32 random bytes (hex), plain value only in the email link
    - At most one live token per (subject_user_id, change_type)
    - Never updated: created, then deleted on redemption, supersession or expiry
    - Expires after 15 minutes (username) or 30 minutes (email)
    """

    __tablename__ = "verification_tokens"

    id: UUID = Field(default_factory=uuid4, primary_key=True)

    token_hash: str = Field(unique=True, max_length=64)  # SHA-256 output
    subject_user_id: UUID = Field(foreign_key="users.id")
    change_type: ChangeType

    payload: dict = Field(default_factory=dict, sa_column=Column(JSON))
    destination_contact: str = Field(max_length=254)

    # Timestamps
    created_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime))
    expires_at: datetime = Field(sa_column=Column(DateTime))

    __table_args__ = (
        UniqueConstraint("subject_user_id", "change_type", name="uq_verification_subject_type"),
        Index("idx_verification_expires_at", "expires_at"),
    )

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at < now
