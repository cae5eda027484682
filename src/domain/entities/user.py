"""
User Entity

A marketplace member whose username and email are globally unique.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Column, DateTime, Field, Index, SQLModel

from src.domain.base import utcnow
from .enums import AuthProvider, UserStatus


class User(SQLModel, table=True):
    """
    User entity - a marketplace member.

    Business Rules:
    - Email and username are unique across all users (stored lowercase)
    - Username is optional until first claimed
    - Only credentials accounts may change their email
    - Password stored as bcrypt hash (cost factor 12)
    """

    __tablename__ = "users"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    email: str = Field(unique=True, index=True, max_length=254)
    username: Optional[str] = Field(default=None, unique=True, index=True, max_length=20)
    name: Optional[str] = Field(default=None, max_length=100)
    password_hash: str = Field(max_length=60)  # Bcrypt output is 60 chars

    provider: AuthProvider = Field(default=AuthProvider.credentials)
    status: UserStatus = Field(default=UserStatus.active)
    email_verified: bool = Field(default=False)

    # Timestamps
    created_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime))
    updated_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))
    last_login_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))

    __table_args__ = (Index("idx_user_created_at", "created_at"),)

    def is_new_account(self, window_days: int, now: Optional[datetime] = None) -> bool:
        """True while the account is younger than ``window_days``"""
        now = now or utcnow()
        return (now - self.created_at).total_seconds() < window_days * 86400
