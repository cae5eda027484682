"""
Load Profile Use Case

Loads the current user's identity fields from the JWT subject.
"""

from typing import Any, Dict
from uuid import UUID

from src.libs.result import Error, Result, Return
from src.app.services.unit_of_work import UnitOfWork
from src.domain.entities import UserStatus


class LoadProfileUseCase:
    """
    Use case for loading the current user's profile.

    Business Rules:
    - JWT payload provides user_id
    - User must exist and be active
    """

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    async def execute(self, user_id: UUID) -> Result[Dict[str, Any]]:
        async with self.uow:
            user = await self.uow.users.get_by_id(user_id)
            if user is None:
                return Return.err(Error("USER_NOT_FOUND", "User not found"))

            if user.status == UserStatus.disabled:
                return Return.err(Error("USER_DISABLED", "User account is disabled"))

            return Return.ok(
                {
                    "id": str(user.id),
                    "email": user.email,
                    "username": user.username,
                    "name": user.name,
                    "email_verified": user.email_verified,
                    "provider": user.provider.value,
                    "created_at": user.created_at.isoformat(),
                }
            )
