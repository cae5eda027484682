"""
Identity Mutation Applier

The commit-time step of every identity change: re-check uniqueness and
write the new value inside the caller's open transaction.
"""

import logging
from uuid import UUID

from sqlalchemy.exc import IntegrityError

from src.libs.result import Error, Result, Return
from src.app.services.unit_of_work import UnitOfWork
from src.domain.base import utcnow

logger = logging.getLogger(__name__)


class IdentityMutationApplier:
    """
    Applies username/email changes to a user record.

    Business Rules:
    - Uniqueness is re-read inside the same transaction as the write;
      earlier checks are never trusted across an await
    - A UNIQUE violation raised by the flush (a concurrent writer won) is
      reported as CONFLICT, same as a conflict seen by the re-read
    - Values arrive normalized (lowercase)
    - The caller owns the transaction: this class flushes, never commits
    """

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    async def apply_username_change(self, user_id: UUID, new_username: str) -> Result[str]:
        claimant = await self.uow.users.get_by_username(new_username)
        if claimant is not None and claimant.id != user_id:
            return Return.err(Error("CONFLICT", "Username is no longer available"))

        user = await self.uow.users.get_by_id(user_id)
        if user is None:
            return Return.err(Error("USER_NOT_FOUND", "User not found"))

        user.username = new_username
        user.updated_at = utcnow()
        try:
            user = await self.uow.users.update(user)
        except IntegrityError:
            logger.info("Username claim lost a commit race", extra={"username": new_username})
            return Return.err(Error("CONFLICT", "Username is no longer available"))

        return Return.ok(user.username)

    async def apply_email_change(self, user_id: UUID, new_email: str) -> Result[str]:
        claimant = await self.uow.users.get_by_email(new_email)
        if claimant is not None and claimant.id != user_id:
            return Return.err(Error("CONFLICT", "Email address is no longer available"))

        user = await self.uow.users.get_by_id(user_id)
        if user is None:
            return Return.err(Error("USER_NOT_FOUND", "User not found"))

        user.email = new_email
        user.email_verified = True
        user.updated_at = utcnow()
        try:
            user = await self.uow.users.update(user)
        except IntegrityError:
            logger.info("Email change lost a commit race")
            return Return.err(Error("CONFLICT", "Email address is no longer available"))

        return Return.ok(user.email)
