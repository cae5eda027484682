"""
Claim Username Use Case

Immediate, same-session claim of a first username.
"""

import logging
from uuid import UUID

from src.libs.result import Error, Result, Return
from src.app.services.audit_sink import ISecurityAuditSink
from src.app.services.identity_mutation_applier import IdentityMutationApplier
from src.app.services.unit_of_work import UnitOfWork
from src.app.validation import sanitize_username, validate_username
from .dtos import RequestContext, UsernameClaimResponse

logger = logging.getLogger(__name__)


class ClaimUsernameUseCase:
    """
    Use case for claiming a first username.

    Business Rules:
    - Only for accounts without a username; renames go through verification
    - Same validation as a username change
    - No token and no quota: the write happens in this request
    - Uniqueness is enforced at commit by the mutation applier
    """

    def __init__(self, uow: UnitOfWork, audit_sink: ISecurityAuditSink):
        self.uow = uow
        self.audit_sink = audit_sink

    async def execute(
        self,
        session_user_id: UUID,
        desired_username: str,
        context: RequestContext = None,
    ) -> Result[UsernameClaimResponse]:
        context = context or RequestContext()

        desired = sanitize_username(desired_username)
        validation = validate_username(desired)
        if validation.is_err():
            return Return.err(validation.error)

        async with self.uow:
            user = await self.uow.users.get_by_id(session_user_id)
            if user is None:
                return Return.err(Error("USER_NOT_FOUND", "User not found"))

            if user.username == desired:
                return Return.ok(UsernameClaimResponse(status="unchanged", username=desired))

            if user.username is not None:
                return Return.err(
                    Error(
                        "USERNAME_ALREADY_SET",
                        "You already have a username. Request a username change instead.",
                    )
                )

            applied = await IdentityMutationApplier(self.uow).apply_username_change(
                user.id, desired
            )
            if applied.is_err():
                if applied.error.code == "CONFLICT":
                    return Return.err(Error("CONFLICT", "Username is already taken"))
                return Return.err(applied.error)

            await self.uow.commit()

        await self.audit_sink.log(
            session_user_id,
            "username_claimed",
            {"username": applied.value},
            context.ip_address,
            context.user_agent,
        )

        return Return.ok(UsernameClaimResponse(status="claimed", username=applied.value))
