"""
Confirm Username Change Use Case

Redeems a username verification token and applies the new username.
"""

import logging
from uuid import UUID

from src.libs.result import Error, Result, Return
from src.app.repositories.verification_token_repository import RedemptionStatus
from src.app.services.audit_sink import ISecurityAuditSink
from src.app.services.identity_mutation_applier import IdentityMutationApplier
from src.app.services.unit_of_work import UnitOfWork
from src.app.validation import short_id
from src.domain.entities import (
    ChangeType,
    InvalidPayloadError,
    parse_payload,
)
from .dtos import RequestContext, UsernameChangeConfirmResponse

logger = logging.getLogger(__name__)


class ConfirmUsernameChangeUseCase:
    """
    Use case for confirming a username change.

    Business Rules:
    - Token must belong to the session user (checked before it is consumed)
    - Token is single-use: consumed by the first successful redemption
    - Expired tokens are deleted and reported separately from invalid ones
    - Uniqueness is re-checked at commit; on conflict the token stays consumed
    - Returns the new username so the session can be refreshed in place
    """

    def __init__(self, uow: UnitOfWork, audit_sink: ISecurityAuditSink):
        self.uow = uow
        self.audit_sink = audit_sink

    async def execute(
        self, session_user_id: UUID, token: str, context: RequestContext = None
    ) -> Result[UsernameChangeConfirmResponse]:
        """
        Execute confirm username change use case.

        Args:
            session_user_id: Authenticated user
            token: Plain token from the emailed link
            context: Client IP / user agent for auditing

        Returns:
            Result with the new username, or Error

        Errors:
            - INVALID_INPUT: Token missing
            - INVALID_TOKEN: Unknown, already used, superseded or wrong type
            - EXPIRED_TOKEN: Token expired (and is now deleted)
            - WRONG_SUBJECT: Token belongs to another account
            - CONFLICT: Username was claimed since the link was issued
        """
        context = context or RequestContext()

        if not token or not token.strip():
            return Return.err(Error("INVALID_INPUT", "Token is required"))

        async with self.uow:
            redemption = await self.uow.verification_tokens.redeem(
                token.strip(), subject_user_id=session_user_id
            )

            if redemption.status == RedemptionStatus.INVALID:
                return Return.err(Error("INVALID_TOKEN", "Invalid verification token"))

            if redemption.status == RedemptionStatus.WRONG_SUBJECT:
                await self.audit_sink.log(
                    session_user_id,
                    "username_change_unauthorized",
                    {"reason": "token belongs to another account"},
                    context.ip_address,
                    context.user_agent,
                    success=False,
                )
                return Return.err(
                    Error("WRONG_SUBJECT", "Invalid token for current user")
                )

            # The token row is gone from here on; persist that before anything else
            await self.uow.commit()

            if redemption.status == RedemptionStatus.EXPIRED:
                return Return.err(
                    Error(
                        "EXPIRED_TOKEN",
                        "Verification token expired. Please request a new username change.",
                    )
                )

            record = redemption.record
            if record.change_type != ChangeType.USERNAME_CHANGE:
                return Return.err(Error("INVALID_TOKEN", "Invalid token type"))

            try:
                payload = parse_payload(record.change_type, record.payload)
            except InvalidPayloadError:
                logger.warning(f"Malformed username token payload for ***{short_id(session_user_id)}")
                return Return.err(Error("INVALID_TOKEN", "Invalid token data"))

            applier = IdentityMutationApplier(self.uow)
            applied = await applier.apply_username_change(session_user_id, payload.new_username)
            if applied.is_err():
                if applied.error.code == "CONFLICT":
                    return Return.err(
                        Error(
                            "CONFLICT",
                            "Username is no longer available. This verification link "
                            "has been used; please request a new username change.",
                        )
                    )
                return Return.err(applied.error)

            await self.uow.commit()

        await self.audit_sink.log(
            session_user_id,
            "username_change_completed",
            {"new_username": applied.value, "verification_method": "email"},
            context.ip_address,
            context.user_agent,
        )
        logger.info(f"Username verified and updated: ***{short_id(session_user_id)} -> {applied.value}")

        return Return.ok(
            UsernameChangeConfirmResponse(
                status="success",
                username=applied.value,
                message="Username updated successfully",
            )
        )
