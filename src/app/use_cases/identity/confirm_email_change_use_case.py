"""
Confirm Email Change Use Case

Redeems an email verification token and moves the account to the new address.
"""

import logging
from uuid import UUID

from src.libs.result import Error, Result, Return
from src.app.repositories.verification_token_repository import RedemptionStatus
from src.app.services.audit_sink import ISecurityAuditSink
from src.app.services.identity_mutation_applier import IdentityMutationApplier
from src.app.services.unit_of_work import UnitOfWork
from src.app.validation import mask_email, short_id
from src.domain.entities import ChangeType, InvalidPayloadError, parse_payload
from .dtos import EmailChangeConfirmResponse, RequestContext

logger = logging.getLogger(__name__)


class ConfirmEmailChangeUseCase:
    """
    Use case for confirming an email change.

    Business Rules:
    - Same token rules as username confirmation (owner-only, single-use, expiry)
    - The link must have been delivered to the address being claimed
    - Uniqueness is re-checked at commit; on conflict the token stays consumed
    - The new address counts as verified (the user just proved access to it)
    """

    def __init__(self, uow: UnitOfWork, audit_sink: ISecurityAuditSink):
        self.uow = uow
        self.audit_sink = audit_sink

    async def execute(
        self, session_user_id: UUID, token: str, context: RequestContext = None
    ) -> Result[EmailChangeConfirmResponse]:
        """
        Execute confirm email change use case.

        Errors:
            - INVALID_INPUT: Token missing
            - INVALID_TOKEN: Unknown, already used, superseded, wrong type or bad data
            - EXPIRED_TOKEN: Token expired (and is now deleted)
            - WRONG_SUBJECT: Token belongs to another account
            - CONFLICT: Address was claimed since the link was issued
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
                    "email_change_unauthorized",
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
                        "Verification token expired. Please request a new email change.",
                    )
                )

            record = redemption.record
            if record.change_type != ChangeType.EMAIL_CHANGE:
                return Return.err(Error("INVALID_TOKEN", "Invalid token type"))

            try:
                payload = parse_payload(record.change_type, record.payload)
            except InvalidPayloadError:
                logger.warning(f"Malformed email token payload for ***{short_id(session_user_id)}")
                return Return.err(Error("INVALID_TOKEN", "Invalid token data"))

            if record.destination_contact.lower() != payload.new_email.lower():
                return Return.err(Error("INVALID_TOKEN", "Invalid token data"))

            applier = IdentityMutationApplier(self.uow)
            applied = await applier.apply_email_change(session_user_id, payload.new_email)
            if applied.is_err():
                if applied.error.code == "CONFLICT":
                    return Return.err(
                        Error(
                            "CONFLICT",
                            "This email address is no longer available. This verification "
                            "link has been used; please request a new email change.",
                        )
                    )
                return Return.err(applied.error)

            await self.uow.commit()

        await self.audit_sink.log(
            session_user_id,
            "email_change_completed",
            {
                "old_email": mask_email(payload.old_email),
                "new_email": mask_email(applied.value),
                "verification_method": "email",
            },
            context.ip_address,
            context.user_agent,
        )
        logger.info(
            f"Email verified and updated: ***{short_id(session_user_id)} -> {mask_email(applied.value)}"
        )

        return Return.ok(
            EmailChangeConfirmResponse(
                status="success",
                email=applied.value,
                message="Email updated successfully",
            )
        )
