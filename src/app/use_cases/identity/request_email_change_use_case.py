"""
Request Email Change Use Case

Sends a verification link to the new address and a security alert to the
old one.
"""

import logging
from uuid import UUID

from src.libs.result import Error, Result, Return
from src.app.services.audit_sink import ISecurityAuditSink
from src.app.services.email_sender import IEmailComposer, IEmailSender
from src.app.services.identity_policy import IdentityChangePolicy
from src.app.services.rate_limiter import IRateLimiter
from src.app.services.unit_of_work import UnitOfWork
from src.app.validation import mask_email, sanitize_email, short_id, validate_email
from src.domain.entities import AuthProvider, ChangeType, EmailChangePayload, dump_payload
from .dtos import EmailChangeRequestResponse, RateLimitInfo, RequestContext
from .errors import rate_limited_error

logger = logging.getLogger(__name__)


class RequestEmailChangeUseCase:
    """
    Use case for requesting an email change.

    Business Rules:
    - Only credentials accounts can change email (OAuth accounts are bound to the provider)
    - Requesting the current address is a no-op: no quota, no token
    - Quota: 2 per 30 days, or a separate bucket for accounts under 7 days old
    - Token expires in 30 minutes and is sent to the NEW address
    - After the verification email is sent, a security alert goes to the OLD
      address; its failure never affects the result
    - If the verification email fails, the token is deleted, DISPATCH_FAILURE
      is returned and no alert is sent
    """

    def __init__(
        self,
        uow: UnitOfWork,
        rate_limiter: IRateLimiter,
        email_sender: IEmailSender,
        composer: IEmailComposer,
        audit_sink: ISecurityAuditSink,
        policy: IdentityChangePolicy = None,
    ):
        self.uow = uow
        self.rate_limiter = rate_limiter
        self.email_sender = email_sender
        self.composer = composer
        self.audit_sink = audit_sink
        self.policy = policy or IdentityChangePolicy()

    async def execute(
        self,
        session_user_id: UUID,
        desired_email: str,
        context: RequestContext = None,
    ) -> Result[EmailChangeRequestResponse]:
        """
        Execute request email change use case.

        Errors:
            - INVALID_INPUT: Email fails validation (no quota consumed)
            - USER_NOT_FOUND: Session user no longer exists
            - EMAIL_CHANGE_NOT_ALLOWED: Account signs in through an OAuth provider
            - RATE_LIMITED: Quota exhausted
            - CONFLICT: Address belongs to another account
            - DISPATCH_FAILURE: Verification email could not be sent
        """
        context = context or RequestContext()

        new_email = sanitize_email(desired_email)
        validation = validate_email(new_email)
        if validation.is_err():
            return Return.err(validation.error)

        async with self.uow:
            user = await self.uow.users.get_by_id(session_user_id)
            if user is None:
                return Return.err(Error("USER_NOT_FOUND", "User not found"))

            if user.provider != AuthProvider.credentials:
                return Return.err(
                    Error(
                        "EMAIL_CHANGE_NOT_ALLOWED",
                        "You cannot change your email if you signed in with Google.",
                    )
                )

            # Idempotent no-op
            if user.email.lower() == new_email:
                return Return.ok(
                    EmailChangeRequestResponse(
                        status="unchanged",
                        new_email=new_email,
                        message="This is already your current email address",
                    )
                )

            policy, key, is_new_user = self.policy.bucket_for(user, ChangeType.EMAIL_CHANGE)
            decision = await self.rate_limiter.limit(policy, key)
            if not decision.allowed:
                await self.audit_sink.log(
                    user.id,
                    "email_change_rate_limited",
                    {"is_new_user": is_new_user, **decision.to_dict()},
                    context.ip_address,
                    context.user_agent,
                    success=False,
                )
                return Return.err(rate_limited_error(decision, policy, "change your email"))

            claimant = await self.uow.users.get_by_email(new_email)
            if claimant is not None and claimant.id != user.id:
                return Return.err(
                    Error("CONFLICT", "This email address is already in use")
                )

            old_email = user.email
            issued = await self.uow.verification_tokens.create(
                subject_user_id=user.id,
                change_type=ChangeType.EMAIL_CHANGE,
                payload=dump_payload(EmailChangePayload(new_email=new_email, old_email=old_email)),
                destination_contact=new_email,
                ttl_minutes=self.policy.email_token_ttl_minutes,
            )

            await self.uow.commit()

        sent = await self.email_sender.send(
            new_email,
            self.composer.email_change_verification(new_email, issued.token),
        )
        if not sent.success:
            logger.error(f"Email change verification to {mask_email(new_email)} failed: {sent.error}")
            await self._discard_token(issued.token)
            return Return.err(
                Error(
                    "DISPATCH_FAILURE",
                    "Failed to send verification email. Please try again.",
                )
            )

        await self._send_security_alert(old_email, context)

        await self.audit_sink.log(
            session_user_id,
            "email_change_requested",
            {"new_email": mask_email(new_email), "is_new_user": is_new_user},
            context.ip_address,
            context.user_agent,
        )
        logger.info(
            f"Email change verification sent: ***{short_id(session_user_id)} -> {mask_email(new_email)}"
        )

        return Return.ok(
            EmailChangeRequestResponse(
                status="pending",
                new_email=new_email,
                message="Verification email sent successfully",
                expires_in_minutes=self.policy.email_token_ttl_minutes,
                rate_limit=RateLimitInfo.from_decision(decision),
            )
        )

    async def _send_security_alert(self, old_email: str, context: RequestContext) -> None:
        message = self.composer.security_alert(
            "Email change requested", context.ip_address or "unknown"
        )
        try:
            alert = await self.email_sender.send(old_email, message)
        except Exception:
            logger.exception(f"Security alert to {mask_email(old_email)} raised")
            return
        if not alert.success:
            logger.warning(f"Security alert to {mask_email(old_email)} failed: {alert.error}")

    async def _discard_token(self, token: str) -> None:
        try:
            async with self.uow:
                await self.uow.verification_tokens.delete(token)
                await self.uow.commit()
        except Exception:
            logger.exception("Failed to clean up verification token after dispatch failure")
