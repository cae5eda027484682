"""
Request Username Change Use Case

Issues an emailed, single-use verification link for a new username.
"""

import logging
from uuid import UUID

from src.libs.result import Error, Result, Return
from src.app.services.audit_sink import ISecurityAuditSink
from src.app.services.email_sender import IEmailComposer, IEmailSender
from src.app.services.identity_policy import IdentityChangePolicy
from src.app.services.rate_limiter import IRateLimiter
from src.app.services.unit_of_work import UnitOfWork
from src.app.validation import mask_email, sanitize_username, short_id, validate_username
from src.domain.entities import ChangeType, UsernameChangePayload, dump_payload
from .dtos import RateLimitInfo, RequestContext, UsernameChangeRequestResponse
from .errors import rate_limited_error

logger = logging.getLogger(__name__)


class RequestUsernameChangeUseCase:
    """
    Use case for requesting a username change.

    Business Rules:
    - Username is sanitized, then must be 3-20 lowercase letters/digits and not reserved
    - Requesting the current username is a no-op: no quota, no token
    - Quota: 2 per 30 days, or a separate bucket for accounts under 7 days old
    - Uniqueness is re-checked inside the transaction that mints the token
    - A new token supersedes any pending username token for the user
    - Token expires in 15 minutes and is sent to the account's current email
    - If the email cannot be sent the token is deleted and DISPATCH_FAILURE returned
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
        desired_username: str,
        context: RequestContext = None,
    ) -> Result[UsernameChangeRequestResponse]:
        """
        Execute request username change use case.

        Args:
            session_user_id: Authenticated user (from the session, never the body)
            desired_username: Raw username input
            context: Client IP / user agent for auditing

        Returns:
            Result with pending/unchanged status, or Error

        Errors:
            - INVALID_INPUT: Username fails validation (no quota consumed)
            - USER_NOT_FOUND: Session user no longer exists
            - RATE_LIMITED: Quota exhausted (details carry limit/remaining/reset_at)
            - CONFLICT: Username belongs to another account
            - DISPATCH_FAILURE: Verification email could not be sent
        """
        context = context or RequestContext()

        desired = sanitize_username(desired_username)
        validation = validate_username(desired)
        if validation.is_err():
            return Return.err(validation.error)

        async with self.uow:
            user = await self.uow.users.get_by_id(session_user_id)
            if user is None:
                return Return.err(Error("USER_NOT_FOUND", "User not found"))

            # Idempotent no-op
            if user.username == desired:
                return Return.ok(
                    UsernameChangeRequestResponse(
                        status="unchanged",
                        username=desired,
                        message="This is already your username",
                    )
                )

            policy, key, is_new_user = self.policy.bucket_for(user, ChangeType.USERNAME_CHANGE)
            decision = await self.rate_limiter.limit(policy, key)
            if not decision.allowed:
                await self.audit_sink.log(
                    user.id,
                    "username_change_rate_limited",
                    {"is_new_user": is_new_user, **decision.to_dict()},
                    context.ip_address,
                    context.user_agent,
                    success=False,
                )
                return Return.err(
                    rate_limited_error(decision, policy, "change your username")
                )

            claimant = await self.uow.users.get_by_username(desired)
            if claimant is not None and claimant.id != user.id:
                return Return.err(Error("CONFLICT", "Username is already taken"))

            issued = await self.uow.verification_tokens.create(
                subject_user_id=user.id,
                change_type=ChangeType.USERNAME_CHANGE,
                payload=dump_payload(UsernameChangePayload(new_username=desired)),
                destination_contact=user.email,
                ttl_minutes=self.policy.username_token_ttl_minutes,
            )

            await self.uow.commit()
            destination = user.email

        # Awaited so a failed send can take the token back
        sent = await self.email_sender.send(
            destination,
            self.composer.username_change_verification(desired, issued.token),
        )
        if not sent.success:
            logger.error(
                f"Username verification email to {mask_email(destination)} failed: {sent.error}"
            )
            await self._discard_token(issued.token)
            return Return.err(
                Error(
                    "DISPATCH_FAILURE",
                    "Failed to send verification email. Please try again.",
                )
            )

        await self.audit_sink.log(
            session_user_id,
            "username_change_requested",
            {"new_username": desired, "is_new_user": is_new_user},
            context.ip_address,
            context.user_agent,
        )
        logger.info(f"Username change verification sent: ***{short_id(session_user_id)} -> {desired}")

        return Return.ok(
            UsernameChangeRequestResponse(
                status="pending",
                username=desired,
                message="Verification email sent. Check your inbox to confirm the change.",
                expires_in_minutes=self.policy.username_token_ttl_minutes,
                rate_limit=RateLimitInfo.from_decision(decision),
            )
        )

    async def _discard_token(self, token: str) -> None:
        try:
            async with self.uow:
                await self.uow.verification_tokens.delete(token)
                await self.uow.commit()
        except Exception:
            logger.exception("Failed to clean up verification token after dispatch failure")
