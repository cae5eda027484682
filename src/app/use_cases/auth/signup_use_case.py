import logging
from datetime import timedelta

import bcrypt
from sqlalchemy.exc import IntegrityError

from src.libs.result import Error, Result, Return
from src.api.utils.jwt import generate_jwt
from src.app.services.audit_sink import ISecurityAuditSink
from src.app.services.rate_limiter import IRateLimiter, RateLimitPolicy
from src.app.services.unit_of_work import UnitOfWork
from src.app.validation import mask_email, sanitize_email, sanitize_string, validate_email
from src.domain.entities import AuthProvider, User
from .signup_dto import SignupCommand, SignupResponse, UserInfo

logger = logging.getLogger(__name__)

SIGNUP_POLICY = RateLimitPolicy("signup", 5, timedelta(minutes=15))


class SignupUseCase:
    """
    Signup Use Case

    Command/Response Pattern:
    - Input: SignupCommand (validated business intent)
    - Output: Result[SignupResponse] (structured response)

    Business Logic:
    1. Rate limit by client IP (5 attempts per 15 minutes)
    2. Sanitize and validate email (stored lowercase)
    3. Check if email already exists
    4. Hash password with bcrypt cost factor 12
    5. Create User with email_verified=False and no username
    6. Commit, audit, return access token
    """

    def __init__(
        self,
        uow: UnitOfWork,
        rate_limiter: IRateLimiter,
        audit_sink: ISecurityAuditSink,
        policy: RateLimitPolicy = SIGNUP_POLICY,
    ):
        self.uow = uow
        self.rate_limiter = rate_limiter
        self.audit_sink = audit_sink
        self.policy = policy

    async def execute(self, command: SignupCommand, client_ip: str) -> Result[SignupResponse]:
        """
        Execute signup use case

        Args:
            command: SignupCommand with email, password, optional name
            client_ip: Requesting IP, the rate-limit key for unauthenticated flows

        Returns:
            Result[SignupResponse] with user data and access token
            or Error(RATE_LIMITED | INVALID_INPUT | EMAIL_ALREADY_EXISTS)
        """
        decision = await self.rate_limiter.limit(self.policy, f"{self.policy.name}:{client_ip}")
        if not decision.allowed:
            await self.audit_sink.log(
                None,
                "signup_rate_limited",
                decision.to_dict(),
                client_ip,
                success=False,
            )
            return Return.err(
                Error(
                    "RATE_LIMITED",
                    "Too many signup attempts. Please try again later.",
                    details={**decision.to_dict(), "retry_after": decision.retry_after_seconds},
                )
            )

        email = sanitize_email(command.email)
        validation = validate_email(email)
        if validation.is_err():
            return Return.err(validation.error)

        async with self.uow:
            existing_user = await self.uow.users.get_by_email(email)
            if existing_user:
                return Return.err(
                    Error("EMAIL_ALREADY_EXISTS", "Email already registered")
                )

            # Hash password with bcrypt cost factor 12 (security requirement)
            password_hash = bcrypt.hashpw(
                command.password.encode("utf-8"), bcrypt.gensalt(12)
            )

            user = User(
                email=email,
                name=sanitize_string(command.name)[:100] or None,
                password_hash=password_hash.decode("utf-8"),
                provider=AuthProvider.credentials,
                email_verified=False,
            )
            try:
                user = await self.uow.users.create(user)
                await self.uow.commit()
            except IntegrityError:
                # a concurrent signup inserted the same email after our check
                await self.uow.rollback()
                logger.info(f"Signup lost a commit race for {mask_email(email)}")
                return Return.err(
                    Error("EMAIL_ALREADY_EXISTS", "Email already registered")
                )

        await self.audit_sink.log(user.id, "signup", {"email": mask_email(email)}, client_ip)
        logger.info(f"New account created for {mask_email(email)}")

        access_token = generate_jwt(user_id=user.id)

        return Return.ok(
            SignupResponse(
                user=UserInfo(
                    id=str(user.id),
                    email=user.email,
                    username=user.username,
                    email_verified=user.email_verified,
                ),
                access_token=access_token,
            )
        )
