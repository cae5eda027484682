"""
Login Use Case

Handles user authentication and returns a JWT access token.
"""

import bcrypt

from src.libs.result import Error, Result, Return
from src.api.utils.jwt import generate_jwt
from src.app.services.unit_of_work import UnitOfWork
from src.app.validation import sanitize_email
from src.domain.base import utcnow
from src.domain.entities import UserStatus
from .dtos import LoginResponse
from .signup_dto import UserInfo

# Compared against when the email is unknown so both paths cost one bcrypt check
_DUMMY_HASH = bcrypt.hashpw(b"dummy_password", bcrypt.gensalt(12))


class LoginUseCase:
    """
    Use case for user login and JWT issuance.

    Business Rules:
    - Constant-time password comparison to prevent timing attacks
    - User must have status=active
    - Updates user.last_login_at
    """

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    async def execute(self, email: str, password: str) -> Result[LoginResponse]:
        """
        Execute login use case.

        Args:
            email: User email
            password: Plain text password

        Returns:
            Result with LoginResponse containing the access token, or Error
        """
        async with self.uow:
            user = await self.uow.users.get_by_email(sanitize_email(email))

            if user is None:
                bcrypt.checkpw(password.encode(), _DUMMY_HASH)
                return Return.err(
                    Error("INVALID_CREDENTIALS", "Invalid email or password")
                )

            password_valid = bcrypt.checkpw(
                password.encode(), user.password_hash.encode()
            )
            if not password_valid:
                return Return.err(
                    Error("INVALID_CREDENTIALS", "Invalid email or password")
                )

            if user.status == UserStatus.disabled:
                return Return.err(Error("USER_DISABLED", "User account is disabled"))

            user.last_login_at = utcnow()
            user = await self.uow.users.update(user)

            await self.uow.commit()

            return Return.ok(
                LoginResponse(
                    access_token=generate_jwt(user.id),
                    user=UserInfo(
                        id=str(user.id),
                        email=user.email,
                        username=user.username,
                        email_verified=user.email_verified,
                    ),
                )
            )
