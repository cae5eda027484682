"""
Get Change Quota Use Case

Read-only view of a user's remaining username/email changes.
"""

from uuid import UUID

from src.libs.result import Error, Result, Return
from src.app.services.identity_policy import IdentityChangePolicy
from src.app.services.rate_limiter import IRateLimiter
from src.app.services.unit_of_work import UnitOfWork
from src.domain.entities import ChangeType
from .dtos import ChangeQuotaResponse


class GetChangeQuotaUseCase:
    """Peeks at the user's current bucket without consuming quota"""

    def __init__(
        self,
        uow: UnitOfWork,
        rate_limiter: IRateLimiter,
        policy: IdentityChangePolicy = None,
    ):
        self.uow = uow
        self.rate_limiter = rate_limiter
        self.policy = policy or IdentityChangePolicy()

    async def execute(
        self, session_user_id: UUID, change_type: ChangeType
    ) -> Result[ChangeQuotaResponse]:
        async with self.uow:
            user = await self.uow.users.get_by_id(session_user_id)
            if user is None:
                return Return.err(Error("USER_NOT_FOUND", "User not found"))

        policy, key, is_new_user = self.policy.bucket_for(user, change_type)
        decision = await self.rate_limiter.peek(policy, key)

        return Return.ok(
            ChangeQuotaResponse(
                change_type=change_type.value,
                remaining=decision.remaining,
                total=decision.total,
                reset_at=decision.reset_at,
                is_new_user=is_new_user,
            )
        )
