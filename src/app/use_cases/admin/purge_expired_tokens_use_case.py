"""
Use Case: Purge Expired Verification Tokens

Janitor for verification tokens nobody redeemed. Expiry is already enforced
at redemption time, so this only reclaims space.
"""

from pydantic import BaseModel

from src.libs.result import Result, Return
from src.app.services.unit_of_work import UnitOfWork


class PurgeExpiredTokensResponse(BaseModel):
    """Response DTO for PurgeExpiredTokensUseCase"""

    status: str
    tokens_purged: int


class PurgeExpiredTokensUseCase:
    """
    Delete every verification token whose expiry has passed.

    Business Logic:
    1. Bulk delete tokens with expires_at < now
    2. Commit
    3. Return purge statistics
    """

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    async def execute(self) -> Result[PurgeExpiredTokensResponse]:
        async with self.uow:
            purged = await self.uow.verification_tokens.purge_expired()
            await self.uow.commit()

        return Return.ok(PurgeExpiredTokensResponse(status="purged", tokens_purged=purged))
