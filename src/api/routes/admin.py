"""
Admin API Routes - Maintenance Endpoints

Authentication is via Admin API Key, not user JWTs.
"""

from fastapi import APIRouter, Depends, status

from src.api.error import raise_for_error
from src.api.utils.admin_auth import verify_admin_api_key
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.admin import PurgeExpiredTokensResponse, PurgeExpiredTokensUseCase
from src.depends import get_unit_of_work

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.delete(
    "/verification-tokens/expired",
    status_code=status.HTTP_200_OK,
    response_model=PurgeExpiredTokensResponse,
    dependencies=[Depends(verify_admin_api_key)],
)
async def purge_expired_verification_tokens(uow: UnitOfWork = Depends(get_unit_of_work)):
    """
    Purge Expired Verification Tokens

    Housekeeping for a scheduler; expired tokens are already rejected on
    redemption, so running this is optional.

    Requires: X-Admin-API-Key header
    """
    use_case = PurgeExpiredTokensUseCase(uow)
    result = await use_case.execute()

    if result.is_err():
        raise_for_error(result.error)

    return result.value
