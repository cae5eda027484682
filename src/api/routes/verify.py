from uuid import UUID

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from src.api.error import raise_for_error
from src.api.utils.rate_limit import general_rate_limit
from src.app.services.audit_sink import ISecurityAuditSink
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.identity import (
    ConfirmEmailChangeUseCase,
    ConfirmUsernameChangeUseCase,
    EmailChangeConfirmResponse,
    RequestContext,
    UsernameChangeConfirmResponse,
)
from src.depends import get_audit_sink, get_current_user_id, get_request_context, get_unit_of_work

router = APIRouter(
    prefix="/verify", tags=["Verification"], dependencies=[Depends(general_rate_limit)]
)


class VerifyTokenRequest(BaseModel):
    token: str = Field(..., max_length=256, description="Token from the verification link")


@router.post(
    "/username",
    status_code=status.HTTP_200_OK,
    response_model=UsernameChangeConfirmResponse,
)
async def verify_username_change(
    request: VerifyTokenRequest,
    user_id: UUID = Depends(get_current_user_id),
    context: RequestContext = Depends(get_request_context),
    uow: UnitOfWork = Depends(get_unit_of_work),
    audit_sink: ISecurityAuditSink = Depends(get_audit_sink),
):
    """
    Confirm Username Change

    The link must be opened while signed in as the account that requested it.

    Raises:
        - 400 Bad Request: Invalid or already-used token
        - 403 Forbidden: Token belongs to another account
        - 409 Conflict: Username was taken before the link was used
        - 410 Gone: Token expired
    """
    use_case = ConfirmUsernameChangeUseCase(uow, audit_sink)
    result = await use_case.execute(user_id, request.token, context)

    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.post(
    "/email",
    status_code=status.HTTP_200_OK,
    response_model=EmailChangeConfirmResponse,
)
async def verify_email_change(
    request: VerifyTokenRequest,
    user_id: UUID = Depends(get_current_user_id),
    context: RequestContext = Depends(get_request_context),
    uow: UnitOfWork = Depends(get_unit_of_work),
    audit_sink: ISecurityAuditSink = Depends(get_audit_sink),
):
    """
    Confirm Email Change

    Raises:
        - 400 Bad Request: Invalid or already-used token
        - 403 Forbidden: Token belongs to another account
        - 409 Conflict: Email was taken before the link was used
        - 410 Gone: Token expired
    """
    use_case = ConfirmEmailChangeUseCase(uow, audit_sink)
    result = await use_case.execute(user_id, request.token, context)

    if result.is_err():
        raise_for_error(result.error)

    return result.value
