"""
Profile identity routes.

Username claim/change and email change requests for the signed-in user.
The acting user always comes from the session token, never the body.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel, Field

from src.api.error import raise_for_error
from src.api.utils.rate_limit import general_rate_limit
from src.app.services.audit_sink import ISecurityAuditSink
from src.app.services.email_sender import IEmailComposer, IEmailSender
from src.app.services.identity_policy import IdentityChangePolicy
from src.app.services.rate_limiter import IRateLimiter
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.identity import (
    ChangeQuotaResponse,
    ClaimUsernameUseCase,
    EmailChangeRequestResponse,
    GetChangeQuotaUseCase,
    RequestContext,
    RequestEmailChangeUseCase,
    RequestUsernameChangeUseCase,
    UsernameChangeRequestResponse,
    UsernameClaimResponse,
)
from src.depends import (
    get_audit_sink,
    get_current_user_id,
    get_email_composer,
    get_email_sender,
    get_identity_policy,
    get_rate_limiter,
    get_request_context,
    get_unit_of_work,
)
from src.domain.entities import ChangeType

router = APIRouter(
    prefix="/profile", tags=["Profile"], dependencies=[Depends(general_rate_limit)]
)


class UsernameRequest(BaseModel):
    username: str = Field(..., max_length=100, description="Desired username")


class EmailChangeRequest(BaseModel):
    new_email: str = Field(..., max_length=320, description="Desired email address")


@router.post(
    "/username/claim",
    status_code=status.HTTP_200_OK,
    response_model=UsernameClaimResponse,
)
async def claim_username(
    request: UsernameRequest,
    user_id: UUID = Depends(get_current_user_id),
    context: RequestContext = Depends(get_request_context),
    uow: UnitOfWork = Depends(get_unit_of_work),
    audit_sink: ISecurityAuditSink = Depends(get_audit_sink),
):
    """
    Claim a first username (accounts without one only)

    Raises:
        - 400 Bad Request: Invalid username
        - 409 Conflict: Username taken, or a username is already set
    """
    use_case = ClaimUsernameUseCase(uow, audit_sink)
    result = await use_case.execute(user_id, request.username, context)

    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.post(
    "/username/change",
    status_code=status.HTTP_202_ACCEPTED,
    response_model=UsernameChangeRequestResponse,
)
async def request_username_change(
    request: UsernameRequest,
    response: Response,
    user_id: UUID = Depends(get_current_user_id),
    context: RequestContext = Depends(get_request_context),
    uow: UnitOfWork = Depends(get_unit_of_work),
    rate_limiter: IRateLimiter = Depends(get_rate_limiter),
    email_sender: IEmailSender = Depends(get_email_sender),
    composer: IEmailComposer = Depends(get_email_composer),
    audit_sink: ISecurityAuditSink = Depends(get_audit_sink),
    policy: IdentityChangePolicy = Depends(get_identity_policy),
):
    """
    Request Username Change

    Sends a verification link to the account's current email. The change is
    applied only when the link is redeemed.

    Raises:
        - 400 Bad Request: Invalid username
        - 409 Conflict: Username taken
        - 429 Too Many Requests: Change quota exhausted
        - 502 Bad Gateway: Verification email could not be sent
    """
    use_case = RequestUsernameChangeUseCase(
        uow, rate_limiter, email_sender, composer, audit_sink, policy
    )
    result = await use_case.execute(user_id, request.username, context)

    if result.is_err():
        raise_for_error(result.error)

    if result.value.status == "unchanged":
        response.status_code = status.HTTP_200_OK
    return result.value


@router.get(
    "/username/rate-limit",
    status_code=status.HTTP_200_OK,
    response_model=ChangeQuotaResponse,
)
async def get_username_change_quota(
    user_id: UUID = Depends(get_current_user_id),
    uow: UnitOfWork = Depends(get_unit_of_work),
    rate_limiter: IRateLimiter = Depends(get_rate_limiter),
    policy: IdentityChangePolicy = Depends(get_identity_policy),
):
    """Remaining username changes in the current window"""
    use_case = GetChangeQuotaUseCase(uow, rate_limiter, policy)
    result = await use_case.execute(user_id, ChangeType.USERNAME_CHANGE)

    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.post(
    "/email/change",
    status_code=status.HTTP_202_ACCEPTED,
    response_model=EmailChangeRequestResponse,
)
async def request_email_change(
    request: EmailChangeRequest,
    response: Response,
    user_id: UUID = Depends(get_current_user_id),
    context: RequestContext = Depends(get_request_context),
    uow: UnitOfWork = Depends(get_unit_of_work),
    rate_limiter: IRateLimiter = Depends(get_rate_limiter),
    email_sender: IEmailSender = Depends(get_email_sender),
    composer: IEmailComposer = Depends(get_email_composer),
    audit_sink: ISecurityAuditSink = Depends(get_audit_sink),
    policy: IdentityChangePolicy = Depends(get_identity_policy),
):
    """
    Request Email Change

    Sends a verification link to the new address and a security alert to the
    current one.

    Raises:
        - 400 Bad Request: Invalid email
        - 403 Forbidden: Account signs in through an external provider
        - 409 Conflict: Email belongs to another account
        - 429 Too Many Requests: Change quota exhausted
        - 502 Bad Gateway: Verification email could not be sent
    """
    use_case = RequestEmailChangeUseCase(
        uow, rate_limiter, email_sender, composer, audit_sink, policy
    )
    result = await use_case.execute(user_id, request.new_email, context)

    if result.is_err():
        raise_for_error(result.error)

    if result.value.status == "unchanged":
        response.status_code = status.HTTP_200_OK
    return result.value


@router.get(
    "/email/rate-limit",
    status_code=status.HTTP_200_OK,
    response_model=ChangeQuotaResponse,
)
async def get_email_change_quota(
    user_id: UUID = Depends(get_current_user_id),
    uow: UnitOfWork = Depends(get_unit_of_work),
    rate_limiter: IRateLimiter = Depends(get_rate_limiter),
    policy: IdentityChangePolicy = Depends(get_identity_policy),
):
    """Remaining email changes in the current window"""
    use_case = GetChangeQuotaUseCase(uow, rate_limiter, policy)
    result = await use_case.execute(user_id, ChangeType.EMAIL_CHANGE)

    if result.is_err():
        raise_for_error(result.error)

    return result.value
