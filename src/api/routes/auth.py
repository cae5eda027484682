from fastapi import APIRouter, Depends, Request, status
from pydantic import BaseModel, Field

from src.api.error import raise_for_error
from src.api.utils.client_ip import get_client_ip
from src.app.services.audit_sink import ISecurityAuditSink
from src.app.services.rate_limiter import IRateLimiter, RateLimitPolicy
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.auth import (
    LoginResponse,
    LoginUseCase,
    SignupCommand,
    SignupResponse,
    SignupUseCase,
)
from src.depends import get_audit_sink, get_rate_limiter, get_signup_policy, get_unit_of_work

router = APIRouter(prefix="/auth", tags=["Authentication"])


class SignupRequest(BaseModel):
    """
    Signup HTTP request payload

    Email format is checked by the use case after sanitization so that
    malformed input surfaces as INVALID_INPUT.
    """

    email: str = Field(..., max_length=320, description="User email address")
    password: str = Field(..., min_length=8, max_length=128, description="User password (min 8 chars)")
    name: str | None = Field(None, max_length=100, description="Display name")


@router.post(
    "/signup", status_code=status.HTTP_201_CREATED, response_model=SignupResponse
)
async def signup(
    request: SignupRequest,
    http_request: Request,
    uow: UnitOfWork = Depends(get_unit_of_work),
    rate_limiter: IRateLimiter = Depends(get_rate_limiter),
    audit_sink: ISecurityAuditSink = Depends(get_audit_sink),
    policy: RateLimitPolicy = Depends(get_signup_policy),
):
    """
    User Signup

    Creates a credentials account (no username yet) and returns an access token.

    Raises:
        - 400 Bad Request: Invalid email
        - 409 Conflict: Email already exists
        - 429 Too Many Requests: Signup limit per IP exceeded
        - 500 Internal Server Error: Server error
    """
    command = SignupCommand(email=request.email, password=request.password, name=request.name)

    use_case = SignupUseCase(uow, rate_limiter, audit_sink, policy)
    result = await use_case.execute(command, get_client_ip(http_request))

    if result.is_err():
        raise_for_error(result.error)

    return result.value


class LoginRequest(BaseModel):
    """Login HTTP request payload"""

    email: str = Field(..., max_length=320, description="User email address")
    password: str = Field(..., description="User password")


@router.post("/login", status_code=status.HTTP_200_OK, response_model=LoginResponse)
async def login(request: LoginRequest, uow: UnitOfWork = Depends(get_unit_of_work)):
    """
    User Login

    Raises:
        - 401 Unauthorized: Invalid credentials
        - 403 Forbidden: User disabled
        - 500 Internal Server Error: Server error
    """
    use_case = LoginUseCase(uow)
    result = await use_case.execute(request.email, request.password)

    if result.is_err():
        raise_for_error(result.error)

    return result.value
