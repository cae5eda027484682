from datetime import timedelta
from uuid import UUID

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession
from config import ApplicationConfig
from src.adapter.services.audit_sink import DatabaseAuditSink
from src.adapter.services.email_sender import ConsoleEmailSender, SmtpEmailSender
from src.adapter.services.email_templates import JinjaEmailComposer
from src.adapter.services.rate_limiter import LimitsRateLimiter
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.api.utils.client_ip import get_client_ip
from src.api.utils.jwt import verify_jwt
from src.app.services.audit_sink import ISecurityAuditSink
from src.app.services.email_sender import IEmailComposer, IEmailSender
from src.app.services.identity_policy import IdentityChangePolicy
from src.app.services.rate_limiter import IRateLimiter, RateLimitPolicy
from src.app.use_cases.identity import RequestContext

engine = create_async_engine(ApplicationConfig.DB_URI, echo=False, future=True)

AsyncSessionLocal = sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
)

security = HTTPBearer()

_rate_limiter = None
_email_sender = None


async def get_session() -> AsyncSession:
    async with AsyncSessionLocal() as session:
        yield session


async def get_unit_of_work():
    async with AsyncSessionLocal() as session:
        yield SqlAlchemyUnitOfWork(session)


def get_rate_limiter() -> IRateLimiter:
    # One limiter per process; counters live in the configured storage
    global _rate_limiter
    if _rate_limiter is None:
        _rate_limiter = LimitsRateLimiter(ApplicationConfig.RATE_LIMIT_STORAGE_URI)
    return _rate_limiter


def get_email_sender() -> IEmailSender:
    global _email_sender
    if _email_sender is None:
        if ApplicationConfig.EMAIL_BACKEND == "smtp":
            _email_sender = SmtpEmailSender(
                host=ApplicationConfig.SMTP_HOST,
                port=ApplicationConfig.SMTP_PORT,
                username=ApplicationConfig.SMTP_USERNAME,
                password=ApplicationConfig.SMTP_PASSWORD,
                from_email=ApplicationConfig.EMAIL_FROM,
                from_name=ApplicationConfig.EMAIL_FROM_NAME,
                use_tls=ApplicationConfig.SMTP_USE_TLS,
                use_ssl=ApplicationConfig.SMTP_USE_SSL,
                timeout=ApplicationConfig.SMTP_TIMEOUT,
            )
        else:
            _email_sender = ConsoleEmailSender()
    return _email_sender


def get_email_composer() -> IEmailComposer:
    return JinjaEmailComposer(
        base_url=ApplicationConfig.APP_BASE_URL,
        site_name=ApplicationConfig.EMAIL_FROM_NAME,
        username_ttl_minutes=ApplicationConfig.USERNAME_TOKEN_TTL_MINUTES,
        email_ttl_minutes=ApplicationConfig.EMAIL_TOKEN_TTL_MINUTES,
    )


def get_audit_sink() -> ISecurityAuditSink:
    return DatabaseAuditSink(AsyncSessionLocal)


def get_identity_policy() -> IdentityChangePolicy:
    window = timedelta(days=ApplicationConfig.IDENTITY_CHANGE_WINDOW_DAYS)
    return IdentityChangePolicy(
        username_change=RateLimitPolicy(
            "username-change", ApplicationConfig.USERNAME_CHANGE_LIMIT, window
        ),
        username_change_new_user=RateLimitPolicy(
            "username-change", ApplicationConfig.USERNAME_CHANGE_NEW_USER_LIMIT, window
        ),
        email_change=RateLimitPolicy(
            "email-change", ApplicationConfig.EMAIL_CHANGE_LIMIT, window
        ),
        email_change_new_user=RateLimitPolicy(
            "email-change", ApplicationConfig.EMAIL_CHANGE_NEW_USER_LIMIT, window
        ),
        username_token_ttl_minutes=ApplicationConfig.USERNAME_TOKEN_TTL_MINUTES,
        email_token_ttl_minutes=ApplicationConfig.EMAIL_TOKEN_TTL_MINUTES,
        new_user_window_days=ApplicationConfig.NEW_USER_WINDOW_DAYS,
    )


def get_signup_policy() -> RateLimitPolicy:
    return RateLimitPolicy(
        "signup",
        ApplicationConfig.SIGNUP_LIMIT,
        timedelta(minutes=ApplicationConfig.SIGNUP_WINDOW_MINUTES),
    )


def get_general_api_policy() -> RateLimitPolicy:
    return RateLimitPolicy(
        "api",
        ApplicationConfig.GENERAL_API_LIMIT,
        timedelta(seconds=ApplicationConfig.GENERAL_API_WINDOW_SECONDS),
    )


def get_request_context(request: Request) -> RequestContext:
    return RequestContext(
        ip_address=get_client_ip(request),
        user_agent=request.headers.get("user-agent"),
    )


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> dict:
    """
    Dependency to extract and verify JWT token from Authorization header.

    Args:
        credentials: Bearer token from Authorization header

    Returns:
        Decoded JWT payload containing user_id

    Raises:
        HTTPException: 401 if token is invalid or expired
    """
    token = credentials.credentials
    payload = verify_jwt(token)

    if payload is None or "user_id" not in payload:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )

    return payload


async def get_current_user_id(current_user: dict = Depends(get_current_user)) -> UUID:
    try:
        return UUID(current_user["user_id"])
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )
