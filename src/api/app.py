from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import SQLModel
from src.app.services.rate_limiter import RateLimiterUnavailable
from .error import ClientError, RateLimitedError, ServerError
import logging

logger = logging.getLogger(__name__)


def _client_error_body(exc: ClientError) -> dict:
    return {"code": exc.base_error.code, "message": exc.base_error.message, **exc.base_error.details}


async def handle_client_error(request: Request, exc: ClientError):
    error_dict = _client_error_body(exc)
    logger.warning(f"Client error: {error_dict}")
    return JSONResponse(status_code=exc.status_code, content={"error": error_dict})


async def handle_rate_limited_error(request: Request, exc: RateLimitedError):
    error_dict = _client_error_body(exc)
    logger.warning(f"Rate limited: {request.url.path}")

    details = exc.base_error.details
    headers = {}
    if exc.retry_after is not None:
        headers["Retry-After"] = str(exc.retry_after)
    if "limit" in details:
        headers["X-RateLimit-Limit"] = str(details["limit"])
    if "remaining" in details:
        headers["X-RateLimit-Remaining"] = str(details["remaining"])
    if "reset_at" in details:
        headers["X-RateLimit-Reset"] = str(details["reset_at"])

    return JSONResponse(
        status_code=exc.status_code, content={"error": error_dict}, headers=headers
    )


async def handle_server_error(request: Request, exc: ServerError):
    error_dict = {"code": exc.base_error.code, "message": "Internal server error"}
    logger.error(f"Server error: {exc.base_error.code} {exc.base_error.message}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"error": error_dict}
    )


async def handle_infrastructure_error(request: Request, exc: Exception):
    logger.error(f"Infrastructure failure on {request.url.path}: {exc!r}")
    code = "RATE_LIMITER_UNAVAILABLE" if isinstance(exc, RateLimiterUnavailable) else "INTERNAL_ERROR"
    error_dict = {"code": code, "message": "Internal server error"}
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"error": error_dict}
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    from src.depends import engine

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield
    await engine.dispose()


def create_app(ApplicationConfig) -> FastAPI:
    logging.basicConfig(
        level=getattr(logging, str(ApplicationConfig.LOG_LEVEL).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(title="SkillSwap Identity API", version="0.1.0", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=ApplicationConfig.CORS_ORIGINS,
        allow_credentials=ApplicationConfig.CORS_ALLOW_CREDENTIALS,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    from src.api.routes import admin, auth, health_check, profile, user, verify

    app.include_router(health_check.router, tags=["Health"])
    app.include_router(auth.router, tags=["Authentication"])
    app.include_router(user.router, tags=["User"])
    app.include_router(profile.router, tags=["Profile"])
    app.include_router(verify.router, tags=["Verification"])
    app.include_router(admin.router, tags=["Admin"])

    app.add_exception_handler(RateLimitedError, handle_rate_limited_error)
    app.add_exception_handler(ClientError, handle_client_error)
    app.add_exception_handler(ServerError, handle_server_error)
    app.add_exception_handler(RateLimiterUnavailable, handle_infrastructure_error)
    app.add_exception_handler(SQLAlchemyError, handle_infrastructure_error)

    return app
