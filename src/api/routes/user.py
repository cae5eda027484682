from datetime import datetime
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel

from src.api.error import raise_for_error
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.audit import GetSecurityEventsUseCase
from src.app.use_cases.users import LoadProfileUseCase
from src.depends import get_current_user_id, get_unit_of_work

router = APIRouter(tags=["User"])


class MeResponse(BaseModel):
    """GET /me response payload"""
    id: str
    email: str
    username: Optional[str] = None
    name: Optional[str] = None
    email_verified: bool
    provider: str
    created_at: datetime


class SecurityEventResponse(BaseModel):
    id: str
    action: str
    success: bool
    ip_address: Optional[str] = None
    created_at: datetime


class SecurityEventsResponse(BaseModel):
    events: List[SecurityEventResponse]


@router.get("/me", status_code=status.HTTP_200_OK, response_model=MeResponse)
async def get_me(
    user_id: UUID = Depends(get_current_user_id),
    uow: UnitOfWork = Depends(get_unit_of_work),
):
    """
    Load Current User

    Raises:
        - 401 Unauthorized: Invalid or expired JWT
        - 403 Forbidden: User disabled
        - 404 Not Found: User no longer exists
    """
    use_case = LoadProfileUseCase(uow)
    result = await use_case.execute(user_id)

    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.get(
    "/me/security-events",
    status_code=status.HTTP_200_OK,
    response_model=SecurityEventsResponse,
)
async def get_security_events(
    limit: int = Query(50, ge=1, le=100),
    user_id: UUID = Depends(get_current_user_id),
    uow: UnitOfWork = Depends(get_unit_of_work),
):
    """Recent security events for the current user, newest first"""
    use_case = GetSecurityEventsUseCase(uow)
    result = await use_case.execute(user_id, limit)

    if result.is_err():
        raise_for_error(result.error)

    return result.value
