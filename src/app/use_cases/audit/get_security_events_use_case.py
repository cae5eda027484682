"""
Get Security Events Use Case

Lists the current user's own security audit trail.
"""

from typing import Any, Dict
from uuid import UUID

from src.libs.result import Result, Return
from src.app.services.unit_of_work import UnitOfWork


class GetSecurityEventsUseCase:
    """
    Use case for retrieving a user's security events.

    Business Rules:
    - Users only ever see their own events
    - Results ordered by newest first, capped at ``limit`` (max 100)
    - IP address is returned, user agent is not
    """

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    async def execute(self, user_id: UUID, limit: int = 50) -> Result[Dict[str, Any]]:
        limit = max(1, min(limit, 100))

        async with self.uow:
            events = await self.uow.audit_events.get_by_user_id(user_id, limit=limit)

        return Return.ok(
            {
                "events": [
                    {
                        "id": str(event.id),
                        "action": event.action,
                        "success": event.success,
                        "ip_address": (event.event_metadata or {}).get("ip_address"),
                        "created_at": event.created_at.isoformat(),
                    }
                    for event in events
                ]
            }
        )
