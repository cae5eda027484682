import logging
from typing import Any, Callable, Dict, Optional
from uuid import UUID

from sqlmodel.ext.asyncio.session import AsyncSession

from src.app.services.audit_sink import ISecurityAuditSink
from src.app.validation import short_id
from src.domain.entities import AuditEvent

logger = logging.getLogger(__name__)
security_logger = logging.getLogger("security")


class DatabaseAuditSink(ISecurityAuditSink):
    """
    Writes audit events through a dedicated session.

    The event is committed independently of the caller's unit of work, so a
    request that rolls back still leaves its audit trail behind.
    """

    def __init__(self, session_factory: Callable[[], AsyncSession]):
        self.session_factory = session_factory

    async def log(
        self,
        user_id: Optional[UUID],
        action: str,
        details: Optional[Dict[str, Any]] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
        success: bool = True,
    ) -> None:
        level = logging.INFO if success else logging.WARNING
        security_logger.log(
            level,
            f"{action} user={short_id(user_id) if user_id else '-'} ip={ip_address or '-'} success={success}",
        )

        metadata = dict(details or {})
        metadata["ip_address"] = ip_address
        metadata["user_agent"] = user_agent

        try:
            async with self.session_factory() as session:
                session.add(
                    AuditEvent(
                        user_id=user_id,
                        action=action,
                        success=success,
                        event_metadata=metadata,
                    )
                )
                await session.commit()
        except Exception:
            logger.exception(f"Failed to write audit event {action}")
