from abc import ABC, abstractmethod
from typing import Any, Dict, Optional
from uuid import UUID


class ISecurityAuditSink(ABC):
    """Fire-and-forget security audit log"""

    @abstractmethod
    async def log(
        self,
        user_id: Optional[UUID],
        action: str,
        details: Optional[Dict[str, Any]] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
        success: bool = True,
    ) -> None:
        """
        Record a security action.

        Must never raise: failures are logged and swallowed so the caller's
        primary operation is unaffected.
        """
        pass
