from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class EmailMessage:
    subject: str
    html: str
    text: str


@dataclass(frozen=True)
class EmailSendResult:
    success: bool
    message_id: Optional[str] = None
    error: Optional[str] = None


class IEmailSender(ABC):
    """Outbound email - application layer"""

    @abstractmethod
    async def send(self, to: str, message: EmailMessage) -> EmailSendResult:
        """
        Send a message and report the outcome.

        Transport failures are returned as ``success=False``, not raised,
        because callers must react to them (token cleanup).
        """
        pass


class IEmailComposer(ABC):
    """Builds the identity-change notifications"""

    @abstractmethod
    def username_change_verification(self, new_username: str, token: str) -> EmailMessage:
        pass

    @abstractmethod
    def email_change_verification(self, new_email: str, token: str) -> EmailMessage:
        pass

    @abstractmethod
    def security_alert(self, action: str, ip_address: str) -> EmailMessage:
        pass
