"""Outbound email transports: SMTP via aiosmtplib, and a console sink for development."""

import logging
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import make_msgid
from typing import List, Optional, Tuple

import aiosmtplib

from src.app.services.email_sender import EmailMessage, EmailSendResult, IEmailSender
from src.app.validation import mask_email

logger = logging.getLogger(__name__)


class SmtpEmailSender(IEmailSender):
    """Sends multipart (text + HTML) mail over SMTP"""

    def __init__(
        self,
        host: str,
        port: int,
        username: str,
        password: str,
        from_email: str,
        from_name: str,
        use_tls: bool = True,
        use_ssl: Optional[bool] = None,
        timeout: int = 10,
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.from_email = from_email
        self.from_name = from_name
        self.use_tls = use_tls
        # implicit TLS on connect (SMTPS); STARTTLS otherwise
        self.use_ssl = port == 465 if use_ssl is None else use_ssl
        self.timeout = timeout

    async def send(self, to: str, message: EmailMessage) -> EmailSendResult:
        mime = MIMEMultipart("alternative")
        mime["Subject"] = message.subject
        mime["From"] = f"{self.from_name} <{self.from_email}>"
        mime["To"] = to
        mime["Message-ID"] = make_msgid(domain=self.from_email.partition("@")[2] or None)

        mime.attach(MIMEText(message.text, "plain"))
        mime.attach(MIMEText(message.html, "html"))

        try:
            async with aiosmtplib.SMTP(
                hostname=self.host,
                port=self.port,
                timeout=self.timeout,
                use_tls=self.use_ssl,
                start_tls=False,
            ) as smtp:
                if self.use_tls and not self.use_ssl:
                    await smtp.starttls()
                if self.username:
                    await smtp.login(self.username, self.password)
                await smtp.send_message(mime)
        except Exception as e:
            logger.error(f"Failed to send email to {mask_email(to)} via {self.host}: {e}")
            return EmailSendResult(success=False, error=str(e))

        logger.info(f"Email sent to {mask_email(to)}: {message.subject}")
        return EmailSendResult(success=True, message_id=mime["Message-ID"])


class ConsoleEmailSender(IEmailSender):
    """Logs messages instead of sending them; keeps an outbox for inspection"""

    def __init__(self):
        self.outbox: List[Tuple[str, EmailMessage]] = []

    async def send(self, to: str, message: EmailMessage) -> EmailSendResult:
        self.outbox.append((to, message))
        logger.info(f"[console email] to={mask_email(to)} subject={message.subject}\n{message.text}")
        return EmailSendResult(success=True, message_id=f"console-{len(self.outbox)}")
