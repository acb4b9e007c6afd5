"""
Outbound notifications (password reset emails).
"""
import logging
import smtplib
from email.message import EmailMessage
from typing import Protocol, runtime_checkable

from anyio import to_thread

from nakama_auth.config import Settings, get_settings
from nakama_auth.core.errors import NotificationError

logger = logging.getLogger(__name__)


@runtime_checkable
class NotificationDispatcher(Protocol):
    """Deliver a plain-text message. Raises NotificationError on failure."""

    async def send(self, to: str, subject: str, body: str) -> None: ...


class SmtpNotificationDispatcher:
    """Sends mail over SMTP in a worker thread."""

    def __init__(self, settings: Settings):
        self.host = settings.smtp_host
        self.port = settings.smtp_port
        self.username = settings.smtp_username
        self.password = settings.smtp_password
        self.use_tls = settings.smtp_use_tls
        self.sender = settings.mail_from
        self.timeout = settings.smtp_timeout_seconds

    def _build_message(self, to: str, subject: str, body: str) -> EmailMessage:
        msg = EmailMessage()
        msg["From"] = self.sender
        msg["To"] = to
        msg["Subject"] = subject
        msg.set_content(body)
        return msg

    def _deliver(self, msg: EmailMessage) -> None:
        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
            if self.use_tls:
                server.starttls()
            if self.username and self.password:
                server.login(self.username, self.password)
            server.send_message(msg)

    async def send(self, to: str, subject: str, body: str) -> None:
        msg = self._build_message(to, subject, body)
        try:
            await to_thread.run_sync(self._deliver, msg)
        except (smtplib.SMTPException, OSError) as e:
            raise NotificationError(f"mail delivery failed: {e}") from e
        logger.info(f"Sent '{subject}' notification")


def get_notification_dispatcher() -> NotificationDispatcher:
    """Dependency returning the SMTP dispatcher."""
    return SmtpNotificationDispatcher(get_settings())
