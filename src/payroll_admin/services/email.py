"""Outbound email for account verification and password resets."""

from __future__ import annotations

import asyncio
import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from payroll_admin.config import Settings

logger = logging.getLogger(__name__)


@runtime_checkable
class EmailSender(Protocol):
    """Anything that can deliver a plain-text email."""

    async def send(self, to: str, subject: str, text: str) -> None:
        ...


class SmtpEmailSender:
    """Email backend using SMTP.

    smtplib blocks, so each send runs in a worker thread.
    """

    def __init__(
        self,
        host: str,
        port: int,
        *,
        username: str = "",
        password: str = "",
        use_tls: bool = True,
        from_email: str,
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.from_email = from_email

    @classmethod
    def from_settings(cls, settings: Settings) -> SmtpEmailSender:
        return cls(
            settings.smtp_host,
            settings.smtp_port,
            username=settings.smtp_username,
            password=settings.smtp_password,
            use_tls=settings.smtp_use_tls,
            from_email=settings.email_from,
        )

    def _build_message(self, to: str, subject: str, text: str) -> MIMEMultipart:
        message = MIMEMultipart("alternative")
        message["Subject"] = subject
        message["From"] = self.from_email
        message["To"] = to
        message.attach(MIMEText(text, "plain"))
        return message

    def _send_sync(self, message: MIMEMultipart) -> None:
        with smtplib.SMTP(self.host, self.port) as server:
            if self.use_tls:
                server.starttls()
            if self.username and self.password:
                server.login(self.username, self.password)
            server.send_message(message)

    async def send(self, to: str, subject: str, text: str) -> None:
        message = self._build_message(to, subject, text)
        await asyncio.to_thread(self._send_sync, message)
        logger.info("Sent email %r to %s", subject, to)
