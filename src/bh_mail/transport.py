"""Outgoing mail transports.

SmtpMailTransport runs the blocking smtplib exchange in a worker thread so the
event loop never waits on the mail server. LoggingMailTransport is used when
SMTP_HOST is unset (local development, tests): the message is only logged.
"""

import asyncio
import logging
import smtplib
from email.message import EmailMessage
from typing import Protocol

from config.settings import settings

logger = logging.getLogger(__name__)


class MailTransportProtocol(Protocol):
    async def send(self, to: str, subject: str, body: str) -> None: ...


class SmtpMailTransport:
    def __init__(
        self,
        host: str,
        port: int,
        username: str | None,
        password: str | None,
        use_tls: bool,
        sender: str,
        timeout: float = 10.0,
    ) -> None:
        self._host = host
        self._port = port
        self._username = username
        self._password = password
        self._use_tls = use_tls
        self._sender = sender
        self._timeout = timeout

    def _build(self, to: str, subject: str, body: str) -> EmailMessage:
        msg = EmailMessage()
        msg["From"] = self._sender
        msg["To"] = to
        msg["Subject"] = subject
        msg.set_content(body)
        return msg

    def _send_blocking(self, msg: EmailMessage) -> None:
        with smtplib.SMTP(self._host, self._port, timeout=self._timeout) as smtp:
            if self._use_tls:
                smtp.starttls()
            if self._username:
                smtp.login(self._username, self._password or "")
            smtp.send_message(msg)

    async def send(self, to: str, subject: str, body: str) -> None:
        await asyncio.to_thread(self._send_blocking, self._build(to, subject, body))
        logger.info("Mail sent: to=%s subject=%r", to, subject)


class LoggingMailTransport:
    async def send(self, to: str, subject: str, body: str) -> None:
        # body carries single-use tokens; keep it out of INFO logs
        logger.info("Mail (not sent, SMTP_HOST unset): to=%s subject=%r", to, subject)
        logger.debug("Unsent mail body for %s:\n%s", to, body)


def build_transport() -> MailTransportProtocol:
    if settings.SMTP_HOST:
        return SmtpMailTransport(
            host=settings.SMTP_HOST,
            port=settings.SMTP_PORT,
            username=settings.SMTP_USERNAME,
            password=settings.SMTP_PASSWORD,
            use_tls=settings.SMTP_USE_TLS,
            sender=settings.MAIL_FROM,
        )
    return LoggingMailTransport()
