"""Verification mail dispatch.

schedule() only enqueues: registration has already committed by the time the
mail goes out, and a failed send is logged without affecting the account.
"""

import logging
from urllib.parse import urlencode

from config.settings import settings
from src.bh_common.background import BackgroundTaskQueue, task_queue
from src.bh_mail.transport import MailTransportProtocol, build_transport

logger = logging.getLogger(__name__)

VERIFICATION_SUBJECT = f"Verify your {settings.APP_NAME} account"


def verification_link(token: str, base_url: str | None = None) -> str:
    base = (base_url or settings.BASE_URL).rstrip("/")
    return f"{base}/api/v1/auth/verify-email?{urlencode({'token': token})}"


def render_verification_mail(username: str, link: str) -> str:
    return (
        f"Hi {username},\n\n"
        f"Welcome to {settings.APP_NAME}. Confirm your email address to log in:\n\n"
        f"    {link}\n\n"
        f"The link expires in {settings.VERIFICATION_TOKEN_TTL_HOURS} hours.\n"
    )


class VerificationMailer:
    def __init__(
        self,
        transport: MailTransportProtocol | None = None,
        queue: BackgroundTaskQueue | None = None,
    ) -> None:
        self._transport = transport or build_transport()
        self._queue = queue or task_queue

    def schedule(self, email: str, username: str, token: str) -> bool:
        body = render_verification_mail(username, verification_link(token))

        async def _job() -> None:
            await self.send_now(email, body)

        return self._queue.submit(f"verification mail to {email}", _job)

    async def send_now(self, email: str, body: str) -> None:
        try:
            await self._transport.send(email, VERIFICATION_SUBJECT, body)
        except Exception:
            logger.exception("Verification mail to %s failed", email)
