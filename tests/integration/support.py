"""Helpers shared by the integration tests."""

import uuid

from sqlalchemy import text

from config.settings import settings
from src.bh_common.database import async_session_factory

PROVISIONER_HEADERS = {"X-Provisioner-Token": settings.PROVISIONER_CALLBACK_TOKEN or ""}


class MailCatcher:
    """Replaces VerificationMailer.schedule; keeps the raw token per address."""

    def __init__(self) -> None:
        self.tokens: dict[str, str] = {}

    def schedule(self, email: str, username: str, token: str) -> bool:
        self.tokens[email] = token
        return True


def unique_user() -> dict[str, str]:
    """Generate unique credentials to avoid test pollution."""
    uid = uuid.uuid4().hex[:8]
    return {
        "username": f"it_{uid}",
        "email": f"it_{uid}@example.com",
        "password": "TestPass1",
    }


async def promote_to_admin(user_id: str) -> None:
    async with async_session_factory() as session, session.begin():
        await session.execute(
            text("UPDATE users SET is_admin = TRUE WHERE id = :id"), {"id": user_id}
        )
