"""Integration-test fixtures (requires running PG + Redis, migrations applied).

Collected only when BOTHOST_INTEGRATION=1. All integration tests share a
single event-loop so that the module-level SQLAlchemy async engine pool
stays valid across the entire test session.
"""

import os
from collections.abc import Awaitable, Callable

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from src.bh_gateway.api import router as auth_router_module
from src.main import app
from tests.integration.support import MailCatcher, unique_user

if os.environ.get("BOTHOST_INTEGRATION") != "1":
    collect_ignore_glob = ["test_*.py"]

SignUp = Callable[..., Awaitable[dict]]


@pytest_asyncio.fixture(loop_scope="session", scope="session")
async def client() -> AsyncClient:  # type: ignore[override]
    """Session-scoped async HTTP client: keeps the engine pool alive."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture(scope="session")
def mail() -> MailCatcher:
    """Captures verification tokens instead of sending mail."""
    catcher = MailCatcher()
    with pytest.MonkeyPatch.context() as mp:
        mp.setattr(auth_router_module._mailer, "schedule", catcher.schedule)
        yield catcher


@pytest.fixture
def sign_up(client: AsyncClient, mail: MailCatcher) -> SignUp:
    """Register, verify and log in a fresh user.

    The returned dict holds the register payload plus `token` and `headers`.
    """

    async def _sign_up(referral_code: str | None = None) -> dict:
        user = unique_user()
        reg = await client.post(
            "/api/v1/auth/register", json={**user, "referral_code": referral_code}
        )
        assert reg.status_code == 201, reg.text
        verify = await client.get(
            "/api/v1/auth/verify-email", params={"token": mail.tokens[user["email"]]}
        )
        assert verify.status_code == 200, verify.text
        login = await client.post(
            "/api/v1/auth/login",
            json={"email": user["email"], "password": user["password"]},
        )
        token = login.json()["data"]["access_token"]
        return {
            **user,
            **reg.json()["data"],
            "token": token,
            "headers": {"Authorization": f"Bearer {token}"},
        }

    return _sign_up
