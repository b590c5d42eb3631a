"""Unit tests for HttpProvisioningClient using httpx.MockTransport."""

import json

import httpx
import pytest

from src.bh_deploy.domain.models import Bot
from src.bh_deploy.infrastructure.provisioning import (
    HttpProvisioningClient,
    NullProvisioningClient,
    ProvisioningError,
)

BOT = Bot(
    id="bot-1",
    user_id="user-1",
    name="echo",
    repo_url="https://github.com/acme/echo",
    status="pending",
    env_vars={"SESSION_ID": "abc"},
)


def _client(handler: httpx.MockTransport) -> HttpProvisioningClient:
    http = httpx.AsyncClient(
        transport=handler,
        base_url="https://provisioner.test",
        headers={"Authorization": "Bearer t0ken"},
    )
    return HttpProvisioningClient(
        base_url="https://provisioner.test",
        callback_url="https://bothost.test/api/v1/provisioning/callback",
        client=http,
    )


async def test_accepted_request_returns_ticket() -> None:
    seen: dict[str, object] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["auth"] = request.headers.get("authorization")
        seen["body"] = json.loads(request.content)
        return httpx.Response(202, json={"app_id": "app-9", "app_name": "echo-9"})

    client = _client(httpx.MockTransport(handler))
    ticket = await client.request_provision(BOT)
    await client.aclose()

    assert ticket is not None
    assert ticket.external_app_id == "app-9"
    assert ticket.external_app_name == "echo-9"
    assert seen["path"] == "/apps"
    assert seen["auth"] == "Bearer t0ken"
    body = seen["body"]
    assert isinstance(body, dict)
    assert body["bot_id"] == "bot-1"
    assert body["env_vars"] == {"SESSION_ID": "abc"}
    assert body["callback_url"].endswith("/provisioning/callback")


async def test_error_status_raises_provisioning_error() -> None:
    client = _client(httpx.MockTransport(lambda r: httpx.Response(500, text="boom")))
    with pytest.raises(ProvisioningError, match="500"):
        await client.request_provision(BOT)


async def test_transport_failure_raises_provisioning_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    client = _client(httpx.MockTransport(handler))
    with pytest.raises(ProvisioningError, match="unreachable"):
        await client.request_provision(BOT)


async def test_null_client_returns_none() -> None:
    assert await NullProvisioningClient().request_provision(BOT) is None
