"""Client for the external provisioning platform.

The platform is opaque: we POST a provisioning request and it later reports
status changes to POST /api/v1/provisioning/callback. Nothing here waits for
the bot to actually come up.
"""

import logging
from typing import Protocol

import httpx

from config.settings import settings
from src.bh_deploy.domain.models import Bot, ProvisionTicket

logger = logging.getLogger(__name__)


class ProvisioningError(Exception):
    """The platform refused the request or could not be reached."""


class ProvisioningClientProtocol(Protocol):
    async def request_provision(self, bot: Bot) -> ProvisionTicket | None:
        """Returns a ticket when accepted, None when no platform is configured.

        Raises ProvisioningError when the request fails.
        """
        ...

    async def aclose(self) -> None: ...


class HttpProvisioningClient:
    def __init__(
        self,
        base_url: str,
        api_token: str | None = None,
        timeout: float = 10.0,
        callback_url: str | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        headers = {"Authorization": f"Bearer {api_token}"} if api_token else {}
        self._client = client or httpx.AsyncClient(
            base_url=base_url.rstrip("/"), headers=headers, timeout=timeout
        )
        self._callback_url = callback_url

    async def request_provision(self, bot: Bot) -> ProvisionTicket | None:
        payload = {
            "bot_id": bot.id,
            "name": bot.name,
            "repo_url": bot.repo_url,
            "env_vars": bot.env_vars,
            "callback_url": self._callback_url,
        }
        try:
            resp = await self._client.post("/apps", json=payload)
            resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise ProvisioningError(
                f"provisioner answered {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            raise ProvisioningError(f"provisioner unreachable: {exc}") from exc

        body = resp.json() if resp.content else {}
        ticket = ProvisionTicket(
            external_app_id=body.get("app_id"),
            external_app_name=body.get("app_name"),
        )
        logger.info("Provisioning accepted: bot=%s app=%s", bot.id, ticket.external_app_name)
        return ticket

    async def aclose(self) -> None:
        await self._client.aclose()


class NullProvisioningClient:
    async def request_provision(self, bot: Bot) -> ProvisionTicket | None:
        logger.info("PROVISIONER_URL unset, bot %s stays pending", bot.id)
        return None

    async def aclose(self) -> None:
        return None


def build_provisioning_client() -> HttpProvisioningClient | NullProvisioningClient:
    if settings.PROVISIONER_URL:
        return HttpProvisioningClient(
            base_url=settings.PROVISIONER_URL,
            api_token=settings.PROVISIONER_API_TOKEN,
            timeout=settings.PROVISIONER_TIMEOUT_SECONDS,
            callback_url=f"{settings.BASE_URL.rstrip('/')}/api/v1/provisioning/callback",
        )
    return NullProvisioningClient()
