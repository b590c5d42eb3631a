"""Domain models for bots and their deployment logs (pure dataclasses, no ORM)."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass
class BotSpec:
    name: str
    repo_url: str
    env_vars: dict[str, str] = field(default_factory=dict)
    description: str | None = None


@dataclass
class Bot:
    id: str
    user_id: str
    name: str
    repo_url: str
    status: str
    env_vars: dict[str, Any] = field(default_factory=dict)
    description: str | None = None
    external_app_id: str | None = None
    external_app_name: str | None = None
    last_deployed: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class BotWithOwner:
    """Admin view: a bot plus its owner's identity."""

    bot: Bot
    username: str
    email: str


@dataclass
class DeploymentLog:
    id: str
    bot_id: str
    log_type: str
    message: str
    created_at: datetime | None = None


@dataclass
class ProvisionTicket:
    """What the provisioning platform hands back when it accepts a request."""

    external_app_id: str | None = None
    external_app_name: str | None = None
