"""Pydantic schemas for bh_deploy API."""

import uuid

from pydantic import BaseModel, Field, field_validator

from src.bh_common.enums import BotStatus
from src.bh_deploy.domain.models import Bot, BotSpec, BotWithOwner, DeploymentLog

REPO_URL_PATTERN = r"^https?://github\.com/"
MAX_ENV_VARS = 100


class DeployBotRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    repo_url: str = Field(..., max_length=500, pattern=REPO_URL_PATTERN)
    env_vars: dict[str, str] = Field(default_factory=dict)
    description: str | None = Field(None, max_length=2000)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Bot name must not be blank")
        return v

    @field_validator("env_vars")
    @classmethod
    def bounded_env(cls, v: dict[str, str]) -> dict[str, str]:
        if len(v) > MAX_ENV_VARS:
            raise ValueError(f"At most {MAX_ENV_VARS} environment variables")
        if any(not k.strip() for k in v):
            raise ValueError("Environment variable names must not be blank")
        return v

    def to_spec(self) -> BotSpec:
        return BotSpec(
            name=self.name,
            repo_url=self.repo_url,
            env_vars=dict(self.env_vars),
            description=self.description,
        )


class ProvisioningCallbackRequest(BaseModel):
    bot_id: uuid.UUID
    status: BotStatus
    message: str | None = Field(None, max_length=2000)
    external_app_id: str | None = Field(None, max_length=100)
    external_app_name: str | None = Field(None, max_length=100)


class BotResponse(BaseModel):
    id: str
    user_id: str
    name: str
    repo_url: str
    env_vars: dict[str, str]
    description: str | None
    status: str
    external_app_id: str | None
    external_app_name: str | None
    last_deployed: str | None
    created_at: str | None

    @classmethod
    def from_bot(cls, bot: Bot) -> "BotResponse":
        return cls(
            id=bot.id,
            user_id=bot.user_id,
            name=bot.name,
            repo_url=bot.repo_url,
            env_vars={k: str(v) for k, v in bot.env_vars.items()},
            description=bot.description,
            status=bot.status,
            external_app_id=bot.external_app_id,
            external_app_name=bot.external_app_name,
            last_deployed=bot.last_deployed.isoformat() if bot.last_deployed else None,
            created_at=bot.created_at.isoformat() if bot.created_at else None,
        )


class AdminBotResponse(BotResponse):
    username: str
    email: str

    @classmethod
    def from_owned(cls, item: BotWithOwner) -> "AdminBotResponse":
        base = BotResponse.from_bot(item.bot).model_dump()
        return cls(**base, username=item.username, email=item.email)


class DeploymentLogItem(BaseModel):
    id: str
    log_type: str
    message: str
    created_at: str | None

    @classmethod
    def from_log(cls, log: DeploymentLog) -> "DeploymentLogItem":
        return cls(
            id=log.id,
            log_type=log.log_type,
            message=log.message,
            created_at=log.created_at.isoformat() if log.created_at else None,
        )
