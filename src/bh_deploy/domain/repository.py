"""Repository Protocol for bots and deployment logs."""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.bh_deploy.domain.models import Bot, BotSpec, BotWithOwner, DeploymentLog


class BotRepositoryProtocol(Protocol):
    async def create_bot(
        self, db: AsyncSession, bot_id: str, user_id: str, spec: BotSpec
    ) -> Bot: ...

    async def get_bot(self, db: AsyncSession, bot_id: str) -> Bot | None: ...

    async def list_bots_for_user(self, db: AsyncSession, user_id: str) -> list[Bot]: ...

    async def list_all_bots(self, db: AsyncSession) -> list[BotWithOwner]: ...

    async def update_status(
        self,
        db: AsyncSession,
        bot_id: str,
        expected: str,
        target: str,
        external_app_id: str | None = None,
        external_app_name: str | None = None,
    ) -> Bot | None:
        """Move expected -> target. Returns None if the bot is no longer in `expected`."""
        ...

    async def update_env_vars(
        self, db: AsyncSession, bot_id: str, env_vars: dict[str, str]
    ) -> Bot | None: ...

    async def append_log(
        self, db: AsyncSession, bot_id: str, log_type: str, message: str
    ) -> DeploymentLog: ...

    async def list_logs(
        self, db: AsyncSession, bot_id: str, limit: int = 100
    ) -> list[DeploymentLog]: ...
