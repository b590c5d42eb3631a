# src/bh_admin/application/service.py
"""Admin application service: bots across all users, stats and coin grants."""
import logging
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.bh_account.application.schemas import GrantResponse
from src.bh_account.application.service import AccountApplicationService
from src.bh_common.enums import BotStatus
from src.bh_common.errors import BotNotFoundError
from src.bh_deploy.domain.models import Bot, BotWithOwner
from src.bh_deploy.domain.repository import BotRepositoryProtocol
from src.bh_deploy.infrastructure.persistence import BotRepository

logger = logging.getLogger(__name__)

_STATS_SQL = text("""
    SELECT
        (SELECT COUNT(*) FROM users) AS total_users,
        (SELECT COUNT(*) FROM bots) AS total_bots,
        (SELECT COUNT(*) FROM bots WHERE status = :active_status) AS active_bots,
        (SELECT COALESCE(SUM(coins), 0) FROM accounts) AS total_coins
""")


class AdminService:
    def __init__(
        self,
        bot_repo: BotRepositoryProtocol | None = None,
        account_service: AccountApplicationService | None = None,
    ) -> None:
        self._bots: BotRepositoryProtocol = bot_repo or BotRepository()
        self._accounts = account_service or AccountApplicationService()

    async def list_all_bots(self, db: AsyncSession) -> list[BotWithOwner]:
        return await self._bots.list_all_bots(db)

    async def update_bot_env(
        self, db: AsyncSession, bot_id: str, env_vars: dict[str, str], admin_id: str
    ) -> Bot:
        """Replace a bot's environment variables wholesale."""
        try:
            bot = await self._bots.update_env_vars(db, bot_id, env_vars)
            if bot is None:
                raise BotNotFoundError(bot_id)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info(
            "Admin %s replaced env vars of bot %s (%d keys)", admin_id, bot_id, len(env_vars)
        )
        return bot

    async def get_stats(self, db: AsyncSession) -> dict[str, Any]:
        row = (
            await db.execute(_STATS_SQL, {"active_status": BotStatus.DEPLOYED.value})
        ).one()
        return {
            "total_users": int(row.total_users),
            "total_bots": int(row.total_bots),
            "active_bots": int(row.active_bots),
            "total_coins": int(row.total_coins),
        }

    async def grant_coins(
        self, db: AsyncSession, user_id: str, amount: int, description: str, admin_id: str
    ) -> GrantResponse:
        return await self._accounts.grant_coins(db, user_id, amount, description, admin_id)

    async def verify_ledger(self, db: AsyncSession) -> dict[str, Any]:
        return await self._accounts.verify_ledger(db)
