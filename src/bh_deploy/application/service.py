"""DeploymentGate: coin-gated bot creation and lifecycle status updates.

request_deployment debits the deployment cost and inserts the bot row in one
transaction: either both exist afterwards or neither does. Provisioning is
requested only after that commit, through the background queue, and its
outcome arrives later as status updates. A failed provisioning does not
refund the debit.
"""

import logging
import uuid
from collections.abc import Callable

from sqlalchemy.ext.asyncio import AsyncSession

from src.bh_account.domain.constants import DEPLOYMENT_COST
from src.bh_account.domain.repository import LedgerRepositoryProtocol
from src.bh_account.infrastructure.persistence import LedgerRepository
from src.bh_common.background import BackgroundTaskQueue, task_queue
from src.bh_common.database import async_session_factory
from src.bh_common.enums import (
    BotStatus,
    DeploymentLogType,
    LedgerEventKind,
    ReferenceType,
)
from src.bh_common.errors import BotNotFoundError, InvalidBotTransitionError
from src.bh_deploy.domain.models import Bot, BotSpec, DeploymentLog
from src.bh_deploy.domain.repository import BotRepositoryProtocol
from src.bh_deploy.domain.state_machine import ensure_transition
from src.bh_deploy.infrastructure.persistence import BotRepository
from src.bh_deploy.infrastructure.provisioning import (
    ProvisioningClientProtocol,
    ProvisioningError,
    build_provisioning_client,
)

logger = logging.getLogger(__name__)

_DEFAULT_STATUS_MESSAGES = {
    BotStatus.DEPLOYING: "Provisioning started",
    BotStatus.DEPLOYED: "Bot deployed",
    BotStatus.FAILED: "Deployment failed",
    BotStatus.STOPPED: "Bot stopped",
}


class DeploymentGate:
    def __init__(
        self,
        bot_repo: BotRepositoryProtocol | None = None,
        ledger_repo: LedgerRepositoryProtocol | None = None,
        provisioner: ProvisioningClientProtocol | None = None,
        queue: BackgroundTaskQueue | None = None,
        session_factory: Callable[[], AsyncSession] | None = None,
    ) -> None:
        self._bots: BotRepositoryProtocol = bot_repo or BotRepository()
        self._ledger: LedgerRepositoryProtocol = ledger_repo or LedgerRepository()
        self._provisioner = provisioner or build_provisioning_client()
        self._queue = queue or task_queue
        self._session_factory = session_factory or async_session_factory

    @property
    def provisioner(self) -> ProvisioningClientProtocol:
        return self._provisioner

    async def request_deployment(self, db: AsyncSession, user_id: str, spec: BotSpec) -> Bot:
        """Debit DEPLOYMENT_COST and create the bot as `pending`.

        Raises InsufficientBalanceError with nothing written when the account
        holds fewer coins than the cost.
        """
        bot_id = str(uuid.uuid4())
        try:
            await self._ledger.debit(
                db,
                user_id,
                DEPLOYMENT_COST,
                LedgerEventKind.DEPLOYMENT_DEBIT,
                f"Bot deployment: {spec.name}",
                reference_type=ReferenceType.BOT.value,
                reference_id=bot_id,
            )
            bot = await self._bots.create_bot(db, bot_id, user_id, spec)
            await self._bots.append_log(
                db,
                bot_id,
                DeploymentLogType.DEPLOYMENT,
                f"Deployment requested ({DEPLOYMENT_COST} coins debited)",
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        logger.info("Deployment requested: bot=%s user=%s name=%s", bot_id, user_id, spec.name)

        async def _provision() -> None:
            await self.dispatch_provisioning(bot_id)

        self._queue.submit(f"provision bot {bot_id}", _provision)
        return bot

    async def dispatch_provisioning(self, bot_id: str) -> None:
        """Hand a pending bot to the provisioning platform (runs in the background)."""
        async with self._session_factory() as db:
            bot = await self._bots.get_bot(db, bot_id)
            if bot is None or bot.status != BotStatus.PENDING:
                logger.info("Skip provisioning for bot %s: not pending", bot_id)
                return

            try:
                ticket = await self._provisioner.request_provision(bot)
            except ProvisioningError as exc:
                logger.warning("Provisioning request for bot %s failed: %s", bot_id, exc)
                await self._apply_quietly(
                    db, bot_id, BotStatus.FAILED, f"Provisioning request failed: {exc}"
                )
                return

            if ticket is None:
                return
            await self._apply_quietly(
                db,
                bot_id,
                BotStatus.DEPLOYING,
                "Provisioning request accepted",
                external_app_id=ticket.external_app_id,
                external_app_name=ticket.external_app_name,
            )

    async def _apply_quietly(
        self,
        db: AsyncSession,
        bot_id: str,
        target: BotStatus,
        message: str,
        external_app_id: str | None = None,
        external_app_name: str | None = None,
    ) -> None:
        # A callback may already have moved the bot past `target`
        try:
            await self.apply_status_update(
                db, bot_id, target, message, external_app_id, external_app_name
            )
        except InvalidBotTransitionError as exc:
            logger.info("Bot %s: %s", bot_id, exc.message)

    async def apply_status_update(
        self,
        db: AsyncSession,
        bot_id: str,
        target: BotStatus,
        message: str | None = None,
        external_app_id: str | None = None,
        external_app_name: str | None = None,
    ) -> Bot:
        """Apply one lifecycle transition reported by the provisioning platform.

        Repeating the bot's current status is a no-op, so a retried callback
        is harmless. Any other move outside the state machine raises
        InvalidBotTransitionError.
        """
        try:
            bot = await self._bots.get_bot(db, bot_id)
            if bot is None:
                raise BotNotFoundError(bot_id)
            current = BotStatus(bot.status)
            if current is target:
                await db.rollback()
                return bot

            ensure_transition(bot_id, current, target)
            updated = await self._bots.update_status(
                db, bot_id, current, target, external_app_id, external_app_name
            )
            if updated is None:
                # Lost a race with another status update
                latest = await self._bots.get_bot(db, bot_id)
                raise InvalidBotTransitionError(
                    bot_id, latest.status if latest else current.value, target.value
                )
            log_type = (
                DeploymentLogType.ERROR
                if target is BotStatus.FAILED
                else DeploymentLogType.DEPLOYMENT
            )
            await self._bots.append_log(
                db, bot_id, log_type, message or _DEFAULT_STATUS_MESSAGES[target]
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        logger.info("Bot %s: %s -> %s", bot_id, current.value, target.value)
        return updated

    async def list_user_bots(self, db: AsyncSession, user_id: str) -> list[Bot]:
        return await self._bots.list_bots_for_user(db, user_id)

    async def list_logs(
        self, db: AsyncSession, user_id: str, bot_id: str, limit: int = 100
    ) -> list[DeploymentLog]:
        """Deployment log of one of the caller's own bots, newest first."""
        bot = await self._bots.get_bot(db, bot_id)
        if bot is None or bot.user_id != user_id:
            raise BotNotFoundError(bot_id)
        return await self._bots.list_logs(db, bot_id, limit)
