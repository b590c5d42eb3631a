"""BotRepository: PostgreSQL implementation of BotRepositoryProtocol.

Status changes are compare-and-set: `WHERE id = :id AND status = :expected`.
Two callbacks racing on the same bot cannot both move it, and a move that
skips a state never matches.

Transaction ownership: the CALLER commits or rolls back.
"""

import json
import logging
from typing import Any

from sqlalchemy import text
from sqlalchemy.engine import Row
from sqlalchemy.ext.asyncio import AsyncSession

from src.bh_common.enums import BotStatus, DeploymentLogType
from src.bh_deploy.domain.models import Bot, BotSpec, BotWithOwner, DeploymentLog

logger = logging.getLogger(__name__)

_BOT_COLUMNS = (
    "id, user_id, name, repo_url, env_vars, description, status, "
    "external_app_id, external_app_name, last_deployed, created_at, updated_at"
)

_INSERT_BOT_SQL = text(f"""
    INSERT INTO bots (id, user_id, name, repo_url, env_vars, description, status)
    VALUES (:id, :user_id, :name, :repo_url, CAST(:env_vars AS JSONB), :description, :status)
    RETURNING {_BOT_COLUMNS}
""")

_GET_BOT_SQL = text(f"""
    SELECT {_BOT_COLUMNS}
    FROM bots
    WHERE id = :id
""")

_LIST_USER_BOTS_SQL = text(f"""
    SELECT {_BOT_COLUMNS}
    FROM bots
    WHERE user_id = :user_id
    ORDER BY created_at DESC
""")

_LIST_ALL_BOTS_SQL = text("""
    SELECT b.id, b.user_id, b.name, b.repo_url, b.env_vars, b.description, b.status,
           b.external_app_id, b.external_app_name, b.last_deployed,
           b.created_at, b.updated_at,
           u.username, u.email
    FROM bots b
    JOIN users u ON u.id = b.user_id
    ORDER BY b.created_at DESC
""")

_UPDATE_STATUS_SQL = text(f"""
    UPDATE bots
    SET status = :target,
        external_app_id = COALESCE(:external_app_id, external_app_id),
        external_app_name = COALESCE(:external_app_name, external_app_name),
        last_deployed = CASE WHEN :is_deployed THEN NOW() ELSE last_deployed END,
        updated_at = NOW()
    WHERE id = :id AND status = :expected
    RETURNING {_BOT_COLUMNS}
""")

_UPDATE_ENV_SQL = text(f"""
    UPDATE bots
    SET env_vars = CAST(:env_vars AS JSONB),
        updated_at = NOW()
    WHERE id = :id
    RETURNING {_BOT_COLUMNS}
""")

_INSERT_LOG_SQL = text("""
    INSERT INTO deployment_logs (bot_id, log_type, message, created_at)
    VALUES (:bot_id, :log_type, :message, clock_timestamp())
    RETURNING id, bot_id, log_type, message, created_at
""")

_LIST_LOGS_SQL = text("""
    SELECT id, bot_id, log_type, message, created_at
    FROM deployment_logs
    WHERE bot_id = :bot_id
    ORDER BY created_at DESC
    LIMIT :limit
""")


def _load_env(value: Any) -> dict[str, Any]:
    # JSONB through a text() query arrives as its JSON string
    if value is None:
        return {}
    if isinstance(value, str):
        return dict(json.loads(value))
    return dict(value)


def _row_to_bot(row: Row[Any]) -> Bot:
    return Bot(
        id=str(row.id),
        user_id=str(row.user_id),
        name=row.name,
        repo_url=row.repo_url,
        status=row.status,
        env_vars=_load_env(row.env_vars),
        description=row.description,
        external_app_id=row.external_app_id,
        external_app_name=row.external_app_name,
        last_deployed=row.last_deployed,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _row_to_log(row: Row[Any]) -> DeploymentLog:
    return DeploymentLog(
        id=str(row.id),
        bot_id=str(row.bot_id),
        log_type=row.log_type,
        message=row.message,
        created_at=row.created_at,
    )


class BotRepository:
    async def create_bot(
        self, db: AsyncSession, bot_id: str, user_id: str, spec: BotSpec
    ) -> Bot:
        result = await db.execute(
            _INSERT_BOT_SQL,
            {
                "id": bot_id,
                "user_id": user_id,
                "name": spec.name,
                "repo_url": spec.repo_url,
                "env_vars": json.dumps(spec.env_vars),
                "description": spec.description,
                "status": BotStatus.PENDING.value,
            },
        )
        return _row_to_bot(result.one())

    async def get_bot(self, db: AsyncSession, bot_id: str) -> Bot | None:
        row = (await db.execute(_GET_BOT_SQL, {"id": bot_id})).fetchone()
        return _row_to_bot(row) if row else None

    async def list_bots_for_user(self, db: AsyncSession, user_id: str) -> list[Bot]:
        result = await db.execute(_LIST_USER_BOTS_SQL, {"user_id": user_id})
        return [_row_to_bot(r) for r in result.fetchall()]

    async def list_all_bots(self, db: AsyncSession) -> list[BotWithOwner]:
        result = await db.execute(_LIST_ALL_BOTS_SQL)
        return [
            BotWithOwner(bot=_row_to_bot(r), username=r.username, email=r.email)
            for r in result.fetchall()
        ]

    async def update_status(
        self,
        db: AsyncSession,
        bot_id: str,
        expected: str,
        target: str,
        external_app_id: str | None = None,
        external_app_name: str | None = None,
    ) -> Bot | None:
        row = (
            await db.execute(
                _UPDATE_STATUS_SQL,
                {
                    "id": bot_id,
                    "expected": BotStatus(expected).value,
                    "target": BotStatus(target).value,
                    "is_deployed": BotStatus(target) is BotStatus.DEPLOYED,
                    "external_app_id": external_app_id,
                    "external_app_name": external_app_name,
                },
            )
        ).fetchone()
        if row is None:
            return None
        logger.debug("Bot %s: %s -> %s", bot_id, expected, target)
        return _row_to_bot(row)

    async def update_env_vars(
        self, db: AsyncSession, bot_id: str, env_vars: dict[str, str]
    ) -> Bot | None:
        row = (
            await db.execute(
                _UPDATE_ENV_SQL, {"id": bot_id, "env_vars": json.dumps(env_vars)}
            )
        ).fetchone()
        return _row_to_bot(row) if row else None

    async def append_log(
        self, db: AsyncSession, bot_id: str, log_type: str, message: str
    ) -> DeploymentLog:
        result = await db.execute(
            _INSERT_LOG_SQL,
            {
                "bot_id": bot_id,
                "log_type": DeploymentLogType(log_type).value,
                "message": message,
            },
        )
        return _row_to_log(result.one())

    async def list_logs(
        self, db: AsyncSession, bot_id: str, limit: int = 100
    ) -> list[DeploymentLog]:
        result = await db.execute(_LIST_LOGS_SQL, {"bot_id": bot_id, "limit": limit})
        return [_row_to_log(r) for r in result.fetchall()]
