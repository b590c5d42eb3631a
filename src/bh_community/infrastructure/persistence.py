"""CommunityRepository: community_messages joined with the author's username."""

from typing import Any

from sqlalchemy import text
from sqlalchemy.engine import Row
from sqlalchemy.ext.asyncio import AsyncSession

from src.bh_community.domain.models import CommunityMessage

_LIST_RECENT_SQL = text("""
    SELECT m.id, m.user_id, u.username, m.message, m.created_at
    FROM community_messages m
    JOIN users u ON u.id = m.user_id
    ORDER BY m.created_at DESC
    LIMIT :limit
""")

# CTE so the author's username comes back in the same round trip
_INSERT_MESSAGE_SQL = text("""
    WITH inserted AS (
        INSERT INTO community_messages (user_id, message)
        VALUES (:user_id, :message)
        RETURNING id, user_id, message, created_at
    )
    SELECT i.id, i.user_id, u.username, i.message, i.created_at
    FROM inserted i
    JOIN users u ON u.id = i.user_id
""")


def _row_to_message(row: Row[Any]) -> CommunityMessage:
    return CommunityMessage(
        id=str(row.id),
        user_id=str(row.user_id),
        username=row.username,
        message=row.message,
        created_at=row.created_at,
    )


class CommunityRepository:
    async def list_recent(self, db: AsyncSession, limit: int) -> list[CommunityMessage]:
        result = await db.execute(_LIST_RECENT_SQL, {"limit": limit})
        return [_row_to_message(r) for r in result.fetchall()]

    async def insert_message(
        self, db: AsyncSession, user_id: str, message: str
    ) -> CommunityMessage:
        result = await db.execute(_INSERT_MESSAGE_SQL, {"user_id": user_id, "message": message})
        return _row_to_message(result.one())
