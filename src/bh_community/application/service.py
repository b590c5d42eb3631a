"""Community message board: newest-first listing and posting."""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.bh_community.domain.models import RECENT_LIMIT, CommunityMessage
from src.bh_community.domain.repository import CommunityRepositoryProtocol
from src.bh_community.infrastructure.persistence import CommunityRepository

logger = logging.getLogger(__name__)


class CommunityService:
    def __init__(self, repo: CommunityRepositoryProtocol | None = None) -> None:
        self._repo: CommunityRepositoryProtocol = repo or CommunityRepository()

    async def list_recent(
        self, db: AsyncSession, limit: int = RECENT_LIMIT
    ) -> list[CommunityMessage]:
        return await self._repo.list_recent(db, min(limit, RECENT_LIMIT))

    async def post(self, db: AsyncSession, user_id: str, message: str) -> CommunityMessage:
        try:
            msg = await self._repo.insert_message(db, user_id, message)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("Community message %s posted by %s", msg.id, user_id)
        return msg
