from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.bh_community.domain.models import CommunityMessage


class CommunityRepositoryProtocol(Protocol):
    async def list_recent(self, db: AsyncSession, limit: int) -> list[CommunityMessage]: ...

    async def insert_message(
        self, db: AsyncSession, user_id: str, message: str
    ) -> CommunityMessage: ...
