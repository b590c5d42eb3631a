"""Repository Protocol for referral links."""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.bh_referral.domain.models import Referral


class ReferralRepositoryProtocol(Protocol):
    async def find_user_id_by_code(
        self, db: AsyncSession, referral_code: str
    ) -> str | None: ...

    async def insert_referral(
        self, db: AsyncSession, referrer_id: str, referred_id: str
    ) -> Referral | None:
        """Insert with bonus_given=TRUE. Returns None if referred_id already has one."""
        ...

    async def set_referrer(
        self, db: AsyncSession, referred_id: str, referrer_id: str
    ) -> None: ...

    async def get_referral_for(
        self, db: AsyncSession, referred_id: str
    ) -> Referral | None: ...

    async def count_referrals(self, db: AsyncSession, referrer_id: str) -> int: ...
