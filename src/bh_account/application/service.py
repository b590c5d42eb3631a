"""AccountApplicationService: coin balance, daily claim and ledger history.

Mutations (claim_daily, grant_coins) own their transaction: commit on success,
rollback on any error so a failed guard never leaves a half-written unit.
Read operations run without an explicit transaction.
"""

import logging
from collections.abc import Callable
from datetime import date
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from src.bh_account.application.schemas import (
    BalanceResponse,
    ClaimDailyResponse,
    GrantResponse,
    LedgerEventItem,
    LedgerResponse,
    ProfileResponse,
    cursor_decode,
    cursor_encode,
)
from src.bh_account.domain.constants import DAILY_CLAIM_REWARD
from src.bh_account.domain.models import Account
from src.bh_account.domain.repository import LedgerRepositoryProtocol
from src.bh_account.infrastructure.persistence import LedgerRepository
from src.bh_common.datetime_utils import utc_today
from src.bh_common.enums import LedgerEventKind, ReferenceType
from src.bh_common.errors import AccountNotFoundError
from src.bh_referral.domain.repository import ReferralRepositoryProtocol
from src.bh_referral.infrastructure.persistence import ReferralRepository

logger = logging.getLogger(__name__)


class AccountApplicationService:
    def __init__(
        self,
        repo: LedgerRepositoryProtocol | None = None,
        referral_repo: ReferralRepositoryProtocol | None = None,
        today: Callable[[], date] = utc_today,
    ) -> None:
        self._repo: LedgerRepositoryProtocol = repo or LedgerRepository()
        self._referral_repo: ReferralRepositoryProtocol = referral_repo or ReferralRepository()
        self._today = today

    async def _require_account(self, db: AsyncSession, user_id: str) -> Account:
        account = await self._repo.get_account_by_user_id(db, user_id)
        if account is None:
            raise AccountNotFoundError(user_id)
        return account

    async def get_balance(self, db: AsyncSession, user_id: str) -> BalanceResponse:
        account = await self._require_account(db, user_id)
        return BalanceResponse(
            user_id=user_id,
            coins=account.coins,
            last_claim_date=(
                account.last_claim_date.isoformat() if account.last_claim_date else None
            ),
            claimed_today=account.last_claim_date == self._today(),
        )

    async def claim_daily(self, db: AsyncSession, user_id: str) -> ClaimDailyResponse:
        """Grant the daily reward at most once per UTC calendar day.

        The date guard and the credit are a single conditional UPDATE, so two
        concurrent claims on the same day produce exactly one credit.
        """
        today = self._today()
        try:
            account, event = await self._repo.claim_daily(
                db, user_id, today, DAILY_CLAIM_REWARD
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("Daily claim: user=%s date=%s coins=%d", user_id, today, account.coins)
        return ClaimDailyResponse(
            coins=account.coins,
            claimed=DAILY_CLAIM_REWARD,
            claim_date=today.isoformat(),
            ledger_event_id=event.id,
        )

    async def grant_coins(
        self,
        db: AsyncSession,
        user_id: str,
        amount: int,
        description: str,
        granted_by: str,
    ) -> GrantResponse:
        try:
            account, event = await self._repo.credit(
                db,
                user_id,
                amount,
                LedgerEventKind.ADMIN_GRANT,
                description,
                reference_type=ReferenceType.ADMIN.value,
                reference_id=granted_by,
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("Admin grant: user=%s amount=%d by=%s", user_id, amount, granted_by)
        return GrantResponse(
            user_id=user_id,
            coins=account.coins,
            granted=amount,
            ledger_event_id=event.id,
        )

    async def list_ledger(
        self,
        db: AsyncSession,
        user_id: str,
        cursor: str | None,
        limit: int,
        kind: str | None,
    ) -> LedgerResponse:
        cursor_id = cursor_decode(cursor)
        # Fetch limit+1 to detect has_more without a COUNT(*) query
        events = await self._repo.list_events(db, user_id, cursor_id, limit + 1, kind)
        has_more = len(events) > limit
        page = events[:limit]
        next_cursor = cursor_encode(page[-1].id) if has_more and page else None
        return LedgerResponse(
            items=[LedgerEventItem.from_event(e) for e in page],
            next_cursor=next_cursor,
            has_more=has_more,
        )

    async def get_profile(self, db: AsyncSession, user: Any) -> ProfileResponse:
        user_id = str(user.id)
        account = await self._require_account(db, user_id)
        referral_count = await self._referral_repo.count_referrals(db, user_id)
        return ProfileResponse(
            user_id=user_id,
            username=user.username,
            email=user.email,
            coins=account.coins,
            referral_code=user.referral_code,
            referral_count=referral_count,
            is_verified=user.is_verified,
            is_admin=user.is_admin,
            last_claim_date=(
                account.last_claim_date.isoformat() if account.last_claim_date else None
            ),
            created_at=user.created_at.isoformat() if user.created_at else "",
        )

    async def verify_ledger(self, db: AsyncSession) -> dict[str, Any]:
        """Check coins == SUM(ledger_events.amount) for every account."""
        mismatches = await self._repo.find_balance_mismatches(db)
        for m in mismatches:
            logger.error(
                "Ledger drift: user=%s coins=%d ledger_sum=%d", m.user_id, m.coins, m.ledger_sum
            )
        return {
            "ok": not mismatches,
            "violations": [
                {"user_id": m.user_id, "coins": m.coins, "ledger_sum": m.ledger_sum}
                for m in mismatches
            ],
        }
