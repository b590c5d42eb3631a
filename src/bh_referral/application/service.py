"""ReferralEngine: turns a referral code given at signup into a bonus pair.

Runs inside the registration transaction (the caller commits). The referral
row, both referral_bonus events and the users.referrer_id link are written in
that one unit, or not at all.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.bh_account.domain.constants import REFERRED_BONUS, REFERRER_BONUS
from src.bh_account.domain.repository import LedgerRepositoryProtocol
from src.bh_account.infrastructure.persistence import LedgerRepository
from src.bh_common.enums import LedgerEventKind, ReferenceType
from src.bh_referral.domain.models import Referral
from src.bh_referral.domain.repository import ReferralRepositoryProtocol
from src.bh_referral.infrastructure.persistence import ReferralRepository

logger = logging.getLogger(__name__)


class ReferralEngine:
    def __init__(
        self,
        referral_repo: ReferralRepositoryProtocol | None = None,
        ledger_repo: LedgerRepositoryProtocol | None = None,
    ) -> None:
        self._referrals: ReferralRepositoryProtocol = referral_repo or ReferralRepository()
        self._ledger: LedgerRepositoryProtocol = ledger_repo or LedgerRepository()

    async def apply_referral(
        self, db: AsyncSession, new_user_id: str, referral_code: str | None
    ) -> Referral | None:
        """Pay the referrer/referred bonus pair once. Returns None when nothing was paid.

        Unknown or empty codes never block registration. A second attempt for
        the same referred account hits UNIQUE (referred_id), inserts nothing
        and pays nothing.
        """
        code = (referral_code or "").strip()
        if not code:
            return None

        referrer_id = await self._referrals.find_user_id_by_code(db, code)
        if referrer_id is None:
            logger.info("Unknown referral code ignored: %s", code)
            return None
        if referrer_id == new_user_id:
            return None

        referral = await self._referrals.insert_referral(db, referrer_id, new_user_id)
        if referral is None:
            logger.warning(
                "Referral already applied for user=%s, bonus not paid again", new_user_id
            )
            return None

        await self._referrals.set_referrer(db, new_user_id, referrer_id)
        await self._ledger.credit(
            db,
            referrer_id,
            REFERRER_BONUS,
            LedgerEventKind.REFERRAL_BONUS,
            "Referral bonus for inviting a new user",
            reference_type=ReferenceType.REFERRAL.value,
            reference_id=referral.id,
        )
        await self._ledger.credit(
            db,
            new_user_id,
            REFERRED_BONUS,
            LedgerEventKind.REFERRAL_BONUS,
            "Welcome bonus for signing up with a referral code",
            reference_type=ReferenceType.REFERRAL.value,
            reference_id=referral.id,
        )
        logger.info(
            "Referral bonus paid: referrer=%s (+%d) referred=%s (+%d)",
            referrer_id,
            REFERRER_BONUS,
            new_user_id,
            REFERRED_BONUS,
        )
        return referral
