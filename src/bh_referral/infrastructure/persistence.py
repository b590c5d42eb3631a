"""ReferralRepository: PostgreSQL implementation of ReferralRepositoryProtocol.

The UNIQUE (referred_id) constraint on referrals is the idempotency key of the
bonus payout: ON CONFLICT DO NOTHING turns a retried payout into a 0-row insert.
"""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.bh_referral.domain.models import Referral

_FIND_BY_CODE_SQL = text("SELECT id FROM users WHERE referral_code = :code")

_INSERT_REFERRAL_SQL = text("""
    INSERT INTO referrals (referrer_id, referred_id, bonus_given)
    VALUES (:referrer_id, :referred_id, TRUE)
    ON CONFLICT (referred_id) DO NOTHING
    RETURNING id, referrer_id, referred_id, bonus_given, created_at
""")

# referrer_id is written once, at creation; never overwritten
_SET_REFERRER_SQL = text("""
    UPDATE users
    SET referrer_id = :referrer_id
    WHERE id = :referred_id AND referrer_id IS NULL
""")

_GET_REFERRAL_SQL = text("""
    SELECT id, referrer_id, referred_id, bonus_given, created_at
    FROM referrals
    WHERE referred_id = :referred_id
""")

_COUNT_REFERRALS_SQL = text("SELECT COUNT(*) FROM referrals WHERE referrer_id = :referrer_id")


def _row_to_referral(row: object) -> Referral:
    return Referral(
        id=str(row.id),  # type: ignore[attr-defined]
        referrer_id=str(row.referrer_id),  # type: ignore[attr-defined]
        referred_id=str(row.referred_id),  # type: ignore[attr-defined]
        bonus_given=row.bonus_given,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
    )


class ReferralRepository:
    async def find_user_id_by_code(
        self, db: AsyncSession, referral_code: str
    ) -> str | None:
        row = (await db.execute(_FIND_BY_CODE_SQL, {"code": referral_code})).fetchone()
        return str(row.id) if row else None

    async def insert_referral(
        self, db: AsyncSession, referrer_id: str, referred_id: str
    ) -> Referral | None:
        result = await db.execute(
            _INSERT_REFERRAL_SQL,
            {"referrer_id": referrer_id, "referred_id": referred_id},
        )
        row = result.fetchone()
        return _row_to_referral(row) if row else None

    async def set_referrer(
        self, db: AsyncSession, referred_id: str, referrer_id: str
    ) -> None:
        await db.execute(
            _SET_REFERRER_SQL, {"referred_id": referred_id, "referrer_id": referrer_id}
        )

    async def get_referral_for(
        self, db: AsyncSession, referred_id: str
    ) -> Referral | None:
        row = (await db.execute(_GET_REFERRAL_SQL, {"referred_id": referred_id})).fetchone()
        return _row_to_referral(row) if row else None

    async def count_referrals(self, db: AsyncSession, referrer_id: str) -> int:
        result = await db.execute(_COUNT_REFERRALS_SQL, {"referrer_id": referrer_id})
        return int(result.scalar_one())
