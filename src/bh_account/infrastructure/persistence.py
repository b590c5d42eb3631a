"""LedgerRepository: PostgreSQL implementation of LedgerRepositoryProtocol.

All balance-mutating operations use an atomic UPDATE ... RETURNING whose WHERE
clause carries the business guard (enough coins / not yet claimed today).
A result of 0 rows means the guard failed and nothing was written.

The UPDATE takes the account row lock, so the event INSERT that follows in the
same transaction is ordered after every earlier mutation of that account.
clock_timestamp() (not NOW()) is used for created_at so timestamps follow that
lock order rather than transaction start order.

Transaction ownership: the CALLER (application service or router) commits or
rolls back.
"""

import logging
from datetime import date

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.bh_account.domain.models import Account, BalanceMismatch, LedgerEvent
from src.bh_common.enums import LedgerEventKind
from src.bh_common.errors import (
    AccountNotFoundError,
    AlreadyClaimedTodayError,
    InsufficientBalanceError,
    InternalError,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# SQL
# ---------------------------------------------------------------------------

_ACCOUNT_COLUMNS = "user_id, coins, last_claim_date, version, created_at, updated_at"

_CREATE_ACCOUNT_SQL = text(f"""
    INSERT INTO accounts (user_id, coins, version)
    VALUES (:user_id, 0, 0)
    RETURNING {_ACCOUNT_COLUMNS}
""")

_GET_ACCOUNT_SQL = text(f"""
    SELECT {_ACCOUNT_COLUMNS}
    FROM accounts
    WHERE user_id = :user_id
""")

_CREDIT_SQL = text(f"""
    UPDATE accounts
    SET coins = coins + :amount,
        version = version + 1,
        updated_at = NOW()
    WHERE user_id = :user_id
    RETURNING {_ACCOUNT_COLUMNS}
""")

_DEBIT_SQL = text(f"""
    UPDATE accounts
    SET coins = coins - :amount,
        version = version + 1,
        updated_at = NOW()
    WHERE user_id = :user_id AND coins >= :amount
    RETURNING {_ACCOUNT_COLUMNS}
""")

_CLAIM_DAILY_SQL = text(f"""
    UPDATE accounts
    SET coins = coins + :reward,
        last_claim_date = :today,
        version = version + 1,
        updated_at = NOW()
    WHERE user_id = :user_id
      AND last_claim_date IS DISTINCT FROM CAST(:today AS DATE)
    RETURNING {_ACCOUNT_COLUMNS}
""")

_INSERT_EVENT_SQL = text("""
    INSERT INTO ledger_events
        (user_id, kind, amount, balance_after,
         reference_type, reference_id, description, created_at)
    VALUES
        (:user_id, :kind, :amount, :balance_after,
         :reference_type, :reference_id, :description, clock_timestamp())
    RETURNING id, user_id, kind, amount, balance_after,
              reference_type, reference_id, description, created_at
""")

_LIST_EVENTS_SQL = text("""
    SELECT id, user_id, kind, amount, balance_after,
           reference_type, reference_id, description, created_at
    FROM ledger_events
    WHERE user_id = :user_id
      AND (CAST(:cursor_id AS BIGINT) IS NULL OR id < CAST(:cursor_id AS BIGINT))
      AND (CAST(:kind AS TEXT) IS NULL OR kind = CAST(:kind AS TEXT))
    ORDER BY id DESC
    LIMIT :limit
""")

_BALANCE_MISMATCH_SQL = text("""
    SELECT a.user_id, a.coins, COALESCE(SUM(e.amount), 0) AS ledger_sum
    FROM accounts a
    LEFT JOIN ledger_events e ON e.user_id = a.user_id
    GROUP BY a.user_id, a.coins
    HAVING a.coins <> COALESCE(SUM(e.amount), 0)
    ORDER BY a.user_id
""")


def _row_to_account(row: object) -> Account:
    return Account(
        user_id=str(row.user_id),  # type: ignore[attr-defined]
        coins=row.coins,  # type: ignore[attr-defined]
        last_claim_date=row.last_claim_date,  # type: ignore[attr-defined]
        version=row.version,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
        updated_at=row.updated_at,  # type: ignore[attr-defined]
    )


def _row_to_event(row: object) -> LedgerEvent:
    return LedgerEvent(
        id=row.id,  # type: ignore[attr-defined]
        user_id=str(row.user_id),  # type: ignore[attr-defined]
        kind=row.kind,  # type: ignore[attr-defined]
        amount=row.amount,  # type: ignore[attr-defined]
        balance_after=row.balance_after,  # type: ignore[attr-defined]
        reference_type=row.reference_type,  # type: ignore[attr-defined]
        reference_id=row.reference_id,  # type: ignore[attr-defined]
        description=row.description,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
    )


class LedgerRepository:
    """Concrete repository: every mutation is atomic at the SQL level."""

    async def create_account(self, db: AsyncSession, user_id: str) -> Account:
        result = await db.execute(_CREATE_ACCOUNT_SQL, {"user_id": user_id})
        row = result.fetchone()
        if row is None:
            raise InternalError("Account insert returned no rows")
        return _row_to_account(row)

    async def get_account_by_user_id(
        self, db: AsyncSession, user_id: str
    ) -> Account | None:
        result = await db.execute(_GET_ACCOUNT_SQL, {"user_id": user_id})
        row = result.fetchone()
        return _row_to_account(row) if row else None

    async def credit(
        self,
        db: AsyncSession,
        user_id: str,
        amount: int,
        kind: str,
        description: str,
        reference_type: str | None = None,
        reference_id: str | None = None,
    ) -> tuple[Account, LedgerEvent]:
        if amount <= 0:
            raise ValueError(f"credit amount must be positive, got {amount}")
        kind = LedgerEventKind(kind)
        result = await db.execute(_CREDIT_SQL, {"user_id": user_id, "amount": amount})
        row = result.fetchone()
        if row is None:
            raise AccountNotFoundError(user_id)
        account = _row_to_account(row)
        event = await self._append_event(
            db, account, amount, kind, description, reference_type, reference_id
        )
        return account, event

    async def debit(
        self,
        db: AsyncSession,
        user_id: str,
        amount: int,
        kind: str,
        description: str,
        reference_type: str | None = None,
        reference_id: str | None = None,
    ) -> tuple[Account, LedgerEvent]:
        if amount <= 0:
            raise ValueError(f"debit amount must be positive, got {amount}")
        kind = LedgerEventKind(kind)
        result = await db.execute(_DEBIT_SQL, {"user_id": user_id, "amount": amount})
        row = result.fetchone()
        if row is None:
            current = await self.get_account_by_user_id(db, user_id)
            if current is None:
                raise AccountNotFoundError(user_id)
            raise InsufficientBalanceError(amount, current.coins)
        account = _row_to_account(row)
        event = await self._append_event(
            db, account, -amount, kind, description, reference_type, reference_id
        )
        return account, event

    async def claim_daily(
        self, db: AsyncSession, user_id: str, today: date, reward: int
    ) -> tuple[Account, LedgerEvent]:
        result = await db.execute(
            _CLAIM_DAILY_SQL, {"user_id": user_id, "today": today, "reward": reward}
        )
        row = result.fetchone()
        if row is None:
            if await self.get_account_by_user_id(db, user_id) is None:
                raise AccountNotFoundError(user_id)
            raise AlreadyClaimedTodayError()
        account = _row_to_account(row)
        event = await self._append_event(
            db,
            account,
            reward,
            LedgerEventKind.DAILY_CLAIM,
            f"Daily claim for {today.isoformat()}",
            None,
            None,
        )
        return account, event

    async def list_events(
        self,
        db: AsyncSession,
        user_id: str,
        cursor_id: int | None,
        limit: int,
        kind: str | None,
    ) -> list[LedgerEvent]:
        result = await db.execute(
            _LIST_EVENTS_SQL,
            {"user_id": user_id, "cursor_id": cursor_id, "kind": kind, "limit": limit},
        )
        return [_row_to_event(row) for row in result.fetchall()]

    async def find_balance_mismatches(self, db: AsyncSession) -> list[BalanceMismatch]:
        result = await db.execute(_BALANCE_MISMATCH_SQL)
        return [
            BalanceMismatch(
                user_id=str(row.user_id),
                coins=int(row.coins),
                ledger_sum=int(row.ledger_sum),
            )
            for row in result.fetchall()
        ]

    async def _append_event(
        self,
        db: AsyncSession,
        account: Account,
        amount: int,
        kind: str,
        description: str,
        reference_type: str | None,
        reference_id: str | None,
    ) -> LedgerEvent:
        result = await db.execute(
            _INSERT_EVENT_SQL,
            {
                "user_id": account.user_id,
                "kind": LedgerEventKind(kind).value,
                "amount": amount,
                "balance_after": account.coins,
                "reference_type": reference_type,
                "reference_id": reference_id,
                "description": description,
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Ledger event insert returned no rows")
        logger.debug(
            "ledger %s %+d -> %d (%s)",
            account.user_id,
            amount,
            account.coins,
            LedgerEventKind(kind).value,
        )
        return _row_to_event(row)
