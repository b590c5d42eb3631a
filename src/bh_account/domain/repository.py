"""Repository Protocol: the Ledger Store contract.

Every mutating method is one atomic step inside the caller's transaction:
the balance update and its LedgerEvent are written together or not at all,
and concurrent calls for the same account serialize.

Unit tests inject an in-memory fake that conforms to this Protocol.
Infrastructure layer provides the PostgreSQL implementation.
"""

from datetime import date
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.bh_account.domain.models import Account, BalanceMismatch, LedgerEvent


class LedgerRepositoryProtocol(Protocol):
    async def create_account(self, db: AsyncSession, user_id: str) -> Account: ...

    async def get_account_by_user_id(
        self, db: AsyncSession, user_id: str
    ) -> Account | None: ...

    async def credit(
        self,
        db: AsyncSession,
        user_id: str,
        amount: int,
        kind: str,
        description: str,
        reference_type: str | None = None,
        reference_id: str | None = None,
    ) -> tuple[Account, LedgerEvent]: ...

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
        """Raises InsufficientBalanceError (nothing written) when amount > coins."""
        ...

    async def claim_daily(
        self, db: AsyncSession, user_id: str, today: date, reward: int
    ) -> tuple[Account, LedgerEvent]:
        """Raises AlreadyClaimedTodayError (nothing written) when last_claim_date == today."""
        ...

    async def list_events(
        self,
        db: AsyncSession,
        user_id: str,
        cursor_id: int | None,
        limit: int,
        kind: str | None,
    ) -> list[LedgerEvent]: ...

    async def find_balance_mismatches(self, db: AsyncSession) -> list[BalanceMismatch]: ...
