"""Domain models for bh_account: pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import date, datetime


@dataclass
class Account:
    user_id: str
    coins: int                       # materialized SUM(ledger_events.amount), never < 0
    last_claim_date: date | None
    version: int
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class LedgerEvent:
    id: int                          # BIGSERIAL, defines per-account causal order
    user_id: str
    kind: str                        # LedgerEventKind value
    amount: int                      # positive=credit negative=debit
    balance_after: int               # coins snapshot right after this event
    reference_type: str | None = None
    reference_id: str | None = None
    description: str | None = None
    created_at: datetime | None = None


@dataclass
class BalanceMismatch:
    user_id: str
    coins: int
    ledger_sum: int

    @property
    def drift(self) -> int:
        return self.coins - self.ledger_sum
