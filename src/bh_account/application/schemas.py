"""Pydantic schemas and cursor utilities for bh_account API."""

import base64
import json

from pydantic import BaseModel

from src.bh_account.domain.models import LedgerEvent

# ---------------------------------------------------------------------------
# Cursor-based pagination utilities
# ---------------------------------------------------------------------------


def cursor_encode(last_id: int) -> str:
    """Encode a BIGINT primary key into an opaque Base64 cursor string."""
    payload = json.dumps({"id": last_id})
    return base64.urlsafe_b64encode(payload.encode()).decode()


def cursor_decode(cursor: str | None) -> int | None:
    """Decode a cursor string back to the last seen id. Returns None on error."""
    if cursor is None:
        return None
    try:
        payload = json.loads(base64.urlsafe_b64decode(cursor.encode()).decode())
        return int(payload["id"])
    except (ValueError, KeyError, TypeError):
        return None


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class BalanceResponse(BaseModel):
    user_id: str
    coins: int
    last_claim_date: str | None
    claimed_today: bool


class ClaimDailyResponse(BaseModel):
    coins: int
    claimed: int
    claim_date: str
    ledger_event_id: int


class GrantResponse(BaseModel):
    user_id: str
    coins: int
    granted: int
    ledger_event_id: int


class LedgerEventItem(BaseModel):
    id: int
    kind: str
    amount: int
    balance_after: int
    reference_type: str | None
    reference_id: str | None
    description: str | None
    created_at: str  # ISO8601 string

    @classmethod
    def from_event(cls, e: LedgerEvent) -> "LedgerEventItem":
        return cls(
            id=e.id,
            kind=e.kind,
            amount=e.amount,
            balance_after=e.balance_after,
            reference_type=e.reference_type,
            reference_id=e.reference_id,
            description=e.description,
            created_at=e.created_at.isoformat() if e.created_at else "",
        )


class LedgerResponse(BaseModel):
    items: list[LedgerEventItem]
    next_cursor: str | None
    has_more: bool


class ProfileResponse(BaseModel):
    user_id: str
    username: str
    email: str
    coins: int
    referral_code: str
    referral_count: int
    is_verified: bool
    is_admin: bool
    last_claim_date: str | None
    created_at: str
