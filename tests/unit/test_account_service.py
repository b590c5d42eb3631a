"""Unit tests for AccountApplicationService against the in-memory ledger."""

from datetime import UTC, date, datetime
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from src.bh_account.application.schemas import cursor_decode, cursor_encode
from src.bh_account.application.service import AccountApplicationService
from src.bh_common.enums import LedgerEventKind
from src.bh_common.errors import AccountNotFoundError, AlreadyClaimedTodayError
from tests.fakes import InMemoryLedger, InMemoryReferrals

TODAY = date(2026, 3, 14)


@pytest.fixture
def ledger() -> InMemoryLedger:
    return InMemoryLedger()


@pytest.fixture
def referrals() -> InMemoryReferrals:
    return InMemoryReferrals()


@pytest.fixture
def clock() -> dict[str, date]:
    return {"today": TODAY}


@pytest.fixture
def svc(
    ledger: InMemoryLedger, referrals: InMemoryReferrals, clock: dict[str, date]
) -> AccountApplicationService:
    return AccountApplicationService(
        repo=ledger, referral_repo=referrals, today=lambda: clock["today"]
    )


class TestGetBalance:
    async def test_returns_balance(
        self, svc: AccountApplicationService, ledger: InMemoryLedger
    ) -> None:
        ledger.seed("user-1", 120)
        result = await svc.get_balance(AsyncMock(), "user-1")
        assert result.coins == 120
        assert result.claimed_today is False
        assert result.last_claim_date is None

    async def test_missing_account(self, svc: AccountApplicationService) -> None:
        with pytest.raises(AccountNotFoundError):
            await svc.get_balance(AsyncMock(), "ghost")


class TestClaimDaily:
    async def test_first_claim_credits_ten(
        self, svc: AccountApplicationService, ledger: InMemoryLedger
    ) -> None:
        ledger.seed("user-1", 0)
        db = AsyncMock()

        result = await svc.claim_daily(db, "user-1")

        assert result.coins == 10
        assert result.claimed == 10
        assert result.claim_date == "2026-03-14"
        db.commit.assert_awaited_once()
        events = ledger.events_for("user-1", LedgerEventKind.DAILY_CLAIM.value)
        assert [e.amount for e in events] == [10]

    async def test_second_claim_same_day_rejected_without_change(
        self, svc: AccountApplicationService, ledger: InMemoryLedger
    ) -> None:
        ledger.seed("user-1", 0)
        await svc.claim_daily(AsyncMock(), "user-1")
        db = AsyncMock()

        with pytest.raises(AlreadyClaimedTodayError):
            await svc.claim_daily(db, "user-1")

        db.rollback.assert_awaited_once()
        assert ledger.accounts["user-1"].coins == 10

    async def test_claim_again_next_day(
        self,
        svc: AccountApplicationService,
        ledger: InMemoryLedger,
        clock: dict[str, date],
    ) -> None:
        ledger.seed("user-1", 0)
        await svc.claim_daily(AsyncMock(), "user-1")
        clock["today"] = date(2026, 3, 15)

        result = await svc.claim_daily(AsyncMock(), "user-1")

        assert result.coins == 20

    async def test_balance_reports_claimed_today(
        self, svc: AccountApplicationService, ledger: InMemoryLedger
    ) -> None:
        ledger.seed("user-1", 0)
        await svc.claim_daily(AsyncMock(), "user-1")
        balance = await svc.get_balance(AsyncMock(), "user-1")
        assert balance.claimed_today is True
        assert balance.last_claim_date == "2026-03-14"


class TestGrantCoins:
    async def test_grant_records_admin_event(
        self, svc: AccountApplicationService, ledger: InMemoryLedger
    ) -> None:
        ledger.seed("user-1", 5)
        result = await svc.grant_coins(AsyncMock(), "user-1", 100, "Contest prize", "admin-1")
        assert result.coins == 105
        assert result.granted == 100
        event = ledger.events_for("user-1")[-1]
        assert event.kind == "admin_grant"
        assert event.reference_type == "ADMIN"
        assert event.reference_id == "admin-1"

    async def test_non_positive_grant_rejected(
        self, svc: AccountApplicationService, ledger: InMemoryLedger
    ) -> None:
        ledger.seed("user-1", 5)
        db = AsyncMock()
        with pytest.raises(ValueError):
            await svc.grant_coins(db, "user-1", 0, "nothing", "admin-1")
        db.rollback.assert_awaited_once()


class TestListLedger:
    async def test_pagination_newest_first(
        self, svc: AccountApplicationService, ledger: InMemoryLedger
    ) -> None:
        ledger.seed("user-1", 0)
        for _ in range(5):
            await ledger.credit(None, "user-1", 1, LedgerEventKind.ADMIN_GRANT, "x")

        page1 = await svc.list_ledger(AsyncMock(), "user-1", None, 3, None)
        assert len(page1.items) == 3
        assert page1.has_more is True
        assert page1.items[0].id > page1.items[-1].id

        page2 = await svc.list_ledger(AsyncMock(), "user-1", page1.next_cursor, 3, None)
        assert len(page2.items) == 2
        assert page2.has_more is False
        assert page2.next_cursor is None

    async def test_kind_filter(
        self, svc: AccountApplicationService, ledger: InMemoryLedger
    ) -> None:
        ledger.seed("user-1", 50)
        await svc.claim_daily(AsyncMock(), "user-1")
        page = await svc.list_ledger(AsyncMock(), "user-1", None, 10, "daily_claim")
        assert [i.kind for i in page.items] == ["daily_claim"]

    def test_cursor_round_trip_and_garbage(self) -> None:
        assert cursor_decode(cursor_encode(42)) == 42
        assert cursor_decode("!!not-base64!!") is None
        assert cursor_decode(None) is None


class TestProfile:
    async def test_profile_includes_referral_count(
        self,
        svc: AccountApplicationService,
        ledger: InMemoryLedger,
        referrals: InMemoryReferrals,
    ) -> None:
        ledger.seed("user-1", 150)
        await referrals.insert_referral(None, "user-1", "user-2")
        await referrals.insert_referral(None, "user-1", "user-3")
        user = SimpleNamespace(
            id="user-1",
            username="alice",
            email="alice@example.com",
            referral_code="aliceQWE123",
            is_verified=True,
            is_admin=False,
            created_at=datetime(2026, 1, 1, tzinfo=UTC),
        )

        profile = await svc.get_profile(AsyncMock(), user)

        assert profile.coins == 150
        assert profile.referral_count == 2
        assert profile.referral_code == "aliceQWE123"


class TestVerifyLedger:
    async def test_consistent_ledger_is_ok(
        self, svc: AccountApplicationService, ledger: InMemoryLedger
    ) -> None:
        ledger.seed("user-1", 30)
        await svc.claim_daily(AsyncMock(), "user-1")
        assert await svc.verify_ledger(AsyncMock()) == {"ok": True, "violations": []}

    async def test_drift_is_reported(
        self, svc: AccountApplicationService, ledger: InMemoryLedger
    ) -> None:
        ledger.seed("user-1", 30)
        ledger.accounts["user-1"].coins = 31
        report = await svc.verify_ledger(AsyncMock())
        assert report["ok"] is False
        assert report["violations"] == [{"user_id": "user-1", "coins": 31, "ledger_sum": 30}]
