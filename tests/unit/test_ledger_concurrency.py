"""Ledger invariants under concurrent claim / spend / referral calls.

Runs the real application services against the in-memory ledger, whose
per-account lock stands in for the PostgreSQL row lock.
"""

import asyncio
from datetime import date
from unittest.mock import AsyncMock

from src.bh_account.application.service import AccountApplicationService
from src.bh_common.background import BackgroundTaskQueue
from src.bh_common.enums import LedgerEventKind
from src.bh_common.errors import AlreadyClaimedTodayError, InsufficientBalanceError
from src.bh_deploy.application.service import DeploymentGate
from src.bh_deploy.domain.models import Bot, BotSpec
from src.bh_referral.application.service import ReferralEngine
from tests.fakes import InMemoryBots, InMemoryLedger, InMemoryReferrals, RecordingProvisioner

SPEC = BotSpec(name="echo", repo_url="https://github.com/acme/echo")


def _gate(ledger: InMemoryLedger, bots: InMemoryBots) -> DeploymentGate:
    return DeploymentGate(
        bot_repo=bots,
        ledger_repo=ledger,
        provisioner=RecordingProvisioner(),
        queue=BackgroundTaskQueue("test"),
    )


def _assert_ledger_consistent(ledger: InMemoryLedger) -> None:
    for user_id, account in ledger.accounts.items():
        events = ledger.events_for(user_id)
        assert account.coins == sum(e.amount for e in events)
        running = 0
        for e in events:
            running += e.amount
            assert e.balance_after == running
            assert e.balance_after >= 0


async def test_concurrent_daily_claims_credit_once() -> None:
    ledger = InMemoryLedger()
    ledger.seed("user-1", 0)
    svc = AccountApplicationService(
        repo=ledger, referral_repo=InMemoryReferrals(), today=lambda: date(2026, 3, 14)
    )

    results = await asyncio.gather(
        *(svc.claim_daily(AsyncMock(), "user-1") for _ in range(5)),
        return_exceptions=True,
    )

    successes = [r for r in results if not isinstance(r, Exception)]
    rejected = [r for r in results if isinstance(r, AlreadyClaimedTodayError)]
    assert len(successes) == 1
    assert len(rejected) == 4
    assert ledger.accounts["user-1"].coins == 10
    _assert_ledger_consistent(ledger)


async def test_concurrent_deployments_never_overspend() -> None:
    ledger = InMemoryLedger()
    bots = InMemoryBots()
    ledger.seed("user-1", 50)
    gate = _gate(ledger, bots)

    results = await asyncio.gather(
        gate.request_deployment(AsyncMock(), "user-1", SPEC),
        gate.request_deployment(AsyncMock(), "user-1", SPEC),
        return_exceptions=True,
    )

    created = [r for r in results if isinstance(r, Bot)]
    refused = [r for r in results if isinstance(r, InsufficientBalanceError)]
    assert len(created) == 1
    assert len(refused) == 1
    assert ledger.accounts["user-1"].coins == 0
    assert list(bots.bots) == [created[0].id]
    debits = ledger.events_for("user-1", LedgerEventKind.DEPLOYMENT_DEBIT.value)
    assert [(e.amount, e.reference_id) for e in debits] == [(-50, created[0].id)]
    _assert_ledger_consistent(ledger)


async def test_concurrent_referral_application_pays_once() -> None:
    ledger = InMemoryLedger()
    referrals = InMemoryReferrals()
    ledger.seed("referrer", 0)
    ledger.seed("newbie", 0)
    referrals.codes["refCODE01"] = "referrer"
    engine = ReferralEngine(referral_repo=referrals, ledger_repo=ledger)

    results = await asyncio.gather(
        engine.apply_referral(AsyncMock(), "newbie", "refCODE01"),
        engine.apply_referral(AsyncMock(), "newbie", "refCODE01"),
    )

    assert sum(1 for r in results if r is not None) == 1
    assert ledger.accounts["referrer"].coins == 100
    assert ledger.accounts["newbie"].coins == 50
    _assert_ledger_consistent(ledger)


async def test_mixed_traffic_keeps_balance_equal_to_ledger_sum() -> None:
    ledger = InMemoryLedger()
    bots = InMemoryBots()
    ledger.seed("user-1", 60)
    gate = _gate(ledger, bots)
    svc = AccountApplicationService(
        repo=ledger, referral_repo=InMemoryReferrals(), today=lambda: date(2026, 3, 14)
    )

    await asyncio.gather(
        svc.claim_daily(AsyncMock(), "user-1"),
        gate.request_deployment(AsyncMock(), "user-1", SPEC),
        gate.request_deployment(AsyncMock(), "user-1", SPEC),
        svc.grant_coins(AsyncMock(), "user-1", 5, "bonus", "admin"),
        return_exceptions=True,
    )

    account = ledger.accounts["user-1"]
    debits = ledger.events_for("user-1", LedgerEventKind.DEPLOYMENT_DEBIT.value)
    assert account.coins >= 0
    assert len(debits) == len(bots.bots)
    assert account.coins == 60 + 10 + 5 - 50 * len(bots.bots)
    _assert_ledger_consistent(ledger)
