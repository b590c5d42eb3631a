# tests/unit/test_admin_service.py
"""Unit tests for AdminService."""
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.bh_account.application.service import AccountApplicationService
from src.bh_admin.application.service import AdminService
from src.bh_common.errors import BotNotFoundError
from src.bh_deploy.domain.models import BotSpec
from tests.fakes import InMemoryBots, InMemoryLedger, InMemoryReferrals


@pytest.fixture
def bots() -> InMemoryBots:
    return InMemoryBots()


@pytest.fixture
def ledger() -> InMemoryLedger:
    return InMemoryLedger()


@pytest.fixture
def svc(bots: InMemoryBots, ledger: InMemoryLedger) -> AdminService:
    accounts = AccountApplicationService(repo=ledger, referral_repo=InMemoryReferrals())
    return AdminService(bot_repo=bots, account_service=accounts)


async def test_get_stats_returns_aggregates(svc: AdminService) -> None:
    row = MagicMock(total_users=4, total_bots=3, active_bots=1, total_coins=260)
    result = MagicMock()
    result.one.return_value = row
    db = AsyncMock()
    db.execute.return_value = result

    stats = await svc.get_stats(db)

    assert stats == {"total_users": 4, "total_bots": 3, "active_bots": 1, "total_coins": 260}
    assert db.execute.await_args.args[1] == {"active_status": "deployed"}


async def test_update_bot_env_replaces_vars(svc: AdminService, bots: InMemoryBots) -> None:
    spec = BotSpec("echo", "https://github.com/a/b", {"A": "1"})
    await bots.create_bot(None, "bot-1", "user-1", spec)
    db = AsyncMock()

    bot = await svc.update_bot_env(db, "bot-1", {"B": "2"}, "admin-1")

    assert bot.env_vars == {"B": "2"}
    db.commit.assert_awaited_once()


async def test_update_bot_env_missing_bot(svc: AdminService) -> None:
    db = AsyncMock()
    with pytest.raises(BotNotFoundError):
        await svc.update_bot_env(db, "nope", {}, "admin-1")
    db.rollback.assert_awaited_once()
    db.commit.assert_not_awaited()


async def test_list_all_bots_includes_owner(svc: AdminService, bots: InMemoryBots) -> None:
    bots.owners["user-1"] = ("alice", "alice@example.com")
    await bots.create_bot(None, "bot-1", "user-1", BotSpec("echo", "https://github.com/a/b"))

    listed = await svc.list_all_bots(AsyncMock())

    assert [(b.bot.id, b.username, b.email) for b in listed] == [
        ("bot-1", "alice", "alice@example.com")
    ]


async def test_grant_and_verify_ledger(svc: AdminService, ledger: InMemoryLedger) -> None:
    ledger.seed("user-1", 0)

    grant = await svc.grant_coins(AsyncMock(), "user-1", 25, "Welcome back", "admin-1")
    report = await svc.verify_ledger(AsyncMock())

    assert grant.coins == 25
    assert report["ok"] is True
