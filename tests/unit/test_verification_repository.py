"""Unit tests for email verification token storage (mocked AsyncSession)."""

from unittest.mock import AsyncMock, MagicMock

from src.bh_gateway.auth.verification import generate_verification_token, hash_verification_token
from src.bh_gateway.user.verification_repository import VerificationTokenRepository


def test_token_hash_is_stable_sha256() -> None:
    token = generate_verification_token()
    assert len(token) >= 40
    assert hash_verification_token(token) == hash_verification_token(token)
    assert len(hash_verification_token(token)) == 64
    assert hash_verification_token(token) != token


async def test_store_passes_hash_and_ttl() -> None:
    db = AsyncMock()
    await VerificationTokenRepository().store(db, "user-1", "h" * 64, 24)
    assert db.execute.await_args.args[1] == {
        "user_id": "user-1",
        "token_hash": "h" * 64,
        "ttl_hours": 24,
    }


async def test_consume_returns_user_id() -> None:
    result = MagicMock()
    result.fetchone.return_value = MagicMock(user_id="user-1")
    db = AsyncMock()
    db.execute.return_value = result

    assert await VerificationTokenRepository().consume(db, "h" * 64) == "user-1"


async def test_consume_used_token_returns_none() -> None:
    result = MagicMock()
    result.fetchone.return_value = None
    db = AsyncMock()
    db.execute.return_value = result

    assert await VerificationTokenRepository().consume(db, "h" * 64) is None
