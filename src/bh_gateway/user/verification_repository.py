"""email_verification_tokens persistence.

consume() is a single conditional UPDATE: of two concurrent uses of the same
token only the first matches `used_at IS NULL`, the second gets no row.
"""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

_INSERT_TOKEN_SQL = text("""
    INSERT INTO email_verification_tokens (user_id, token_hash, expires_at)
    VALUES (:user_id, :token_hash, NOW() + make_interval(hours => :ttl_hours))
""")

_CONSUME_TOKEN_SQL = text("""
    UPDATE email_verification_tokens
    SET used_at = NOW()
    WHERE token_hash = :token_hash
      AND used_at IS NULL
      AND expires_at > NOW()
    RETURNING user_id
""")

_MARK_VERIFIED_SQL = text("""
    UPDATE users
    SET is_verified = TRUE,
        updated_at = NOW()
    WHERE id = :user_id
""")


class VerificationTokenRepository:
    async def store(
        self, db: AsyncSession, user_id: str, token_hash: str, ttl_hours: int
    ) -> None:
        await db.execute(
            _INSERT_TOKEN_SQL,
            {"user_id": user_id, "token_hash": token_hash, "ttl_hours": ttl_hours},
        )

    async def consume(self, db: AsyncSession, token_hash: str) -> str | None:
        """Mark the token used and return its user id, or None if unusable."""
        row = (await db.execute(_CONSUME_TOKEN_SQL, {"token_hash": token_hash})).fetchone()
        return str(row.user_id) if row else None

    async def mark_user_verified(self, db: AsyncSession, user_id: str) -> None:
        await db.execute(_MARK_VERIFIED_SQL, {"user_id": user_id})
