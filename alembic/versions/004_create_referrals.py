"""004: create referrals and email_verification_tokens tables

Revision ID: 004
Revises: 003
Create Date: 2026-10-17
"""
from typing import Sequence, Union
from alembic import op

revision: str = "004"
down_revision: Union[str, None] = "003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE referrals (
            id              UUID            PRIMARY KEY DEFAULT gen_random_uuid(),
            referrer_id     UUID            NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            referred_id     UUID            NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            bonus_given     BOOLEAN         NOT NULL DEFAULT FALSE,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_referrals_referred_id UNIQUE (referred_id),
            CONSTRAINT ck_referrals_not_self CHECK (referrer_id <> referred_id)
        );
    """)
    op.execute("CREATE INDEX idx_referrals_referrer ON referrals (referrer_id);")
    op.execute(
        "COMMENT ON TABLE referrals IS "
        "'At most one referral per referred user; bonus paid once';"
    )

    op.execute("""
        CREATE TABLE email_verification_tokens (
            id              UUID            PRIMARY KEY DEFAULT gen_random_uuid(),
            user_id         UUID            NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            token_hash      CHAR(64)        NOT NULL,
            expires_at      TIMESTAMPTZ     NOT NULL,
            used_at         TIMESTAMPTZ,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_verification_token_hash UNIQUE (token_hash)
        );
    """)
    op.execute("CREATE INDEX idx_verification_user ON email_verification_tokens (user_id);")
    op.execute(
        "COMMENT ON TABLE email_verification_tokens IS "
        "'SHA-256 of single-use email tokens';"
    )


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS email_verification_tokens CASCADE;")
    op.execute("DROP TABLE IF EXISTS referrals CASCADE;")
