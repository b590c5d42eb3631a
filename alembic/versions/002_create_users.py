"""002: create users table

Revision ID: 002
Revises: 001
Create Date: 2026-10-17
"""
from typing import Sequence, Union
from alembic import op

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE users (
            id              UUID            PRIMARY KEY DEFAULT gen_random_uuid(),
            username        VARCHAR(50)     NOT NULL,
            email           VARCHAR(255)    NOT NULL,
            password_hash   VARCHAR(255)    NOT NULL,
            referral_code   VARCHAR(64)     NOT NULL,
            referrer_id     UUID            REFERENCES users(id) ON DELETE SET NULL,
            is_verified     BOOLEAN         NOT NULL DEFAULT FALSE,
            is_admin        BOOLEAN         NOT NULL DEFAULT FALSE,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_users_username        UNIQUE (username),
            CONSTRAINT uq_users_email           UNIQUE (email),
            CONSTRAINT uq_users_referral_code   UNIQUE (referral_code),
            CONSTRAINT ck_users_username_format CHECK (
                username ~ '^[a-zA-Z0-9_]+$' AND LENGTH(username) >= 3
            ),
            CONSTRAINT ck_users_not_self_referred CHECK (referrer_id IS NULL OR referrer_id <> id)
        );
    """)
    op.execute(
        "CREATE INDEX idx_users_referrer ON users (referrer_id) WHERE referrer_id IS NOT NULL;"
    )
    op.execute("""
        CREATE TRIGGER trg_users_updated_at
            BEFORE UPDATE ON users
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    op.execute(
        "COMMENT ON TABLE users IS "
        "'Identities: login, verification, referral code, admin flag';"
    )


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS users CASCADE;")
