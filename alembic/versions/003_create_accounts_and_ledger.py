"""003: create accounts and ledger_events tables

Revision ID: 003
Revises: 002
Create Date: 2026-10-17
"""
from typing import Sequence, Union
from alembic import op

revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE accounts (
            user_id             UUID        PRIMARY KEY REFERENCES users(id) ON DELETE CASCADE,
            coins               BIGINT      NOT NULL DEFAULT 0,
            last_claim_date     DATE,
            version             BIGINT      NOT NULL DEFAULT 0,
            created_at          TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_accounts_coins_gte_0 CHECK (coins >= 0)
        );
    """)
    op.execute("""
        CREATE TRIGGER trg_accounts_updated_at
            BEFORE UPDATE ON accounts
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    op.execute(
        "COMMENT ON TABLE accounts IS "
        "'Coin balance per user; always equals SUM(ledger_events.amount)';"
    )

    op.execute("""
        CREATE TABLE ledger_events (
            id              BIGSERIAL       PRIMARY KEY,
            user_id         UUID            NOT NULL REFERENCES accounts(user_id) ON DELETE CASCADE,
            kind            VARCHAR(30)     NOT NULL,
            amount          BIGINT          NOT NULL,
            balance_after   BIGINT          NOT NULL,
            reference_type  VARCHAR(30),
            reference_id    VARCHAR(64),
            description     VARCHAR(500),
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_ledger_kind CHECK (
                kind IN ('daily_claim', 'referral_bonus', 'deployment_debit', 'admin_grant')
            ),
            CONSTRAINT ck_ledger_amount_nonzero CHECK (amount <> 0),
            CONSTRAINT ck_ledger_balance_gte_0 CHECK (balance_after >= 0)
        );
    """)
    op.execute("CREATE INDEX idx_ledger_user_id ON ledger_events (user_id, id DESC);")
    op.execute("""
        CREATE INDEX idx_ledger_reference
        ON ledger_events (reference_type, reference_id)
        WHERE reference_id IS NOT NULL;
    """)
    op.execute(
        "COMMENT ON TABLE ledger_events IS "
        "'Coin ledger, append-only';"
    )


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS ledger_events CASCADE;")
    op.execute("DROP TABLE IF EXISTS accounts CASCADE;")
