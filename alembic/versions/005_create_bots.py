"""005: create bots and deployment_logs tables

Revision ID: 005
Revises: 004
Create Date: 2026-10-17
"""
from typing import Sequence, Union
from alembic import op

revision: str = "005"
down_revision: Union[str, None] = "004"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE bots (
            id                  UUID            PRIMARY KEY,
            user_id             UUID            NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            name                VARCHAR(100)    NOT NULL,
            repo_url            VARCHAR(500)    NOT NULL,
            env_vars            JSONB           NOT NULL DEFAULT '{}'::jsonb,
            description         TEXT,
            status              VARCHAR(20)     NOT NULL DEFAULT 'pending',
            external_app_id     VARCHAR(100),
            external_app_name   VARCHAR(100),
            last_deployed       TIMESTAMPTZ,
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_bots_status CHECK (
                status IN ('pending', 'deploying', 'deployed', 'failed', 'stopped')
            ),
            CONSTRAINT ck_bots_repo_url CHECK (repo_url ~ '^https?://github\\.com/')
        );
    """)
    op.execute("CREATE INDEX idx_bots_user_id ON bots (user_id, created_at DESC);")
    op.execute("CREATE INDEX idx_bots_status ON bots (status);")
    op.execute("""
        CREATE TRIGGER trg_bots_updated_at
            BEFORE UPDATE ON bots
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    op.execute(
        "COMMENT ON TABLE bots IS "
        "'Deployment requests; each one paid by a deployment_debit ledger event';"
    )

    op.execute("""
        CREATE TABLE deployment_logs (
            id              UUID            PRIMARY KEY DEFAULT gen_random_uuid(),
            bot_id          UUID            NOT NULL REFERENCES bots(id) ON DELETE CASCADE,
            log_type        VARCHAR(20)     NOT NULL,
            message         TEXT            NOT NULL,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_deployment_logs_type CHECK (
                log_type IN ('deployment', 'build', 'error', 'info')
            )
        );
    """)
    op.execute("CREATE INDEX idx_deployment_logs_bot ON deployment_logs (bot_id, created_at DESC);")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS deployment_logs CASCADE;")
    op.execute("DROP TABLE IF EXISTS bots CASCADE;")
