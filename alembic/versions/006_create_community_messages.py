"""006: create community_messages table

Revision ID: 006
Revises: 005
Create Date: 2026-10-17
"""
from typing import Sequence, Union
from alembic import op

revision: str = "006"
down_revision: Union[str, None] = "005"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE community_messages (
            id              UUID            PRIMARY KEY DEFAULT gen_random_uuid(),
            user_id         UUID            NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            message         TEXT            NOT NULL,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_community_message_length CHECK (LENGTH(message) BETWEEN 1 AND 1000)
        );
    """)
    op.execute("CREATE INDEX idx_community_created ON community_messages (created_at DESC);")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS community_messages CASCADE;")
