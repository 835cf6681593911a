"""004: create bet_outcomes table (one write-once row per settled market)

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
        CREATE TABLE bet_outcomes (
            id                      VARCHAR(64)     PRIMARY KEY,
            market_id               VARCHAR(64)     NOT NULL REFERENCES betting_markets (id),
            winning_option_id       VARCHAR(64)     REFERENCES market_options (id),
            actual_result           JSONB           NOT NULL DEFAULT '{}'::jsonb,
            settled_by              VARCHAR(64),
            settled_at              TIMESTAMPTZ     NOT NULL,
            settlement_notes        TEXT,
            requires_manual_review  BOOLEAN         NOT NULL DEFAULT FALSE,
            created_at              TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_bet_outcomes_market UNIQUE (market_id)
        );
    """)
    op.execute(
        "CREATE INDEX idx_bet_outcomes_review ON bet_outcomes (id) "
        "WHERE requires_manual_review;"
    )


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS bet_outcomes CASCADE;")
