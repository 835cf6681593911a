"""001: create betting_markets table and the shared updated_at trigger function

Revision ID: 001
Revises:
Create Date: 2026-10-17
"""
from typing import Sequence, Union
from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE OR REPLACE FUNCTION fn_update_timestamp()
        RETURNS TRIGGER AS $$
        BEGIN
            NEW.updated_at = NOW();
            RETURN NEW;
        END;
        $$ LANGUAGE plpgsql;
    """)
    op.execute("""
        CREATE TABLE betting_markets (
            id                  VARCHAR(64)     PRIMARY KEY,
            match_id            VARCHAR(64)     NOT NULL,
            market_type         VARCHAR(32)     NOT NULL,
            name                VARCHAR(255)    NOT NULL,
            description         TEXT,
            is_active           BOOLEAN         NOT NULL DEFAULT TRUE,
            status              VARCHAR(20)     NOT NULL DEFAULT 'active',
            opens_at            TIMESTAMPTZ,
            closes_at           TIMESTAMPTZ,
            settled_at          TIMESTAMPTZ,
            min_stake_amount    BIGINT,
            max_stake_amount    BIGINT,
            metadata            JSONB,
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_betting_markets_type CHECK (
                market_type IN ('1x2', 'correct_score', 'total_goals', 'player_scoring')
            ),
            CONSTRAINT ck_betting_markets_status CHECK (
                status IN ('active', 'suspended', 'settled', 'cancelled')
            ),
            CONSTRAINT ck_betting_markets_stake_bounds CHECK (
                (min_stake_amount IS NULL OR min_stake_amount > 0)
                AND (max_stake_amount IS NULL OR max_stake_amount > 0)
                AND (min_stake_amount IS NULL OR max_stake_amount IS NULL
                     OR min_stake_amount <= max_stake_amount)
            ),
            CONSTRAINT ck_betting_markets_settled_at CHECK (
                status NOT IN ('settled', 'cancelled') OR settled_at IS NOT NULL
            )
        );
    """)
    op.execute(
        "CREATE INDEX idx_betting_markets_match ON betting_markets (match_id, market_type);"
    )
    op.execute("CREATE INDEX idx_betting_markets_status ON betting_markets (status);")
    op.execute("""
        CREATE TRIGGER trg_betting_markets_updated_at
            BEFORE UPDATE ON betting_markets
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS betting_markets CASCADE;")
    op.execute("DROP FUNCTION IF EXISTS fn_update_timestamp();")
