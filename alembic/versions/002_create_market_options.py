"""002: create market_options table

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
        CREATE TABLE market_options (
            id                  VARCHAR(64)     PRIMARY KEY,
            market_id           VARCHAR(64)     NOT NULL
                                REFERENCES betting_markets (id) ON DELETE CASCADE,
            key                 VARCHAR(64)     NOT NULL,
            name                VARCHAR(255)    NOT NULL,
            odds                INT             NOT NULL DEFAULT 200,
            total_stake         BIGINT          NOT NULL DEFAULT 0,
            bet_count           INT             NOT NULL DEFAULT 0,
            is_active           BOOLEAN         NOT NULL DEFAULT TRUE,
            is_winning_option   BOOLEAN         NOT NULL DEFAULT FALSE,
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_market_options_key UNIQUE (market_id, key),
            CONSTRAINT ck_market_options_odds_floor CHECK (odds >= 110),
            CONSTRAINT ck_market_options_total_stake_gte_0 CHECK (total_stake >= 0),
            CONSTRAINT ck_market_options_bet_count_gte_0 CHECK (bet_count >= 0)
        );
    """)
    op.execute("""
        CREATE TRIGGER trg_market_options_updated_at
            BEFORE UPDATE ON market_options
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    op.execute(
        "COMMENT ON COLUMN market_options.odds IS 'Decimal odds in hundredths: 250 = 2.50';"
    )


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS market_options CASCADE;")
