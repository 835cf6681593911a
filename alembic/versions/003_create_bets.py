"""003: create bets table

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
        CREATE TABLE bets (
            id                      VARCHAR(64)     PRIMARY KEY,
            user_id                 VARCHAR(64)     NOT NULL,
            market_id               VARCHAR(64)     NOT NULL REFERENCES betting_markets (id),
            option_id               VARCHAR(64)     NOT NULL REFERENCES market_options (id),
            stake_amount            BIGINT          NOT NULL,
            odds_at_placement       INT             NOT NULL,
            potential_payout        BIGINT          NOT NULL,
            actual_payout           BIGINT,
            status                  VARCHAR(20)     NOT NULL DEFAULT 'pending',
            payment_method          VARCHAR(20)     NOT NULL DEFAULT 'online',
            payment_status          VARCHAR(20)     NOT NULL DEFAULT 'pending',
            payment_reference       VARCHAR(128),
            payment_confirmed_at    TIMESTAMPTZ,
            payout_status           VARCHAR(20)     NOT NULL DEFAULT 'pending',
            payout_amount           BIGINT,
            payout_reference        VARCHAR(128),
            payout_processed_at     TIMESTAMPTZ,
            cancelled_at            TIMESTAMPTZ,
            cancellation_reason     TEXT,
            refund_amount           BIGINT,
            refund_reference        VARCHAR(128),
            refund_processed_at     TIMESTAMPTZ,
            notes                   TEXT,
            placed_at               TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            settled_at              TIMESTAMPTZ,
            created_at              TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at              TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_bets_stake_gt_0 CHECK (stake_amount > 0),
            CONSTRAINT ck_bets_odds_floor CHECK (odds_at_placement >= 110),
            CONSTRAINT ck_bets_status CHECK (
                status IN ('pending', 'active', 'won', 'lost', 'cancelled', 'refunded')
            ),
            CONSTRAINT ck_bets_payment_method CHECK (
                payment_method IN ('online', 'offline', 'wallet')
            ),
            CONSTRAINT ck_bets_payment_status CHECK (
                payment_status IN ('pending', 'confirmed', 'failed')
            ),
            CONSTRAINT ck_bets_payout_status CHECK (
                payout_status IN ('pending', 'completed', 'failed')
            ),
            CONSTRAINT ck_bets_scored_only_when_paid CHECK (
                status NOT IN ('won', 'lost') OR payment_status = 'confirmed'
            )
        );
    """)
    op.execute("CREATE INDEX idx_bets_market_status ON bets (market_id, status);")
    op.execute("CREATE INDEX idx_bets_user ON bets (user_id, id DESC);")
    op.execute("CREATE INDEX idx_bets_option ON bets (option_id);")
    op.execute(
        "CREATE UNIQUE INDEX uq_bets_payment_reference ON bets (payment_reference) "
        "WHERE payment_reference IS NOT NULL;"
    )
    op.execute(
        "CREATE INDEX idx_bets_pending_payout ON bets (id) "
        "WHERE status = 'won' AND payout_status <> 'completed';"
    )
    op.execute("""
        CREATE TRIGGER trg_bets_updated_at
            BEFORE UPDATE ON bets
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS bets CASCADE;")
