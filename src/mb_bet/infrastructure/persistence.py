# src/mb_bet/infrastructure/persistence.py
"""BetRepository — raw SQL persistence for the bets table.

Transaction ownership: the CALLER (application service) commits or rolls back.
"""
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.mb_bet.domain.models import Bet, UserBetStats

# ---------------------------------------------------------------------------
# SQL statements
# ---------------------------------------------------------------------------

_SELECT_COLUMNS = """
    id, user_id, market_id, option_id, stake_amount, odds_at_placement,
    potential_payout, status, actual_payout,
    payment_method, payment_status, payment_reference, payment_confirmed_at,
    payout_status, payout_amount, payout_reference, payout_processed_at,
    cancelled_at, cancellation_reason,
    refund_amount, refund_reference, refund_processed_at,
    notes, placed_at, settled_at
"""

_INSERT_BET_SQL = text("""
    INSERT INTO bets (id, user_id, market_id, option_id, stake_amount,
        odds_at_placement, potential_payout, status,
        payment_method, payment_status, payment_reference, payout_status, placed_at)
    VALUES (:id, :user_id, :market_id, :option_id, :stake_amount,
        :odds_at_placement, :potential_payout, :status,
        :payment_method, :payment_status, :payment_reference, :payout_status, :placed_at)
""")

# stake, odds and potential_payout are immutable after insert and never rewritten
_UPDATE_BET_SQL = text("""
    UPDATE bets
    SET status = :status, actual_payout = :actual_payout,
        payment_status = :payment_status, payment_reference = :payment_reference,
        payment_confirmed_at = :payment_confirmed_at,
        payout_status = :payout_status, payout_amount = :payout_amount,
        payout_reference = :payout_reference, payout_processed_at = :payout_processed_at,
        cancelled_at = :cancelled_at, cancellation_reason = :cancellation_reason,
        refund_amount = :refund_amount, refund_reference = :refund_reference,
        refund_processed_at = :refund_processed_at,
        notes = :notes, settled_at = :settled_at, updated_at = NOW()
    WHERE id = :id
""")

_GET_BY_ID_SQL = text(f"SELECT {_SELECT_COLUMNS} FROM bets WHERE id = :bet_id")
_GET_BY_ID_FOR_UPDATE_SQL = text(
    f"SELECT {_SELECT_COLUMNS} FROM bets WHERE id = :bet_id FOR UPDATE"
)

_GET_BY_REFERENCE_SQL = text(
    f"SELECT {_SELECT_COLUMNS} FROM bets WHERE payment_reference = :reference"
)
_GET_BY_REFERENCE_FOR_UPDATE_SQL = text(
    f"SELECT {_SELECT_COLUMNS} FROM bets WHERE payment_reference = :reference FOR UPDATE"
)

_LIST_BY_USER_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM bets
    WHERE user_id = :user_id
      AND (CAST(:market_id AS TEXT) IS NULL OR market_id = CAST(:market_id AS TEXT))
      AND (CAST(:status AS TEXT) IS NULL OR status = CAST(:status AS TEXT))
      AND (CAST(:cursor_id AS TEXT) IS NULL OR id < CAST(:cursor_id AS TEXT))
    ORDER BY id DESC
    LIMIT :limit
""")

# Rows stay locked until the settlement transaction commits
_LIST_UNRESOLVED_BY_MARKET_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM bets
    WHERE market_id = :market_id AND status IN ('pending', 'active')
    ORDER BY id
    FOR UPDATE
""")

_LIST_PENDING_PAYOUTS_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM bets
    WHERE status = 'won' AND payout_status IN ('pending', 'failed')
      AND (CAST(:cursor_id AS TEXT) IS NULL OR id < CAST(:cursor_id AS TEXT))
    ORDER BY id DESC
    LIMIT :limit
""")

_USER_STATS_SQL = text("""
    SELECT
        COUNT(*) AS total_bets,
        COALESCE(SUM(stake_amount), 0) AS total_staked,
        COALESCE(SUM(actual_payout) FILTER (WHERE status = 'won'), 0) AS total_won,
        COALESCE(SUM(stake_amount) FILTER (WHERE status = 'lost'), 0) AS total_lost,
        COUNT(*) FILTER (WHERE status IN ('pending', 'active')) AS pending_bets,
        COUNT(*) FILTER (WHERE status = 'won') AS won_bets,
        COUNT(*) FILTER (WHERE status = 'lost') AS lost_bets,
        COALESCE(SUM(stake_amount) FILTER (WHERE status IN ('won', 'lost')), 0)
            AS settled_staked
    FROM bets
    WHERE user_id = :user_id AND payment_status = 'confirmed'
""")


# ---------------------------------------------------------------------------
# Row mapper
# ---------------------------------------------------------------------------


def _row_to_bet(row: Any) -> Bet:
    return Bet(
        id=row.id,
        user_id=row.user_id,
        market_id=row.market_id,
        option_id=row.option_id,
        stake_amount=row.stake_amount,
        odds_at_placement=row.odds_at_placement,
        potential_payout=row.potential_payout,
        status=row.status,
        actual_payout=row.actual_payout,
        payment_method=row.payment_method,
        payment_status=row.payment_status,
        payment_reference=row.payment_reference,
        payment_confirmed_at=row.payment_confirmed_at,
        payout_status=row.payout_status,
        payout_amount=row.payout_amount,
        payout_reference=row.payout_reference,
        payout_processed_at=row.payout_processed_at,
        cancelled_at=row.cancelled_at,
        cancellation_reason=row.cancellation_reason,
        refund_amount=row.refund_amount,
        refund_reference=row.refund_reference,
        refund_processed_at=row.refund_processed_at,
        notes=row.notes,
        placed_at=row.placed_at,
        settled_at=row.settled_at,
    )


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class BetRepository:
    async def insert(self, db: AsyncSession, bet: Bet) -> None:
        await db.execute(
            _INSERT_BET_SQL,
            {
                "id": bet.id,
                "user_id": bet.user_id,
                "market_id": bet.market_id,
                "option_id": bet.option_id,
                "stake_amount": bet.stake_amount,
                "odds_at_placement": bet.odds_at_placement,
                "potential_payout": bet.potential_payout,
                "status": bet.status,
                "payment_method": bet.payment_method,
                "payment_status": bet.payment_status,
                "payment_reference": bet.payment_reference,
                "payout_status": bet.payout_status,
                "placed_at": bet.placed_at,
            },
        )

    async def get_by_id(
        self, db: AsyncSession, bet_id: str, for_update: bool = False
    ) -> Bet | None:
        sql = _GET_BY_ID_FOR_UPDATE_SQL if for_update else _GET_BY_ID_SQL
        row = (await db.execute(sql, {"bet_id": bet_id})).fetchone()
        return _row_to_bet(row) if row else None

    async def get_by_payment_reference(
        self, db: AsyncSession, reference: str, for_update: bool = False
    ) -> Bet | None:
        sql = _GET_BY_REFERENCE_FOR_UPDATE_SQL if for_update else _GET_BY_REFERENCE_SQL
        row = (await db.execute(sql, {"reference": reference})).fetchone()
        return _row_to_bet(row) if row else None

    async def list_by_user(
        self,
        db: AsyncSession,
        user_id: str,
        market_id: str | None,
        status: str | None,
        cursor_id: str | None,
        limit: int,
    ) -> list[Bet]:
        result = await db.execute(
            _LIST_BY_USER_SQL,
            {
                "user_id": user_id,
                "market_id": market_id,
                "status": status,
                "cursor_id": cursor_id,
                "limit": limit,
            },
        )
        return [_row_to_bet(row) for row in result.fetchall()]

    async def list_unresolved_by_market(self, db: AsyncSession, market_id: str) -> list[Bet]:
        result = await db.execute(_LIST_UNRESOLVED_BY_MARKET_SQL, {"market_id": market_id})
        return [_row_to_bet(row) for row in result.fetchall()]

    async def list_pending_payouts(
        self, db: AsyncSession, cursor_id: str | None, limit: int
    ) -> list[Bet]:
        result = await db.execute(
            _LIST_PENDING_PAYOUTS_SQL, {"cursor_id": cursor_id, "limit": limit}
        )
        return [_row_to_bet(row) for row in result.fetchall()]

    async def update(self, db: AsyncSession, bet: Bet) -> None:
        await db.execute(
            _UPDATE_BET_SQL,
            {
                "id": bet.id,
                "status": bet.status,
                "actual_payout": bet.actual_payout,
                "payment_status": bet.payment_status,
                "payment_reference": bet.payment_reference,
                "payment_confirmed_at": bet.payment_confirmed_at,
                "payout_status": bet.payout_status,
                "payout_amount": bet.payout_amount,
                "payout_reference": bet.payout_reference,
                "payout_processed_at": bet.payout_processed_at,
                "cancelled_at": bet.cancelled_at,
                "cancellation_reason": bet.cancellation_reason,
                "refund_amount": bet.refund_amount,
                "refund_reference": bet.refund_reference,
                "refund_processed_at": bet.refund_processed_at,
                "notes": bet.notes,
                "settled_at": bet.settled_at,
            },
        )

    async def get_user_stats(self, db: AsyncSession, user_id: str) -> UserBetStats:
        row = (await db.execute(_USER_STATS_SQL, {"user_id": user_id})).fetchone()
        if row is None:
            return UserBetStats()
        return UserBetStats(
            total_bets=int(row.total_bets),
            total_staked=int(row.total_staked),
            total_won=int(row.total_won),
            total_lost=int(row.total_lost),
            pending_bets=int(row.pending_bets),
            won_bets=int(row.won_bets),
            lost_bets=int(row.lost_bets),
            settled_staked=int(row.settled_staked),
        )
