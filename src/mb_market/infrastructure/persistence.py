"""MarketRepository — concrete implementation of MarketRepositoryProtocol.

All queries use raw text() SQL (no ORM).
asyncpg NULL parameter pattern: CAST(:param AS TYPE) IS NULL required for None values.

Stake counters are only ever changed with `SET x = x + :delta`; application code
never writes a freshly summed value back, so concurrent placements cannot lose
an update.

Transaction ownership: the CALLER (application service) commits or rolls back.
"""

import json
from datetime import datetime
from typing import Any

from sqlalchemy import bindparam, text
from sqlalchemy.ext.asyncio import AsyncSession

from src.mb_common.errors import OptionNotFoundError
from src.mb_market.domain.models import BettingMarket, MarketOption, MarketTotals

# ---------------------------------------------------------------------------
# SQL: markets
# ---------------------------------------------------------------------------

_MARKET_COLUMNS = """
    id, match_id, market_type, name, description, is_active, status,
    opens_at, closes_at, settled_at, min_stake_amount, max_stake_amount,
    metadata, created_at, updated_at
"""

_GET_MARKET_SQL = text(f"SELECT {_MARKET_COLUMNS} FROM betting_markets WHERE id = :market_id")
# Settlement holds FOR UPDATE; placements hold FOR SHARE and so queue behind it
_GET_MARKET_FOR_UPDATE_SQL = text(
    f"SELECT {_MARKET_COLUMNS} FROM betting_markets WHERE id = :market_id FOR UPDATE"
)
_GET_MARKET_FOR_SHARE_SQL = text(
    f"SELECT {_MARKET_COLUMNS} FROM betting_markets WHERE id = :market_id FOR SHARE"
)
_LOCK_VARIANTS = {
    None: _GET_MARKET_SQL,
    "update": _GET_MARKET_FOR_UPDATE_SQL,
    "share": _GET_MARKET_FOR_SHARE_SQL,
}

_FIND_BY_MATCH_SQL = text(f"""
    SELECT {_MARKET_COLUMNS}
    FROM betting_markets
    WHERE match_id = :match_id AND market_type = :market_type
    ORDER BY id
    LIMIT 1
""")

_LIST_MARKETS_SQL = text(f"""
    SELECT {_MARKET_COLUMNS}
    FROM betting_markets
    WHERE
        (CAST(:match_id AS TEXT) IS NULL OR match_id = CAST(:match_id AS TEXT))
        AND (CAST(:status AS TEXT) IS NULL OR status = CAST(:status AS TEXT))
        AND (CAST(:market_type AS TEXT) IS NULL OR market_type = CAST(:market_type AS TEXT))
        AND (CAST(:cursor_id AS TEXT) IS NULL OR id < CAST(:cursor_id AS TEXT))
    ORDER BY id DESC
    LIMIT :limit
""")

_INSERT_MARKET_SQL = text("""
    INSERT INTO betting_markets (id, match_id, market_type, name, description,
        is_active, status, opens_at, closes_at, min_stake_amount, max_stake_amount, metadata)
    VALUES (:id, :match_id, :market_type, :name, :description,
        :is_active, :status, :opens_at, :closes_at, :min_stake_amount, :max_stake_amount,
        CAST(:metadata AS JSONB))
""")

_UPDATE_MARKET_STATUS_SQL = text("""
    UPDATE betting_markets
    SET status = :status, settled_at = :settled_at, updated_at = NOW()
    WHERE id = :market_id
""")

_DELETE_MARKET_SQL = text("DELETE FROM betting_markets WHERE id = :market_id")

_MARKET_TOTALS_SQL = text("""
    SELECT COALESCE(SUM(stake_amount), 0) AS total_stake, COUNT(*) AS total_bets
    FROM bets
    WHERE market_id = :market_id
""")

# ---------------------------------------------------------------------------
# SQL: options
# ---------------------------------------------------------------------------

_OPTION_COLUMNS = """
    id, market_id, key, name, odds, total_stake, bet_count,
    is_active, is_winning_option, created_at, updated_at
"""

_LIST_OPTIONS_SQL = text(
    f"SELECT {_OPTION_COLUMNS} FROM market_options WHERE market_id = :market_id ORDER BY id"
)
# Placements and cancellations lock sibling options in id order before touching odds
_LIST_OPTIONS_FOR_UPDATE_SQL = text(f"""
    SELECT {_OPTION_COLUMNS} FROM market_options
    WHERE market_id = :market_id ORDER BY id FOR UPDATE
""")

_GET_OPTION_SQL = text(f"SELECT {_OPTION_COLUMNS} FROM market_options WHERE id = :option_id")

_INSERT_OPTION_SQL = text("""
    INSERT INTO market_options (id, market_id, key, name, odds, is_active)
    VALUES (:id, :market_id, :key, :name, :odds, :is_active)
""")

_UPDATE_OPTION_SQL = text("""
    UPDATE market_options
    SET name = :name, odds = :odds, is_active = :is_active, updated_at = NOW()
    WHERE id = :id
""")

_INCREMENT_OPTION_SQL = text(f"""
    UPDATE market_options
    SET total_stake = total_stake + :stake_delta,
        bet_count = bet_count + :count_delta,
        updated_at = NOW()
    WHERE id = :option_id
    RETURNING {_OPTION_COLUMNS}
""")

_UPDATE_ODDS_SQL = text("""
    UPDATE market_options SET odds = :odds, updated_at = NOW() WHERE id = :option_id
""")

_MARK_WINNING_SQL = text("""
    UPDATE market_options SET is_winning_option = TRUE, updated_at = NOW()
    WHERE id IN :option_ids
""").bindparams(bindparam("option_ids", expanding=True))


# ---------------------------------------------------------------------------
# Row mappers
# ---------------------------------------------------------------------------


def _load_json(value: Any) -> dict[str, Any] | None:
    # asyncpg hands JSONB back as str unless a codec is registered
    if value is None or isinstance(value, dict):
        return value
    return json.loads(value)


def _row_to_market(row: Any) -> BettingMarket:
    return BettingMarket(
        id=row.id,
        match_id=row.match_id,
        market_type=row.market_type,
        name=row.name,
        description=row.description,
        is_active=row.is_active,
        status=row.status,
        opens_at=row.opens_at,
        closes_at=row.closes_at,
        settled_at=row.settled_at,
        min_stake_amount=row.min_stake_amount,
        max_stake_amount=row.max_stake_amount,
        metadata=_load_json(row.metadata),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _row_to_option(row: Any) -> MarketOption:
    return MarketOption(
        id=row.id,
        market_id=row.market_id,
        key=row.key,
        name=row.name,
        odds=row.odds,
        total_stake=row.total_stake,
        bet_count=row.bet_count,
        is_active=row.is_active,
        is_winning_option=row.is_winning_option,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class MarketRepository:
    async def get_market(
        self, db: AsyncSession, market_id: str, lock: str | None = None
    ) -> BettingMarket | None:
        result = await db.execute(_LOCK_VARIANTS[lock], {"market_id": market_id})
        row = result.fetchone()
        return _row_to_market(row) if row else None

    async def find_market_by_match(
        self, db: AsyncSession, match_id: str, market_type: str
    ) -> BettingMarket | None:
        result = await db.execute(
            _FIND_BY_MATCH_SQL, {"match_id": match_id, "market_type": market_type}
        )
        row = result.fetchone()
        return _row_to_market(row) if row else None

    async def list_markets(
        self,
        db: AsyncSession,
        match_id: str | None,
        status: str | None,
        market_type: str | None,
        cursor_id: str | None,
        limit: int,
    ) -> list[BettingMarket]:
        result = await db.execute(
            _LIST_MARKETS_SQL,
            {
                "match_id": match_id,
                "status": status,
                "market_type": market_type,
                "cursor_id": cursor_id,
                "limit": limit,
            },
        )
        return [_row_to_market(row) for row in result.fetchall()]

    async def insert_market(self, db: AsyncSession, market: BettingMarket) -> None:
        await db.execute(
            _INSERT_MARKET_SQL,
            {
                "id": market.id,
                "match_id": market.match_id,
                "market_type": market.market_type,
                "name": market.name,
                "description": market.description,
                "is_active": market.is_active,
                "status": market.status,
                "opens_at": market.opens_at,
                "closes_at": market.closes_at,
                "min_stake_amount": market.min_stake_amount,
                "max_stake_amount": market.max_stake_amount,
                "metadata": json.dumps(market.metadata) if market.metadata is not None else None,
            },
        )
        for option in market.options:
            await self.insert_option(db, option)

    async def update_market_status(
        self,
        db: AsyncSession,
        market_id: str,
        status: str,
        settled_at: datetime | None = None,
    ) -> None:
        await db.execute(
            _UPDATE_MARKET_STATUS_SQL,
            {"market_id": market_id, "status": status, "settled_at": settled_at},
        )

    async def delete_market(self, db: AsyncSession, market_id: str) -> None:
        # market_options rows go with it via ON DELETE CASCADE
        await db.execute(_DELETE_MARKET_SQL, {"market_id": market_id})

    async def list_options(
        self, db: AsyncSession, market_id: str, for_update: bool = False
    ) -> list[MarketOption]:
        sql = _LIST_OPTIONS_FOR_UPDATE_SQL if for_update else _LIST_OPTIONS_SQL
        result = await db.execute(sql, {"market_id": market_id})
        return [_row_to_option(row) for row in result.fetchall()]

    async def get_option(self, db: AsyncSession, option_id: str) -> MarketOption | None:
        result = await db.execute(_GET_OPTION_SQL, {"option_id": option_id})
        row = result.fetchone()
        return _row_to_option(row) if row else None

    async def insert_option(self, db: AsyncSession, option: MarketOption) -> None:
        await db.execute(
            _INSERT_OPTION_SQL,
            {
                "id": option.id,
                "market_id": option.market_id,
                "key": option.key,
                "name": option.name,
                "odds": option.odds,
                "is_active": option.is_active,
            },
        )

    async def update_option(self, db: AsyncSession, option: MarketOption) -> None:
        await db.execute(
            _UPDATE_OPTION_SQL,
            {
                "id": option.id,
                "name": option.name,
                "odds": option.odds,
                "is_active": option.is_active,
            },
        )

    async def increment_option_totals(
        self, db: AsyncSession, option_id: str, stake_delta: int, count_delta: int
    ) -> MarketOption:
        result = await db.execute(
            _INCREMENT_OPTION_SQL,
            {"option_id": option_id, "stake_delta": stake_delta, "count_delta": count_delta},
        )
        row = result.fetchone()
        if row is None:
            raise OptionNotFoundError(option_id)
        return _row_to_option(row)

    async def update_option_odds(self, db: AsyncSession, odds_by_option: dict[str, int]) -> None:
        for option_id, odds in odds_by_option.items():
            await db.execute(_UPDATE_ODDS_SQL, {"option_id": option_id, "odds": odds})

    async def mark_winning_options(self, db: AsyncSession, option_ids: list[str]) -> None:
        if option_ids:
            await db.execute(_MARK_WINNING_SQL, {"option_ids": option_ids})

    async def get_market_totals(self, db: AsyncSession, market_id: str) -> MarketTotals:
        row = (await db.execute(_MARKET_TOTALS_SQL, {"market_id": market_id})).fetchone()
        if row is None:
            return MarketTotals(total_stake=0, total_bets=0)
        return MarketTotals(total_stake=int(row.total_stake), total_bets=int(row.total_bets))
