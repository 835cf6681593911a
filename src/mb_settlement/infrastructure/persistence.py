# src/mb_settlement/infrastructure/persistence.py
"""OutcomeRepository — raw SQL persistence for bet_outcomes.

UNIQUE (market_id) makes an outcome write-once across processes; a losing
concurrent insert surfaces as MarketAlreadySettledError.
"""
import json
from typing import Any

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.mb_common.errors import MarketAlreadySettledError
from src.mb_settlement.domain.models import SettlementOutcome

_SELECT_COLUMNS = """
    id, market_id, winning_option_id, actual_result, settled_by, settled_at,
    settlement_notes, requires_manual_review, created_at
"""

_INSERT_OUTCOME_SQL = text("""
    INSERT INTO bet_outcomes (id, market_id, winning_option_id, actual_result,
        settled_by, settled_at, settlement_notes, requires_manual_review)
    VALUES (:id, :market_id, :winning_option_id, CAST(:actual_result AS JSONB),
        :settled_by, :settled_at, :settlement_notes, :requires_manual_review)
""")

_GET_BY_MARKET_SQL = text(
    f"SELECT {_SELECT_COLUMNS} FROM bet_outcomes WHERE market_id = :market_id"
)

_LIST_REVIEW_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM bet_outcomes
    WHERE requires_manual_review = TRUE
      AND (CAST(:cursor_id AS TEXT) IS NULL OR id < CAST(:cursor_id AS TEXT))
    ORDER BY id DESC
    LIMIT :limit
""")


def _row_to_outcome(row: Any) -> SettlementOutcome:
    actual_result = row.actual_result
    if isinstance(actual_result, str):
        actual_result = json.loads(actual_result)
    return SettlementOutcome(
        id=row.id,
        market_id=row.market_id,
        winning_option_id=row.winning_option_id,
        actual_result=actual_result or {},
        settled_by=row.settled_by,
        settled_at=row.settled_at,
        settlement_notes=row.settlement_notes,
        requires_manual_review=row.requires_manual_review,
        created_at=row.created_at,
    )


class OutcomeRepository:
    async def insert(self, db: AsyncSession, outcome: SettlementOutcome) -> None:
        try:
            await db.execute(
                _INSERT_OUTCOME_SQL,
                {
                    "id": outcome.id,
                    "market_id": outcome.market_id,
                    "winning_option_id": outcome.winning_option_id,
                    "actual_result": json.dumps(outcome.actual_result),
                    "settled_by": outcome.settled_by,
                    "settled_at": outcome.settled_at,
                    "settlement_notes": outcome.settlement_notes,
                    "requires_manual_review": outcome.requires_manual_review,
                },
            )
        except IntegrityError as exc:
            raise MarketAlreadySettledError(outcome.market_id) from exc

    async def get_by_market(
        self, db: AsyncSession, market_id: str
    ) -> SettlementOutcome | None:
        row = (await db.execute(_GET_BY_MARKET_SQL, {"market_id": market_id})).fetchone()
        return _row_to_outcome(row) if row else None

    async def list_requiring_review(
        self, db: AsyncSession, cursor_id: str | None, limit: int
    ) -> list[SettlementOutcome]:
        result = await db.execute(_LIST_REVIEW_SQL, {"cursor_id": cursor_id, "limit": limit})
        return [_row_to_outcome(row) for row in result.fetchall()]
