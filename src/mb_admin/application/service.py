# src/mb_admin/application/service.py
"""Admin application service — operator actions spanning markets, bets and settlement."""
import logging
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.mb_bet.application.schemas import BetResponse
from src.mb_bet.application.service import BetApplicationService
from src.mb_market.application.schemas import MarketDetail
from src.mb_market.application.service import MarketApplicationService
from src.mb_settlement.application.schemas import (
    MatchResultIn,
    SettleMarketRequest,
    SettlementResponse,
)
from src.mb_settlement.application.service import SettlementService, get_settlement_service

logger = logging.getLogger(__name__)


class AdminService:
    def __init__(
        self,
        markets: MarketApplicationService | None = None,
        bets: BetApplicationService | None = None,
        settlement: SettlementService | None = None,
    ) -> None:
        self._markets = markets or MarketApplicationService()
        self._bets = bets or BetApplicationService()
        self._settlement = settlement or get_settlement_service()

    async def settle_market(
        self, db: AsyncSession, market_id: str, req: SettleMarketRequest, operator_id: str
    ) -> SettlementResponse | None:
        return await self._settlement.settle_market(db, market_id, req, settled_by=operator_id)

    async def cancel_market(
        self, db: AsyncSession, market_id: str, notes: str | None, operator_id: str
    ) -> SettlementResponse | None:
        return await self._settlement.create_cancelled_outcome(
            db, market_id, settled_by=operator_id, notes=notes
        )

    async def suspend_market(self, db: AsyncSession, market_id: str) -> MarketDetail:
        return await self._markets.suspend_market(db, market_id)

    async def reopen_market(self, db: AsyncSession, market_id: str) -> MarketDetail:
        return await self._markets.reopen_market(db, market_id)

    async def cancel_bet(
        self, db: AsyncSession, bet_id: str, reason: str
    ) -> BetResponse:
        return await self._bets.cancel_bet(db, bet_id, reason)

    async def ingest_match_result(
        self, db: AsyncSession, body: MatchResultIn, operator_id: str
    ) -> dict[str, Any]:
        """Record a match result from the result source; auto-settle when enabled."""
        if not body.is_concluded:
            return {"match_id": body.match_id, "settled": False, "reason": "match not concluded"}
        if not settings.BETTING_AUTO_SETTLE:
            logger.info("Auto-settle disabled; match=%s left for manual settlement", body.match_id)
            return {"match_id": body.match_id, "settled": False, "reason": "auto-settle disabled"}

        result = await self._settlement.create_from_match_result(
            db, body.to_domain(), settled_by=operator_id
        )
        if result is None:
            return {"match_id": body.match_id, "settled": False, "reason": "nothing to settle"}
        return {"match_id": body.match_id, "settled": True, "settlement": result.model_dump()}
