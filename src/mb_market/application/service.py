"""MarketApplicationService — market lifecycle, options, and odds refresh.

Mutating methods commit on success and roll back then re-raise on failure,
so a rejected request never leaves partial writes behind.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.mb_common.datetime_utils import Clock, utc_now
from src.mb_common.errors import (
    DuplicateOptionKeyError,
    InvalidMarketTransitionError,
    MarketHasBetsError,
    MarketNotFoundError,
    OptionHasBetsError,
    OptionNotFoundError,
)
from src.mb_common.id_generator import generate_id
from src.mb_market.application.schemas import (
    CreateDefaultMarketRequest,
    CreateMarketRequest,
    MarketDetail,
    MarketListResponse,
    MarketStatsResponse,
    OptionIn,
    OptionOut,
    UpdateOptionRequest,
)
from src.mb_market.domain.factory import build_default_market
from src.mb_market.domain.models import BettingMarket, MarketOption, MatchInfo
from src.mb_market.domain.odds import recalculate_market_odds
from src.mb_market.domain.repository import MarketRepositoryProtocol
from src.mb_market.infrastructure.persistence import MarketRepository

logger = logging.getLogger(__name__)


async def refresh_market_odds(
    repo: MarketRepositoryProtocol, db: AsyncSession, market_id: str
) -> dict[str, int]:
    """Re-quote every option of a market from the current stake pool. Caller commits."""
    options = await repo.list_options(db, market_id)
    changed = recalculate_market_odds(options)
    if changed:
        await repo.update_option_odds(db, changed)
        logger.info("Odds refreshed: market=%s changed=%s", market_id, changed)
    return changed


class MarketApplicationService:
    def __init__(
        self,
        repo: MarketRepositoryProtocol | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self._repo: MarketRepositoryProtocol = repo or MarketRepository()
        self._clock = clock

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def load_market(
        self, db: AsyncSession, market_id: str, lock: str | None = None
    ) -> BettingMarket:
        market = await self._repo.get_market(db, market_id, lock=lock)
        if market is None:
            raise MarketNotFoundError(market_id)
        market.options = await self._repo.list_options(db, market_id)
        return market

    def to_detail(self, market: BettingMarket) -> MarketDetail:
        return MarketDetail.from_domain(
            market,
            is_open=market.is_open_for_betting(
                self._clock(), settings.BETTING_ENFORCE_CLOSES_AT
            ),
            min_stake=market.effective_min_stake(settings.BETTING_MIN_STAKE_CENTS),
            max_stake=market.effective_max_stake(settings.BETTING_MAX_STAKE_CENTS),
        )

    async def get_market(self, db: AsyncSession, market_id: str) -> MarketDetail:
        return self.to_detail(await self.load_market(db, market_id))

    async def list_markets(
        self,
        db: AsyncSession,
        match_id: str | None,
        status: str | None,
        market_type: str | None,
        cursor: str | None,
        limit: int,
    ) -> MarketListResponse:
        # Fetch limit+1 to detect has_more without COUNT(*)
        markets = await self._repo.list_markets(
            db, match_id, status, market_type, cursor, limit + 1
        )
        has_more = len(markets) > limit
        page = markets[:limit]
        for market in page:
            market.options = await self._repo.list_options(db, market.id)
        return MarketListResponse(
            items=[self.to_detail(m) for m in page],
            next_cursor=page[-1].id if has_more and page else None,
            has_more=has_more,
        )

    async def get_market_stats(self, db: AsyncSession, market_id: str) -> MarketStatsResponse:
        market = await self.load_market(db, market_id)
        totals = await self._repo.get_market_totals(db, market_id)
        return MarketStatsResponse.from_totals(market, totals)

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    async def create_market(self, db: AsyncSession, req: CreateMarketRequest) -> MarketDetail:
        keys = [o.key for o in req.options]
        duplicates = {k for k in keys if keys.count(k) > 1}
        if duplicates:
            raise DuplicateOptionKeyError(sorted(duplicates)[0])

        market_id = generate_id()
        market = BettingMarket(
            id=market_id,
            match_id=req.match_id,
            market_type=req.market_type.value,
            name=req.name,
            description=req.description,
            opens_at=req.opens_at or self._clock(),
            closes_at=req.closes_at,
            min_stake_amount=req.min_stake_cents,
            max_stake_amount=req.max_stake_cents,
            metadata=req.metadata,
        )
        market.options = [self._build_option(market_id, o) for o in req.options]
        await self._insert(db, market)
        return self.to_detail(market)

    async def create_default_market(
        self, db: AsyncSession, req: CreateDefaultMarketRequest
    ) -> MarketDetail:
        match = MatchInfo(
            match_id=req.match_id,
            first_team_name=req.first_team_name,
            second_team_name=req.second_team_name,
            match_time=req.match_time,
        )
        market = build_default_market(
            match, self._clock(), req.min_stake_cents, req.max_stake_cents
        )
        await self._insert(db, market)
        return self.to_detail(market)

    async def _insert(self, db: AsyncSession, market: BettingMarket) -> None:
        try:
            await self._repo.insert_market(db, market)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info(
            "Market created: id=%s match=%s type=%s options=%d",
            market.id, market.match_id, market.market_type, len(market.options),
        )

    @staticmethod
    def _build_option(market_id: str, data: OptionIn) -> MarketOption:
        return MarketOption(
            id=generate_id(),
            market_id=market_id,
            key=data.key,
            name=data.name,
            odds=data.odds,
            is_active=data.is_active,
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def suspend_market(self, db: AsyncSession, market_id: str) -> MarketDetail:
        return await self._transition(db, market_id, "suspend")

    async def reopen_market(self, db: AsyncSession, market_id: str) -> MarketDetail:
        return await self._transition(db, market_id, "reopen")

    async def _transition(self, db: AsyncSession, market_id: str, action: str) -> MarketDetail:
        try:
            market = await self.load_market(db, market_id, lock="update")
            if action == "suspend":
                market.suspend()
            else:
                market.reopen()
            await self._repo.update_market_status(db, market_id, market.status)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("Market %s: id=%s status=%s", action, market_id, market.status)
        return self.to_detail(market)

    async def delete_market(self, db: AsyncSession, market_id: str) -> None:
        try:
            await self.load_market(db, market_id, lock="update")
            totals = await self._repo.get_market_totals(db, market_id)
            if totals.total_bets > 0:
                raise MarketHasBetsError(market_id)
            await self._repo.delete_market(db, market_id)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("Market deleted: id=%s", market_id)

    # ------------------------------------------------------------------
    # Options
    # ------------------------------------------------------------------

    async def add_option(self, db: AsyncSession, market_id: str, req: OptionIn) -> OptionOut:
        try:
            market = await self.load_market(db, market_id, lock="update")
            if market.is_terminal:
                raise InvalidMarketTransitionError(market_id, market.status, "add options to")
            if market.option_by_key(req.key) is not None:
                raise DuplicateOptionKeyError(req.key)
            option = self._build_option(market_id, req)
            await self._repo.insert_option(db, option)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        return OptionOut.from_domain(option)

    async def update_option(
        self, db: AsyncSession, option_id: str, req: UpdateOptionRequest
    ) -> OptionOut:
        try:
            option = await self._repo.get_option(db, option_id)
            if option is None:
                raise OptionNotFoundError(option_id)
            market = await self.load_market(db, option.market_id, lock="update")
            if market.is_terminal:
                raise InvalidMarketTransitionError(market.id, market.status, "modify options of")
            if option.bet_count > 0:
                raise OptionHasBetsError(option_id)
            if req.name is not None:
                option.name = req.name
            if req.odds is not None:
                option.odds = req.odds
            if req.is_active is not None:
                option.is_active = req.is_active
            await self._repo.update_option(db, option)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        return OptionOut.from_domain(option)
