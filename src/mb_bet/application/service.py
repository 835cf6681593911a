"""BetApplicationService — placement, cancellation and read paths for bets.

Placement lock order (shared with cancellation, payment reports and settlement):
    market row (FOR SHARE) → option rows in id order (FOR UPDATE) → bet row
Settlement takes the market row FOR UPDATE, so it waits for in-flight
placements and blocks new ones until it commits.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.mb_bet.application.schemas import (
    BetListResponse,
    BetResponse,
    PlaceBetRequest,
    UserStatsResponse,
)
from src.mb_bet.domain.models import Bet
from src.mb_bet.domain.repository import BetRepositoryProtocol
from src.mb_bet.infrastructure.persistence import BetRepository
from src.mb_common.datetime_utils import Clock, utc_now
from src.mb_common.errors import (
    BetNotFoundError,
    MarketClosedError,
    MarketNotFoundError,
    OptionNotFoundError,
)
from src.mb_common.id_generator import generate_id
from src.mb_market.application.service import refresh_market_odds
from src.mb_market.domain.models import BettingMarket
from src.mb_market.domain.repository import MarketRepositoryProtocol
from src.mb_market.infrastructure.persistence import MarketRepository
from src.mb_risk.rules.market_open import check_market_open
from src.mb_risk.rules.stake_limit import check_stake_limit

logger = logging.getLogger(__name__)


async def lock_market_pool(
    markets: MarketRepositoryProtocol, db: AsyncSession, market_id: str
) -> BettingMarket:
    """Take the placement locks: market row FOR SHARE, then its options FOR UPDATE."""
    market = await markets.get_market(db, market_id, lock="share")
    if market is None:
        raise MarketNotFoundError(market_id)
    market.options = await markets.list_options(db, market_id, for_update=True)
    return market


async def sync_option_totals(
    markets: MarketRepositoryProtocol, db: AsyncSession, bet: Bet, was_counted: bool
) -> None:
    """Move the bet's stake in or out of its option after a transition. Caller holds the locks."""
    if bet.counts_toward_pool == was_counted:
        return
    sign = 1 if bet.counts_toward_pool else -1
    await markets.increment_option_totals(db, bet.option_id, sign * bet.stake_amount, sign)
    await refresh_market_odds(markets, db, bet.market_id)


class BetApplicationService:
    def __init__(
        self,
        bet_repo: BetRepositoryProtocol | None = None,
        market_repo: MarketRepositoryProtocol | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self._bets: BetRepositoryProtocol = bet_repo or BetRepository()
        self._markets: MarketRepositoryProtocol = market_repo or MarketRepository()
        self._clock = clock

    # ------------------------------------------------------------------
    # Placement
    # ------------------------------------------------------------------

    async def place_bet(
        self, db: AsyncSession, user_id: str, req: PlaceBetRequest
    ) -> BetResponse:
        now = self._clock()
        try:
            market = await lock_market_pool(self._markets, db, req.market_id)
            option = next((o for o in market.options if o.id == req.option_id), None)
            if option is None:
                raise OptionNotFoundError(req.option_id)

            check_market_open(market, option, now, settings.BETTING_ENFORCE_CLOSES_AT)
            check_stake_limit(
                req.stake_cents,
                market.effective_min_stake(settings.BETTING_MIN_STAKE_CENTS),
                market.effective_max_stake(settings.BETTING_MAX_STAKE_CENTS),
            )

            # Odds are snapshotted before this stake moves the pool
            bet = Bet.place(
                bet_id=generate_id(),
                user_id=user_id,
                market_id=market.id,
                option_id=option.id,
                stake_amount=req.stake_cents,
                odds=option.odds,
                payment_method=req.payment_method.value,
                payment_reference=req.payment_reference,
                now=now,
            )
            await self._bets.insert(db, bet)
            await self._markets.increment_option_totals(db, option.id, bet.stake_amount, 1)
            await refresh_market_odds(self._markets, db, market.id)
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        logger.info(
            "Bet placed: id=%s user=%s market=%s option=%s stake=%d odds=%d",
            bet.id, user_id, market.id, option.id, bet.stake_amount, bet.odds_at_placement,
        )
        return BetResponse.from_domain(bet)

    # ------------------------------------------------------------------
    # Cancellation
    # ------------------------------------------------------------------

    async def cancel_bet(
        self,
        db: AsyncSession,
        bet_id: str,
        reason: str,
        user_id: str | None = None,
    ) -> BetResponse:
        """Cancel a bet before its market settles.

        `user_id` restricts the cancellation to the bet's owner and to markets
        still open for betting; operators pass None and may cancel any time
        before settlement.
        """
        now = self._clock()
        try:
            found = await self._bets.get_by_id(db, bet_id)
            if found is None or (user_id is not None and found.user_id != user_id):
                raise BetNotFoundError(bet_id)

            market = await lock_market_pool(self._markets, db, found.market_id)
            if user_id is not None and not market.is_open_for_betting(
                now, settings.BETTING_ENFORCE_CLOSES_AT
            ):
                raise MarketClosedError(market.id)
            bet = await self._bets.get_by_id(db, bet_id, for_update=True)
            if bet is None:
                raise BetNotFoundError(bet_id)

            was_counted = bet.counts_toward_pool
            bet.cancel(now, reason)
            await self._bets.update(db, bet)
            await sync_option_totals(self._markets, db, bet, was_counted)
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        logger.info(
            "Bet cancelled: id=%s market=%s refund=%s reason=%s",
            bet.id, bet.market_id, bet.refund_amount, reason,
        )
        return BetResponse.from_domain(bet)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_bet(
        self, db: AsyncSession, bet_id: str, user_id: str | None = None
    ) -> BetResponse:
        bet = await self._bets.get_by_id(db, bet_id)
        if bet is None or (user_id is not None and bet.user_id != user_id):
            raise BetNotFoundError(bet_id)
        return BetResponse.from_domain(bet)

    async def list_user_bets(
        self,
        db: AsyncSession,
        user_id: str,
        market_id: str | None,
        status: str | None,
        cursor: str | None,
        limit: int,
    ) -> BetListResponse:
        bets = await self._bets.list_by_user(db, user_id, market_id, status, cursor, limit + 1)
        has_more = len(bets) > limit
        page = bets[:limit]
        return BetListResponse(
            items=[BetResponse.from_domain(b) for b in page],
            next_cursor=page[-1].id if has_more and page else None,
            has_more=has_more,
        )

    async def get_user_stats(self, db: AsyncSession, user_id: str) -> UserStatsResponse:
        stats = await self._bets.get_user_stats(db, user_id)
        return UserStatsResponse.from_domain(stats)
