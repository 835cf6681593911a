"""SettlementService — turns a match result or operator decision into a write-once outcome.

Every path runs the same sequence under the per-market asyncio.Lock:

    1. SELECT market FOR UPDATE         (waits for in-flight placements; blocks new ones)
    2. reject terminal market / existing outcome → MarketAlreadySettled
    3. build + insert the outcome        (UNIQUE market_id backs this across processes)
    4. resolve every unresolved bet      (bet rows locked FOR UPDATE)
    5. write the market's terminal status
    6. COMMIT                            (any error → ROLLBACK, nothing persisted)

The in-process lock only short-circuits concurrent requests inside one worker;
the row lock and the UNIQUE constraint are what hold across replicas.
"""

import asyncio
import logging
from collections import defaultdict
from collections.abc import Callable

from sqlalchemy.ext.asyncio import AsyncSession

from src.mb_bet.domain.models import Bet
from src.mb_bet.domain.repository import BetRepositoryProtocol
from src.mb_bet.infrastructure.persistence import BetRepository
from src.mb_common.datetime_utils import Clock, utc_now
from src.mb_common.enums import BetStatus, MarketStatus, MarketType, SettlementType
from src.mb_common.errors import (
    InvalidWinningOptionError,
    MarketAlreadySettledError,
    MarketNotFoundError,
    MatchNotConcludedError,
)
from src.mb_common.id_generator import generate_id
from src.mb_market.domain.models import BettingMarket
from src.mb_market.domain.repository import MarketRepositoryProtocol
from src.mb_market.infrastructure.persistence import MarketRepository
from src.mb_settlement.application.schemas import (
    OutcomeListResponse,
    OutcomeResponse,
    SettleMarketRequest,
    SettlementResponse,
)
from src.mb_settlement.domain.models import MatchResult, SettlementOutcome, SettlementSummary
from src.mb_settlement.domain.repository import OutcomeRepositoryProtocol
from src.mb_settlement.domain.settlement import refund_bets, settle_bets, winning_option_key
from src.mb_settlement.infrastructure.persistence import OutcomeRepository

logger = logging.getLogger(__name__)

AUTO_SETTLED_NOTES = "Auto-settled based on game match result"
MANUAL_SETTLED_NOTES = "Manually settled by administrator"
CANCELLED_NOTES = "Market cancelled - all bets refunded"

_CANCEL_RESULTS = frozenset({"cancelled", "refunded"})

# Builds the outcome from the locked market, or returns None when there is nothing to settle
OutcomeBuilder = Callable[[BettingMarket], SettlementOutcome | None]


class SettlementService:
    def __init__(
        self,
        market_repo: MarketRepositoryProtocol | None = None,
        bet_repo: BetRepositoryProtocol | None = None,
        outcome_repo: OutcomeRepositoryProtocol | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self._markets: MarketRepositoryProtocol = market_repo or MarketRepository()
        self._bets: BetRepositoryProtocol = bet_repo or BetRepository()
        self._outcomes: OutcomeRepositoryProtocol = outcome_repo or OutcomeRepository()
        self._clock = clock
        self._market_locks: dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    # ------------------------------------------------------------------
    # Path A: automatic, from a concluded match
    # ------------------------------------------------------------------

    async def create_from_match_result(
        self, db: AsyncSession, result: MatchResult, settled_by: str | None = None
    ) -> SettlementResponse | None:
        """Settle the match's 1x2 market. Returns None when there is nothing to settle."""
        if not result.is_concluded:
            raise MatchNotConcludedError(result.match_id)
        market = await self._markets.find_market_by_match(
            db, result.match_id, MarketType.ONE_X_TWO.value
        )
        if market is None:
            logger.info("Auto-settlement skipped: match=%s has no 1x2 market", result.match_id)
            return None
        return await self._run(
            db, market.id, lambda m: self._auto_outcome(m, result, settled_by)
        )

    def _auto_outcome(
        self, market: BettingMarket, result: MatchResult, settled_by: str | None
    ) -> SettlementOutcome | None:
        key = winning_option_key(result)
        if key is None:
            logger.warning(
                "Auto-settlement skipped: match=%s result names no winner", result.match_id
            )
            return None
        option = market.option_by_key(key)
        if option is None:
            logger.warning(
                "Auto-settlement skipped: market=%s has no option %r", market.id, key
            )
            return None
        return SettlementOutcome(
            id=generate_id(),
            market_id=market.id,
            winning_option_id=option.id,
            actual_result={
                "first_team_score": result.first_team_score,
                "second_team_score": result.second_team_score,
                "winning_team_id": result.winning_team_id,
                "outcome": result.outcome,
            },
            settled_at=self._clock(),
            settled_by=settled_by,
            settlement_notes=AUTO_SETTLED_NOTES,
        )

    # ------------------------------------------------------------------
    # Path B: manual, operator names the winners
    # ------------------------------------------------------------------

    async def create_manual_outcome(
        self,
        db: AsyncSession,
        market_id: str,
        winning_option_ids: list[str],
        settled_by: str | None = None,
        notes: str | None = None,
        requires_manual_review: bool = False,
    ) -> SettlementResponse | None:
        def build(market: BettingMarket) -> SettlementOutcome:
            known = {o.id for o in market.options}
            invalid = [i for i in winning_option_ids if i not in known]
            if invalid or not winning_option_ids:
                raise InvalidWinningOptionError(invalid or winning_option_ids)
            # dict.fromkeys keeps the first id first and drops repeats
            ids = list(dict.fromkeys(winning_option_ids))
            return SettlementOutcome(
                id=generate_id(),
                market_id=market.id,
                winning_option_id=ids[0],
                actual_result={
                    "winning_option_ids": ids,
                    "settlement_type": SettlementType.MANUAL.value,
                },
                settled_at=self._clock(),
                settled_by=settled_by,
                settlement_notes=notes or MANUAL_SETTLED_NOTES,
                requires_manual_review=requires_manual_review,
            )

        return await self._run(db, market_id, build)

    # ------------------------------------------------------------------
    # Path C: cancellation
    # ------------------------------------------------------------------

    async def create_cancelled_outcome(
        self,
        db: AsyncSession,
        market_id: str,
        settled_by: str | None = None,
        notes: str | None = None,
    ) -> SettlementResponse | None:
        def build(market: BettingMarket) -> SettlementOutcome:
            return SettlementOutcome(
                id=generate_id(),
                market_id=market.id,
                winning_option_id=None,
                actual_result={"settlement_type": SettlementType.CANCELLED.value},
                settled_at=self._clock(),
                settled_by=settled_by,
                settlement_notes=notes or CANCELLED_NOTES,
            )

        return await self._run(db, market_id, build)

    # ------------------------------------------------------------------
    # Operator dispatcher
    # ------------------------------------------------------------------

    async def settle_market(
        self,
        db: AsyncSession,
        market_id: str,
        req: SettleMarketRequest,
        settled_by: str | None = None,
    ) -> SettlementResponse | None:
        if req.settlement_result in _CANCEL_RESULTS:
            return await self.create_cancelled_outcome(db, market_id, settled_by, req.notes)
        if req.winning_option_ids:
            return await self.create_manual_outcome(
                db,
                market_id,
                req.winning_option_ids,
                settled_by,
                req.notes,
                req.requires_manual_review,
            )
        if req.match_result is None or not req.match_result.is_concluded:
            market = await self._markets.get_market(db, market_id)
            if market is None:
                raise MarketNotFoundError(market_id)
            raise MatchNotConcludedError(market.match_id)

        result = req.match_result.to_domain()
        return await self._run(
            db, market_id, lambda m: self._auto_outcome_for(m, result, settled_by)
        )

    def _auto_outcome_for(
        self, market: BettingMarket, result: MatchResult, settled_by: str | None
    ) -> SettlementOutcome | None:
        # Automatic settlement only knows how to read a 1x2 market of the same match
        if market.match_id != result.match_id or market.market_type != MarketType.ONE_X_TWO:
            logger.warning(
                "Auto-settlement skipped: market=%s type=%s match=%s does not match result for %s",
                market.id, market.market_type, market.match_id, result.match_id,
            )
            return None
        return self._auto_outcome(market, result, settled_by)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_outcome(self, db: AsyncSession, market_id: str) -> OutcomeResponse | None:
        outcome = await self._outcomes.get_by_market(db, market_id)
        return OutcomeResponse.from_domain(outcome) if outcome else None

    async def list_outcomes_requiring_review(
        self, db: AsyncSession, cursor: str | None, limit: int
    ) -> OutcomeListResponse:
        outcomes = await self._outcomes.list_requiring_review(db, cursor, limit + 1)
        has_more = len(outcomes) > limit
        page = outcomes[:limit]
        return OutcomeListResponse(
            items=[OutcomeResponse.from_domain(o) for o in page],
            next_cursor=page[-1].id if has_more and page else None,
            has_more=has_more,
        )

    # ------------------------------------------------------------------
    # Shared run
    # ------------------------------------------------------------------

    async def _run(
        self, db: AsyncSession, market_id: str, build: OutcomeBuilder
    ) -> SettlementResponse | None:
        async with self._market_locks[market_id]:
            try:
                market = await self._markets.get_market(db, market_id, lock="update")
                if market is None:
                    raise MarketNotFoundError(market_id)
                if market.is_terminal:
                    raise MarketAlreadySettledError(market_id)
                if await self._outcomes.get_by_market(db, market_id) is not None:
                    raise MarketAlreadySettledError(market_id)
                market.options = await self._markets.list_options(db, market_id)

                outcome = build(market)
                if outcome is None:
                    # Nothing to settle; release the row lock without writing
                    await db.rollback()
                    return None

                await self._outcomes.insert(db, outcome)
                bets = await self._bets.list_unresolved_by_market(db, market_id)
                if outcome.is_cancellation:
                    touched = refund_bets(bets, outcome.settled_at)
                    status = MarketStatus.CANCELLED
                else:
                    await self._markets.mark_winning_options(db, outcome.winning_option_ids)
                    touched = settle_bets(bets, outcome.winning_option_ids, outcome.settled_at)
                    status = MarketStatus.SETTLED
                for bet in touched:
                    await self._bets.update(db, bet)
                await self._markets.update_market_status(
                    db, market_id, status.value, settled_at=outcome.settled_at
                )
                await db.commit()
            except Exception:
                await db.rollback()
                raise

        summary = _summarize(market_id, outcome, status.value, touched)
        logger.info(
            "Market settled: market=%s type=%s status=%s won=%d lost=%d cancelled=%d payout=%d",
            market_id, outcome.settlement_type, summary.market_status,
            summary.won, summary.lost, summary.cancelled, summary.total_payout,
        )
        return SettlementResponse.build(outcome, summary)


def _summarize(
    market_id: str, outcome: SettlementOutcome, market_status: str, bets: list[Bet]
) -> SettlementSummary:
    summary = SettlementSummary(
        market_id=market_id,
        outcome_id=outcome.id,
        settlement_type=outcome.settlement_type,
        market_status=market_status,
    )
    for bet in bets:
        summary.bet_ids.append(bet.id)
        if bet.status == BetStatus.WON:
            summary.won += 1
            summary.total_payout += bet.actual_payout or 0
        elif bet.status == BetStatus.LOST:
            summary.lost += 1
        elif bet.status == BetStatus.CANCELLED:
            summary.cancelled += 1
            summary.total_refund += bet.refund_amount or 0
    return summary


_service: SettlementService | None = None


def get_settlement_service() -> SettlementService:
    """Process-wide singleton so every router shares the same per-market locks."""
    global _service
    if _service is None:
        _service = SettlementService()
    return _service