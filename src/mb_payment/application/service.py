"""PaymentApplicationService — inbound reports from the payment and disbursement collaborators.

Each call locks the bet row FOR UPDATE, applies one state transition on the
Bet model and commits. Settlement holds the same row locks while it runs, so
a report arriving mid-settlement sees the settled state.

A failed payment takes the stake out of its option's totals and re-quotes the
market; a late confirmation puts it back. Both take the placement locks
(market FOR SHARE, options FOR UPDATE) before the bet row.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.mb_bet.application.schemas import BetResponse
from src.mb_bet.application.service import lock_market_pool, sync_option_totals
from src.mb_bet.domain.models import Bet
from src.mb_bet.domain.repository import BetRepositoryProtocol
from src.mb_bet.infrastructure.persistence import BetRepository
from src.mb_common.datetime_utils import Clock, utc_now
from src.mb_common.errors import BetNotFoundError
from src.mb_market.domain.repository import MarketRepositoryProtocol
from src.mb_market.infrastructure.persistence import MarketRepository
from src.mb_payment.application.schemas import PaymentCallbackRequest, PendingPayoutListResponse

logger = logging.getLogger(__name__)


class PaymentApplicationService:
    def __init__(
        self,
        bet_repo: BetRepositoryProtocol | None = None,
        market_repo: MarketRepositoryProtocol | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self._bets: BetRepositoryProtocol = bet_repo or BetRepository()
        self._markets: MarketRepositoryProtocol = market_repo or MarketRepository()
        self._clock = clock

    async def _find_bet(
        self, db: AsyncSession, req: PaymentCallbackRequest, for_update: bool = False
    ) -> Bet:
        if req.bet_id:
            bet = await self._bets.get_by_id(db, req.bet_id, for_update=for_update)
        else:
            bet = await self._bets.get_by_payment_reference(
                db, req.payment_reference, for_update=for_update
            )
        if bet is None:
            raise BetNotFoundError(req.bet_id or req.payment_reference)
        return bet

    async def _lock_bet_in_pool(self, db: AsyncSession, req: PaymentCallbackRequest) -> Bet:
        found = await self._find_bet(db, req)
        await lock_market_pool(self._markets, db, found.market_id)
        return await self._find_bet(db, req, for_update=True)

    async def _lock_bet_by_id(self, db: AsyncSession, bet_id: str) -> Bet:
        bet = await self._bets.get_by_id(db, bet_id, for_update=True)
        if bet is None:
            raise BetNotFoundError(bet_id)
        return bet

    async def confirm_payment(self, db: AsyncSession, req: PaymentCallbackRequest) -> BetResponse:
        now = self._clock()
        try:
            bet = await self._lock_bet_in_pool(db, req)
            was_counted = bet.counts_toward_pool
            bet.confirm_payment(now, req.payment_reference)
            await self._bets.update(db, bet)
            await sync_option_totals(self._markets, db, bet, was_counted)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("Payment confirmed: bet=%s reference=%s", bet.id, bet.payment_reference)
        return BetResponse.from_domain(bet)

    async def fail_payment(self, db: AsyncSession, req: PaymentCallbackRequest) -> BetResponse:
        now = self._clock()
        try:
            bet = await self._lock_bet_in_pool(db, req)
            was_counted = bet.counts_toward_pool
            bet.fail_payment(now, req.reason)
            await self._bets.update(db, bet)
            await sync_option_totals(self._markets, db, bet, was_counted)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.warning(
            "Payment failed: bet=%s stake=%d reason=%s", bet.id, bet.stake_amount, req.reason
        )
        return BetResponse.from_domain(bet)

    async def record_payout(
        self, db: AsyncSession, bet_id: str, success: bool, reference: str | None
    ) -> BetResponse:
        now = self._clock()
        try:
            bet = await self._lock_bet_by_id(db, bet_id)
            bet.record_payout(success, now, reference)
            await self._bets.update(db, bet)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        if success:
            logger.info("Payout completed: bet=%s amount=%s", bet.id, bet.payout_amount)
        else:
            logger.warning("Payout failed: bet=%s (retryable)", bet.id)
        return BetResponse.from_domain(bet)

    async def record_refund(
        self, db: AsyncSession, bet_id: str, reference: str | None
    ) -> BetResponse:
        now = self._clock()
        try:
            bet = await self._lock_bet_by_id(db, bet_id)
            bet.record_refund(now, reference)
            await self._bets.update(db, bet)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("Refund recorded: bet=%s amount=%s", bet.id, bet.refund_amount)
        return BetResponse.from_domain(bet)

    async def list_pending_payouts(
        self, db: AsyncSession, cursor: str | None, limit: int
    ) -> PendingPayoutListResponse:
        bets = await self._bets.list_pending_payouts(db, cursor, limit + 1)
        has_more = len(bets) > limit
        page = bets[:limit]
        return PendingPayoutListResponse(
            items=[BetResponse.from_domain(b) for b in page],
            next_cursor=page[-1].id if has_more and page else None,
            has_more=has_more,
        )
