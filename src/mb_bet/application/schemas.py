"""Pydantic schemas for mb_bet requests and responses."""

from datetime import datetime

from pydantic import BaseModel, Field

from src.mb_bet.domain.models import Bet, UserBetStats
from src.mb_common.enums import PaymentMethod
from src.mb_common.money import cents_to_display, odds_to_display


class PlaceBetRequest(BaseModel):
    market_id: str
    option_id: str
    stake_cents: int = Field(gt=0)
    payment_method: PaymentMethod = PaymentMethod.ONLINE
    payment_reference: str | None = Field(None, max_length=128)


class CancelBetRequest(BaseModel):
    reason: str = Field("Cancelled by user", min_length=1, max_length=500)


def _iso(dt: datetime | None) -> str | None:
    return dt.isoformat() if dt else None


class BetResponse(BaseModel):
    id: str
    user_id: str
    market_id: str
    option_id: str
    stake_cents: int
    stake_display: str
    odds_at_placement: int
    odds_display: str
    potential_payout_cents: int
    potential_payout_display: str
    actual_payout_cents: int | None
    profit_cents: int
    status: str
    payment_method: str
    payment_status: str
    payment_reference: str | None
    payout_status: str
    refund_amount_cents: int | None
    cancellation_reason: str | None
    placed_at: str | None
    settled_at: str | None

    @classmethod
    def from_domain(cls, bet: Bet) -> "BetResponse":
        return cls(
            id=bet.id,
            user_id=bet.user_id,
            market_id=bet.market_id,
            option_id=bet.option_id,
            stake_cents=bet.stake_amount,
            stake_display=cents_to_display(bet.stake_amount),
            odds_at_placement=bet.odds_at_placement,
            odds_display=odds_to_display(bet.odds_at_placement),
            potential_payout_cents=bet.potential_payout,
            potential_payout_display=cents_to_display(bet.potential_payout),
            actual_payout_cents=bet.actual_payout,
            profit_cents=bet.profit,
            status=bet.status,
            payment_method=bet.payment_method,
            payment_status=bet.payment_status,
            payment_reference=bet.payment_reference,
            payout_status=bet.payout_status,
            refund_amount_cents=bet.refund_amount,
            cancellation_reason=bet.cancellation_reason,
            placed_at=_iso(bet.placed_at),
            settled_at=_iso(bet.settled_at),
        )


class BetListResponse(BaseModel):
    items: list[BetResponse]
    next_cursor: str | None
    has_more: bool


class UserStatsResponse(BaseModel):
    total_bets: int
    total_staked_cents: int
    total_won_cents: int
    total_lost_cents: int
    pending_bets: int
    win_rate: float
    profit_loss_cents: int
    profit_loss_display: str

    @classmethod
    def from_domain(cls, stats: UserBetStats) -> "UserStatsResponse":
        return cls(
            total_bets=stats.total_bets,
            total_staked_cents=stats.total_staked,
            total_won_cents=stats.total_won,
            total_lost_cents=stats.total_lost,
            pending_bets=stats.pending_bets,
            win_rate=stats.win_rate,
            profit_loss_cents=stats.profit_loss,
            profit_loss_display=cents_to_display(stats.profit_loss),
        )
