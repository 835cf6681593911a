"""Bet domain model and its state machine.

    pending ──confirm_payment──▶ active ──▶ won | lost
       │                           │
       └──────────cancel───────────┴──▶ cancelled ──record_refund──▶ refunded

Every transition takes `now` from the caller so one operation stamps one time.
"""

from dataclasses import dataclass
from datetime import datetime

from src.mb_common.enums import (
    TERMINAL_BET_STATUSES,
    BetStatus,
    PaymentMethod,
    PaymentStatus,
    PayoutStatus,
)
from src.mb_common.errors import (
    BetAlreadyResolvedError,
    BetNotCancellableError,
    PaymentAlreadyConfirmedError,
    PaymentNotPendingError,
    PayoutAlreadyCompletedError,
    PayoutNotEligibleError,
    RefundNotEligibleError,
)
from src.mb_common.money import calculate_payout


@dataclass
class Bet:
    id: str
    user_id: str
    market_id: str
    option_id: str
    stake_amount: int                 # cents
    odds_at_placement: int            # hundredths, snapshotted, never changes
    potential_payout: int             # cents, stake × odds_at_placement
    status: str = BetStatus.PENDING.value
    actual_payout: int | None = None  # cents, set once at resolution
    # Payment (written only through confirm_payment / fail_payment)
    payment_method: str = PaymentMethod.ONLINE.value
    payment_status: str = PaymentStatus.PENDING.value
    payment_reference: str | None = None
    payment_confirmed_at: datetime | None = None
    # Payout (reported back by the disbursement collaborator)
    payout_status: str = PayoutStatus.PENDING.value
    payout_amount: int | None = None
    payout_reference: str | None = None
    payout_processed_at: datetime | None = None
    # Cancellation / refund
    cancelled_at: datetime | None = None
    cancellation_reason: str | None = None
    refund_amount: int | None = None
    refund_reference: str | None = None
    refund_processed_at: datetime | None = None
    notes: str | None = None
    placed_at: datetime | None = None
    settled_at: datetime | None = None

    @classmethod
    def place(
        cls,
        bet_id: str,
        user_id: str,
        market_id: str,
        option_id: str,
        stake_amount: int,
        odds: int,
        payment_method: str,
        payment_reference: str | None,
        now: datetime,
    ) -> "Bet":
        return cls(
            id=bet_id,
            user_id=user_id,
            market_id=market_id,
            option_id=option_id,
            stake_amount=stake_amount,
            odds_at_placement=odds,
            potential_payout=calculate_payout(stake_amount, odds),
            payment_method=payment_method,
            payment_reference=payment_reference,
            placed_at=now,
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def is_resolved(self) -> bool:
        return self.status in TERMINAL_BET_STATUSES

    @property
    def is_payment_confirmed(self) -> bool:
        return self.payment_status == PaymentStatus.CONFIRMED

    @property
    def counts_toward_pool(self) -> bool:
        """Unresolved and not failed at payment: this stake is part of the option totals."""
        return not self.is_resolved and self.payment_status != PaymentStatus.FAILED

    @property
    def profit(self) -> int:
        if self.actual_payout is None:
            return 0
        return self.actual_payout - self.stake_amount

    # ------------------------------------------------------------------
    # Payment collaborator
    # ------------------------------------------------------------------

    def confirm_payment(self, now: datetime, reference: str | None = None) -> None:
        if self.is_payment_confirmed:
            raise PaymentAlreadyConfirmedError(self.id)
        if self.is_resolved:
            raise BetAlreadyResolvedError(self.id, self.status)
        self.payment_status = PaymentStatus.CONFIRMED.value
        self.payment_confirmed_at = now
        if reference:
            self.payment_reference = reference
        self.status = BetStatus.ACTIVE.value

    def fail_payment(self, now: datetime, reason: str | None = None) -> None:
        # Stays pending and leaves the pool; a later confirmation brings it back
        if self.payment_status != PaymentStatus.PENDING:
            raise PaymentNotPendingError(self.id, self.payment_status)
        self.payment_status = PaymentStatus.FAILED.value
        self.notes = f"Payment failed at {now.isoformat()}" + (f": {reason}" if reason else "")

    # ------------------------------------------------------------------
    # Settlement
    # ------------------------------------------------------------------

    def _ensure_unresolved(self) -> None:
        if self.is_resolved:
            raise BetAlreadyResolvedError(self.id, self.status)

    def mark_as_won(self, now: datetime) -> None:
        self._ensure_unresolved()
        self.status = BetStatus.WON.value
        self.actual_payout = self.potential_payout
        self.settled_at = now

    def mark_as_lost(self, now: datetime) -> None:
        self._ensure_unresolved()
        self.status = BetStatus.LOST.value
        self.actual_payout = 0
        self.settled_at = now

    def mark_as_cancelled(self, now: datetime, reason: str | None = None) -> None:
        self._ensure_unresolved()
        self.status = BetStatus.CANCELLED.value
        self.actual_payout = self.stake_amount
        self.settled_at = now
        self.cancelled_at = now
        if reason:
            self.cancellation_reason = reason
        if self.is_payment_confirmed:
            self.refund_amount = self.stake_amount

    def cancel(self, now: datetime, reason: str) -> None:
        """User or operator cancellation before the market settles."""
        if self.status not in (BetStatus.PENDING, BetStatus.ACTIVE):
            raise BetNotCancellableError(self.id, self.status)
        self.mark_as_cancelled(now, reason)

    # ------------------------------------------------------------------
    # Disbursement collaborator
    # ------------------------------------------------------------------

    def record_payout(self, success: bool, now: datetime, reference: str | None = None) -> None:
        if self.status != BetStatus.WON:
            raise PayoutNotEligibleError(self.id, self.status)
        if self.payout_status == PayoutStatus.COMPLETED:
            raise PayoutAlreadyCompletedError(self.id)
        # A failed disbursement never touches won/lost; it stays retryable
        self.payout_status = (
            PayoutStatus.COMPLETED.value if success else PayoutStatus.FAILED.value
        )
        self.payout_processed_at = now
        if success:
            self.payout_amount = self.actual_payout
            self.payout_reference = reference

    def record_refund(self, now: datetime, reference: str | None = None) -> None:
        if self.status != BetStatus.CANCELLED or not self.is_payment_confirmed:
            raise RefundNotEligibleError(self.id)
        self.status = BetStatus.REFUNDED.value
        self.refund_amount = self.stake_amount
        self.refund_reference = reference
        self.refund_processed_at = now


@dataclass
class UserBetStats:
    total_bets: int = 0
    total_staked: int = 0    # cents
    total_won: int = 0       # cents paid out on won bets
    total_lost: int = 0      # cents staked on lost bets
    pending_bets: int = 0
    won_bets: int = 0
    lost_bets: int = 0
    settled_staked: int = 0  # cents staked on won + lost bets

    @property
    def win_rate(self) -> float:
        """Percentage of decided (won + lost) bets that won."""
        decided = self.won_bets + self.lost_bets
        if decided == 0:
            return 0.0
        return round(self.won_bets * 100 / decided, 2)

    @property
    def profit_loss(self) -> int:
        """Winnings minus everything staked on decided bets."""
        return self.total_won - self.settled_staked
