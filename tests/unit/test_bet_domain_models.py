"""Tests for the Bet state machine."""

import pytest

from src.mb_bet.domain.models import UserBetStats
from src.mb_common.errors import (
    BetAlreadyResolvedError,
    BetNotCancellableError,
    PaymentAlreadyConfirmedError,
    PaymentNotPendingError,
    PayoutAlreadyCompletedError,
    PayoutNotEligibleError,
    RefundNotEligibleError,
)
from tests.unit.fakes import NOW, make_bet


class TestPlacement:
    def test_new_bet_is_pending(self) -> None:
        bet = make_bet("B1", "A", 10_000, odds=250)
        assert bet.status == "pending"
        assert bet.payment_status == "pending"
        assert bet.potential_payout == 25_000
        assert bet.placed_at == NOW
        assert bet.profit == 0


class TestPayment:
    def test_confirm_moves_to_active(self) -> None:
        bet = make_bet("B1", "A", 10_000)
        bet.confirm_payment(NOW, "psp-123")
        assert bet.status == "active"
        assert bet.payment_status == "confirmed"
        assert bet.payment_confirmed_at == NOW
        assert bet.payment_reference == "psp-123"

    def test_confirm_twice_rejected(self) -> None:
        bet = make_bet("B1", "A", 10_000, confirmed=True)
        with pytest.raises(PaymentAlreadyConfirmedError):
            bet.confirm_payment(NOW)

    def test_fail_keeps_bet_pending(self) -> None:
        bet = make_bet("B1", "A", 10_000)
        bet.fail_payment(NOW, "card declined")
        assert bet.status == "pending"
        assert bet.payment_status == "failed"
        assert bet.notes == f"Payment failed at {NOW.isoformat()}: card declined"
        assert not bet.counts_toward_pool

    def test_late_confirmation_rejoins_pool(self) -> None:
        bet = make_bet("B1", "A", 10_000)
        assert bet.counts_toward_pool
        bet.fail_payment(NOW)
        bet.confirm_payment(NOW)
        assert bet.status == "active"
        assert bet.counts_toward_pool

    def test_fail_after_confirm_rejected(self) -> None:
        bet = make_bet("B1", "A", 10_000, confirmed=True)
        with pytest.raises(PaymentNotPendingError):
            bet.fail_payment(NOW)

    def test_confirm_after_resolution_rejected(self) -> None:
        bet = make_bet("B1", "A", 10_000)
        bet.mark_as_cancelled(NOW)
        with pytest.raises(BetAlreadyResolvedError):
            bet.confirm_payment(NOW)


class TestResolution:
    def test_won_pays_stake_times_placement_odds(self) -> None:
        bet = make_bet("B1", "A", 10_000, odds=275, confirmed=True)
        bet.mark_as_won(NOW)
        assert bet.status == "won"
        assert bet.actual_payout == 27_500
        assert bet.settled_at == NOW
        assert bet.profit == 17_500

    def test_lost_pays_nothing(self) -> None:
        bet = make_bet("B1", "A", 10_000, confirmed=True)
        bet.mark_as_lost(NOW)
        assert bet.actual_payout == 0
        assert bet.profit == -10_000

    def test_cancelled_returns_stake(self) -> None:
        bet = make_bet("B1", "A", 4_000)
        bet.mark_as_cancelled(NOW)
        assert bet.status == "cancelled"
        assert bet.actual_payout == 4_000
        assert bet.profit == 0
        assert bet.refund_amount is None  # never paid, nothing to refund

    def test_cancelled_confirmed_bet_owes_refund(self) -> None:
        bet = make_bet("B1", "A", 4_000, confirmed=True)
        bet.mark_as_cancelled(NOW)
        assert bet.refund_amount == 4_000

    @pytest.mark.parametrize("first", ["mark_as_won", "mark_as_lost", "mark_as_cancelled"])
    def test_second_resolution_rejected(self, first: str) -> None:
        bet = make_bet("B1", "A", 1_000, confirmed=True)
        getattr(bet, first)(NOW)
        with pytest.raises(BetAlreadyResolvedError) as exc_info:
            bet.mark_as_lost(NOW)
        assert exc_info.value.code == 4005


class TestCancel:
    def test_cancel_pending(self) -> None:
        bet = make_bet("B1", "A", 1_000)
        bet.cancel(NOW, "changed my mind")
        assert bet.status == "cancelled"
        assert bet.cancelled_at == NOW
        assert bet.cancellation_reason == "changed my mind"

    def test_cancel_won_rejected(self) -> None:
        bet = make_bet("B1", "A", 1_000, confirmed=True)
        bet.mark_as_won(NOW)
        with pytest.raises(BetNotCancellableError):
            bet.cancel(NOW, "too late")


class TestPayoutAndRefund:
    def test_successful_payout(self) -> None:
        bet = make_bet("B1", "A", 1_000, odds=300, confirmed=True)
        bet.mark_as_won(NOW)
        bet.record_payout(True, NOW, "tx-1")
        assert bet.payout_status == "completed"
        assert bet.payout_amount == 3_000
        assert bet.payout_reference == "tx-1"

    def test_failed_payout_is_retryable_and_keeps_win(self) -> None:
        bet = make_bet("B1", "A", 1_000, confirmed=True)
        bet.mark_as_won(NOW)
        bet.record_payout(False, NOW)
        assert bet.payout_status == "failed"
        assert bet.status == "won"
        bet.record_payout(True, NOW, "tx-2")
        assert bet.payout_status == "completed"

    def test_completed_payout_cannot_repeat(self) -> None:
        bet = make_bet("B1", "A", 1_000, confirmed=True)
        bet.mark_as_won(NOW)
        bet.record_payout(True, NOW)
        with pytest.raises(PayoutAlreadyCompletedError):
            bet.record_payout(True, NOW)

    def test_payout_on_lost_bet_rejected(self) -> None:
        bet = make_bet("B1", "A", 1_000, confirmed=True)
        bet.mark_as_lost(NOW)
        with pytest.raises(PayoutNotEligibleError):
            bet.record_payout(True, NOW)

    def test_refund_moves_to_refunded(self) -> None:
        bet = make_bet("B1", "A", 1_000, confirmed=True)
        bet.mark_as_cancelled(NOW)
        bet.record_refund(NOW, "rf-1")
        assert bet.status == "refunded"
        assert bet.actual_payout == 1_000
        assert bet.refund_reference == "rf-1"

    def test_refund_requires_confirmed_payment(self) -> None:
        bet = make_bet("B1", "A", 1_000)
        bet.mark_as_cancelled(NOW)
        with pytest.raises(RefundNotEligibleError):
            bet.record_refund(NOW)


class TestUserBetStats:
    def test_win_rate_and_profit(self) -> None:
        stats = UserBetStats(
            total_bets=4, total_staked=4_000, total_won=5_000, total_lost=2_000,
            won_bets=1, lost_bets=2, pending_bets=1, settled_staked=3_000,
        )
        assert stats.win_rate == 33.33
        assert stats.profit_loss == 2_000

    def test_no_decided_bets(self) -> None:
        assert UserBetStats().win_rate == 0.0
