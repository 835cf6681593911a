"""Tests for mb_common.errors and mb_common.response."""

from src.mb_common.errors import (
    AppError,
    BetNotCancellableError,
    InvalidWinningOptionError,
    MarketAlreadySettledError,
    MarketClosedError,
    MarketNotFoundError,
    OperatorRequiredError,
    PaymentAlreadyConfirmedError,
    StakeBelowMinimumError,
)
from src.mb_common.response import error_response, success_response


class TestAppError:
    def test_base_error(self) -> None:
        err = AppError(code=9002, message="Internal error")
        assert err.code == 9002
        assert err.message == "Internal error"
        assert err.http_status == 500

    def test_custom_http_status(self) -> None:
        err = AppError(code=3001, message="gone", http_status=404)
        assert err.http_status == 404

    def test_is_exception(self) -> None:
        assert isinstance(AppError(code=1, message="x"), Exception)


class TestSpecificErrors:
    def test_operator_required(self) -> None:
        err = OperatorRequiredError()
        assert err.code == 1006
        assert err.http_status == 403

    def test_market_not_found(self) -> None:
        err = MarketNotFoundError("MKT-123")
        assert err.code == 3001
        assert err.http_status == 404
        assert "MKT-123" in err.message

    def test_market_closed(self) -> None:
        err = MarketClosedError("MKT-123")
        assert err.code == 3002
        assert err.http_status == 422

    def test_stake_below_minimum_names_both_amounts(self) -> None:
        err = StakeBelowMinimumError(stake=500, minimum=1_000)
        assert err.http_status == 422
        assert err.code == 4001
        assert "500" in err.message and "1000" in err.message

    def test_bet_not_cancellable(self) -> None:
        err = BetNotCancellableError("bet-1", "won")
        assert err.code == 4006
        assert err.http_status == 422
        assert "won" in err.message

    def test_market_already_settled_is_conflict(self) -> None:
        err = MarketAlreadySettledError("MKT-1")
        assert err.code == 5001
        assert err.http_status == 409

    def test_invalid_winning_option(self) -> None:
        err = InvalidWinningOptionError(["X", "Y"])
        assert err.http_status == 422
        assert "X" in err.message

    def test_payment_already_confirmed(self) -> None:
        err = PaymentAlreadyConfirmedError("bet-1")
        assert err.code == 6001
        assert err.http_status == 409


class TestApiResponse:
    def test_success(self) -> None:
        resp = success_response({"id": "abc"})
        assert resp.code == 0
        assert resp.message == "success"
        assert resp.data == {"id": "abc"}

    def test_error(self) -> None:
        resp = error_response(3002, "Market is not accepting bets")
        assert resp.code == 3002
        assert resp.data is None

    def test_serialization(self) -> None:
        d = success_response({"odds": 250}).model_dump()
        assert set(d) == {"code", "message", "data", "timestamp", "request_id"}
