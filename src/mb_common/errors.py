"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Auth
  3xxx: Market / option
  4xxx: Bet
  5xxx: Settlement
  6xxx: Payment / payout
  9xxx: System
"""


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        super().__init__(message)


# --- 1xxx: Auth ---

class InvalidCredentialsError(AppError):
    def __init__(self) -> None:
        super().__init__(1003, "Invalid or expired token", 401)


class OperatorRequiredError(AppError):
    def __init__(self) -> None:
        super().__init__(1006, "Operator role required", 403)


# --- 3xxx: Market / option ---

class MarketNotFoundError(AppError):
    def __init__(self, market_id: str) -> None:
        super().__init__(3001, f"Market not found: {market_id}", 404)


class MarketClosedError(AppError):
    def __init__(self, market_id: str) -> None:
        super().__init__(3002, f"Market is not accepting bets: {market_id}", 422)


class OptionNotFoundError(AppError):
    def __init__(self, option_id: str) -> None:
        super().__init__(3003, f"Market option not found: {option_id}", 404)


class OptionInactiveError(AppError):
    def __init__(self, option_id: str) -> None:
        super().__init__(3004, f"Market option is not active: {option_id}", 422)


class MarketHasBetsError(AppError):
    def __init__(self, market_id: str) -> None:
        super().__init__(3005, f"Market {market_id} has bets and cannot be deleted", 409)


class OptionHasBetsError(AppError):
    def __init__(self, option_id: str) -> None:
        super().__init__(3006, f"Market option {option_id} already has bets", 409)


class InvalidMarketTransitionError(AppError):
    def __init__(self, market_id: str, status: str, action: str) -> None:
        super().__init__(
            3007, f"Cannot {action} market {market_id} in status {status}", 422
        )


class DuplicateOptionKeyError(AppError):
    def __init__(self, key: str) -> None:
        super().__init__(3008, f"Duplicate option key: {key}", 409)


# --- 4xxx: Bet ---

class StakeBelowMinimumError(AppError):
    def __init__(self, stake: int, minimum: int) -> None:
        super().__init__(
            4001,
            f"Stake {stake} cents is below the market minimum of {minimum} cents",
            422,
        )


class StakeAboveMaximumError(AppError):
    def __init__(self, stake: int, maximum: int) -> None:
        super().__init__(
            4002,
            f"Stake {stake} cents is above the market maximum of {maximum} cents",
            422,
        )


class BetNotFoundError(AppError):
    def __init__(self, bet_id: str) -> None:
        super().__init__(4004, f"Bet not found: {bet_id}", 404)


class BetAlreadyResolvedError(AppError):
    def __init__(self, bet_id: str, status: str) -> None:
        super().__init__(4005, f"Bet {bet_id} is already resolved (status={status})", 409)


class BetNotCancellableError(AppError):
    def __init__(self, bet_id: str, status: str) -> None:
        super().__init__(4006, f"Bet {bet_id} in status {status} cannot be cancelled", 422)


# --- 5xxx: Settlement ---

class MarketAlreadySettledError(AppError):
    def __init__(self, market_id: str) -> None:
        super().__init__(5001, f"Market is already settled: {market_id}", 409)


class InvalidWinningOptionError(AppError):
    def __init__(self, option_ids: list[str]) -> None:
        super().__init__(
            5002,
            f"Winning options do not belong to this market: {', '.join(option_ids)}",
            422,
        )


class MatchNotConcludedError(AppError):
    def __init__(self, match_id: str) -> None:
        super().__init__(
            5003,
            f"Match {match_id} must be concluded before auto-settling, "
            "or provide winning options for manual settlement",
            422,
        )


# --- 6xxx: Payment / payout ---

class PaymentAlreadyConfirmedError(AppError):
    def __init__(self, bet_id: str) -> None:
        super().__init__(6001, f"Payment already confirmed for bet {bet_id}", 409)


class PaymentNotPendingError(AppError):
    def __init__(self, bet_id: str, payment_status: str) -> None:
        super().__init__(
            6002, f"Payment for bet {bet_id} is {payment_status}, not pending", 422
        )


class PayoutNotEligibleError(AppError):
    def __init__(self, bet_id: str, status: str) -> None:
        super().__init__(6003, f"Bet {bet_id} in status {status} has no payout due", 422)


class PayoutAlreadyCompletedError(AppError):
    def __init__(self, bet_id: str) -> None:
        super().__init__(6004, f"Payout already completed for bet {bet_id}", 409)


class RefundNotEligibleError(AppError):
    def __init__(self, bet_id: str) -> None:
        super().__init__(6005, f"Bet {bet_id} has no refund due", 422)


# --- 9xxx: System ---

class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)
