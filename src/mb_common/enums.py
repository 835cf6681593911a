"""Global enums — must match DB CHECK constraints exactly."""

from enum import Enum


class MarketType(str, Enum):
    ONE_X_TWO = "1x2"
    CORRECT_SCORE = "correct_score"
    TOTAL_GOALS = "total_goals"
    PLAYER_SCORING = "player_scoring"


class MarketStatus(str, Enum):
    ACTIVE = "active"
    SUSPENDED = "suspended"
    SETTLED = "settled"
    CANCELLED = "cancelled"


class BetStatus(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"  # payment confirmed, awaiting match conclusion
    WON = "won"
    LOST = "lost"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


class PaymentMethod(str, Enum):
    ONLINE = "online"
    OFFLINE = "offline"
    WALLET = "wallet"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    FAILED = "failed"


class PayoutStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class SettlementType(str, Enum):
    AUTOMATIC = "automatic"
    MANUAL = "manual"
    CANCELLED = "cancelled"


class MatchOutcome(str, Enum):
    """Outcome codes reported by the match result source."""
    FIRST_TEAM_WIN = "first_team_win"
    SECOND_TEAM_WIN = "second_team_win"
    DRAW = "draw"


# Bet statuses that settlement will never touch again
# Plain values: a (str, Enum) member hashes by name, so DB strings would miss in a set of members
TERMINAL_BET_STATUSES = frozenset(
    s.value for s in (BetStatus.WON, BetStatus.LOST, BetStatus.CANCELLED, BetStatus.REFUNDED)
)
TERMINAL_MARKET_STATUSES = frozenset(
    s.value for s in (MarketStatus.SETTLED, MarketStatus.CANCELLED)
)
