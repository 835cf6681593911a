"""Domain models for mb_market — dataclasses plus the lifecycle rules that belong to them."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from src.mb_common.enums import TERMINAL_MARKET_STATUSES, MarketStatus
from src.mb_common.errors import InvalidMarketTransitionError


@dataclass
class MarketOption:
    id: str
    market_id: str
    key: str                       # "home" / "draw" / "away" / "2-1" ...
    name: str
    odds: int                      # hundredths, 250 == 2.50, never below 110
    total_stake: int = 0           # cents, maintained by atomic SQL increments
    bet_count: int = 0
    is_active: bool = True
    is_winning_option: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def implied_probability(self) -> float:
        """Informational only: 100 / decimal odds, as a percentage."""
        if self.odds <= 0:
            return 0.0
        return round(10_000 / self.odds, 2)

    def can_accept_bets(
        self, market: "BettingMarket", now: datetime, enforce_closes_at: bool = True
    ) -> bool:
        return self.is_active and market.is_open_for_betting(now, enforce_closes_at)


@dataclass
class BettingMarket:
    id: str
    match_id: str
    market_type: str
    name: str
    description: str | None = None
    is_active: bool = True
    status: str = MarketStatus.ACTIVE.value
    opens_at: datetime | None = None
    closes_at: datetime | None = None
    settled_at: datetime | None = None
    min_stake_amount: int | None = None   # cents; None → system default
    max_stake_amount: int | None = None   # cents; None → system default
    metadata: dict[str, Any] | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    options: list[MarketOption] = field(default_factory=list)

    def is_open_for_betting(self, now: datetime, enforce_closes_at: bool = True) -> bool:
        if not self.is_active or self.status != MarketStatus.ACTIVE:
            return False
        if self.opens_at is not None and now < self.opens_at:
            return False
        if enforce_closes_at and self.closes_at is not None and now >= self.closes_at:
            return False
        return True

    @property
    def is_settled(self) -> bool:
        return self.status == MarketStatus.SETTLED and self.settled_at is not None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_MARKET_STATUSES

    def effective_min_stake(self, default: int) -> int:
        return self.min_stake_amount if self.min_stake_amount is not None else default

    def effective_max_stake(self, default: int) -> int:
        return self.max_stake_amount if self.max_stake_amount is not None else default

    def suspend(self) -> None:
        if self.status != MarketStatus.ACTIVE:
            raise InvalidMarketTransitionError(self.id, self.status, "suspend")
        self.status = MarketStatus.SUSPENDED.value

    def reopen(self) -> None:
        if self.status != MarketStatus.SUSPENDED:
            raise InvalidMarketTransitionError(self.id, self.status, "reopen")
        self.status = MarketStatus.ACTIVE.value

    def option_by_key(self, key: str) -> MarketOption | None:
        return next((o for o in self.options if o.key == key), None)


@dataclass
class MatchInfo:
    """What the match collaborator tells us when betting is enabled for a match."""

    match_id: str
    first_team_name: str
    second_team_name: str
    match_time: datetime | None = None


@dataclass
class MarketTotals:
    total_stake: int   # cents
    total_bets: int
