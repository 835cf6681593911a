"""Pydantic schemas for mb_market requests and responses.

Amounts are exchanged as int cents (`*_cents`) with a `*_display` companion;
odds as int hundredths with an `odds_display` companion ("2.50").
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

from src.mb_common.enums import MarketType
from src.mb_common.money import cents_to_display, odds_to_display
from src.mb_market.domain.models import BettingMarket, MarketOption, MarketTotals

# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class OptionIn(BaseModel):
    key: str = Field(min_length=1, max_length=64)
    name: str = Field(min_length=1, max_length=255)
    odds: int = Field(200, ge=110, description="Hundredths: 250 == 2.50")
    is_active: bool = True

    @field_validator("key")
    @classmethod
    def no_whitespace(cls, v: str) -> str:
        if v != v.strip() or " " in v:
            raise ValueError("option key must not contain whitespace")
        return v


class CreateMarketRequest(BaseModel):
    match_id: str
    market_type: MarketType
    name: str = Field(min_length=1, max_length=255)
    description: str | None = None
    opens_at: datetime | None = None
    closes_at: datetime | None = None
    min_stake_cents: int | None = Field(None, gt=0)
    max_stake_cents: int | None = Field(None, gt=0)
    metadata: dict[str, Any] | None = None
    options: list[OptionIn] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_bounds(self) -> "CreateMarketRequest":
        if (
            self.min_stake_cents is not None
            and self.max_stake_cents is not None
            and self.min_stake_cents > self.max_stake_cents
        ):
            raise ValueError("min_stake_cents must not exceed max_stake_cents")
        if self.opens_at and self.closes_at and self.opens_at >= self.closes_at:
            raise ValueError("opens_at must be before closes_at")
        return self


class CreateDefaultMarketRequest(BaseModel):
    match_id: str
    first_team_name: str
    second_team_name: str
    match_time: datetime | None = None
    min_stake_cents: int | None = Field(None, gt=0)
    max_stake_cents: int | None = Field(None, gt=0)


class UpdateOptionRequest(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    odds: int | None = Field(None, ge=110)
    is_active: bool | None = None


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


def _iso(dt: datetime | None) -> str | None:
    return dt.isoformat() if dt else None


class OptionOut(BaseModel):
    id: str
    key: str
    name: str
    odds: int
    odds_display: str
    implied_probability: float
    total_stake_cents: int
    total_stake_display: str
    bet_count: int
    is_active: bool
    is_winning_option: bool

    @classmethod
    def from_domain(cls, o: MarketOption) -> "OptionOut":
        return cls(
            id=o.id,
            key=o.key,
            name=o.name,
            odds=o.odds,
            odds_display=odds_to_display(o.odds),
            implied_probability=o.implied_probability,
            total_stake_cents=o.total_stake,
            total_stake_display=cents_to_display(o.total_stake),
            bet_count=o.bet_count,
            is_active=o.is_active,
            is_winning_option=o.is_winning_option,
        )


class MarketDetail(BaseModel):
    id: str
    match_id: str
    market_type: str
    name: str
    description: str | None
    is_active: bool
    status: str
    is_open_for_betting: bool
    opens_at: str | None
    closes_at: str | None
    settled_at: str | None
    min_stake_cents: int
    max_stake_cents: int
    metadata: dict[str, Any] | None
    options: list[OptionOut]

    @classmethod
    def from_domain(
        cls, m: BettingMarket, is_open: bool, min_stake: int, max_stake: int
    ) -> "MarketDetail":
        return cls(
            id=m.id,
            match_id=m.match_id,
            market_type=m.market_type,
            name=m.name,
            description=m.description,
            is_active=m.is_active,
            status=m.status,
            is_open_for_betting=is_open,
            opens_at=_iso(m.opens_at),
            closes_at=_iso(m.closes_at),
            settled_at=_iso(m.settled_at),
            min_stake_cents=min_stake,
            max_stake_cents=max_stake,
            metadata=m.metadata,
            options=[OptionOut.from_domain(o) for o in m.options],
        )


class MarketListResponse(BaseModel):
    items: list[MarketDetail]
    next_cursor: str | None
    has_more: bool


class MarketStatsResponse(BaseModel):
    market_id: str
    status: str
    total_stake_cents: int
    total_stake_display: str
    total_bets: int
    options: list[OptionOut]

    @classmethod
    def from_totals(
        cls, market: BettingMarket, totals: MarketTotals
    ) -> "MarketStatsResponse":
        return cls(
            market_id=market.id,
            status=market.status,
            total_stake_cents=totals.total_stake,
            total_stake_display=cents_to_display(totals.total_stake),
            total_bets=totals.total_bets,
            options=[OptionOut.from_domain(o) for o in market.options],
        )
