"""Pydantic schemas for settlement requests and responses."""

from typing import Any

from pydantic import BaseModel, Field

from src.mb_common.enums import MatchOutcome
from src.mb_common.money import cents_to_display
from src.mb_settlement.domain.models import MatchResult, SettlementOutcome, SettlementSummary


class MatchResultIn(BaseModel):
    match_id: str
    first_team_id: str
    second_team_id: str
    first_team_score: int | None = Field(None, ge=0)
    second_team_score: int | None = Field(None, ge=0)
    winning_team_id: str | None = None
    outcome: MatchOutcome | None = None
    is_concluded: bool = True

    def to_domain(self) -> MatchResult:
        return MatchResult(
            match_id=self.match_id,
            first_team_id=self.first_team_id,
            second_team_id=self.second_team_id,
            first_team_score=self.first_team_score,
            second_team_score=self.second_team_score,
            winning_team_id=self.winning_team_id,
            outcome=self.outcome.value if self.outcome else None,
            is_concluded=self.is_concluded,
        )


class SettleMarketRequest(BaseModel):
    """`settlement_result` of "cancelled"/"refunded" cancels; winning ids settle manually;
    otherwise a concluded `match_result` settles automatically."""

    settlement_result: str | None = None
    winning_option_ids: list[str] | None = None
    match_result: MatchResultIn | None = None
    notes: str | None = Field(None, max_length=2000)
    requires_manual_review: bool = False


class CancelMarketRequest(BaseModel):
    notes: str | None = Field(None, max_length=2000)


class OutcomeResponse(BaseModel):
    id: str
    market_id: str
    winning_option_id: str | None
    winning_option_ids: list[str]
    settlement_type: str
    actual_result: dict[str, Any]
    settled_by: str | None
    settled_at: str
    settlement_notes: str | None
    requires_manual_review: bool

    @classmethod
    def from_domain(cls, o: SettlementOutcome) -> "OutcomeResponse":
        return cls(
            id=o.id,
            market_id=o.market_id,
            winning_option_id=o.winning_option_id,
            winning_option_ids=o.winning_option_ids,
            settlement_type=o.settlement_type,
            actual_result=o.actual_result,
            settled_by=o.settled_by,
            settled_at=o.settled_at.isoformat(),
            settlement_notes=o.settlement_notes,
            requires_manual_review=o.requires_manual_review,
        )


class SettlementResponse(BaseModel):
    outcome: OutcomeResponse
    market_status: str
    won: int
    lost: int
    cancelled: int
    total_payout_cents: int
    total_payout_display: str
    total_refund_cents: int

    @classmethod
    def build(cls, outcome: SettlementOutcome, summary: SettlementSummary) -> "SettlementResponse":
        return cls(
            outcome=OutcomeResponse.from_domain(outcome),
            market_status=summary.market_status,
            won=summary.won,
            lost=summary.lost,
            cancelled=summary.cancelled,
            total_payout_cents=summary.total_payout,
            total_payout_display=cents_to_display(summary.total_payout),
            total_refund_cents=summary.total_refund,
        )


class OutcomeListResponse(BaseModel):
    items: list[OutcomeResponse]
    next_cursor: str | None
    has_more: bool
