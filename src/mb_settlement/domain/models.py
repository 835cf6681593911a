"""Domain models for mb_settlement."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from src.mb_common.enums import SettlementType


@dataclass
class SettlementOutcome:
    """Write-once record of how a market concluded. There is no update path."""

    id: str
    market_id: str
    winning_option_id: str | None
    actual_result: dict[str, Any]
    settled_at: datetime
    settled_by: str | None = None
    settlement_notes: str | None = None
    requires_manual_review: bool = False
    created_at: datetime | None = None

    @property
    def settlement_type(self) -> str:
        return self.actual_result.get("settlement_type", SettlementType.AUTOMATIC.value)

    @property
    def is_cancellation(self) -> bool:
        return self.settlement_type == SettlementType.CANCELLED

    @property
    def winning_option_ids(self) -> list[str]:
        ids = self.actual_result.get("winning_option_ids")
        if ids:
            return list(ids)
        return [self.winning_option_id] if self.winning_option_id else []


@dataclass
class MatchResult:
    """A concluded (or in-progress) match as reported by the match result source."""

    match_id: str
    first_team_id: str
    second_team_id: str
    first_team_score: int | None = None
    second_team_score: int | None = None
    winning_team_id: str | None = None
    outcome: str | None = None   # MatchOutcome value
    is_concluded: bool = False


@dataclass
class SettlementSummary:
    market_id: str
    outcome_id: str
    settlement_type: str
    market_status: str
    won: int = 0
    lost: int = 0
    cancelled: int = 0
    total_payout: int = 0   # cents owed to winners
    total_refund: int = 0   # cents owed back on cancelled, confirmed bets
    bet_ids: list[str] = field(default_factory=list)
