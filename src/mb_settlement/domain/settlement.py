"""Settlement primitives — pure functions over Bet models.

Callers own locking and persistence: these functions only move bets through
their state machine and report what they touched.
"""

from collections.abc import Iterable
from datetime import datetime

from src.mb_bet.domain.models import Bet
from src.mb_common.enums import BetStatus, MatchOutcome
from src.mb_settlement.domain.models import MatchResult

UNPAID_AT_SETTLEMENT = "Payment not confirmed before settlement"
MARKET_CANCELLED = "Market cancelled"

# 1x2 option keys by match side
HOME_KEY = "home"
DRAW_KEY = "draw"
AWAY_KEY = "away"


def winning_option_key(result: MatchResult) -> str | None:
    """Map a match result onto the canonical 1x2 option key, or None if it names no winner."""
    if result.winning_team_id is not None:
        if result.winning_team_id == result.first_team_id:
            return HOME_KEY
        if result.winning_team_id == result.second_team_id:
            return AWAY_KEY
    if result.outcome == MatchOutcome.DRAW:
        return DRAW_KEY
    return None


def settle_bets(bets: Iterable[Bet], winning_option_ids: list[str], now: datetime) -> list[Bet]:
    """Resolve every unresolved bet against the winning set.

    Confirmed bets are scored won or lost. Bets still pending whose payment never
    confirmed are cancelled instead, so they are refunded rather than scored.
    """
    winners = set(winning_option_ids)
    touched: list[Bet] = []
    for bet in bets:
        if bet.is_resolved:
            continue
        if bet.is_payment_confirmed:
            if bet.option_id in winners:
                bet.mark_as_won(now)
            else:
                bet.mark_as_lost(now)
        elif bet.status == BetStatus.PENDING:
            bet.mark_as_cancelled(now, UNPAID_AT_SETTLEMENT)
        else:
            continue
        touched.append(bet)
    return touched


def refund_bets(bets: Iterable[Bet], now: datetime, reason: str = MARKET_CANCELLED) -> list[Bet]:
    """Cancel every unresolved bet, pending and active alike."""
    touched: list[Bet] = []
    for bet in bets:
        if bet.status in (BetStatus.PENDING, BetStatus.ACTIVE):
            bet.mark_as_cancelled(now, reason)
            touched.append(bet)
    return touched
