"""Pari-mutuel odds engine.

Odds track the share of the pool staked on each option:

    odds = max(floor, (market_total / option_stake) × (1 − house_edge))

rounded half-up to 2 dp. All arithmetic is exact integer math on cents and
hundredths, so the result never depends on float rounding.
"""

from collections.abc import Sequence

from config.settings import settings
from src.mb_market.domain.models import MarketOption

_BPS = 10_000


def compute_odds(
    option_stake: int,
    market_total: int,
    current_odds: int,
    house_edge_bps: int | None = None,
    min_odds: int | None = None,
) -> int:
    """Quoted odds (hundredths) for one option; unchanged while either stake is zero."""
    if market_total <= 0 or option_stake <= 0:
        return current_odds
    edge = settings.BETTING_HOUSE_EDGE_BPS if house_edge_bps is None else house_edge_bps
    floor = settings.BETTING_MIN_ODDS if min_odds is None else min_odds

    # hundredths = 100 × (total / stake) × (bps − edge) / bps
    numerator = market_total * (_BPS - edge)
    denominator = option_stake * (_BPS // 100)
    rounded = (2 * numerator + denominator) // (2 * denominator)
    return max(floor, rounded)


def recalculate_market_odds(
    options: Sequence[MarketOption],
    house_edge_bps: int | None = None,
    min_odds: int | None = None,
) -> dict[str, int]:
    """New odds for every option whose quote changes.

    The market total is summed once and shared by the whole batch so all
    options are quoted against the same pool snapshot.
    """
    market_total = sum(o.total_stake for o in options)
    changed: dict[str, int] = {}
    for option in options:
        new_odds = compute_odds(
            option.total_stake, market_total, option.odds, house_edge_bps, min_odds
        )
        if new_odds != option.odds:
            changed[option.id] = new_odds
    return changed
