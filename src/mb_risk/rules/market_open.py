from datetime import datetime

from src.mb_common.errors import MarketClosedError, OptionInactiveError
from src.mb_market.domain.models import BettingMarket, MarketOption


def check_market_open(
    market: BettingMarket, option: MarketOption, now: datetime, enforce_closes_at: bool
) -> None:
    """Raise MarketClosed / OptionInactive unless the option can take a bet right now."""
    if not market.is_open_for_betting(now, enforce_closes_at):
        raise MarketClosedError(market.id)
    if not option.can_accept_bets(market, now, enforce_closes_at):
        raise OptionInactiveError(option.id)
