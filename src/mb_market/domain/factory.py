"""Default market factory: the canonical 1X2 market created when betting is enabled."""

from datetime import datetime, timedelta

from src.mb_common.enums import MarketStatus, MarketType
from src.mb_common.id_generator import generate_id
from src.mb_market.domain.models import BettingMarket, MarketOption, MatchInfo

DEFAULT_OPTION_ODDS = 200

# key → starter odds (hundredths)
_ONE_X_TWO_STARTER_ODDS = {"home": 200, "draw": 300, "away": 250}


def build_default_market(
    match: MatchInfo,
    now: datetime,
    min_stake: int | None = None,
    max_stake: int | None = None,
) -> BettingMarket:
    market_id = generate_id()
    names = {
        "home": f"{match.first_team_name} Win",
        "draw": "Draw",
        "away": f"{match.second_team_name} Win",
    }
    market = BettingMarket(
        id=market_id,
        match_id=match.match_id,
        market_type=MarketType.ONE_X_TWO.value,
        name="1X2 Match Result",
        description="Predict the outcome of the match",
        is_active=True,
        status=MarketStatus.ACTIVE.value,
        opens_at=now,
        closes_at=match.match_time or now + timedelta(hours=1),
        min_stake_amount=min_stake,
        max_stake_amount=max_stake,
    )
    market.options = [
        MarketOption(id=generate_id(), market_id=market_id, key=key, name=names[key], odds=odds)
        for key, odds in _ONE_X_TWO_STARTER_ODDS.items()
    ]
    return market
