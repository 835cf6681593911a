"""In-memory repositories that behave like the SQL ones closely enough for service tests.

Every read returns a copy (a DB round-trip never shares objects), and option
counters change in a single step the way `SET x = x + :delta` does.
"""

import asyncio
import copy
from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock

from src.mb_bet.domain.models import Bet, UserBetStats
from src.mb_common.enums import BetStatus
from src.mb_common.errors import MarketAlreadySettledError, OptionNotFoundError
from src.mb_market.domain.models import BettingMarket, MarketOption, MarketTotals
from src.mb_settlement.domain.models import SettlementOutcome

NOW = datetime(2026, 6, 1, 12, 0, tzinfo=UTC)


def make_db() -> MagicMock:
    db = MagicMock()
    db.commit = AsyncMock()
    db.rollback = AsyncMock()
    return db


def make_market(market_id: str = "MKT-1", **kwargs) -> BettingMarket:
    defaults = dict(
        id=market_id,
        match_id="MATCH-1",
        market_type="1x2",
        name="1X2 Match Result",
        opens_at=datetime(2026, 1, 1, tzinfo=UTC),
        closes_at=None,
    )
    defaults.update(kwargs)
    return BettingMarket(**defaults)


def make_option(
    option_id: str, market_id: str = "MKT-1", key: str | None = None, **kwargs
) -> MarketOption:
    defaults = dict(
        id=option_id,
        market_id=market_id,
        key=key or option_id.lower(),
        name=option_id,
        odds=200,
    )
    defaults.update(kwargs)
    return MarketOption(**defaults)


def make_bet(
    bet_id: str,
    option_id: str,
    stake: int,
    odds: int = 200,
    confirmed: bool = False,
    market_id: str = "MKT-1",
    user_id: str = "user-1",
) -> Bet:
    bet = Bet.place(
        bet_id=bet_id,
        user_id=user_id,
        market_id=market_id,
        option_id=option_id,
        stake_amount=stake,
        odds=odds,
        payment_method="online",
        payment_reference=f"ref-{bet_id}",
        now=NOW,
    )
    if confirmed:
        bet.confirm_payment(NOW)
    return bet


class FakeMarketRepo:
    def __init__(self, market: BettingMarket, options: list[MarketOption]) -> None:
        self.markets = {market.id: market}
        self.options = {o.id: o for o in options}
        self.bets: "FakeBetRepo | None" = None

    async def get_market(self, db, market_id, lock=None):
        await asyncio.sleep(0)
        m = self.markets.get(market_id)
        return copy.deepcopy(m) if m else None

    async def find_market_by_match(self, db, match_id, market_type):
        for m in self.markets.values():
            if m.match_id == match_id and m.market_type == market_type:
                return copy.deepcopy(m)
        return None

    async def list_options(self, db, market_id, for_update=False):
        await asyncio.sleep(0)
        return [copy.deepcopy(o) for o in self.options.values() if o.market_id == market_id]

    async def get_option(self, db, option_id):
        o = self.options.get(option_id)
        return copy.deepcopy(o) if o else None

    async def increment_option_totals(self, db, option_id, stake_delta, count_delta):
        await asyncio.sleep(0)
        option = self.options.get(option_id)
        if option is None:
            raise OptionNotFoundError(option_id)
        option.total_stake += stake_delta
        option.bet_count += count_delta
        return copy.deepcopy(option)

    async def update_option_odds(self, db, odds_by_option):
        for option_id, odds in odds_by_option.items():
            self.options[option_id].odds = odds

    async def mark_winning_options(self, db, option_ids):
        for option_id in option_ids:
            self.options[option_id].is_winning_option = True

    async def update_market_status(self, db, market_id, status, settled_at=None):
        self.markets[market_id].status = status
        self.markets[market_id].settled_at = settled_at

    async def get_market_totals(self, db, market_id):
        rows = self.bets.rows.values() if self.bets else []
        bets = [b for b in rows if b.market_id == market_id]
        return MarketTotals(total_stake=sum(b.stake_amount for b in bets), total_bets=len(bets))


class FakeBetRepo:
    def __init__(self, bets: list[Bet] | None = None) -> None:
        self.rows: dict[str, Bet] = {b.id: b for b in bets or []}
        self.update_calls = 0

    async def insert(self, db, bet):
        await asyncio.sleep(0)
        self.rows[bet.id] = copy.deepcopy(bet)

    async def get_by_id(self, db, bet_id, for_update=False):
        b = self.rows.get(bet_id)
        return copy.deepcopy(b) if b else None

    async def get_by_payment_reference(self, db, reference, for_update=False):
        for b in self.rows.values():
            if b.payment_reference == reference:
                return copy.deepcopy(b)
        return None

    async def list_unresolved_by_market(self, db, market_id):
        return [
            copy.deepcopy(b)
            for b in self.rows.values()
            if b.market_id == market_id and b.status in (BetStatus.PENDING, BetStatus.ACTIVE)
        ]

    async def list_pending_payouts(self, db, cursor_id, limit):
        return [copy.deepcopy(b) for b in self.rows.values() if b.status == BetStatus.WON][:limit]

    async def list_by_user(self, db, user_id, market_id, status, cursor_id, limit):
        return [copy.deepcopy(b) for b in self.rows.values() if b.user_id == user_id][:limit]

    async def update(self, db, bet):
        self.update_calls += 1
        self.rows[bet.id] = copy.deepcopy(bet)

    async def get_user_stats(self, db, user_id):
        return UserBetStats()


class FakeOutcomeRepo:
    def __init__(self) -> None:
        self.rows: dict[str, SettlementOutcome] = {}

    async def insert(self, db, outcome):
        if outcome.market_id in self.rows:
            raise MarketAlreadySettledError(outcome.market_id)
        self.rows[outcome.market_id] = outcome

    async def get_by_market(self, db, market_id):
        return self.rows.get(market_id)

    async def list_requiring_review(self, db, cursor_id, limit):
        return [o for o in self.rows.values() if o.requires_manual_review][:limit]
