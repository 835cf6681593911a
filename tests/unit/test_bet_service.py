"""Unit tests for BetApplicationService against in-memory repositories."""
import asyncio
from datetime import UTC, datetime

import pytest

from src.mb_bet.application.schemas import PlaceBetRequest
from src.mb_bet.application.service import BetApplicationService
from src.mb_common.errors import (
    BetNotCancellableError,
    BetNotFoundError,
    MarketClosedError,
    MarketNotFoundError,
    OptionInactiveError,
    OptionNotFoundError,
    StakeAboveMaximumError,
    StakeBelowMinimumError,
)
from tests.unit.fakes import (
    NOW,
    FakeBetRepo,
    FakeMarketRepo,
    make_bet,
    make_db,
    make_market,
    make_option,
)


def _setup(market=None, options=None):
    market = market or make_market()
    options = options or [make_option("A", odds=200), make_option("B", odds=300)]
    markets = FakeMarketRepo(market, options)
    bets = FakeBetRepo()
    markets.bets = bets
    svc = BetApplicationService(bet_repo=bets, market_repo=markets, clock=lambda: NOW)
    return svc, markets, bets


def _req(option_id: str = "A", stake: int = 10_000, market_id: str = "MKT-1") -> PlaceBetRequest:
    return PlaceBetRequest(market_id=market_id, option_id=option_id, stake_cents=stake)


class TestPlaceBet:
    @pytest.mark.asyncio
    async def test_places_pending_bet_at_current_odds(self):
        svc, markets, bets = _setup()
        db = make_db()

        resp = await svc.place_bet(db, "user-1", _req("B", 10_000))

        assert resp.status == "pending"
        assert resp.odds_at_placement == 300
        assert resp.potential_payout_cents == 30_000
        assert markets.options["B"].total_stake == 10_000
        assert markets.options["B"].bet_count == 1
        assert len(bets.rows) == 1
        db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_odds_recomputed_after_placement(self):
        svc, markets, _ = _setup()
        await svc.place_bet(make_db(), "user-1", _req("A", 3_000))
        await svc.place_bet(make_db(), "user-2", _req("B", 1_000))

        # pool 4000: A 3000 → 1.20, B 1000 → 3.60
        assert markets.options["A"].odds == 120
        assert markets.options["B"].odds == 360

    @pytest.mark.asyncio
    async def test_placement_odds_snapshot_survives_drift(self):
        svc, markets, bets = _setup()
        first = await svc.place_bet(make_db(), "user-1", _req("A", 1_000))
        await svc.place_bet(make_db(), "user-2", _req("A", 9_000))

        assert bets.rows[first.id].odds_at_placement == 200
        assert markets.options["A"].odds == 110

    @pytest.mark.asyncio
    async def test_stake_below_market_minimum_creates_no_bet(self):
        # market minimum 10.00, stake 5.00
        svc, markets, bets = _setup(market=make_market(min_stake_amount=1_000))
        db = make_db()

        with pytest.raises(StakeBelowMinimumError):
            await svc.place_bet(db, "user-1", _req("A", 500))

        assert bets.rows == {}
        assert markets.options["A"].total_stake == 0
        assert markets.options["A"].bet_count == 0
        db.rollback.assert_awaited_once()
        db.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_stake_above_maximum(self):
        svc, _, bets = _setup(market=make_market(max_stake_amount=50_000))
        with pytest.raises(StakeAboveMaximumError):
            await svc.place_bet(make_db(), "user-1", _req("A", 50_001))
        assert bets.rows == {}

    @pytest.mark.asyncio
    async def test_suspended_market_rejected(self):
        svc, _, bets = _setup(market=make_market(status="suspended"))
        with pytest.raises(MarketClosedError):
            await svc.place_bet(make_db(), "user-1", _req())
        assert bets.rows == {}

    @pytest.mark.asyncio
    async def test_inactive_option_rejected(self):
        svc, _, _ = _setup(options=[make_option("A", is_active=False)])
        with pytest.raises(OptionInactiveError):
            await svc.place_bet(make_db(), "user-1", _req("A"))

    @pytest.mark.asyncio
    async def test_unknown_market(self):
        svc, _, _ = _setup()
        with pytest.raises(MarketNotFoundError):
            await svc.place_bet(make_db(), "user-1", _req(market_id="nope"))

    @pytest.mark.asyncio
    async def test_option_from_another_market(self):
        svc, _, _ = _setup(options=[make_option("A"), make_option("X", market_id="MKT-2")])
        with pytest.raises(OptionNotFoundError):
            await svc.place_bet(make_db(), "user-1", _req("X"))

    @pytest.mark.asyncio
    async def test_concurrent_placements_lose_no_update(self):
        svc, markets, bets = _setup()
        n, k = 50, 2_000

        await asyncio.gather(
            *(svc.place_bet(make_db(), f"user-{i}", _req("A", k)) for i in range(n))
        )

        assert markets.options["A"].total_stake == n * k
        assert markets.options["A"].bet_count == n
        assert len(bets.rows) == n


class TestCancelBet:
    @pytest.mark.asyncio
    async def test_owner_cancels_and_aggregates_shrink(self):
        svc, markets, bets = _setup()
        placed = await svc.place_bet(make_db(), "user-1", _req("A", 4_000))
        await svc.place_bet(make_db(), "user-2", _req("B", 4_000))

        resp = await svc.cancel_bet(make_db(), placed.id, "changed mind", user_id="user-1")

        assert resp.status == "cancelled"
        assert resp.actual_payout_cents == 4_000
        assert markets.options["A"].total_stake == 0
        assert markets.options["A"].bet_count == 0
        assert bets.rows[placed.id].cancellation_reason == "changed mind"

    @pytest.mark.asyncio
    async def test_other_user_cannot_see_bet(self):
        svc, _, _ = _setup()
        placed = await svc.place_bet(make_db(), "user-1", _req())
        with pytest.raises(BetNotFoundError):
            await svc.cancel_bet(make_db(), placed.id, "x", user_id="user-2")

    @pytest.mark.asyncio
    async def test_resolved_bet_not_cancellable(self):
        svc, markets, bets = _setup()
        bet = make_bet("B-won", "A", 1_000, confirmed=True)
        bet.mark_as_won(NOW)
        bets.rows[bet.id] = bet
        db = make_db()

        with pytest.raises(BetNotCancellableError):
            await svc.cancel_bet(db, bet.id, "too late")

        assert markets.options["A"].bet_count == 0
        db.rollback.assert_awaited_once()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "market_kwargs",
        [
            {"closes_at": datetime(2026, 5, 1, tzinfo=UTC)},
            {"status": "suspended"},
        ],
        ids=["past_closes_at", "suspended"],
    )
    async def test_owner_cannot_cancel_once_betting_stops(self, market_kwargs):
        svc, markets, bets = _setup()
        placed = await svc.place_bet(make_db(), "user-1", _req("A", 4_000))
        await svc.place_bet(make_db(), "user-2", _req("B", 4_000))
        bets.rows[placed.id].confirm_payment(NOW)
        for key, value in market_kwargs.items():
            setattr(markets.markets["MKT-1"], key, value)
        db = make_db()

        with pytest.raises(MarketClosedError):
            await svc.cancel_bet(db, placed.id, "saw the score", user_id="user-1")

        assert bets.rows[placed.id].status == "active"
        assert markets.options["A"].total_stake == 4_000
        assert markets.options["A"].bet_count == 1
        db.rollback.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_operator_cancels_on_suspended_market(self):
        svc, markets, bets = _setup()
        placed = await svc.place_bet(make_db(), "user-1", _req("A", 4_000))
        markets.markets["MKT-1"].status = "suspended"

        resp = await svc.cancel_bet(make_db(), placed.id, "match abandoned")

        assert resp.status == "cancelled"
        assert markets.options["A"].total_stake == 0


class TestReads:
    @pytest.mark.asyncio
    async def test_get_bet_scoped_to_owner(self):
        svc, _, _ = _setup()
        placed = await svc.place_bet(make_db(), "user-1", _req())
        assert (await svc.get_bet(make_db(), placed.id, user_id="user-1")).id == placed.id
        with pytest.raises(BetNotFoundError):
            await svc.get_bet(make_db(), placed.id, user_id="user-2")

    @pytest.mark.asyncio
    async def test_list_user_bets_pagination(self):
        svc, _, _ = _setup()
        for _ in range(3):
            await svc.place_bet(make_db(), "user-1", _req())

        page = await svc.list_user_bets(make_db(), "user-1", None, None, None, 2)

        assert len(page.items) == 2
        assert page.has_more is True
        assert page.next_cursor == page.items[-1].id
