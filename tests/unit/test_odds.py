"""Tests for the pari-mutuel odds engine."""

import pytest

from src.mb_market.domain.odds import compute_odds, recalculate_market_odds
from tests.unit.fakes import make_option


class TestComputeOdds:
    def test_unchanged_when_market_empty(self) -> None:
        assert compute_odds(0, 0, 250) == 250

    def test_unchanged_when_option_has_no_stake(self) -> None:
        assert compute_odds(0, 10_000, 300) == 300

    def test_even_split_gives_one_point_eight(self) -> None:
        # share 1/2 → 2 × 0.9 = 1.80
        assert compute_odds(5_000, 10_000, 200) == 180

    def test_quarter_share(self) -> None:
        # share 1/4 → 4 × 0.9 = 3.60
        assert compute_odds(2_500, 10_000, 200) == 360

    def test_floor_applies_to_dominant_option(self) -> None:
        # share 0.95 → 0.947... below the 1.10 floor
        assert compute_odds(9_500, 10_000, 200) == 110

    def test_whole_pool_on_one_option_hits_floor(self) -> None:
        assert compute_odds(1_000, 1_000, 200) == 110

    def test_rounds_half_up(self) -> None:
        # 3/1 × 0.9 = 2.70 exactly; 7/3 × 0.9 = 2.10 exactly; 9/7 × 0.9 = 1.157.. → 1.16
        assert compute_odds(1, 3, 200) == 270
        assert compute_odds(3, 7, 200) == 210
        assert compute_odds(7, 9, 200) == 116

    def test_half_cent_boundary_rounds_up(self) -> None:
        # total/stake × 0.9 = 1.125 → 1.13 (half-up, not banker's)
        assert compute_odds(8, 10, 200, house_edge_bps=1_000, min_odds=100) == 113

    def test_custom_edge_and_floor(self) -> None:
        assert compute_odds(5_000, 10_000, 200, house_edge_bps=0) == 200
        assert compute_odds(9_000, 10_000, 200, min_odds=150) == 150

    @pytest.mark.parametrize(
        "stake,total",
        [(1, 2), (3, 10), (123, 4_567), (10_000, 10_001), (50, 51), (7, 1_000_000)],
    )
    def test_matches_formula(self, stake: int, total: int) -> None:
        expected = max(110, int(total / stake * 0.9 * 100 + 0.5 + 1e-9))
        assert compute_odds(stake, total, 200) == expected


class TestRecalculateMarketOdds:
    def test_returns_only_changed_options(self) -> None:
        options = [
            make_option("A", odds=180, total_stake=5_000),
            make_option("B", odds=200, total_stake=5_000),
            make_option("C", odds=300, total_stake=0),
        ]
        changed = recalculate_market_odds(options)
        assert changed == {"B": 180}

    def test_uses_one_market_total_for_the_batch(self) -> None:
        options = [
            make_option("A", total_stake=1_000),
            make_option("B", total_stake=3_000),
        ]
        changed = recalculate_market_odds(options)
        # total 4000: A → 4 × 0.9 = 3.60, B → 1.333 × 0.9 = 1.20
        assert changed == {"A": 360, "B": 120}

    def test_empty_market_changes_nothing(self) -> None:
        options = [make_option("A"), make_option("B")]
        assert recalculate_market_odds(options) == {}
