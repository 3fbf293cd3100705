"""
Tests for macro_rebalancer/rebalancing/delta.py.

What we test
------------
base_shift():   seven-bucket ladder including every boundary.
raw_delta():    sensitivity, volatility dampening, opt-in cap, defensive negation,
                and the order in which they apply.
compute_raw_deltas(): covers every asset using its own region's score.
"""

from __future__ import annotations

import pytest

from macro_rebalancer.config import RebalancingConfig
from macro_rebalancer.rebalancing.delta import base_shift, compute_raw_deltas, raw_delta
from macro_rebalancer.scoring.indicators import score_indicators
from macro_rebalancer.taxonomy.indicator_taxonomy import AssetClass

PARAMS = RebalancingConfig()


class TestBaseShift:
    @pytest.mark.parametrize("score,expected", [
        (2.0, 0.08),
        (1.5, 0.08),
        (1.49, 0.05),
        (0.75, 0.05),
        (0.25, 0.025),
        (0.2, 0.0),
        (-0.25, 0.0),
        (-0.26, -0.025),
        (-0.75, -0.025),
        (-0.76, -0.05),
        (-1.5, -0.05),
        (-1.51, -0.08),
        (-2.0, -0.08),
    ])
    def test_ladder(self, score, expected):
        assert base_shift(score) == expected


class TestRawDelta:
    def test_growth_follows_score(self, make_asset):
        assert raw_delta(make_asset("A", 0.5), 1.0, 0.0, PARAMS) == pytest.approx(0.05)

    def test_sensitivity_scales(self, make_asset):
        asset = make_asset("A", 0.5, sensitivity=2.0)
        assert raw_delta(asset, 1.0, 0.0, PARAMS) == pytest.approx(0.10)

    def test_defensive_is_negated(self, make_asset):
        asset = make_asset("B", 0.5, AssetClass.DEFENSIVE)
        assert raw_delta(asset, 1.0, 0.0, PARAMS) == pytest.approx(-0.05)
        assert raw_delta(asset, -2.0, 0.0, PARAMS) == pytest.approx(0.08)

    def test_dampened_when_volatility_score_below_minus_one(self, make_asset):
        assert raw_delta(make_asset("A", 0.5), 1.0, -1.5, PARAMS) == pytest.approx(0.035)

    def test_not_dampened_at_minus_one(self, make_asset):
        assert raw_delta(make_asset("A", 0.5), 1.0, -1.0, PARAMS) == pytest.approx(0.05)

    def test_dampening_can_be_disabled(self, make_asset):
        params = RebalancingConfig(volatility_adjustment=False)
        assert raw_delta(make_asset("A", 0.5), 1.0, -2.0, params) == pytest.approx(0.05)

    def test_custom_dampening_factor(self, make_asset):
        params = RebalancingConfig(dampening_factor=0.5)
        assert raw_delta(make_asset("A", 0.5), 1.0, -2.0, params) == pytest.approx(0.025)

    def test_uncapped_by_default(self, make_asset):
        # 0.08 * 2.5 = 0.20, above max_single_move but left alone
        asset = make_asset("A", 0.5, sensitivity=2.5)
        assert raw_delta(asset, 2.0, 0.0, PARAMS) == pytest.approx(0.20)
        assert raw_delta(asset, -2.0, 0.0, PARAMS) == pytest.approx(-0.20)

    def test_defensive_uncapped_by_default(self, make_asset):
        asset = make_asset("B", 0.5, AssetClass.DEFENSIVE, sensitivity=3.0)
        assert raw_delta(asset, -2.0, 0.0, PARAMS) == pytest.approx(0.24)


class TestSingleMoveCap:
    CAPPED = RebalancingConfig(cap_single_move=True)

    def test_capped_at_max_single_move(self, make_asset):
        asset = make_asset("A", 0.5, sensitivity=3.0)
        assert raw_delta(asset, 2.0, 0.0, self.CAPPED) == pytest.approx(0.15)
        assert raw_delta(asset, -2.0, 0.0, self.CAPPED) == pytest.approx(-0.15)

    def test_cap_applies_after_dampening(self, make_asset):
        # 0.08 * 3 * 0.7 = 0.168 → capped at 0.15
        asset = make_asset("A", 0.5, sensitivity=3.0)
        assert raw_delta(asset, 2.0, -2.0, self.CAPPED) == pytest.approx(0.15)

    def test_negation_applies_after_cap(self, make_asset):
        asset = make_asset("B", 0.5, AssetClass.DEFENSIVE, sensitivity=3.0)
        assert raw_delta(asset, -2.0, 0.0, self.CAPPED) == pytest.approx(0.15)

    def test_small_moves_untouched(self, make_asset):
        assert raw_delta(make_asset("A", 0.5), 1.0, 0.0, self.CAPPED) == pytest.approx(0.05)


class TestComputeRawDeltas:
    def test_bullish_portfolio(self, app_config, sample_portfolio, bullish_snapshot):
        scores = score_indicators(bullish_snapshot, app_config)
        deltas = compute_raw_deltas(sample_portfolio, scores, app_config)

        assert list(deltas) == sample_portfolio.tickers
        assert deltas["XEQT.TO"] == pytest.approx(0.05)
        assert deltas["VFV.TO"] == pytest.approx(0.06)
        assert deltas["XIC.TO"] == pytest.approx(0.05)
        assert deltas["ZAG.TO"] == pytest.approx(-0.04)
        assert deltas["CASH.TO"] == pytest.approx(-0.025)

    def test_bearish_portfolio_is_dampened(self, app_config, sample_portfolio, bearish_snapshot):
        scores = score_indicators(bearish_snapshot, app_config)
        deltas = compute_raw_deltas(sample_portfolio, scores, app_config)
        # global score ≈ -1.89 → -0.08, volatility score -2 → × 0.7
        assert deltas["XEQT.TO"] == pytest.approx(-0.056)
        assert deltas["CASH.TO"] == pytest.approx(0.028)

    def test_neutral_portfolio_has_no_shift(self, app_config, sample_portfolio, neutral_snapshot):
        scores = score_indicators(neutral_snapshot, app_config)
        deltas = compute_raw_deltas(sample_portfolio, scores, app_config)
        assert all(d == 0.0 for d in deltas.values())
