"""
Tests for macro_rebalancer/rebalancing/reconcile.py.

What we test
------------
reconcile_deltas():
  - Two-asset worked example (one growth, one defensive).
  - Allocation-weighted net is ~0 after reconciliation when both buckets
    are populated and the raw net exceeds the tolerance (seeded random
    portfolios).
  - A raw net within tolerance leaves deltas unchanged, including
    randomized nets just inside the bound.
  - A bucket with zero total allocation is skipped.
  - The input mapping is not mutated.
"""

from __future__ import annotations

import random

import pytest

from macro_rebalancer.rebalancing.reconcile import NET_TOLERANCE, net_flow, reconcile_deltas
from macro_rebalancer.taxonomy.indicator_taxonomy import AssetClass


class TestTwoAssetExample:
    def test_adjustment_split_between_buckets(self, make_asset, make_portfolio):
        portfolio = make_portfolio(
            make_asset("A", 0.6),
            make_asset("B", 0.4, AssetClass.DEFENSIVE),
        )
        deltas = {"A": 0.04, "B": 0.02}
        assert net_flow(deltas, portfolio) == pytest.approx(0.032)

        result = reconcile_deltas(deltas, portfolio)

        # adjustment = -0.016; A gets -0.016 / 0.6, B gets -0.016 / 0.4
        assert result["A"] == pytest.approx(0.04 - 0.016 / 0.6)
        assert result["B"] == pytest.approx(0.02 - 0.016 / 0.4)
        assert net_flow(result, portfolio) == pytest.approx(0.0, abs=1e-9)


class TestInvariant:
    @pytest.mark.parametrize("seed", range(10))
    def test_net_is_zero_with_both_buckets(self, seed, make_asset, make_portfolio):
        rng = random.Random(seed)
        n = rng.randint(2, 8)
        raw = [rng.random() + 0.01 for _ in range(n)]
        total = sum(raw)
        classes = [AssetClass.GROWTH, AssetClass.DEFENSIVE] + [
            rng.choice(list(AssetClass)) for _ in range(n - 2)
        ]
        portfolio = make_portfolio(*[
            make_asset(f"T{i}", raw[i] / total, classes[i]) for i in range(n)
        ])
        deltas = {f"T{i}": rng.uniform(-0.15, 0.15) for i in range(n)}

        result = reconcile_deltas(deltas, portfolio)
        if abs(net_flow(deltas, portfolio)) > NET_TOLERANCE:
            assert abs(net_flow(result, portfolio)) < 1e-6
        else:
            # within tolerance: reconciliation is a no-op
            assert result == deltas

    @pytest.mark.parametrize("seed", range(10))
    def test_net_inside_tolerance_is_untouched(self, seed, make_asset, make_portfolio):
        rng = random.Random(seed)
        portfolio = make_portfolio(
            make_asset("A", 0.5),
            make_asset("B", 0.5, AssetClass.DEFENSIVE),
        )
        # 0.5 * d + 0.5 * -d + 0.5 * eps stays under the tolerance
        d = rng.uniform(-0.1, 0.1)
        eps = rng.uniform(-NET_TOLERANCE, NET_TOLERANCE)
        deltas = {"A": d + eps, "B": -d}

        assert abs(net_flow(deltas, portfolio)) <= NET_TOLERANCE
        assert reconcile_deltas(deltas, portfolio) == deltas


class TestEdgeCases:
    def test_small_net_left_alone(self, make_asset, make_portfolio):
        portfolio = make_portfolio(
            make_asset("A", 0.5),
            make_asset("B", 0.5, AssetClass.DEFENSIVE),
        )
        deltas = {"A": 0.001, "B": 0.0}
        assert reconcile_deltas(deltas, portfolio) == deltas

    def test_empty_bucket_skipped(self, make_asset, make_portfolio):
        portfolio = make_portfolio(make_asset("A", 0.5), make_asset("C", 0.5))
        result = reconcile_deltas({"A": 0.04, "C": 0.04}, portfolio)
        # net 0.04 → adjustment -0.02, applied to the growth bucket only
        assert result["A"] == pytest.approx(0.02)
        assert result["C"] == pytest.approx(0.02)

    def test_input_not_mutated(self, make_asset, make_portfolio):
        portfolio = make_portfolio(
            make_asset("A", 0.6),
            make_asset("B", 0.4, AssetClass.DEFENSIVE),
        )
        deltas = {"A": 0.04, "B": 0.02}
        reconcile_deltas(deltas, portfolio)
        assert deltas == {"A": 0.04, "B": 0.02}

    def test_missing_delta_treated_as_zero(self, make_asset, make_portfolio):
        portfolio = make_portfolio(
            make_asset("A", 0.6),
            make_asset("B", 0.4, AssetClass.DEFENSIVE),
        )
        result = reconcile_deltas({"A": 0.05}, portfolio)
        assert set(result) == {"A", "B"}
        assert net_flow(result, portfolio) == pytest.approx(0.0, abs=1e-9)
