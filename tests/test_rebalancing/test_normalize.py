"""
Tests for macro_rebalancer/rebalancing/normalize.py.

What we test
------------
proposed_allocations(): floor at zero, never negative.
normalize():            sums to 1; all-zero raises InvalidAllocationError.
final_delta():          relative change; zero / absent allocation raises.
format_signal():        Hold gate and two-decimal percentage formatting.
"""

from __future__ import annotations

import random

import pytest

from macro_rebalancer.rebalancing.errors import InvalidAllocationError, RebalanceError
from macro_rebalancer.rebalancing.normalize import (
    HOLD,
    final_delta,
    format_signal,
    normalize,
    proposed_allocations,
)


class TestProposedAllocations:
    def test_applies_delta(self, make_asset, make_portfolio):
        portfolio = make_portfolio(make_asset("A", 0.5), make_asset("B", 0.5))
        proposed = proposed_allocations(portfolio, {"A": 0.1, "B": -0.1})
        assert proposed["A"] == pytest.approx(0.55)
        assert proposed["B"] == pytest.approx(0.45)

    def test_floor_at_zero(self, make_asset, make_portfolio):
        portfolio = make_portfolio(make_asset("A", 0.5), make_asset("B", 0.5))
        assert proposed_allocations(portfolio, {"A": -1.5, "B": 0.0})["A"] == 0.0

    @pytest.mark.parametrize("seed", range(5))
    def test_never_negative(self, seed, make_asset, make_portfolio):
        rng = random.Random(seed)
        portfolio = make_portfolio(*[make_asset(f"T{i}", 0.1) for i in range(10)])
        deltas = {f"T{i}": rng.uniform(-3.0, 3.0) for i in range(10)}
        assert all(v >= 0.0 for v in proposed_allocations(portfolio, deltas).values())


class TestNormalize:
    def test_sums_to_one(self):
        normalized = normalize({"A": 0.3, "B": 0.9})
        assert sum(normalized.values()) == pytest.approx(1.0)
        assert normalized["A"] == pytest.approx(0.25)

    def test_all_zero_raises(self):
        with pytest.raises(InvalidAllocationError):
            normalize({"A": 0.0, "B": 0.0})

    def test_empty_raises(self):
        with pytest.raises(InvalidAllocationError):
            normalize({})


class TestFinalDelta:
    def test_relative_change(self, make_asset, make_portfolio):
        portfolio = make_portfolio(make_asset("A", 0.5), make_asset("B", 0.5))
        normalized = normalize(proposed_allocations(portfolio, {"A": 0.1, "B": -0.1}))
        assert final_delta("A", portfolio, normalized) == pytest.approx(0.1)
        assert final_delta("B", portfolio, normalized) == pytest.approx(-0.1)

    def test_renormalization_moves_unshifted_asset(self, make_asset, make_portfolio):
        portfolio = make_portfolio(make_asset("A", 0.5), make_asset("B", 0.5))
        normalized = normalize(proposed_allocations(portfolio, {"A": 0.2, "B": 0.0}))
        # proposed 0.6 / 0.5 → sum 1.1; B = 0.5 / 1.1 / 0.5 - 1
        assert final_delta("B", portfolio, normalized) == pytest.approx(1 / 1.1 - 1)

    def test_zero_allocation_raises(self, make_asset, make_portfolio):
        portfolio = make_portfolio(make_asset("A", 1.0), make_asset("Z", 0.0))
        normalized = normalize(proposed_allocations(portfolio, {}))
        with pytest.raises(InvalidAllocationError) as exc_info:
            final_delta("Z", portfolio, normalized)
        assert exc_info.value.ticker == "Z"

    def test_absent_ticker_raises(self, make_asset, make_portfolio):
        portfolio = make_portfolio(make_asset("A", 1.0))
        with pytest.raises(RebalanceError):
            final_delta("MISSING", portfolio, {"A": 1.0})


class TestFormatSignal:
    @pytest.mark.parametrize("delta,expected", [
        (0.003, HOLD),
        (-0.004999, HOLD),
        (0.0, HOLD),
        (0.005, "Increase 0.50%"),
        (0.0123, "Increase 1.23%"),
        (-0.05, "Decrease 5.00%"),
        (0.123456, "Increase 12.35%"),
    ])
    def test_default_threshold(self, delta, expected):
        assert format_signal(delta, 0.005) == expected

    def test_custom_threshold(self):
        assert format_signal(0.02, 0.025) == HOLD
        assert format_signal(-0.03, 0.025) == "Decrease 3.00%"
