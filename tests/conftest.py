"""
Shared pytest fixtures for the Macro Rebalancer test suite.

Provides:
  - ``app_config``: the documented default ``AppConfig``.
  - ``make_asset`` / ``make_portfolio``: asset and portfolio factories.
  - ``neutral_snapshot`` / ``bullish_snapshot`` / ``bearish_snapshot``:
    indicator snapshots for engine-level tests.
"""

from __future__ import annotations

from datetime import date, datetime, timezone

import pytest

from macro_rebalancer.config import AppConfig
from macro_rebalancer.models.asset import AssetRecord, Portfolio
from macro_rebalancer.models.reading import IndicatorReading, IndicatorSnapshot
from macro_rebalancer.taxonomy.indicator_taxonomy import AssetClass, IndicatorKey, Region


# ── Config ────────────────────────────────────────────────────────────────────

@pytest.fixture
def app_config() -> AppConfig:
    """Default configuration (no TOML file, no env overrides)."""
    return AppConfig()


# ── Portfolio factories ───────────────────────────────────────────────────────

def _asset(
    ticker: str,
    allocation: float,
    asset_class: AssetClass = AssetClass.GROWTH,
    region: Region = Region.GLOBAL,
    sensitivity: float = 1.0,
) -> AssetRecord:
    return AssetRecord(
        ticker=ticker,
        allocation=allocation,
        asset_class=asset_class,
        region=region,
        sensitivity=sensitivity,
    )


@pytest.fixture
def make_asset():
    """Factory for ``AssetRecord`` with growth / global / 1.0 defaults."""
    return _asset


@pytest.fixture
def make_portfolio():
    """Factory building a ``Portfolio`` from records."""
    def _make(*records: AssetRecord, unclassified=()) -> Portfolio:
        return Portfolio.from_records(records, unclassified=unclassified)
    return _make


@pytest.fixture
def sample_portfolio() -> Portfolio:
    """Five-asset portfolio mixing regions and classes; allocations sum to 1."""
    return Portfolio.from_records([
        _asset("XEQT.TO", 0.40),
        _asset("VFV.TO", 0.25, region=Region.US, sensitivity=1.2),
        _asset("XIC.TO", 0.05, region=Region.DOMESTIC),
        _asset("ZAG.TO", 0.20, AssetClass.DEFENSIVE, Region.DOMESTIC, 0.8),
        _asset("CASH.TO", 0.10, AssetClass.DEFENSIVE, Region.GLOBAL, 0.5),
    ])


# ── Snapshot factories ────────────────────────────────────────────────────────

def build_snapshot(
    values: dict[IndicatorKey, float | str],
    history: dict[IndicatorKey, tuple[float, ...]] | None = None,
) -> IndicatorSnapshot:
    """Snapshot where every listed indicator reads successfully."""
    return IndicatorSnapshot(
        readings={
            key: IndicatorReading.success(value, as_of=date(2026, 9, 1))
            for key, value in values.items()
        },
        history=history or {},
        collected_at=datetime(2026, 10, 1, 12, 0, tzinfo=timezone.utc),
    )


@pytest.fixture
def neutral_snapshot() -> IndicatorSnapshot:
    """Middle-band readings: every regional score lands in the zero-shift band."""
    return build_snapshot({
        IndicatorKey.UNEMPLOYMENT:  5.0,
        IndicatorKey.DOMESTIC_CPI:  1.2,
        IndicatorKey.FOREIGN_CPI:   1.2,
        IndicatorKey.GDP:           "No change",
        IndicatorKey.VOLATILITY:    17.0,
        IndicatorKey.YIELD_CURVE:   0.0,
        IndicatorKey.CREDIT_SPREAD: 1.5,
    })


@pytest.fixture
def bullish_snapshot() -> IndicatorSnapshot:
    """Strong growth conditions across the board."""
    return build_snapshot({
        IndicatorKey.UNEMPLOYMENT:  3.0,
        IndicatorKey.DOMESTIC_CPI:  2.0,
        IndicatorKey.FOREIGN_CPI:   2.1,
        IndicatorKey.GDP:           "Rising",
        IndicatorKey.VOLATILITY:    12.0,
        IndicatorKey.YIELD_CURVE:   1.2,
        IndicatorKey.CREDIT_SPREAD: 0.8,
    })


@pytest.fixture
def bearish_snapshot() -> IndicatorSnapshot:
    """Recessionary conditions: every indicator at its worst band."""
    return build_snapshot({
        IndicatorKey.UNEMPLOYMENT:  7.5,
        IndicatorKey.DOMESTIC_CPI:  5.0,
        IndicatorKey.FOREIGN_CPI:   5.5,
        IndicatorKey.GDP:           "Shrinking",
        IndicatorKey.VOLATILITY:    38.0,
        IndicatorKey.YIELD_CURVE:   -1.4,
        IndicatorKey.CREDIT_SPREAD: 3.8,
    })
