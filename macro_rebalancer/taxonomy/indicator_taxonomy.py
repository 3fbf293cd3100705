"""
Indicator and asset taxonomy for the macro rebalancer.

Three vocabularies describe every input to the engine:
  - ``IndicatorKey`` — the *what*: which macro / sentiment series is scored?
  - ``AssetClass``   — the *direction*: does the asset follow risk appetite?
  - ``Region``       — the *where*: which indicator subset drives the asset?

Usage example::

    from macro_rebalancer.taxonomy.indicator_taxonomy import IndicatorKey, Region

    key    = IndicatorKey.VOLATILITY
    region = Region.US

This module has NO imports from any other ``macro_rebalancer`` package.
"""

from enum import StrEnum


class IndicatorKey(StrEnum):
    """The seven indicators scored by the engine."""

    UNEMPLOYMENT = "unemployment"
    """U.S. unemployment rate, in percent."""

    DOMESTIC_CPI = "domestic_cpi"
    """U.S. consumer price inflation, year-over-year percent."""

    FOREIGN_CPI = "foreign_cpi"
    """Home-market (non-U.S.) consumer price inflation, year-over-year percent."""

    GDP = "gdp"
    """Home-market real GDP direction; a textual value such as "Rising"."""

    VOLATILITY = "volatility"
    """Equity volatility index level (VIX)."""

    YIELD_CURVE = "yield_curve"
    """10Y minus 2Y Treasury spread, in percentage points."""

    CREDIT_SPREAD = "credit_spread"
    """Investment-grade corporate option-adjusted spread, in percentage points."""


# Indicators whose value is numeric and whose history feeds the trend estimator.
TREND_BEARING_INDICATORS: frozenset[IndicatorKey] = frozenset({
    IndicatorKey.UNEMPLOYMENT,
    IndicatorKey.DOMESTIC_CPI,
    IndicatorKey.FOREIGN_CPI,
    IndicatorKey.VOLATILITY,
    IndicatorKey.YIELD_CURVE,
    IndicatorKey.CREDIT_SPREAD,
})


class AssetClass(StrEnum):
    """How an asset reacts to the risk-appetite signal."""

    GROWTH = "growth"
    """Growth-seeking (equity-like); moves with the composite score."""

    DEFENSIVE = "defensive"
    """Defensive (cash, bonds, low-beta); moves against the composite score."""


class Region(StrEnum):
    """Home region of an asset; selects the composite's indicator subset."""

    US = "us"
    """U.S.-listed or U.S.-exposed assets."""

    DOMESTIC = "domestic"
    """Home (non-U.S.) market assets, e.g. Canadian listings."""

    GLOBAL = "global"
    """Globally diversified assets; every weighted indicator, no boost."""


# Aliases accepted at the storage boundary (lower-cased before lookup).
ASSET_CLASS_ALIASES: dict[str, AssetClass] = {
    "growth":    AssetClass.GROWTH,
    "equity":    AssetClass.GROWTH,
    "defensive": AssetClass.DEFENSIVE,
}

REGION_ALIASES: dict[str, Region] = {
    "us":       Region.US,
    "u.s.":     Region.US,
    "usa":      Region.US,
    "domestic": Region.DOMESTIC,
    "canada":   Region.DOMESTIC,
    "home":     Region.DOMESTIC,
    "global":   Region.GLOBAL,
}

# Textual GDP direction vocabulary, matched as whole words.
GDP_GROWTH_TERMS: tuple[str, ...] = (
    "rising", "growing", "increasing", "positive", "expanding",
)
GDP_DECLINE_TERMS: tuple[str, ...] = (
    "falling", "declining", "decreasing", "negative", "contracting", "shrinking",
)
