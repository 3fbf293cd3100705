"""
Composite aggregator: blends indicator scores into one region-weighted score.

Region table
------------
Which indicators drive an asset, and how strongly, is data rather than
code.  ``AppConfig.regions`` maps a region name to ``{indicator: multiplier}``:

    us        unemployment 1.5, domestic_cpi 1.3, volatility 1.2,
              yield_curve 1.1, credit_spread 1.1
    domestic  foreign_cpi 1.5, gdp 1.4, unemployment 0.7, volatility 0.8
    global    (empty) → every weighted indicator, multiplier 1.0

A region missing from the table follows the ``global`` rule, so adding a
region is a config change.

Formula
-------
    score = Σ(score_i × weight_i × mult_i) / Σ(weight_i × mult_i)

A zero weight sum yields ``0.0`` (fully neutral), never a division error.
"""

from __future__ import annotations

import math
from typing import Mapping

from macro_rebalancer.scoring.indicators import Score
from macro_rebalancer.taxonomy.indicator_taxonomy import IndicatorKey, Region

# (floor, label) pairs, evaluated top-down; first floor <= score wins.
_MARKET_SIGNAL_LADDER: tuple[tuple[float, str], ...] = (
    (1.5,  "Strong Growth"),
    (0.5,  "Weak Growth"),
    (-0.5, "Neutral"),
    (-1.5, "Weak Defensive"),
)
_MARKET_SIGNAL_FLOOR_LABEL = "Strong Defensive"

_CONFIDENCE_LADDER: tuple[tuple[float, str], ...] = (
    (1.5,  "High Confidence"),
    (0.75, "Medium Confidence"),
    (0.25, "Low Confidence"),
)


def region_multipliers(
    region: str | Region,
    region_table: Mapping[str, Mapping[IndicatorKey, float]],
    weights: Mapping[IndicatorKey, float],
) -> dict[IndicatorKey, float]:
    """Resolve the (indicator → multiplier) pairs used for ``region``.

    An empty or missing table entry expands to every weighted indicator
    with multiplier 1.0.
    """
    key = region.value if isinstance(region, Region) else str(region).lower()
    multipliers = region_table.get(key) or region_table.get(Region.GLOBAL.value) or {}
    if not multipliers:
        return {indicator: 1.0 for indicator in weights}
    return dict(multipliers)


def regional_score(
    region: str | Region,
    scores: Mapping[IndicatorKey, Score],
    weights: Mapping[IndicatorKey, float],
    region_table: Mapping[str, Mapping[IndicatorKey, float]],
) -> float:
    """Weighted average of indicator scores for one region.

    Indicators without a score or without a configured weight are skipped.

    Args:
        region:       Asset region (enum or free-form region name).
        scores:       Indicator scores from ``score_indicators()``.
        weights:      Per-indicator weights.
        region_table: Region → {indicator: multiplier}.

    Returns:
        The composite score; ``0.0`` when the used weights sum to zero.
    """
    total = 0.0
    weight_sum = 0.0
    for indicator, mult in region_multipliers(region, region_table, weights).items():
        weight = weights.get(indicator)
        score = scores.get(indicator)
        if weight is None or score is None:
            continue
        total += score.value * weight * mult
        weight_sum += weight * mult
    return total / weight_sum if weight_sum else 0.0


def overall_score(
    scores: Mapping[IndicatorKey, Score],
    weights: Mapping[IndicatorKey, float],
) -> float:
    """Unboosted weighted mean over every indicator, for the market signal."""
    return regional_score(Region.GLOBAL, scores, weights, {})


def market_signal_label(score: float) -> str:
    """Describe an overall composite as a growth/defensive regime.

    The score shown is rounded to the nearest 0.5, e.g. ``"Weak Growth (0.5)"``.
    """
    rounded = math.floor(score * 2 + 0.5) / 2
    label = _MARKET_SIGNAL_FLOOR_LABEL
    for floor, name in _MARKET_SIGNAL_LADDER:
        if score >= floor:
            label = name
            break
    return f"{label} ({rounded:.1f})"


def confidence_label(score: float) -> str:
    """Confidence tag for a regional score; empty string below 0.25 magnitude."""
    magnitude = abs(score)
    for floor, name in _CONFIDENCE_LADDER:
        if magnitude >= floor:
            return name
    return ""
