"""
Delta engine: converts an asset's regional score into a raw allocation shift.

Shift ladder (first floor <= score wins)
-----------------------------------------
    score >=  1.50  → +0.080
    score >=  0.75  → +0.050
    score >=  0.25  → +0.025
    score >= -0.25  →  0.000
    score >= -0.75  → -0.025
    score >= -1.50  → -0.050
    otherwise       → -0.080

Then, in order:
  1. × asset sensitivity
  2. × dampening factor (0.7) when volatility adjustment is enabled and the
     volatility score is below -1
  3. magnitude capped at ``max_single_move``, only when ``cap_single_move``
     is enabled (off by default)
  4. negated for defensive assets, which move against risk appetite

The result is a signed fractional change to the asset's current allocation.
"""

from __future__ import annotations

import logging
import math

from macro_rebalancer.config import AppConfig, RebalancingConfig
from macro_rebalancer.models.asset import AssetRecord, Portfolio
from macro_rebalancer.scoring.composite import regional_score
from macro_rebalancer.scoring.indicators import IndicatorScores
from macro_rebalancer.taxonomy.indicator_taxonomy import IndicatorKey

logger = logging.getLogger(__name__)

_SHIFT_LADDER: tuple[tuple[float, float], ...] = (
    (1.5,   0.08),
    (0.75,  0.05),
    (0.25,  0.025),
    (-0.25, 0.0),
    (-0.75, -0.025),
    (-1.5,  -0.05),
)
_FLOOR_SHIFT = -0.08

# Volatility score below which shifts are dampened (volatility is elevated).
VOLATILITY_DAMPENING_TRIGGER = -1.0


def base_shift(score: float) -> float:
    """Map a regional score onto the seven-bucket shift ladder."""
    for floor, shift in _SHIFT_LADDER:
        if score >= floor:
            return shift
    return _FLOOR_SHIFT


def raw_delta(
    asset: AssetRecord,
    score: float,
    volatility_score: float,
    params: RebalancingConfig,
) -> float:
    """Compute the unreconciled shift for one asset.

    Args:
        asset:            The asset's record (class and sensitivity).
        score:            The asset's regional composite score.
        volatility_score: The volatility indicator's own score.
        params:           Rebalancing parameters.

    Returns:
        Signed fractional shift, e.g. ``0.05`` for +5% of current allocation.
    """
    shift = base_shift(score) * asset.sensitivity

    if params.volatility_adjustment and volatility_score < VOLATILITY_DAMPENING_TRIGGER:
        shift *= params.dampening_factor

    if params.cap_single_move and abs(shift) > params.max_single_move:
        shift = math.copysign(params.max_single_move, shift)

    return -shift if asset.is_defensive else shift


def compute_regional_scores(
    portfolio: Portfolio,
    scores: IndicatorScores,
    config: AppConfig,
) -> dict[str, float]:
    """Regional composite score for every asset in the portfolio."""
    weights = config.weights.as_mapping()
    return {
        ticker: regional_score(asset.region, scores, weights, config.regions)
        for ticker, asset in portfolio.assets.items()
    }


def compute_raw_deltas(
    portfolio: Portfolio,
    scores: IndicatorScores,
    config: AppConfig,
    regional: dict[str, float] | None = None,
) -> dict[str, float]:
    """Raw shift for every asset in the portfolio.

    Args:
        portfolio: Full asset universe.
        scores:    Indicator scores for this invocation.
        config:    Weights, region table and rebalancing parameters.
        regional:  Precomputed regional scores; computed when omitted.

    Returns:
        Dict of ticker → raw delta, in portfolio order.
    """
    if regional is None:
        regional = compute_regional_scores(portfolio, scores, config)

    vol = scores.get(IndicatorKey.VOLATILITY)
    volatility_score = vol.value if vol is not None else 0.0

    deltas: dict[str, float] = {}
    for ticker, asset in portfolio.assets.items():
        deltas[ticker] = raw_delta(asset, regional[ticker], volatility_score, config.rebalancing)
        logger.debug(
            "Raw delta | ticker=%s region=%s class=%s score=%.4f delta=%.5f",
            ticker, asset.region.value, asset.asset_class.value,
            regional[ticker], deltas[ticker],
        )
    return deltas
