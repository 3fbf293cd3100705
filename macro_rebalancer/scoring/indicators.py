"""
Indicator scorers: map a current value plus its trend into a bounded score.

Every scorer follows the same four steps:
  1. ``current is None``  → ``Score(0.0, "No data")``.
  2. Classify ``current`` on the indicator's threshold ladder → base score.
  3. Apply the trend adjustment (only when the trend is non-zero; a
     direction word is appended to the description).
  4. Clamp to ``[SCORE_MIN, SCORE_MAX]``.

Trend adjustments
-----------------
    unemployment   base -= trend * 0.5
    CPI            base -= sign(trend) * 0.3      (sign-only)
    volatility     base -= trend * 0.4
    yield curve    base += trend * 0.3            (steepening is favorable)
    credit spread  base -= trend * 0.4
    GDP            none (textual indicator, no numeric history)

The description is an audit trail for humans; nothing downstream reads it.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Optional, Union

from macro_rebalancer.config import (
    AppConfig,
    CpiThresholds,
    CreditSpreadThresholds,
    UnemploymentThresholds,
    VolatilityThresholds,
    YieldCurveThresholds,
)
from macro_rebalancer.models.reading import IndicatorSnapshot
from macro_rebalancer.scoring.trend import compute_trend
from macro_rebalancer.taxonomy.indicator_taxonomy import (
    GDP_DECLINE_TERMS,
    GDP_GROWTH_TERMS,
    IndicatorKey,
)

SCORE_MIN = -2.0
SCORE_MAX = 2.0
NO_DATA = "No data"

_UNEMPLOYMENT_TREND_FACTOR = 0.5
_CPI_TREND_STEP = 0.3
_VOLATILITY_TREND_FACTOR = 0.4
_YIELD_TREND_FACTOR = 0.3
_CREDIT_TREND_FACTOR = 0.4

_GROWTH_RE = re.compile(r"\b(" + "|".join(GDP_GROWTH_TERMS) + r")\b", re.IGNORECASE)
_DECLINE_RE = re.compile(r"\b(" + "|".join(GDP_DECLINE_TERMS) + r")\b", re.IGNORECASE)


@dataclass(frozen=True)
class Score:
    """A bounded directional score with its human-readable audit trail.

    Attributes:
        value:       Score in ``[-2, 2]`` for indicator scorers.
        description: e.g. ``"3.0% (Very Low) Falling"`` or ``"No data"``.
    """

    value: float
    description: str


IndicatorScores = dict[IndicatorKey, Score]


# ── Numeric scorers ───────────────────────────────────────────────────────────

def score_unemployment(
    current: Optional[float],
    trend: float,
    thresholds: UnemploymentThresholds,
) -> Score:
    """Score the unemployment rate; lower is better."""
    if current is None:
        return Score(0.0, NO_DATA)

    t = thresholds
    if current < t.very_low:
        base, label = 2.0, "Very Low"
    elif current < t.low:
        base, label = 1.0, "Low"
    elif current > t.very_high:
        base, label = -2.0, "Very High"
    elif current > t.high:
        base, label = -1.0, "High"
    else:
        base, label = 0.0, "Normal"
    description = f"{_num(current)}% ({label})"

    if trend:
        base -= trend * _UNEMPLOYMENT_TREND_FACTOR
        description += " Rising" if trend > 0 else " Falling"

    return Score(_clamp_score(base), description)


def score_cpi(
    current: Optional[float],
    trend: float,
    thresholds: CpiThresholds,
) -> Score:
    """Score year-over-year inflation; near target is best.

    Below ``very_low`` is read as deflation risk (negative), not as a benign
    low-inflation reading.  The trend adjustment uses only the sign of the
    trend, so a partial trend moves the score as much as a saturated one.
    """
    if current is None:
        return Score(0.0, NO_DATA)

    t = thresholds
    if current < t.very_low:
        base, label = -1.0, "Deflation Risk"
    elif abs(current - t.target) <= t.tolerance:
        base, label = 1.0, "On Target"
    elif current > t.high:
        base, label = -2.0, "High Inflation"
    elif current > t.target + t.tolerance:
        base, label = -1.0, "Above Target"
    else:
        base, label = 0.0, "Below Target"
    description = f"{_num(current)}% ({label})"

    if trend:
        base -= math.copysign(_CPI_TREND_STEP, trend)
        description += " Rising" if trend > 0 else " Falling"

    return Score(_clamp_score(base), description)


def score_volatility(
    current: Optional[float],
    trend: float,
    thresholds: VolatilityThresholds,
) -> Score:
    """Score the volatility index; lower is better, in half steps."""
    if current is None:
        return Score(0.0, NO_DATA)

    t = thresholds
    if current < t.low:
        base, label = 1.0, "Low Vol"
    elif current < t.normal:
        base, label = 0.5, "Normal"
    elif current < t.elevated:
        base, label = -0.5, "Elevated"
    elif current < t.high:
        base, label = -1.0, "High"
    else:
        base, label = -2.0, "Very High"
    description = f"{current:.1f} ({label})"

    if trend:
        base -= trend * _VOLATILITY_TREND_FACTOR
        description += " Rising" if trend > 0 else " Falling"

    return Score(_clamp_score(base), description)


def score_yield_curve(
    current: Optional[float],
    trend: float,
    thresholds: YieldCurveThresholds,
) -> Score:
    """Score the 10Y-2Y spread; positive is better and steepening helps."""
    if current is None:
        return Score(0.0, NO_DATA)

    t = thresholds
    if current > t.positive:
        base, label = 1.0, "Positive"
    elif current > t.flat:
        base, label = 0.0, "Flat"
    elif current > t.inverted:
        base, label = -1.0, "Inverted"
    else:
        base, label = -2.0, "Deep Inversion"
    description = f"{current:.2f}% ({label})"

    if trend:
        base += trend * _YIELD_TREND_FACTOR
        description += " Steepening" if trend > 0 else " Flattening"

    return Score(_clamp_score(base), description)


def score_credit_spread(
    current: Optional[float],
    trend: float,
    thresholds: CreditSpreadThresholds,
) -> Score:
    """Score the corporate credit spread; lower is better."""
    if current is None:
        return Score(0.0, NO_DATA)

    t = thresholds
    if current < t.low:
        base, label = 1.0, "Low"
    elif current < t.normal:
        base, label = 0.0, "Normal"
    elif current < t.elevated:
        base, label = -1.0, "Elevated"
    else:
        base, label = -2.0, "High"
    description = f"{current:.2f}% ({label})"

    if trend:
        base -= trend * _CREDIT_TREND_FACTOR
        description += " Widening" if trend > 0 else " Tightening"

    return Score(_clamp_score(base), description)


# ── Textual scorer ────────────────────────────────────────────────────────────

def score_gdp(current: Optional[Union[str, float]]) -> Score:
    """Score the GDP direction from its textual value.

    Growth vocabulary → +1, decline vocabulary → -1 (growth is checked
    first), anything else → 0.  A numeric value is scored by its sign.
    No trend adjustment is applied.
    """
    if current is None:
        return Score(0.0, NO_DATA)

    if isinstance(current, (int, float)):
        if not math.isfinite(current):
            return Score(0.0, NO_DATA)
        base = 1.0 if current > 0 else -1.0 if current < 0 else 0.0
        return Score(base, f"{_num(current)}")

    text = current.strip()
    if not text:
        return Score(0.0, NO_DATA)

    if _GROWTH_RE.search(text):
        base = 1.0
    elif _DECLINE_RE.search(text):
        base = -1.0
    else:
        base = 0.0
    return Score(base, text)


# ── Snapshot-level entry point ────────────────────────────────────────────────

def score_indicators(snapshot: IndicatorSnapshot, config: AppConfig) -> IndicatorScores:
    """Score all seven indicators from one snapshot.

    Unusable readings (``ok=False``, missing or non-numeric value) score
    ``0`` with description ``"No data"``; they are never an error.

    Args:
        snapshot: Readings and history for this invocation.
        config:   Thresholds and trend lookback.

    Returns:
        Dict of ``IndicatorKey`` → ``Score`` covering every indicator.
    """
    th = config.thresholds
    periods = config.trend.periods

    def current(key: IndicatorKey) -> Optional[float]:
        return snapshot.reading(key).numeric_value()

    def trend(key: IndicatorKey) -> float:
        return compute_trend(snapshot.series(key), periods)

    gdp_reading = snapshot.reading(IndicatorKey.GDP)
    gdp_value: Optional[Union[str, float]] = None
    if gdp_reading.is_usable:
        gdp_value = gdp_reading.value

    return {
        IndicatorKey.UNEMPLOYMENT: score_unemployment(
            current(IndicatorKey.UNEMPLOYMENT), trend(IndicatorKey.UNEMPLOYMENT), th.unemployment
        ),
        IndicatorKey.DOMESTIC_CPI: score_cpi(
            current(IndicatorKey.DOMESTIC_CPI), trend(IndicatorKey.DOMESTIC_CPI), th.cpi
        ),
        IndicatorKey.FOREIGN_CPI: score_cpi(
            current(IndicatorKey.FOREIGN_CPI), trend(IndicatorKey.FOREIGN_CPI), th.cpi
        ),
        IndicatorKey.GDP: score_gdp(gdp_value),
        IndicatorKey.VOLATILITY: score_volatility(
            current(IndicatorKey.VOLATILITY), trend(IndicatorKey.VOLATILITY), th.volatility
        ),
        IndicatorKey.YIELD_CURVE: score_yield_curve(
            current(IndicatorKey.YIELD_CURVE), trend(IndicatorKey.YIELD_CURVE), th.yield_curve
        ),
        IndicatorKey.CREDIT_SPREAD: score_credit_spread(
            current(IndicatorKey.CREDIT_SPREAD), trend(IndicatorKey.CREDIT_SPREAD), th.credit_spread
        ),
    }


# ── Helpers ───────────────────────────────────────────────────────────────────

def _clamp_score(value: float) -> float:
    return max(SCORE_MIN, min(SCORE_MAX, value))


def _num(value: float) -> str:
    """Compact number rendering: 3.0 → "3", 4.25 → "4.25"."""
    return f"{value:g}"
