"""
Trend estimator: normalizes a short historical series into a bounded signal.

The series is split into an "older" prefix (all but the last ``periods``
points) and a "recent" suffix (the last ``periods`` points).  The relative
change between their means is amplified tenfold and clamped, so a 10%
move saturates the signal at +/-1.

Insufficient history is not an error: it is indistinguishable from "no
trend" and yields exactly 0.
"""

from __future__ import annotations

from typing import Sequence

TREND_SENSITIVITY = 10.0


def compute_trend(series: Sequence[float], periods: int) -> float:
    """Return the trend of ``series`` over the last ``periods`` points.

    Args:
        series:  Observations ordered oldest to newest.
        periods: Length of the "recent" window (>= 1).

    Returns:
        Float in ``[-1, 1]``; ``0.0`` when ``len(series) < periods + 1`` or
        the older mean is zero.

    Raises:
        ValueError: If ``periods`` is less than 1.
    """
    if periods < 1:
        raise ValueError(f"periods must be >= 1, got {periods}.")
    if len(series) < periods + 1:
        return 0.0

    older = series[: len(series) - periods]
    recent = series[len(series) - periods:]

    older_avg = sum(older) / len(older)
    if older_avg == 0:
        return 0.0
    recent_avg = sum(recent) / len(recent)

    change = (recent_avg - older_avg) / older_avg
    return _clamp(change * TREND_SENSITIVITY, -1.0, 1.0)


def _clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))
