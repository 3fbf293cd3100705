"""
Pure transforms from raw source series to indicator values.

All functions take and return series ordered oldest to newest and never
touch the network.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import date
from typing import Sequence

GDP_RISING = "Rising"
GDP_SHRINKING = "Shrinking"
GDP_FLAT = "No change"


def year_over_year(series: Sequence[tuple[date, float]]) -> list[tuple[date, float]]:
    """Year-over-year % change for every point with an exact prior-year match.

    The prior-year point is the one dated the same month and day one year
    earlier.  Points without such a match, or whose base is zero, are
    skipped.

    Example::

        [(2024-01-01, 100.0), ..., (2025-01-01, 102.0)] → [(2025-01-01, 2.0)]
    """
    by_date = {d: v for d, v in series}
    out: list[tuple[date, float]] = []
    for d, value in series:
        try:
            prior_date = d.replace(year=d.year - 1)
        except ValueError:  # 29 February
            continue
        prior = by_date.get(prior_date)
        if not prior:
            continue
        out.append((d, (value / prior - 1.0) * 100.0))
    return out


def gdp_direction(levels: Sequence[float]) -> str:
    """``"Rising"`` / ``"Shrinking"`` / ``"No change"`` from the last two levels.

    Raises:
        ValueError: If fewer than two levels are supplied.
    """
    if len(levels) < 2:
        raise ValueError("Not enough data points for a GDP direction.")
    latest, previous = levels[-1], levels[-2]
    if latest > previous:
        return GDP_RISING
    if latest < previous:
        return GDP_SHRINKING
    return GDP_FLAT


def monthly_averages(daily: Sequence[tuple[date, float]]) -> list[tuple[date, float]]:
    """Average daily observations per calendar month.

    Returns:
        ``(first-of-month, mean)`` pairs, oldest month first.
    """
    buckets: dict[date, list[float]] = defaultdict(list)
    for d, value in daily:
        buckets[d.replace(day=1)].append(value)
    return [(month, sum(vals) / len(vals)) for month, vals in sorted(buckets.items())]
