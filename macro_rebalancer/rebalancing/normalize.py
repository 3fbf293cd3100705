"""
Normalizer and signal formatter.

    proposed[t] = max(0, allocation[t] × (1 + delta[t]))
    sum_new     = Σ proposed
    normalized  = proposed / sum_new
    final[t]    = normalized[t] / allocation[t] - 1

The final delta is what the user sees; it reflects the asset's own shift
*and* the renormalization forced by every other asset's shift.
"""

from __future__ import annotations

from typing import Mapping

from macro_rebalancer.models.asset import Portfolio
from macro_rebalancer.rebalancing.errors import InvalidAllocationError

HOLD = "Hold"


def proposed_allocations(
    portfolio: Portfolio,
    deltas: Mapping[str, float],
) -> dict[str, float]:
    """Apply each delta to its current allocation, flooring at zero."""
    return {
        ticker: max(0.0, asset.allocation * (1.0 + deltas.get(ticker, 0.0)))
        for ticker, asset in portfolio.assets.items()
    }


def normalize(proposed: Mapping[str, float]) -> dict[str, float]:
    """Scale proposed allocations so they sum to 1.

    Raises:
        InvalidAllocationError: If every proposed allocation is zero.
    """
    sum_new = sum(proposed.values())
    if sum_new <= 0.0:
        raise InvalidAllocationError(
            "All proposed allocations collapse to zero; cannot normalize."
        )
    return {ticker: value / sum_new for ticker, value in proposed.items()}


def final_delta(
    ticker: str,
    portfolio: Portfolio,
    normalized: Mapping[str, float],
) -> float:
    """Relative change between the normalized and the current allocation.

    Raises:
        InvalidAllocationError: If ``ticker`` holds no current allocation.
    """
    old = portfolio.allocation(ticker)
    if old <= 0.0:
        raise InvalidAllocationError(
            f"Current allocation for {ticker} is zero or missing; "
            "a relative change is undefined.",
            ticker=ticker,
        )
    return normalized.get(ticker, 0.0) / old - 1.0


def format_signal(delta: float, min_threshold: float) -> str:
    """Render a final delta as ``Hold`` / ``Increase X.XX%`` / ``Decrease X.XX%``."""
    if abs(delta) < min_threshold:
        return HOLD
    verb = "Increase" if delta > 0 else "Decrease"
    return f"{verb} {abs(delta) * 100:.2f}%"
