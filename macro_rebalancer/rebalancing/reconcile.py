"""
Balance reconciler: makes the growth and defensive buckets offset.

Raw deltas are computed asset by asset and generally do not net out, which
would imply capital appearing or disappearing.  Reconciliation looks at the
*whole* universe:

    net = Σ delta[t] × allocation[t]

When ``|net| > NET_TOLERANCE`` the correction ``adjustment = -net / 2`` is
split evenly between the two buckets.  Every defensive asset receives
``adjustment / total_defensive_allocation`` and every growth asset receives
``adjustment / total_growth_allocation``; a bucket whose total allocation
is zero is skipped.  With both buckets populated the allocation-weighted
net of the result is zero.
"""

from __future__ import annotations

import logging
from typing import Mapping

from macro_rebalancer.models.asset import Portfolio
from macro_rebalancer.taxonomy.indicator_taxonomy import AssetClass

logger = logging.getLogger(__name__)

NET_TOLERANCE = 0.001


def net_flow(deltas: Mapping[str, float], portfolio: Portfolio) -> float:
    """Allocation-weighted sum of deltas over the full universe."""
    return sum(deltas.get(t, 0.0) * a.allocation for t, a in portfolio.assets.items())


def reconcile_deltas(
    deltas: Mapping[str, float],
    portfolio: Portfolio,
) -> dict[str, float]:
    """Return reconciled deltas; the input mapping is left untouched.

    Args:
        deltas:    Raw delta per ticker (every portfolio ticker).
        portfolio: The full asset universe.

    Returns:
        New dict of ticker → reconciled delta.
    """
    result = {ticker: deltas.get(ticker, 0.0) for ticker in portfolio.assets}

    net = net_flow(result, portfolio)
    if abs(net) <= NET_TOLERANCE:
        return result

    adjustment = -net / 2
    for asset_class in (AssetClass.DEFENSIVE, AssetClass.GROWTH):
        bucket = portfolio.bucket(asset_class)
        bucket_alloc = sum(a.allocation for a in bucket)
        if not bucket_alloc:
            continue
        per_asset = adjustment / bucket_alloc
        for asset in bucket:
            result[asset.ticker] += per_asset

    logger.debug(
        "Reconciled deltas | net_before=%.6f net_after=%.6f",
        net, net_flow(result, portfolio),
    )
    return result
