"""
Rebalancing engine: converts composite scores into allocation shifts and
renders the final directive for one ticker.

Modules
-------
errors    : RebalanceError, UnknownTickerError, InvalidAllocationError.
delta     : base_shift() ladder + raw_delta() + compute_raw_deltas().
reconcile : reconcile_deltas() — growth and defensive buckets offset.
normalize : proposed_allocations(), normalize(), final_delta(), format_signal().
engine    : RebalanceEngine facade + RebalanceReport / AssetRebalance audit dump.
"""
