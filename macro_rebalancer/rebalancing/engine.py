"""
Rebalance engine: the single entry point from a snapshot to a directive.

Pipeline
--------
  1. score_indicators()        snapshot → seven indicator scores
  2. compute_regional_scores() scores × region table → one score per asset
  3. compute_raw_deltas()      regional score → shift per asset
  4. reconcile_deltas()        growth / defensive buckets offset (optional)
  5. proposed_allocations()    + normalize() over the whole universe
  6. final_delta()             + format_signal() for each held asset

Every step runs over the full portfolio on each invocation; the engine
holds no state between calls, so identical inputs give identical output.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from macro_rebalancer.config import AppConfig
from macro_rebalancer.models.asset import Portfolio
from macro_rebalancer.models.reading import IndicatorSnapshot
from macro_rebalancer.rebalancing.delta import compute_raw_deltas, compute_regional_scores
from macro_rebalancer.rebalancing.errors import InvalidAllocationError, UnknownTickerError
from macro_rebalancer.rebalancing.normalize import (
    final_delta,
    format_signal,
    normalize,
    proposed_allocations,
)
from macro_rebalancer.rebalancing.reconcile import reconcile_deltas
from macro_rebalancer.scoring.composite import confidence_label, overall_score
from macro_rebalancer.scoring.indicators import IndicatorScores, score_indicators

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AssetRebalance:
    """Per-asset audit row of one engine run.

    ``final_delta`` and ``signal`` are ``None`` for assets with no current
    allocation, where a relative change is undefined.
    """

    ticker: str
    asset_class: str
    region: str
    allocation: float
    regional_score: float
    confidence: str
    raw_delta: float
    reconciled_delta: float
    normalized_allocation: float
    final_delta: Optional[float]
    signal: Optional[str]
    classified: bool = True


@dataclass(frozen=True)
class RebalanceReport:
    """Everything one ``evaluate()`` call computed.

    ``overall_score`` is the unboosted weighted composite, the same number
    the scores view reports as the market signal.
    """

    scores: IndicatorScores
    assets: list[AssetRebalance]
    min_threshold: float
    balance_applied: bool
    overall_score: float = 0.0

    def asset(self, ticker: str) -> AssetRebalance:
        for row in self.assets:
            if row.ticker == ticker:
                return row
        raise UnknownTickerError(ticker)

    @property
    def weighted_regional_score(self) -> float:
        """Allocation-weighted mean of the regional scores (boosted, per asset)."""
        total = sum(r.allocation for r in self.assets)
        if not total:
            return 0.0
        return sum(r.regional_score * r.allocation for r in self.assets) / total


class RebalanceEngine:
    """Turns an indicator snapshot and a portfolio into rebalancing signals.

    Args:
        config: Thresholds, weights, region table and rebalancing parameters.
    """

    def __init__(self, config: AppConfig) -> None:
        self._config = config

    @property
    def config(self) -> AppConfig:
        return self._config

    def evaluate(self, portfolio: Portfolio, snapshot: IndicatorSnapshot) -> RebalanceReport:
        """Run the full pipeline over every asset in ``portfolio``.

        Raises:
            InvalidAllocationError: If every proposed allocation is zero.
        """
        params = self._config.rebalancing
        scores = score_indicators(snapshot, self._config)
        regional = compute_regional_scores(portfolio, scores, self._config)
        raw = compute_raw_deltas(portfolio, scores, self._config, regional=regional)

        if params.balance_constraint:
            reconciled = reconcile_deltas(raw, portfolio)
        else:
            reconciled = dict(raw)

        normalized = normalize(proposed_allocations(portfolio, reconciled))

        rows: list[AssetRebalance] = []
        for ticker, asset in portfolio.assets.items():
            final: Optional[float] = None
            signal: Optional[str] = None
            if asset.allocation > 0.0:
                final = final_delta(ticker, portfolio, normalized)
                signal = format_signal(final, params.min_threshold)
            rows.append(AssetRebalance(
                ticker=ticker,
                asset_class=asset.asset_class.value,
                region=asset.region.value,
                allocation=asset.allocation,
                regional_score=regional[ticker],
                confidence=confidence_label(regional[ticker]),
                raw_delta=raw[ticker],
                reconciled_delta=reconciled[ticker],
                normalized_allocation=normalized[ticker],
                final_delta=final,
                signal=signal,
                classified=ticker not in portfolio.unclassified,
            ))

        return RebalanceReport(
            scores=scores,
            assets=rows,
            min_threshold=params.min_threshold,
            balance_applied=params.balance_constraint,
            overall_score=overall_score(scores, self._config.weights.as_mapping()),
        )

    def signal(self, ticker: str, portfolio: Portfolio, snapshot: IndicatorSnapshot) -> str:
        """Directive for one ticker: ``Hold``, ``Increase X.XX%`` or ``Decrease X.XX%``.

        Raises:
            UnknownTickerError:     ``ticker`` has no metadata record.
            InvalidAllocationError: ``ticker`` has no current allocation, or
                                    every proposed allocation is zero.
        """
        ticker = ticker.strip()
        if ticker not in portfolio.assets or ticker in portfolio.unclassified:
            raise UnknownTickerError(ticker)
        if portfolio.allocation(ticker) <= 0.0:
            raise InvalidAllocationError(
                f"Current allocation for {ticker} is zero or missing; "
                "a relative change is undefined.",
                ticker=ticker,
            )

        row = self.evaluate(portfolio, snapshot).asset(ticker)
        logger.info(
            "Signal | ticker=%s score=%.4f final_delta=%.5f signal=%s",
            ticker, row.regional_score, row.final_delta, row.signal,
        )
        return row.signal
