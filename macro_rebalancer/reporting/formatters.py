"""
ASCII terminal formatters for CLI reporting commands.

All formatters return plain multi-line strings suitable for ``typer.echo()``.

No third-party dependencies (no ``rich``, no ``colorama``).

Freshness banners
-----------------
Score and rebalance output starts with a banner telling the reader how old
the indicator snapshot is::

  [FRESH] Collected 1.2h ago
  [STALE] Collected 30.4h ago -- indicators may have moved since
  [AGE UNKNOWN] collected_at not available
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from macro_rebalancer.rebalancing.engine import RebalanceReport
from macro_rebalancer.scoring.composite import market_signal_label
from macro_rebalancer.scoring.indicators import IndicatorScores

DEFAULT_FRESHNESS_HOURS = 24.0


# ── Freshness banner ─────────────────────────────────────────────────────────


def snapshot_age_hours(
    collected_at: Optional[datetime],
    now: Optional[datetime] = None,
) -> Optional[float]:
    """Hours between ``collected_at`` and ``now`` (UTC); ``None`` if unknown."""
    if collected_at is None:
        return None
    if collected_at.tzinfo is None:
        collected_at = collected_at.replace(tzinfo=timezone.utc)
    now = now or datetime.now(timezone.utc)
    return (now - collected_at).total_seconds() / 3600.0


def format_freshness_banner(
    age_hours: Optional[float],
    threshold_hours: float = DEFAULT_FRESHNESS_HOURS,
) -> str:
    """Return a one-line freshness indicator for the snapshot."""
    if age_hours is None:
        return "  [AGE UNKNOWN] collected_at not available"
    if age_hours <= threshold_hours:
        return f"  [FRESH] Collected {age_hours:.1f}h ago"
    return f"  [STALE] Collected {age_hours:.1f}h ago -- indicators may have moved since"


# ── Feed health ───────────────────────────────────────────────────────────────


def format_feed_health(rows: list[tuple[str, str]]) -> str:
    """Render ``check_feeds()`` output::

        Indicator       Status
        ----------------------
        unemployment    OK
        foreign_cpi     ERROR
    """
    lines = ["", "=== Data Feed Health ==="]
    header = f"  {'Indicator':<15} {'Status':<6}"
    lines.append(header)
    lines.append("  " + "-" * (len(header) - 2))
    for name, status in rows:
        lines.append(f"  {name:<15} {status:<6}")
    failed = sum(1 for _, status in rows if status != "OK")
    lines.append("")
    lines.append(f"  {len(rows) - failed}/{len(rows)} feeds OK")
    return "\n".join(lines)


# ── Indicator scores ──────────────────────────────────────────────────────────


def format_scores_table(
    scores: IndicatorScores,
    age_hours: Optional[float] = None,
    overall_score: Optional[float] = None,
) -> str:
    """Render the per-indicator score table with its audit descriptions.

    ``overall_score`` (the unboosted weighted composite) adds a market
    signal line when given.
    """
    lines = ["", "=== Indicator Scores ===", format_freshness_banner(age_hours), ""]
    header = f"  {'Indicator':<15} {'Score':>6}  Detail"
    lines.append(header)
    lines.append("  " + "-" * 60)
    for key, score in scores.items():
        lines.append(f"  {key.value:<15} {score.value:>+6.2f}  {score.description}")

    if overall_score is not None:
        lines.append("")
        lines.append(f"  Market signal: {market_signal_label(overall_score)}")
    return "\n".join(lines)


# ── Rebalance table ───────────────────────────────────────────────────────────


def format_rebalance_table(
    report: RebalanceReport,
    age_hours: Optional[float] = None,
) -> str:
    """Render the per-asset rebalancing table::

        Ticker     Class      Region     Alloc  Score  Confidence   Target  Signal
        ---------------------------------------------------------------------------
        XEQT.TO    growth     global    40.00%  +0.62  Low          41.13%  Increase 2.83%
    """
    lines = ["", "=== Rebalance Signals ===", format_freshness_banner(age_hours)]
    lines.append(f"  Market signal: {market_signal_label(report.overall_score)}")
    lines.append(
        f"  Balance constraint: {'on' if report.balance_applied else 'off'}"
        f"   Hold threshold: {report.min_threshold:.2%}"
    )
    lines.append("")

    if not report.assets:
        lines.append("  (no assets in portfolio)")
        return "\n".join(lines)

    header = (
        f"  {'Ticker':<10} {'Class':<10} {'Region':<9} {'Alloc':>7}  "
        f"{'Score':>5}  {'Confidence':<11} {'Target':>7}  Signal"
    )
    lines.append(header)
    lines.append("  " + "-" * (len(header) + 10))
    for row in report.assets:
        confidence = row.confidence.replace(" Confidence", "") or "-"
        signal = row.signal if row.signal is not None else "n/a (no allocation)"
        ticker = row.ticker if row.classified else f"{row.ticker}*"
        lines.append(
            f"  {ticker:<10} {row.asset_class:<10} {row.region:<9} "
            f"{row.allocation:>7.2%}  {row.regional_score:>+5.2f}  {confidence:<11} "
            f"{row.normalized_allocation:>7.2%}  {signal}"
        )

    if any(not r.classified for r in report.assets):
        lines.append("")
        lines.append("  * no metadata row; defaults applied (growth / global / 1.0)")
    return "\n".join(lines)
