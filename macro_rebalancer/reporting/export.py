"""
Export helpers for a ``RebalanceReport``.

All functions write to disk and return the written ``Path``.

``report_to_dict()`` is the audit dump: every intermediate value the engine
computed (indicator scores, regional scores, raw / reconciled / final
deltas, normalized allocations) so a signal can be traced end to end.
``flatten_report_for_export()`` produces one flat row per asset for
spreadsheets.
"""

from __future__ import annotations

import csv
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from macro_rebalancer.rebalancing.engine import RebalanceReport


def report_to_dict(
    report: RebalanceReport,
    collected_at: Optional[datetime] = None,
) -> dict:
    """Convert a report into a JSON-serializable dict."""
    return {
        "generated_at": datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ"),
        "snapshot_collected_at": collected_at.isoformat() if collected_at else None,
        "min_threshold": report.min_threshold,
        "balance_applied": report.balance_applied,
        "overall_score": report.overall_score,
        "weighted_regional_score": report.weighted_regional_score,
        "scores": {
            key.value: {"value": score.value, "description": score.description}
            for key, score in report.scores.items()
        },
        "assets": flatten_report_for_export(report),
    }


def flatten_report_for_export(report: RebalanceReport) -> list[dict]:
    """One flat row per asset, in portfolio order."""
    return [
        {
            "ticker":                row.ticker,
            "asset_class":           row.asset_class,
            "region":                row.region,
            "classified":            row.classified,
            "allocation":            row.allocation,
            "regional_score":        row.regional_score,
            "confidence":            row.confidence,
            "raw_delta":             row.raw_delta,
            "reconciled_delta":      row.reconciled_delta,
            "normalized_allocation": row.normalized_allocation,
            "final_delta":           row.final_delta,
            "signal":                row.signal,
        }
        for row in report.assets
    ]


def export_report_json(
    report: RebalanceReport,
    path: Path,
    collected_at: Optional[datetime] = None,
) -> Path:
    """Write the full audit dump as pretty-printed JSON.

    Args:
        report:       Result of ``RebalanceEngine.evaluate()``.
        path:         Destination file path (parent dirs created if missing).
        collected_at: Snapshot collection time, recorded for provenance.

    Returns:
        ``path`` as written.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        json.dumps(report_to_dict(report, collected_at), indent=2, default=str),
        encoding="utf-8",
    )
    return path


def export_report_csv(report: RebalanceReport, path: Path) -> Path:
    """Write one row per asset to a UTF-8 CSV file."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    rows = flatten_report_for_export(report)
    if not rows:
        path.write_text("", encoding="utf-8")
        return path
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=list(rows[0].keys()))
        writer.writeheader()
        writer.writerows(rows)
    return path
