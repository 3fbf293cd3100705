"""Tests for macro_rebalancer.reporting.export."""

from __future__ import annotations

import csv
import json
from datetime import datetime, timezone

import pytest

from macro_rebalancer.rebalancing.engine import RebalanceEngine, RebalanceReport
from macro_rebalancer.reporting.export import (
    export_report_csv,
    export_report_json,
    flatten_report_for_export,
    report_to_dict,
)


@pytest.fixture
def bullish_report(app_config, sample_portfolio, bullish_snapshot) -> RebalanceReport:
    return RebalanceEngine(app_config).evaluate(sample_portfolio, bullish_snapshot)


def test_flatten_one_row_per_asset(bullish_report, sample_portfolio) -> None:
    rows = flatten_report_for_export(bullish_report)
    assert [r["ticker"] for r in rows] == sample_portfolio.tickers
    xeqt = rows[0]
    assert xeqt["asset_class"] == "growth"
    assert xeqt["signal"] == "Increase 3.07%"
    assert xeqt["final_delta"] == pytest.approx(0.0307, abs=5e-5)
    assert {"raw_delta", "reconciled_delta", "normalized_allocation"} <= set(xeqt)


def test_report_to_dict_audit_fields(bullish_report) -> None:
    collected = datetime(2026, 10, 19, 9, 30, tzinfo=timezone.utc)
    payload = report_to_dict(bullish_report, collected_at=collected)

    assert payload["snapshot_collected_at"] == "2026-10-19T09:30:00+00:00"
    assert payload["balance_applied"] is True
    assert set(payload["scores"]) == {
        "unemployment", "domestic_cpi", "foreign_cpi", "gdp",
        "volatility", "yield_curve", "credit_spread",
    }
    assert payload["scores"]["gdp"]["description"] == "Rising"
    assert len(payload["assets"]) == 5


def test_report_to_dict_overall_score_is_unboosted(bullish_report) -> None:
    payload = report_to_dict(bullish_report)
    # same composite the scores command labels as the market signal
    assert payload["overall_score"] == pytest.approx(10.0 / 8.8)
    assert payload["weighted_regional_score"] == pytest.approx(
        bullish_report.weighted_regional_score
    )


def test_export_json_round_trip(bullish_report, tmp_path) -> None:
    path = export_report_json(bullish_report, tmp_path / "out" / "report.json")
    assert path.exists()
    loaded = json.loads(path.read_text(encoding="utf-8"))
    assert loaded["snapshot_collected_at"] is None
    assert loaded["assets"][3]["signal"] == "Decrease 8.50%"


def test_export_csv(bullish_report, tmp_path) -> None:
    path = export_report_csv(bullish_report, tmp_path / "report.csv")
    with path.open(encoding="utf-8", newline="") as f:
        rows = list(csv.DictReader(f))
    assert len(rows) == 5
    assert rows[1]["ticker"] == "VFV.TO"
    assert rows[1]["signal"] == "Increase 4.07%"


def test_export_csv_empty_report(tmp_path) -> None:
    report = RebalanceReport(scores={}, assets=[], min_threshold=0.005, balance_applied=True)
    path = export_report_csv(report, tmp_path / "empty.csv")
    assert path.read_text(encoding="utf-8") == ""
