"""
Tests for macro_rebalancer.ingestion.snapshot — disk persistence helpers.

Covers:
  - save_snapshot(): creates parent dirs, envelope structure, content hash
  - compute_hash(): independent of key order
  - load_snapshot(): restores readings, history and timestamps
  - load_snapshot(): missing file / bad JSON / wrong shape
"""

from __future__ import annotations

import json
from datetime import date, datetime, timezone

import pytest

from macro_rebalancer.ingestion.snapshot import compute_hash, load_snapshot, save_snapshot
from macro_rebalancer.models.reading import IndicatorReading, IndicatorSnapshot
from macro_rebalancer.taxonomy.indicator_taxonomy import IndicatorKey

_SNAPSHOT = IndicatorSnapshot(
    readings={
        IndicatorKey.UNEMPLOYMENT: IndicatorReading.success(4.1, as_of=date(2026, 9, 1)),
        IndicatorKey.GDP: IndicatorReading.success("Rising"),
        IndicatorKey.VOLATILITY: IndicatorReading.failure("429"),
    },
    history={IndicatorKey.UNEMPLOYMENT: (4.0, 4.0, 4.1)},
    collected_at=datetime(2026, 10, 1, 12, 0, tzinfo=timezone.utc),
)


class TestSaveSnapshot:
    def test_envelope(self, tmp_path):
        path = tmp_path / "nested" / "latest.json"
        content_hash = save_snapshot(path, _SNAPSHOT, metadata={"source": "live"})

        envelope = json.loads(path.read_text(encoding="utf-8"))
        assert set(envelope) == {"_meta", "data"}
        assert envelope["_meta"]["source"] == "live"
        assert envelope["_meta"]["indicators_ok"] == 2
        assert envelope["_meta"]["content_hash"] == content_hash
        assert "written_at" in envelope["_meta"]
        assert envelope["data"]["readings"]["unemployment"]["value"] == 4.1

    def test_hash_ignores_write_time(self, tmp_path):
        a = save_snapshot(tmp_path / "a.json", _SNAPSHOT)
        b = save_snapshot(tmp_path / "b.json", _SNAPSHOT)
        assert a == b

    def test_compute_hash_key_order(self):
        assert compute_hash({"a": 1, "b": 2}) == compute_hash({"b": 2, "a": 1})


class TestLoadSnapshot:
    def test_restores_snapshot(self, tmp_path):
        path = tmp_path / "latest.json"
        save_snapshot(path, _SNAPSHOT)
        loaded = load_snapshot(path)

        assert loaded.reading(IndicatorKey.UNEMPLOYMENT).as_of == date(2026, 9, 1)
        assert loaded.reading(IndicatorKey.GDP).value == "Rising"
        assert loaded.reading(IndicatorKey.VOLATILITY).ok is False
        assert loaded.series(IndicatorKey.UNEMPLOYMENT) == (4.0, 4.0, 4.1)
        assert loaded.collected_at == _SNAPSHOT.collected_at

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_snapshot(tmp_path / "nope.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("{", encoding="utf-8")
        with pytest.raises(ValueError, match="not valid JSON"):
            load_snapshot(path)

    def test_missing_data_section(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"_meta": {}}), encoding="utf-8")
        with pytest.raises(ValueError, match="no 'data' section"):
            load_snapshot(path)

    def test_unknown_indicator_rejected(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"data": {"readings": {"gold": {"ok": True}}}}), encoding="utf-8")
        with pytest.raises(ValueError):
            load_snapshot(path)
