"""Tests for macro_rebalancer/models/reading.py."""

from __future__ import annotations

import math
from datetime import date

import pytest
from pydantic import ValidationError

from macro_rebalancer.models.reading import IndicatorReading, IndicatorSnapshot
from macro_rebalancer.taxonomy.indicator_taxonomy import IndicatorKey


class TestIndicatorReading:
    def test_success(self):
        r = IndicatorReading.success(4.1, as_of=date(2026, 9, 1))
        assert r.ok is True
        assert r.is_usable
        assert r.numeric_value() == 4.1

    def test_failure_is_not_zero(self):
        r = IndicatorReading.failure("timeout")
        assert r.ok is False
        assert r.value is None
        assert r.error == "timeout"
        assert r.numeric_value() is None

    def test_ok_false_with_value_is_unusable(self):
        r = IndicatorReading(value=3.0, ok=False)
        assert not r.is_usable
        assert r.numeric_value() is None

    def test_non_finite_is_unusable(self):
        assert not IndicatorReading.success(math.nan).is_usable
        assert IndicatorReading.success(math.inf).numeric_value() is None

    @pytest.mark.parametrize("raw, expected", [
        ("4.1", 4.1),
        (" 2.5% ", 2.5),
        ("Rising", None),
        ("   ", None),
    ])
    def test_numeric_value_from_text(self, raw, expected):
        assert IndicatorReading.success(raw).numeric_value() == expected

    def test_textual_reading_keeps_raw_value(self):
        r = IndicatorReading.success("  Rising ")
        assert r.is_usable
        assert r.value == "  Rising "
        assert r.numeric_value() is None

    def test_frozen(self):
        r = IndicatorReading.success(1.0)
        with pytest.raises(ValidationError):
            r.value = 2.0


class TestIndicatorSnapshot:
    def test_missing_reading_is_failure(self):
        snapshot = IndicatorSnapshot()
        assert snapshot.reading(IndicatorKey.GDP).ok is False
        assert snapshot.series(IndicatorKey.GDP) == ()

    def test_history_drops_non_finite(self):
        snapshot = IndicatorSnapshot(
            history={IndicatorKey.VOLATILITY: (16.0, math.nan, 18.0, math.inf)}
        )
        assert snapshot.series(IndicatorKey.VOLATILITY) == (16.0, 18.0)

    def test_keys_accept_strings(self):
        snapshot = IndicatorSnapshot(readings={"unemployment": {"value": 4.0, "ok": True}})
        assert snapshot.reading(IndicatorKey.UNEMPLOYMENT).numeric_value() == 4.0

    def test_unknown_key_rejected(self):
        with pytest.raises(ValidationError):
            IndicatorSnapshot(readings={"gold_price": {"value": 1.0, "ok": True}})
