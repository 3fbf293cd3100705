"""
Indicator input models — one reading per indicator plus its short history.

Two-part design:
  1. ``IndicatorReading``  — the latest value of one indicator, tagged with
                             an explicit success/failure flag.
  2. ``IndicatorSnapshot`` — every reading and history series the engine
                             needs for one invocation.

A failed acquisition is a ``IndicatorReading`` with ``ok=False``, never an
exception and never a sentinel ``0.0``: "no data" stays structurally distinct
from "the indicator is zero".  Both models are frozen after construction.
"""

from __future__ import annotations

import math
from datetime import date, datetime
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, field_validator

from macro_rebalancer.taxonomy.indicator_taxonomy import IndicatorKey


class IndicatorReading(BaseModel):
    """Latest value of one indicator as supplied by the acquisition layer.

    Attributes:
        value: Numeric level, or text for descriptive indicators (GDP
            direction). ``None`` when nothing was obtained.
        as_of: Observation date reported by the source, if any.
        ok: ``True`` when the acquisition succeeded.
        error: Short failure reason when ``ok`` is ``False``.
    """

    model_config = ConfigDict(frozen=True)

    value: Optional[Union[float, str]] = None
    as_of: Optional[date] = None
    ok: bool = False
    error: Optional[str] = None

    @classmethod
    def success(
        cls,
        value: Union[float, str],
        as_of: Optional[date] = None,
    ) -> "IndicatorReading":
        """Build a successful reading."""
        return cls(value=value, as_of=as_of, ok=True)

    @classmethod
    def failure(cls, error: Optional[str] = None) -> "IndicatorReading":
        """Build a failed reading carrying no value."""
        return cls(value=None, as_of=None, ok=False, error=error)

    @property
    def is_usable(self) -> bool:
        """True when the reading succeeded and carries a finite or textual value."""
        if not self.ok or self.value is None:
            return False
        if isinstance(self.value, float):
            return math.isfinite(self.value)
        return self.value.strip() != ""

    def numeric_value(self) -> Optional[float]:
        """Return the value as a float, or ``None`` if unusable or non-numeric."""
        if not self.is_usable:
            return None
        if isinstance(self.value, float):
            return self.value
        try:
            parsed = float(str(self.value).strip().rstrip("%"))
        except ValueError:
            return None
        return parsed if math.isfinite(parsed) else None


_MISSING = IndicatorReading.failure("not supplied")


class IndicatorSnapshot(BaseModel):
    """Every indicator reading and history series for one engine invocation.

    Indicators absent from ``readings`` read as failures; indicators absent
    from ``history`` read as an empty series.  Series are ordered oldest to
    newest and are never interpolated.

    Attributes:
        readings: Latest reading per indicator.
        history: Recent numeric history per trend-bearing indicator.
        collected_at: UTC time the snapshot was assembled, if known.
    """

    model_config = ConfigDict(frozen=True)

    readings: dict[IndicatorKey, IndicatorReading] = {}
    history: dict[IndicatorKey, tuple[float, ...]] = {}
    collected_at: Optional[datetime] = None

    @field_validator("history")
    @classmethod
    def drop_non_finite(
        cls, v: dict[IndicatorKey, tuple[float, ...]]
    ) -> dict[IndicatorKey, tuple[float, ...]]:
        return {
            key: tuple(x for x in series if math.isfinite(x))
            for key, series in v.items()
        }

    def reading(self, key: IndicatorKey) -> IndicatorReading:
        """Return the reading for ``key`` (a failure if not supplied)."""
        return self.readings.get(key, _MISSING)

    def series(self, key: IndicatorKey) -> tuple[float, ...]:
        """Return the history for ``key`` (empty if not supplied)."""
        return self.history.get(key, ())
