"""
FRED (Federal Reserve Economic Data) client.

API:   https://api.stlouisfed.org/fred/series/observations
Docs:  https://fred.stlouisfed.org/docs/api/fred/series_observations.html

Credential setup (.env, gitignored):
  FRED_API_KEY=your_key

Request shape::

    GET /fred/series/observations
        ?series_id=UNRATE&api_key=...&file_type=json
        &limit=<n>&sort_order=desc

Observations arrive newest first; missing values are reported as ``"."``
and are dropped.  Series returned by this client are ordered oldest to
newest.

Failures (HTTP errors, non-JSON bodies, malformed payloads, missing key)
never propagate:
``fetch_latest`` returns a failed ``IndicatorReading`` and the series
methods return an empty list.  Each failure is logged at WARNING.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import ClassVar, Optional

import httpx

from macro_rebalancer.models.reading import IndicatorReading

logger = logging.getLogger(__name__)

MISSING_VALUE = "."


class FredError(RuntimeError):
    """Raised internally when a FRED response cannot be used."""


class FredClient:
    """Client for FRED series observations.

    Usage::

        client = FredClient(api_key=os.environ["FRED_API_KEY"])
        reading = client.fetch_latest("UNRATE")
        history = client.fetch_series("UNRATE", 6)

    Args:
        api_key: FRED API key; when empty every fetch fails with a clear reason.
        http:    Optional pre-built ``httpx.Client`` (tests inject a
                 ``MockTransport`` here).
        timeout: Request timeout in seconds when no client is injected.
    """

    BASE_URL: ClassVar[str] = "https://api.stlouisfed.org/fred/series/observations"

    def __init__(
        self,
        api_key: Optional[str],
        http: Optional[httpx.Client] = None,
        timeout: float = 30.0,
    ) -> None:
        self.api_key = api_key or ""
        self._http = http or httpx.Client(timeout=timeout)

    # ── Public API ─────────────────────────────────────────────────────────────

    def fetch_latest(self, series_id: str) -> IndicatorReading:
        """Latest non-missing observation of ``series_id``."""
        try:
            observations = self._observations(series_id, limit=1)
        except (httpx.HTTPError, FredError, ValueError) as exc:
            logger.warning("FRED %s fetch error: %s", series_id, exc)
            return IndicatorReading.failure(str(exc))
        if not observations:
            logger.warning("FRED %s fetch error: no observations", series_id)
            return IndicatorReading.failure("no observations")
        as_of, value = observations[-1]
        return IndicatorReading.success(value, as_of=as_of)

    def fetch_dated_series(self, series_id: str, count: int) -> list[tuple[date, float]]:
        """Up to ``count`` most recent ``(date, value)`` pairs, oldest first."""
        try:
            return self._observations(series_id, limit=count)
        except (httpx.HTTPError, FredError, ValueError) as exc:
            logger.warning("FRED series %s error: %s", series_id, exc)
            return []

    def fetch_series(self, series_id: str, count: int) -> list[float]:
        """Up to ``count`` most recent values, oldest first."""
        return [value for _, value in self.fetch_dated_series(series_id, count)]

    def close(self) -> None:
        self._http.close()

    # ── Internal ───────────────────────────────────────────────────────────────

    def _observations(self, series_id: str, limit: int) -> list[tuple[date, float]]:
        if not self.api_key:
            raise FredError("FRED_API_KEY is not set")

        resp = self._http.get(
            self.BASE_URL,
            params={
                "series_id": series_id,
                "api_key": self.api_key,
                "file_type": "json",
                "limit": limit,
                "sort_order": "desc",
            },
        )
        resp.raise_for_status()
        return parse_observations(resp.json())


def parse_observations(payload: dict) -> list[tuple[date, float]]:
    """Convert a FRED observations payload into ``(date, value)`` pairs.

    Input is newest first (``sort_order=desc``); the result is reversed to
    oldest first.  Missing (``"."``) and non-numeric values are skipped.

    Raises:
        FredError: If the payload has no ``observations`` list.
    """
    raw = payload.get("observations") if isinstance(payload, dict) else None
    if not isinstance(raw, list):
        raise FredError("response has no 'observations' list")

    pairs: list[tuple[date, float]] = []
    for obs in raw:
        if not isinstance(obs, dict):
            continue
        value = obs.get("value")
        if value is None or value == MISSING_VALUE:
            continue
        try:
            pairs.append((date.fromisoformat(obs["date"]), float(value)))
        except (KeyError, TypeError, ValueError):
            continue
    pairs.reverse()
    return pairs
