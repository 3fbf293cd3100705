"""
Statistics Canada Web Data Service client.

API:   https://www150.statcan.gc.ca/t1/wds/rest/getDataFromVectorsAndLatestNPeriods
Docs:  https://www.statcan.gc.ca/en/developers/wds/user-guide

No credentials required.  Request body::

    [{"vectorId": 41690973, "latestN": 18}]

Response (abridged)::

    [{"status": "SUCCESS",
      "object": {"vectorDataPoint": [
          {"refPerRaw": "2025-01-01", "value": 161.3}, ...]}}]

Data points are returned oldest first.  Vector 41690973 is the all-items
CPI index, from which year-over-year inflation is derived.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import ClassVar, Optional

import httpx

logger = logging.getLogger(__name__)


class StatCanError(RuntimeError):
    """Raised internally when a StatCan response cannot be used."""


class StatCanClient:
    """Client for StatCan vector data points.

    Args:
        http:    Optional pre-built ``httpx.Client``.
        timeout: Request timeout in seconds when no client is injected.
    """

    URL: ClassVar[str] = (
        "https://www150.statcan.gc.ca/t1/wds/rest/getDataFromVectorsAndLatestNPeriods"
    )

    def __init__(self, http: Optional[httpx.Client] = None, timeout: float = 30.0) -> None:
        self._http = http or httpx.Client(timeout=timeout)

    def fetch_vector(self, vector_id: int, latest_n: int) -> list[tuple[date, float]]:
        """Latest ``latest_n`` points of a vector, oldest first; ``[]`` on failure."""
        try:
            resp = self._http.post(self.URL, json=[{"vectorId": vector_id, "latestN": latest_n}])
            resp.raise_for_status()
            return parse_vector_points(resp.json())
        except (httpx.HTTPError, StatCanError, ValueError) as exc:
            logger.warning("StatCan vector %s fetch error: %s", vector_id, exc)
            return []

    def close(self) -> None:
        self._http.close()


def parse_vector_points(payload: object) -> list[tuple[date, float]]:
    """Extract ``(refPerRaw, value)`` pairs from a WDS response.

    Raises:
        StatCanError: If the response is not the expected shape or reports failure.
    """
    try:
        entry = payload[0]  # type: ignore[index]
        status = entry.get("status", "SUCCESS")
        points = entry["object"]["vectorDataPoint"]
    except (IndexError, KeyError, TypeError, AttributeError) as exc:
        raise StatCanError(f"unexpected response shape: {exc!r}") from exc
    if status != "SUCCESS":
        raise StatCanError(f"request status {status}")
    if not isinstance(points, list):
        raise StatCanError("vectorDataPoint is not a list")

    pairs: list[tuple[date, float]] = []
    for point in points:
        try:
            pairs.append((date.fromisoformat(point["refPerRaw"]), float(point["value"])))
        except (KeyError, TypeError, ValueError):
            continue
    pairs.sort(key=lambda p: p[0])
    return pairs
