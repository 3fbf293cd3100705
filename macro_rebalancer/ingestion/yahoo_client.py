"""
Yahoo Finance chart API client — latest close of the volatility index.

API:   https://query1.finance.yahoo.com/v8/finance/chart/{symbol}?range=5d&interval=1d

No credentials required.  The last non-null close of the five-day window
is used, rounded to two decimals.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import ClassVar, Optional

import httpx

from macro_rebalancer.models.reading import IndicatorReading

logger = logging.getLogger(__name__)


class YahooClient:
    """Client for the Yahoo Finance chart endpoint.

    Args:
        http:    Optional pre-built ``httpx.Client``.
        timeout: Request timeout in seconds when no client is injected.
    """

    URL_TEMPLATE: ClassVar[str] = "https://query1.finance.yahoo.com/v8/finance/chart/{symbol}"
    # Yahoo rejects requests without a browser-like user agent.
    HEADERS: ClassVar[dict[str, str]] = {"User-Agent": "Mozilla/5.0"}

    def __init__(self, http: Optional[httpx.Client] = None, timeout: float = 30.0) -> None:
        self._http = http or httpx.Client(timeout=timeout, headers=self.HEADERS)

    def fetch_latest_close(self, symbol: str) -> IndicatorReading:
        """Latest daily close for ``symbol``; a failed reading on any error."""
        try:
            resp = self._http.get(
                self.URL_TEMPLATE.format(symbol=symbol),
                params={"range": "5d", "interval": "1d"},
            )
            resp.raise_for_status()
            result = resp.json()["chart"]["result"][0]
            closes = result["indicators"]["quote"][0]["close"]
            timestamps = result.get("timestamp") or []
        except httpx.HTTPError as exc:
            logger.warning("Yahoo %s fetch error: %s", symbol, exc)
            return IndicatorReading.failure(str(exc))
        except (KeyError, IndexError, TypeError, ValueError) as exc:
            logger.warning("Yahoo %s fetch error: unexpected payload (%r)", symbol, exc)
            return IndicatorReading.failure("unexpected payload")

        for idx in range(len(closes) - 1, -1, -1):
            close = closes[idx]
            if close is None:
                continue
            as_of = None
            if idx < len(timestamps):
                as_of = datetime.fromtimestamp(timestamps[idx], tz=timezone.utc).date()
            return IndicatorReading.success(round(float(close), 2), as_of=as_of)

        logger.warning("Yahoo %s fetch error: no closes", symbol)
        return IndicatorReading.failure("no closes")

    def close(self) -> None:
        self._http.close()
