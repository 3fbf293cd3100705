"""
Indicator collector — assembles an ``IndicatorSnapshot`` from live sources.

Source map
----------
    unemployment   FRED UNRATE                  latest + last N values
    domestic_cpi   FRED CPIAUCSL (index)        → year-over-year %
    foreign_cpi    StatCan vector 41690973      → year-over-year %
                   (FRED CANCPIALLMINMEI when StatCan returns nothing)
    gdp            FRED NGDPRSAXDCCAQ (levels)  → "Rising" / "Shrinking" / "No change"
    volatility     Yahoo ^VIX latest close      (FRED VIXCLS as fallback)
                   FRED VIXCLS daily            → monthly averages for history
    yield_curve    FRED T10Y2Y                  latest + last N values
    credit_spread  FRED BAMLC0A0CM              latest + last N values

Every fetch goes through the TTL cache.  Failed fetches are not cached, so
the next run retries them.  A failure never aborts collection: the
indicator's reading is marked ``ok=False`` and scores neutral downstream.
"""

from __future__ import annotations

import logging
import os
from datetime import date, datetime, timezone
from typing import Any, Callable, Optional

from macro_rebalancer.config import AppConfig
from macro_rebalancer.ingestion.cache import TTLCache
from macro_rebalancer.ingestion.derive import gdp_direction, monthly_averages, year_over_year
from macro_rebalancer.ingestion.fred_client import FredClient
from macro_rebalancer.ingestion.statcan_client import StatCanClient
from macro_rebalancer.ingestion.yahoo_client import YahooClient
from macro_rebalancer.models.reading import IndicatorReading, IndicatorSnapshot
from macro_rebalancer.taxonomy.indicator_taxonomy import IndicatorKey

logger = logging.getLogger(__name__)

FEED_OK = "OK"
FEED_ERROR = "ERROR"

# Twelve extra index points are needed to derive a year-over-year value.
_YOY_LOOKBACK = 12

DatedSeries = list[tuple[date, float]]

# Indicators whose latest value and history come straight from one FRED series.
_DIRECT_FRED = (
    IndicatorKey.UNEMPLOYMENT,
    IndicatorKey.YIELD_CURVE,
    IndicatorKey.CREDIT_SPREAD,
)


class IndicatorCollector:
    """Fetches every indicator and packages the result as a snapshot.

    Args:
        config:  Application config (series ids, TTLs, history length).
        fred:    FRED client.
        statcan: StatCan client.
        yahoo:   Yahoo Finance client.
        cache:   TTL cache; ``None`` disables caching.
    """

    def __init__(
        self,
        config: AppConfig,
        fred: FredClient,
        statcan: StatCanClient,
        yahoo: YahooClient,
        cache: Optional[TTLCache] = None,
    ) -> None:
        self.config = config
        self.fred = fred
        self.statcan = statcan
        self.yahoo = yahoo
        self.cache = cache

    @classmethod
    def from_config(cls, config: AppConfig, api_key: Optional[str] = None) -> "IndicatorCollector":
        """Build a collector with real HTTP clients and the configured cache.

        ``api_key`` defaults to the ``FRED_API_KEY`` environment variable.
        """
        acq = config.acquisition
        key = api_key if api_key is not None else os.environ.get("FRED_API_KEY", "")
        if not key:
            logger.warning("FRED_API_KEY is not set; FRED-backed indicators will report ERROR.")
        return cls(
            config=config,
            fred=FredClient(key, timeout=acq.timeout_seconds),
            statcan=StatCanClient(timeout=acq.timeout_seconds),
            yahoo=YahooClient(timeout=acq.timeout_seconds),
            cache=TTLCache(config.data.cache_dir, version=acq.cache_version),
        )

    def close(self) -> None:
        """Release the HTTP connections held by every source client."""
        for client in (self.fred, self.statcan, self.yahoo):
            client.close()

    def __enter__(self) -> "IndicatorCollector":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    # ── Public API ─────────────────────────────────────────────────────────────

    def collect(self) -> IndicatorSnapshot:
        """Fetch all seven indicators; never raises for source failures."""
        readings: dict[IndicatorKey, IndicatorReading] = {}
        history: dict[IndicatorKey, tuple[float, ...]] = {}
        points = self.config.trend.history_points

        for key in _DIRECT_FRED:
            readings[key], history[key] = self._direct(key)

        us_cpi_index = self._fred_dated(
            self._series_id(IndicatorKey.DOMESTIC_CPI), points + _YOY_LOOKBACK
        )
        readings[IndicatorKey.DOMESTIC_CPI], history[IndicatorKey.DOMESTIC_CPI] = (
            self._cpi_from_index(us_cpi_index)
        )
        readings[IndicatorKey.FOREIGN_CPI], history[IndicatorKey.FOREIGN_CPI] = self._foreign_cpi()
        readings[IndicatorKey.GDP] = self._gdp()
        readings[IndicatorKey.VOLATILITY], history[IndicatorKey.VOLATILITY] = self._volatility()

        failed = [k.value for k, r in readings.items() if not r.ok]
        logger.info(
            "Collected indicators | ok=%d failed=%s",
            len(readings) - len(failed), ",".join(failed) or "-",
        )
        return IndicatorSnapshot(
            readings=readings,
            history={k: v for k, v in history.items() if v},
            collected_at=datetime.now(timezone.utc),
        )

    # ── Per-indicator assembly ─────────────────────────────────────────────────

    def _series_id(self, key: IndicatorKey) -> str:
        return self.config.acquisition.fred_series[key]

    def _direct(self, key: IndicatorKey) -> tuple[IndicatorReading, tuple[float, ...]]:
        series_id = self._series_id(key)
        reading = self._fred_latest(series_id)
        dated = self._fred_dated(series_id, self.config.trend.history_points)
        return reading, tuple(v for _, v in dated)

    def _cpi_from_index(self, index: DatedSeries) -> tuple[IndicatorReading, tuple[float, ...]]:
        yoy = year_over_year(index)
        if not yoy:
            return IndicatorReading.failure("not enough CPI history for year-over-year"), ()
        as_of, latest = yoy[-1]
        tail = yoy[-self.config.trend.history_points:]
        return (
            IndicatorReading.success(round(latest, 1), as_of=as_of),
            tuple(v for _, v in tail),
        )

    def _foreign_cpi(self) -> tuple[IndicatorReading, tuple[float, ...]]:
        acq = self.config.acquisition
        count = self.config.trend.history_points + _YOY_LOOKBACK
        index = self._dated(
            f"STATCAN_CPI_{acq.statcan_cpi_vector}_{count}",
            acq.statcan_ttl_seconds,
            lambda: self.statcan.fetch_vector(acq.statcan_cpi_vector, count),
        )
        reading, hist = self._cpi_from_index(index)
        if reading.ok:
            return reading, hist
        logger.warning("StatCan CPI unavailable; falling back to FRED %s.",
                       self._series_id(IndicatorKey.FOREIGN_CPI))
        return self._cpi_from_index(self._fred_dated(self._series_id(IndicatorKey.FOREIGN_CPI), count))

    def _gdp(self) -> IndicatorReading:
        dated = self._fred_dated(self._series_id(IndicatorKey.GDP), 2)
        if len(dated) < 2:
            return IndicatorReading.failure("not enough GDP observations")
        return IndicatorReading.success(gdp_direction([v for _, v in dated]), as_of=dated[-1][0])

    def _volatility(self) -> tuple[IndicatorReading, tuple[float, ...]]:
        acq = self.config.acquisition
        vix_series = self._series_id(IndicatorKey.VOLATILITY)
        reading = self._reading(
            f"YH_{acq.volatility_symbol}",
            acq.latest_ttl_seconds,
            lambda: self.yahoo.fetch_latest_close(acq.volatility_symbol),
        )
        if not reading.ok:
            reading = self._fred_latest(vix_series)

        daily = self._fred_dated(vix_series, acq.volatility_daily_points)
        monthly = monthly_averages(daily)[-self.config.trend.history_points:]
        return reading, tuple(v for _, v in monthly)

    # ── Cached fetch helpers ───────────────────────────────────────────────────

    def _fred_latest(self, series_id: str) -> IndicatorReading:
        return self._reading(
            f"FRED_{series_id}",
            self.config.acquisition.latest_ttl_seconds,
            lambda: self.fred.fetch_latest(series_id),
        )

    def _fred_dated(self, series_id: str, count: int) -> DatedSeries:
        return self._dated(
            f"FRED_SERIES_{series_id}_{count}",
            self.config.acquisition.series_ttl_seconds,
            lambda: self.fred.fetch_dated_series(series_id, count),
        )

    def _reading(
        self, key: str, ttl: int, fetch: Callable[[], IndicatorReading]
    ) -> IndicatorReading:
        raw = self._through_cache(
            key, ttl,
            lambda: fetch().model_dump(mode="json"),
            should_store=lambda v: bool(v.get("ok")),
        )
        return IndicatorReading.model_validate(raw)

    def _dated(self, key: str, ttl: int, fetch: Callable[[], DatedSeries]) -> DatedSeries:
        raw = self._through_cache(
            key, ttl,
            lambda: [[d.isoformat(), v] for d, v in fetch()],
            should_store=bool,
        )
        return [(date.fromisoformat(d), float(v)) for d, v in raw]

    def _through_cache(
        self,
        key: str,
        ttl: int,
        fetch: Callable[[], Any],
        should_store: Callable[[Any], bool],
    ) -> Any:
        if self.cache is None:
            return fetch()
        return self.cache.get_or_fetch(key, ttl, fetch, should_store=should_store)


def check_feeds(snapshot: IndicatorSnapshot) -> list[tuple[str, str]]:
    """Per-indicator feed health: ``[(indicator, "OK" | "ERROR"), ...]``."""
    return [
        (key.value, FEED_OK if snapshot.reading(key).ok else FEED_ERROR)
        for key in IndicatorKey
    ]
