"""
TTL cache for indicator fetches, persisted as a single JSON file.

File layout (``<cache_dir>/indicator_cache.json``)::

    {
      "v3:FRED_UNRATE": {"stored_at": 1760000000.0, "ttl": 3600, "value": {...}},
      "v3:STATCAN_CPI": {...}
    }

Keys are prefixed with the cache version; bumping ``cache_version`` in
config orphans every older entry without touching the file by hand.
Values must be JSON-serializable.
"""

from __future__ import annotations

import json
import logging
import time
from pathlib import Path
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)

CACHE_FILENAME = "indicator_cache.json"


class TTLCache:
    """Versioned key → value cache with a per-entry time-to-live.

    Args:
        cache_dir: Directory holding the cache file (created on first write).
        version:   Key prefix; entries written under another version are ignored.
        clock:     Returns the current time in epoch seconds (tests inject one).
    """

    def __init__(
        self,
        cache_dir: str | Path,
        version: str = "v3",
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.path = Path(cache_dir) / CACHE_FILENAME
        self.version = version
        self._clock = clock

    def _key(self, key: str) -> str:
        return f"{self.version}:{key}"

    def _load(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, encoding="utf-8") as fh:
                data = json.load(fh)
        except json.JSONDecodeError:
            logger.warning("Cache file %s is corrupt; ignoring it.", self.path)
            return {}
        return data if isinstance(data, dict) else {}

    def _save(self, data: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as fh:
            json.dump(data, fh, indent=2, sort_keys=True)

    def get(self, key: str) -> Optional[Any]:
        """Cached value for ``key``, or ``None`` if absent or expired."""
        entry = self._load().get(self._key(key))
        if not isinstance(entry, dict):
            return None
        if self._clock() - entry.get("stored_at", 0.0) >= entry.get("ttl", 0):
            return None
        return entry.get("value")

    def put(self, key: str, value: Any, ttl: int) -> None:
        """Store ``value`` under ``key`` for ``ttl`` seconds."""
        data = self._load()
        data[self._key(key)] = {"stored_at": self._clock(), "ttl": ttl, "value": value}
        self._save(data)

    def get_or_fetch(
        self,
        key: str,
        ttl: int,
        fetch: Callable[[], Any],
        should_store: Callable[[Any], bool] = lambda value: True,
    ) -> Any:
        """Return the cached value, or call ``fetch`` and cache its result.

        Args:
            key:          Cache key (without version prefix).
            ttl:          Lifetime of a fresh entry in seconds.
            fetch:        Zero-argument producer of a JSON-serializable value.
            should_store: Predicate deciding whether a fetched value is cached;
                          failed fetches are typically not.
        """
        cached = self.get(key)
        if cached is not None:
            logger.debug("Cache hit | key=%s", key)
            return cached
        value = fetch()
        if ttl > 0 and should_store(value):
            self.put(key, value, ttl)
        return value

    def clear(self) -> int:
        """Remove every entry (all versions); return how many were removed."""
        count = len(self._load())
        if self.path.exists():
            self.path.unlink()
        logger.info("Cache cleared | entries=%d path=%s", count, self.path)
        return count
