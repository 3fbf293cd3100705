"""
Snapshot persistence — save an ``IndicatorSnapshot`` to disk and load it back.

A saved snapshot lets the engine run offline and makes any signal
reproducible from the exact inputs that produced it.

File structure::

    {
      "_meta": {
        "source": "live",
        "indicators_ok": 7,
        "written_at": "2026-10-19T15:00:00Z",
        "content_hash": "..."
      },
      "data": {
        "readings": {"unemployment": {"value": 4.1, "as_of": "2026-09-01", "ok": true, ...}},
        "history":  {"unemployment": [4.0, 4.0, 4.1, 4.1, 4.2, 4.1]},
        "collected_at": "2026-10-19T14:59:58Z"
      }
    }

``content_hash`` is the SHA-256 of the ``data`` section only, so two files
holding the same readings share a hash regardless of when they were written.
"""

from __future__ import annotations

import hashlib
import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from macro_rebalancer.models.reading import IndicatorSnapshot

logger = logging.getLogger(__name__)


def compute_hash(payload: Any) -> str:
    """SHA-256 of a JSON-serializable payload, independent of key order."""
    serialized = json.dumps(payload, sort_keys=True, default=str)
    return hashlib.sha256(serialized.encode("utf-8")).hexdigest()


def save_snapshot(
    path: Path,
    snapshot: IndicatorSnapshot,
    metadata: dict[str, Any] | None = None,
) -> str:
    """Write ``snapshot`` as an envelope JSON file, creating parent dirs.

    Args:
        path:     Destination file.
        snapshot: Snapshot to persist.
        metadata: Optional extra fields merged into ``_meta``.

    Returns:
        The content hash of the ``data`` section.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    data = snapshot.model_dump(mode="json")
    content_hash = compute_hash(data)

    meta = dict(metadata or {})
    meta["indicators_ok"] = sum(1 for r in snapshot.readings.values() if r.ok)
    meta["written_at"] = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
    meta["content_hash"] = content_hash

    with open(path, "w", encoding="utf-8") as f:
        json.dump({"_meta": meta, "data": data}, f, indent=2)

    logger.debug("Snapshot saved: %s | hash=%s…", path.name, content_hash[:12])
    return content_hash


def load_snapshot(path: Path) -> IndicatorSnapshot:
    """Load a snapshot file written by ``save_snapshot``.

    Raises:
        FileNotFoundError: If ``path`` does not exist.
        ValueError: If the file is not valid JSON or not a snapshot envelope.
    """
    with open(path, encoding="utf-8") as f:
        try:
            envelope = json.load(f)
        except json.JSONDecodeError as exc:
            raise ValueError(f"Snapshot {path} is not valid JSON: {exc}") from exc

    if not isinstance(envelope, dict) or "data" not in envelope:
        raise ValueError(f"Snapshot {path} has no 'data' section.")
    try:
        return IndicatorSnapshot.model_validate(envelope["data"])
    except ValidationError as exc:
        raise ValueError(f"Snapshot {path} is malformed:\n{exc}") from exc
