"""
Root-logger setup for the ``macro-rebalancer`` CLI.

Commands call ``configure_logging(config.logging)`` once, after the config
loads.  Library modules only ever use ``logging.getLogger(__name__)``.

Log lines go to stderr: stdout carries the command's own output (the bare
``Hold`` / ``Increase X.XX%`` directive, the tables), so scripts can pipe
it without filtering.

With ``json_format = true`` under ``[logging]`` each line is one object::

    {"ts": "2026-10-19T14:00:00Z", "level": "INFO", "logger": "macro_rebalancer.rebalancing.engine",
     "msg": "Signal | ticker=XEQT.TO score=0.6200 final_delta=0.03070 signal=Increase 3.07%"}
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from macro_rebalancer.config import LoggingConfig

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

# Only these loggers get their level pinned; the HTTP clients are chatty at INFO.
_QUIET_LOGGERS = ("httpx", "httpcore")


class _JsonFormatter(logging.Formatter):
    """One JSON object per record: ``ts``, ``level``, ``logger``, ``msg`` (+ ``exc``)."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).strftime(
                LOG_DATE_FORMAT
            ),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def configure_logging(config: "LoggingConfig") -> None:
    """Replace the root logger's handlers according to ``config``.

    Always installs a stderr handler; adds a UTF-8 file handler when
    ``config.log_file`` is set (its parent directory is created).
    """
    level = getattr(logging, config.level.upper(), logging.INFO)
    formatter = (
        _JsonFormatter() if config.json_format
        else logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
    )

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if config.log_file:
        log_path = Path(config.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path, encoding="utf-8"))

    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)

    logging.basicConfig(level=level, handlers=handlers, force=True)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
