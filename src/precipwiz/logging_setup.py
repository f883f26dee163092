from __future__ import annotations

import json
import logging
import os
import sys
import time
from typing import Optional


class JsonFormatter(logging.Formatter):
    """
    One JSON object per line:
      { "t": 1700000000000, "lvl": "INFO", "name": "precipwiz.frames", "msg": "...", "year": 1954 }
    """

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        payload = {
            "t": int(time.time() * 1000),
            "lvl": record.levelname,
            "name": record.name,
            "msg": record.getMessage(),
        }
        year = getattr(record, "year", None)
        if year is not None:
            payload["year"] = year
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def setup_logging(level: Optional[str] = None) -> None:
    """
    Configure the ``precipwiz`` logger once.
    Level precedence: explicit ``level`` arg, env LOG_LEVEL, INFO.
    """
    log = logging.getLogger("precipwiz")
    if getattr(log, "_precipwiz_configured", False):
        return

    lvl = getattr(logging, (level or os.environ.get("LOG_LEVEL") or "INFO").upper(), None)
    if not isinstance(lvl, int):
        lvl = logging.INFO

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter())

    log.handlers.clear()
    log.addHandler(handler)
    log.setLevel(lvl)
    log.propagate = False
    log._precipwiz_configured = True  # type: ignore[attr-defined]


def get_logger(name: str) -> logging.Logger:
    """Module logger under the configured ``precipwiz`` hierarchy."""
    setup_logging()
    if not name.startswith("precipwiz"):
        name = f"precipwiz.{name}"
    return logging.getLogger(name)
