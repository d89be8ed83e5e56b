"""
Structured logging helpers.

Every event is one JSON line on the `horizon` logger so that log shippers can
index fields without parsing free text.
"""

from __future__ import annotations

import json
import logging
import os
from datetime import datetime, timezone
from typing import Any


_LOGGER_NAME = "horizon"
_configured = False


def setup_logging(level: str | None = None):
    global _configured
    if _configured:
        return
    resolved = (level or os.getenv("LOG_LEVEL", "INFO")).strip().upper()
    logging.basicConfig(
        level=getattr(logging, resolved, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    _configured = True


def get_logger(name: str | None = None) -> logging.Logger:
    if not name:
        return logging.getLogger(_LOGGER_NAME)
    return logging.getLogger(f"{_LOGGER_NAME}.{name}")


def log_event(event: str, level: int = logging.INFO, **fields: Any):
    payload = {
        "event": event,
        "ts": datetime.now(timezone.utc).isoformat(),
    }
    payload.update(fields)
    get_logger().log(level, json.dumps(payload, default=str, ensure_ascii=True))
