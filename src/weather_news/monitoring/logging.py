"""Logging for the CLI and the API server.

Two output modes: the plain ``basicConfig`` line format for terminals, or one
JSON object per line for log shippers. Request-level payloads (news query
category, keywords, totals) travel as ``extra={"extra_data": {...}}`` and
show up under ``data`` in JSON mode.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from weather_news.config import MonitoringConfig

PLAIN_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"

# Third-party loggers that would otherwise echo request URLs (NewsAPI puts the key in the query string)
QUIET_LOGGERS = ("httpx", "httpcore")


class JSONFormatter(logging.Formatter):
    """Render a record as a single-line JSON object.

    Non-ASCII text such as ``°F`` is written as-is.
    """

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        entry: dict[str, Any] = {
            "timestamp": created.isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload = getattr(record, "extra_data", None)
        if payload is not None:
            entry["data"] = payload
        if record.exc_info and record.exc_info[1] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str, ensure_ascii=False)


def _json_handlers(log_file: Path | None) -> list[logging.Handler]:
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(str(log_file), encoding="utf-8"))
    formatter = JSONFormatter()
    for handler in handlers:
        handler.setFormatter(formatter)
    return handlers


def setup_structured_logging(*, log_file: Path | None = None, level: int = logging.INFO) -> None:
    """Replace the root handlers with JSON output to stderr and, optionally, ``log_file``."""
    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(level)
    for handler in _json_handlers(log_file):
        root.addHandler(handler)


def setup_logging(monitoring: MonitoringConfig, *, level: int = logging.INFO) -> None:
    """Configure the root logger from the ``monitoring`` config section."""
    if monitoring.structured_logging:
        setup_structured_logging(
            log_file=Path(monitoring.log_file) if monitoring.log_file else None,
            level=level,
        )
    else:
        logging.basicConfig(level=level, format=PLAIN_FORMAT)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
