from __future__ import annotations

import json
import logging
import sys
from typing import Any

from anvbot.config import LogLevel

_configured = False


class _JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        payload: dict[str, Any] = {
            "time": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def _resolve_level(level: int | str | LogLevel) -> int:
    if isinstance(level, int):
        return level
    if not isinstance(level, LogLevel):
        name = str(level).strip().upper()
        level = LogLevel("WARN" if name == "WARNING" else name)
    return level.to_logging()


def setup_logging(json_logs: bool = False, level: int | str | LogLevel = logging.INFO, *, force: bool = False) -> None:
    global _configured
    if _configured and not force:
        return

    handler = logging.StreamHandler(sys.stdout)
    formatter: logging.Formatter
    if json_logs:
        formatter = _JsonFormatter()
    else:
        formatter = logging.Formatter(
            fmt="%(levelname)s | %(name)s | %(message)s",
        )
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(_resolve_level(level))
    root.addHandler(handler)

    _configured = True


def get_logger(name: str, level: int | str | LogLevel | None = None) -> logging.Logger:
    logger = logging.getLogger(name)
    if level is not None:
        logger.setLevel(_resolve_level(level))
    return logger
