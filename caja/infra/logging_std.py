from __future__ import annotations

import json
import logging
import sys
from typing import Any, Dict

_DEFAULT_FMT = "%(asctime)s %(levelname)s %(name)s | %(message)s"


class StructuredFormatter(logging.Formatter):
    """Una línea JSON por evento; `extra_data` se mezcla en el objeto."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry: Dict[str, Any] = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "function": record.funcName,
            "message": record.getMessage(),
        }

        if hasattr(record, "extra_data"):
            log_entry.update(getattr(record, "extra_data"))

        if record.exc_info:
            log_entry["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, ensure_ascii=False, default=str)


def configure_logging(
    *,
    level: str = "INFO",
    fmt: str = "json",
    force: bool = False,
) -> None:
    """
    Idempotent-ish logging config.
    Importing this module does nothing. You must call configure_logging().
    """
    root = logging.getLogger()
    if root.handlers and not force:
        # Already configured by app/test runner; keep hands off.
        return

    if fmt == "json":
        formatter: logging.Formatter = StructuredFormatter()
    else:
        formatter = logging.Formatter(_DEFAULT_FMT)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        handlers=[handler],
        force=force,
    )


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def log_kv(logger: logging.Logger, msg: str, level: int = logging.INFO, **kv: Any) -> None:
    """Log con payload estructurado en `extra_data`."""
    logger.log(level, msg, extra={"extra_data": dict(kv)})
