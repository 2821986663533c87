from __future__ import annotations

import json
import logging
import sys
from logging.config import dictConfig
from typing import Any, MutableMapping

from .config import settings

# Attributes every LogRecord carries; anything else arrived through ``extra=``.
_RESERVED_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {"message", "asctime"}


class JsonFormatter(logging.Formatter):
    """JSON log formatter with trace_id and structured ``extra`` support."""

    def format(self, record: logging.LogRecord) -> str:
        log_record: MutableMapping[str, Any] = {
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "timestamp": self.formatTime(record, "%Y-%m-%dT%H:%M:%S%z"),
        }
        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS and not key.startswith("_"):
                log_record[key] = value
        if record.exc_info:
            log_record["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(log_record, ensure_ascii=False, default=str)


_configured = False


def configure_logging(force: bool = False) -> None:
    """Configure logging for the application."""

    global _configured
    if _configured and not force:
        return

    handlers: dict[str, Any] = {}
    if settings.log_to_stdout:
        handlers["console"] = {
            "class": "logging.StreamHandler",
            "level": settings.log_level,
            "stream": sys.stdout,
            "formatter": "json" if settings.log_json else "standard",
        }

    formatters: dict[str, Any] = {
        "standard": {
            "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        },
        "json": {
            "()": JsonFormatter,
        },
    }

    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": formatters,
            "handlers": handlers,
            "root": {
                "level": settings.log_level,
                "handlers": list(handlers),
            },
            "loggers": {
                "httpx": {"level": "WARNING"},
            },
        }
    )
    _configured = True


def get_logger(name: str) -> logging.Logger:
    configure_logging()
    return logging.getLogger(name)
