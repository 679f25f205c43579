from __future__ import annotations

import logging
import time
from logging.config import dictConfig
from typing import Any, Dict, Iterable, Tuple

from settings import get_settings

CONTEXT_KEYS: Tuple[str, ...] = (
    "directory",
    "file_name",
    "row_number",
    "reason",
    "raw_value",
    "outcome",
    "reading_count",
    "dropped_count",
    "refresh_ms",
)

LOG_FORMAT = "%(asctime)sZ | %(levelname)s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"

_configured = False


class ContextualFormatter(logging.Formatter):
    """Formatter that appends ``key=value`` pairs passed through ``extra=``.

    Timestamps are rendered in UTC to match the ``Z`` suffix in the format.
    """

    converter = time.gmtime

    def __init__(
        self,
        fmt: str | None = None,
        datefmt: str | None = None,
        style: str = "%",
        extra_keys: Iterable[str] | None = None,
    ) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt, style=style)
        self.extra_keys = tuple(extra_keys) if extra_keys is not None else CONTEXT_KEYS

    def context_of(self, record: logging.LogRecord) -> str:
        pairs = []
        for key in self.extra_keys:
            value = getattr(record, key, None)
            if value is not None:
                pairs.append(f"{key}={value}")
        return " ".join(pairs)

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        context = self.context_of(record)
        return f"{message} | {context}" if context else message


def build_logging_config(level: str | int) -> Dict[str, Any]:
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "contextual": {
                "()": ContextualFormatter,
                "fmt": LOG_FORMAT,
                "datefmt": DATE_FORMAT,
                "extra_keys": list(CONTEXT_KEYS),
            }
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": level,
                "formatter": "contextual",
            }
        },
        "root": {"handlers": ["console"], "level": level},
    }


def configure_logging(level: str | int | None = None) -> None:
    """Install the dashboard's logging setup; repeated calls do nothing."""
    global _configured
    if _configured:
        return
    dictConfig(build_logging_config(level if level is not None else get_settings().log_level))
    _configured = True
