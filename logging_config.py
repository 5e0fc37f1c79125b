from __future__ import annotations

import logging
from logging.config import dictConfig
from typing import Any, Iterable

from settings import get_settings

CONTEXT_KEYS = (
    "tray_id",
    "raw_value",
    "field",
    "reason",
    "url",
    "status_code",
    "record_count",
    "skipped_count",
    "backend",
    "path",
    "elapsed_ms",
)

HANDLER_NAME = "farm_monitor"

_QUIET_LOGGERS = ("httpx", "httpcore", "sqlalchemy.engine")


class ContextualFormatter(logging.Formatter):
    """Append whichever known ``extra=`` keys a record carries as ``key=value`` pairs."""

    def __init__(
        self,
        fmt: str | None = None,
        datefmt: str | None = None,
        style: str = "%",
        extra_keys: Iterable[str] | None = None,
    ) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt, style=style)
        self.extra_keys = tuple(extra_keys or CONTEXT_KEYS)

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        context = " ".join(
            f"{key}={getattr(record, key)}"
            for key in self.extra_keys
            if getattr(record, key, None) is not None
        )
        return f"{message} | {context}" if context else message


def build_logging_config(level: str | int) -> dict[str, Any]:
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "contextual": {
                "()": ContextualFormatter,
                "fmt": "%(asctime)sZ %(levelname)-7s %(name)s: %(message)s",
                "datefmt": "%Y-%m-%dT%H:%M:%S",
            }
        },
        "handlers": {
            HANDLER_NAME: {
                "class": "logging.StreamHandler",
                "level": level,
                "formatter": "contextual",
            }
        },
        # Per-request and per-statement chatter from the client libraries.
        "loggers": {name: {"level": "WARNING"} for name in _QUIET_LOGGERS},
        "root": {"handlers": [HANDLER_NAME], "level": level},
    }


def configure_logging(level: str | int | None = None, *, force: bool = False) -> None:
    """Install the contextual console handler on the root logger.

    Later calls leave an installed handler alone unless ``force`` is set.
    """
    root = logging.getLogger()
    if not force and any(handler.name == HANDLER_NAME for handler in root.handlers):
        return
    dictConfig(build_logging_config(level if level is not None else get_settings().log_level))
