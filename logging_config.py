"""Process-wide logging for the FloodNode API and dashboard CLI.

Log lines carry the reading context passed through ``extra=`` (the reporting
node, the endpoint that failed, the store backend) as trailing ``key=value``
pairs, so a store outage can be traced back to the node and route involved.
"""

from __future__ import annotations

import logging
from logging.config import dictConfig
from typing import Any, Dict, Iterable, Sequence

from settings import get_settings

CONTEXT_KEYS = (
    "node_id",
    "endpoint",
    "store",
    "status",
    "reason",
    "row_count",
    "error_count",
)

LINE_FORMAT = "%(asctime)sZ | %(levelname)s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"

_configured = False


class ContextualFormatter(logging.Formatter):
    """Appends whichever of ``context_keys`` are set on the record."""

    def __init__(
        self,
        fmt: str | None = None,
        datefmt: str | None = None,
        style: str = "%",
        context_keys: Iterable[str] | None = None,
    ) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt, style=style)
        self._context_keys: Sequence[str] = tuple(context_keys or CONTEXT_KEYS)

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = " ".join(
            f"{key}={getattr(record, key)}"
            for key in self._context_keys
            if getattr(record, key, None) is not None
        )
        return f"{line} | {context}" if context else line


def build_logging_config(level: str | int) -> Dict[str, Any]:
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "reading_context": {
                "()": "logging_config.ContextualFormatter",
                "fmt": LINE_FORMAT,
                "datefmt": DATE_FORMAT,
                "context_keys": list(CONTEXT_KEYS),
            }
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": level,
                "formatter": "reading_context",
            }
        },
        "root": {"handlers": ["console"], "level": level},
    }


def configure_logging(level: str | int | None = None) -> None:
    """Install the console handler once; later calls are no-ops.

    ``level`` defaults to ``LOG_LEVEL`` from the settings. The dashboard CLI
    passes ``"WARNING"`` so refresh chatter stays off the terminal.
    """
    global _configured
    if _configured:
        return

    dictConfig(build_logging_config(level if level is not None else get_settings().log_level))
    _configured = True
