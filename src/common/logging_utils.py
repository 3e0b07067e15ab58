"""Centralized logging helpers.

Every module logs through ``logging.getLogger(__name__)``; this module owns the
root configuration plus a few helpers for structured DEBUG traces.
"""
from __future__ import annotations

import logging
import os
import sys
import time
from typing import Any, Dict, Optional

from constants import Constants

_CONTEXT_KEYS = ("event", "component", "action", "target", "outcome")


class _ContextFormatter(logging.Formatter):
    """Append structured ``extra_context`` fields to DEBUG records."""

    def format(self, record: logging.LogRecord) -> str:
        base = super().format(record)
        if record.levelno > logging.DEBUG:
            return base
        context = getattr(record, "context_fields", None)
        if not context:
            return base
        rendered = " ".join(f"{k}={v}" for k, v in context.items())
        return f"{base} [{rendered}]"


def configure_logging(level: Optional[str] = None, fmt: Optional[str] = None) -> None:
    """Configure the root logger once for the CLI process.

    Args:
        level: Level name; falls back to ``DEPFRONTIER_LOG_LEVEL`` then INFO.
        fmt: Log format string; defaults to ``Constants.LOG_FORMAT``.
    """
    level_name = (level or os.environ.get(Constants.ENV_LOG_LEVEL) or "INFO").upper()
    level_value = getattr(logging, level_name, logging.INFO)

    root = logging.getLogger()
    for handler in list(root.handlers):
        if getattr(handler, "_depfrontier", False):
            root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(_ContextFormatter(fmt or Constants.LOG_FORMAT))
    handler._depfrontier = True  # type: ignore[attr-defined]
    root.addHandler(handler)
    root.setLevel(level_value)


def add_file_handler(path: str) -> logging.Handler:
    """Attach a file handler to the root logger and return it."""
    file_handler = logging.FileHandler(path, encoding="utf-8")
    file_handler.setFormatter(_ContextFormatter(Constants.LOG_FILE_FORMAT))
    file_handler._depfrontier = True  # type: ignore[attr-defined]
    logging.getLogger().addHandler(file_handler)
    return file_handler


def extra_context(**fields: Any) -> Dict[str, Any]:
    """Build an ``extra=`` mapping for structured log records.

    Known keys (event, component, action, target, outcome) are ordered first;
    ``None`` values are dropped.
    """
    ordered: Dict[str, Any] = {}
    for key in _CONTEXT_KEYS:
        if fields.get(key) is not None:
            ordered[key] = fields[key]
    for key, value in fields.items():
        if key not in ordered and value is not None:
            ordered[key] = value
    return {"context_fields": ordered}


def is_debug_enabled(logger: logging.Logger) -> bool:
    """Return True when DEBUG records from ``logger`` would be emitted."""
    return logger.isEnabledFor(logging.DEBUG)


class Timer:
    """Context manager measuring wall-clock duration."""

    def __init__(self) -> None:
        self._start = 0.0
        self._end: Optional[float] = None

    def __enter__(self) -> "Timer":
        self._start = time.perf_counter()
        self._end = None
        return self

    def __exit__(self, *exc: Any) -> None:
        self._end = time.perf_counter()

    def duration_ms(self) -> float:
        """Elapsed milliseconds; live while the block is still running."""
        end = self._end if self._end is not None else time.perf_counter()
        return round((end - self._start) * 1000.0, 3)
