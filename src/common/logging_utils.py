"""Centralized logging helpers.

Structured fields are attached through ``extra=extra_context(...)`` so that a
handler can render them, while the plain message stays human readable.
"""
from __future__ import annotations

import logging
import os
import time
from typing import Any, Dict, Optional

from constants import Constants

_CONTEXT_KEYS = ("event", "component", "action", "outcome", "target")


class _ContextFormatter(logging.Formatter):
    """Append structured context fields to the formatted message."""

    def format(self, record: logging.LogRecord) -> str:
        base = super().format(record)
        fields = getattr(record, "context", None)
        if not fields:
            return base
        rendered = " ".join(f"{k}={v}" for k, v in fields.items() if v is not None)
        return f"{base} [{rendered}]" if rendered else base


def configure_logging(level: Optional[str] = None, log_file: Optional[str] = None) -> None:
    """Configure the root logger once, honoring JSPM_RESOLVE_LOG_LEVEL.

    Args:
        level: Explicit level name; takes precedence over the environment.
        log_file: Write records to this file instead of stderr.
    """
    level_name = (level or os.environ.get(Constants.ENV_LOG_LEVEL) or "INFO").upper()
    root = logging.getLogger()
    root.setLevel(getattr(logging, level_name, logging.INFO))
    for handler in root.handlers:
        if getattr(handler, "_jspm_resolve", False):
            return
    if log_file:
        handler = logging.FileHandler(log_file, encoding="utf-8")
    else:
        handler = logging.StreamHandler()
    handler.setFormatter(_ContextFormatter(Constants.LOG_FORMAT))
    handler._jspm_resolve = True  # type: ignore[attr-defined]
    root.addHandler(handler)


def extra_context(**fields: Any) -> Dict[str, Any]:
    """Build an ``extra`` mapping for structured log records.

    Well-known keys (event, component, action, outcome, target) come first;
    ``None`` values are dropped.
    """
    ordered: Dict[str, Any] = {}
    for key in _CONTEXT_KEYS:
        if fields.get(key) is not None:
            ordered[key] = fields[key]
    for key, value in fields.items():
        if key not in ordered and value is not None:
            ordered[key] = value
    return {"context": ordered}


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

    def __exit__(self, exc_type, exc, tb) -> None:
        self._end = time.perf_counter()

    def duration_ms(self) -> float:
        """Elapsed milliseconds, measured up to now if the block is still running."""
        end = self._end if self._end is not None else time.perf_counter()
        return round((end - self._start) * 1000.0, 3)
