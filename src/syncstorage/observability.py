"""Logging and metric hooks for storage instances.

Log records are rendered as one JSON object per line. Records emitted from
a storage's background tasks carry that storage's key prefix as
``namespace``, so several storages sharing one backend can be told apart.
"""

import json
import logging
import sys
import time
from contextvars import ContextVar
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable

# Key prefix of the storage whose task is running
namespace_var: ContextVar[str | None] = ContextVar("namespace", default=None)

PACKAGE_LOGGER = "syncstorage"


class LogLevel(str, Enum):
    """Log levels matching Python's logging module."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


def current_labels() -> dict[str, Any]:
    """Labels describing the storage task that is currently running."""
    namespace = namespace_var.get()
    # "" is a valid prefix, only None means "not inside a storage task"
    return {} if namespace is None else {"namespace": namespace}


class StructuredFormatter(logging.Formatter):
    """Renders a record as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "level": record.levelname,
            "message": record.getMessage(),
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "logger": record.name,
        }

        context = current_labels()
        extra = getattr(record, "context", None)
        if isinstance(extra, dict):
            context.update(extra)
        if context:
            payload["context"] = context

        if record.exc_info and record.exc_info[0] is not None:
            payload["error"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
            }

        duration_ms = getattr(record, "duration_ms", None)
        if duration_ms is not None:
            payload["duration_ms"] = duration_ms

        return json.dumps(payload)


class StructuredLogger:
    """Thin wrapper that attaches context and timings to log records.

    Example:
        logger = get_logger(__name__)
        logger.info("Loaded persisted entries", context={"loaded": 3})
        logger.warning("Backend call failed", context={"op": "set"}, error=exc)
    """

    def __init__(self, name: str, level: LogLevel | None = None) -> None:
        self.logger = logging.getLogger(name)
        if level is not None:
            self.logger.setLevel(level.value)

    def _emit(
        self,
        level: int,
        message: str,
        context: dict[str, Any] | None,
        error: Exception | None,
        duration_ms: float | None,
    ) -> None:
        extra: dict[str, Any] = {}
        if context:
            extra["context"] = context
        if duration_ms is not None:
            extra["duration_ms"] = duration_ms
        exc_info = (type(error), error, error.__traceback__) if error else None
        self.logger.log(level, message, exc_info=exc_info, extra=extra)

    def info(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        duration_ms: float | None = None,
    ) -> None:
        """Log at INFO level."""
        self._emit(logging.INFO, message, context, None, duration_ms)

    def warning(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        error: Exception | None = None,
    ) -> None:
        """Log at WARNING level, optionally with the exception that caused it."""
        self._emit(logging.WARNING, message, context, error, None)


class Timer:
    """Measures wall time of a block, including awaits inside it."""

    def __init__(self) -> None:
        self.start_time: float = 0
        self.end_time: float = 0

    @property
    def duration_ms(self) -> float:
        return (self.end_time - self.start_time) * 1000

    def __enter__(self) -> "Timer":
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, *args: Any) -> None:
        self.end_time = time.perf_counter()


# Receives (name, value, labels)
MetricCallback = Callable[[str, float, dict[str, Any]], None]

_metric_callbacks: list[MetricCallback] = []


def register_metric_callback(callback: MetricCallback) -> None:
    """Send every emitted metric to callback."""
    _metric_callbacks.append(callback)


def unregister_metric_callback(callback: MetricCallback) -> None:
    """Stop sending metrics to callback. Unknown callbacks are ignored."""
    if callback in _metric_callbacks:
        _metric_callbacks.remove(callback)


def emit_metric(name: str, value: float, labels: dict[str, Any] | None = None) -> None:
    """Emit a metric, labelled with the current namespace when there is one."""
    labels = {**current_labels(), **(labels or {})}
    for callback in _metric_callbacks:
        try:
            callback(name, value, labels)
        except Exception:
            pass  # A broken sink must not fail a storage operation


def emit_counter(name: str, labels: dict[str, Any] | None = None) -> None:
    """Emit a counter metric (increment by 1)."""
    emit_metric(name, 1.0, labels)


def emit_timer(name: str, duration_ms: float, labels: dict[str, Any] | None = None) -> None:
    """Emit a duration in milliseconds."""
    emit_metric(name, duration_ms, labels)


def configure_logging(
    level: LogLevel = LogLevel.INFO,
    format: str = "json",
) -> None:
    """Attach a stdout handler to the package logger.

    Args:
        level: Minimum log level
        format: Output format ("json" or "text")
    """
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.setLevel(level.value)
    package_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    if format == "json":
        handler.setFormatter(StructuredFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        ))
    package_logger.addHandler(handler)


def get_logger(name: str) -> StructuredLogger:
    """Get a structured logger for a module (typically __name__)."""
    return StructuredLogger(name)
