"""Djeno structured logging with OTEL trace context.

Usage:
    from djeno.logging import get_logger

    logger = get_logger("store")
    logger.debug("Template loaded", path="index.html")
"""

import json
import logging
import sys
from datetime import UTC, datetime
from typing import Any

from opentelemetry import trace

from djeno.config.models import LogFormat, LoggingConfig

ROOT_LOGGER = "djeno"

_RESERVED_ATTRS = frozenset(
    {
        "name", "msg", "args", "created", "filename", "funcName",
        "levelname", "levelno", "lineno", "module", "msecs",
        "pathname", "process", "processName", "relativeCreated",
        "stack_info", "exc_info", "exc_text", "thread", "threadName",
        "message", "asctime", "taskName",
    }
)


def _trace_fields() -> dict[str, str]:
    span = trace.get_current_span()
    if span and span.is_recording():
        ctx = span.get_span_context()
        if ctx.is_valid:
            return {
                "trace_id": format(ctx.trace_id, "032x"),
                "span_id": format(ctx.span_id, "016x"),
            }
    return {}


def _extra_fields(record: logging.LogRecord) -> dict[str, Any]:
    return {k: v for k, v in record.__dict__.items() if k not in _RESERVED_ATTRS}


class StructuredLogFormatter(logging.Formatter):
    """JSON formatter with trace context injection.

    Formats log records as JSON with:
    - timestamp (ISO 8601)
    - level
    - component (logger name)
    - message
    - trace_id / span_id (if a span is recording)
    - Additional fields from extra
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON.

        Args:
            record: Log record to format

        Returns:
            JSON-formatted log string
        """
        log_data: dict[str, Any] = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "component": record.name,
            "message": record.getMessage(),
        }
        log_data.update(_trace_fields())
        log_data.update(_extra_fields(record))
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


class TextLogFormatter(logging.Formatter):
    """Single-line human readable formatter: ``LEVEL [component] message key=value``."""

    def format(self, record: logging.LogRecord) -> str:
        fields = {**_trace_fields(), **_extra_fields(record)}
        output = f"{record.levelname} [{record.name}] {record.getMessage()}"
        if fields:
            output += " " + " ".join(f"{k}={v}" for k, v in fields.items())
        if record.exc_info:
            output += "\n" + self.formatException(record.exc_info)
        return output


class StructuredLogger:
    """Structured logger wrapping the standard library logger.

    Keyword arguments passed to the log methods become fields of the record.
    """

    def __init__(self, name: str):
        self._logger = logging.getLogger(f"{ROOT_LOGGER}.{name}")

    @property
    def name(self) -> str:
        return self._logger.name

    def is_enabled_for(self, level: int) -> bool:
        return self._logger.isEnabledFor(level)

    def _log(self, level: int, message: str, **kwargs: Any) -> None:
        self._logger.log(level, message, extra=kwargs)

    def debug(self, message: str, **kwargs: Any) -> None:
        """Log debug message."""
        self._log(logging.DEBUG, message, **kwargs)

    def info(self, message: str, **kwargs: Any) -> None:
        """Log info message."""
        self._log(logging.INFO, message, **kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        """Log warning message."""
        self._log(logging.WARNING, message, **kwargs)

    def error(self, message: str, **kwargs: Any) -> None:
        """Log error message."""
        self._log(logging.ERROR, message, **kwargs)

    def exception(self, message: str, **kwargs: Any) -> None:
        """Log exception with traceback."""
        self._logger.exception(message, extra=kwargs)


# Logger cache
_loggers: dict[str, StructuredLogger] = {}


def get_logger(name: str) -> StructuredLogger:
    """Get or create a structured logger under the ``djeno`` hierarchy.

    Args:
        name: Component name (e.g. "store", "renderer")

    Returns:
        StructuredLogger instance
    """
    if name not in _loggers:
        _loggers[name] = StructuredLogger(name)
    return _loggers[name]


def configure_logging(config: LoggingConfig | None = None, stream: Any = None) -> logging.Logger:
    """Attach a single handler to the ``djeno`` root logger.

    Replaces any handler installed by a previous call, so it is safe to call
    again after the configuration changes.

    Args:
        config: Logging configuration (defaults to LoggingConfig())
        stream: Output stream (defaults to stderr)

    Returns:
        The configured ``djeno`` logger
    """
    config = config or LoggingConfig()
    root = logging.getLogger(ROOT_LOGGER)
    root.setLevel(config.level.upper())

    for handler in list(root.handlers):
        if getattr(handler, "_djeno_handler", False):
            root.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stderr)
    if config.format == LogFormat.TEXT:
        handler.setFormatter(TextLogFormatter())
    else:
        handler.setFormatter(StructuredLogFormatter())
    handler._djeno_handler = True  # type: ignore[attr-defined]
    root.addHandler(handler)
    return root


def reset_loggers() -> None:
    """Reset logger cache and remove installed handlers (for testing)."""
    global _loggers
    _loggers = {}
    root = logging.getLogger(ROOT_LOGGER)
    for handler in list(root.handlers):
        if getattr(handler, "_djeno_handler", False):
            root.removeHandler(handler)
