"""Djeno logging - Structured JSON logging with trace context."""

from .logger import (
    StructuredLogFormatter,
    StructuredLogger,
    TextLogFormatter,
    configure_logging,
    get_logger,
    reset_loggers,
)

__all__ = [
    "StructuredLogger",
    "StructuredLogFormatter",
    "TextLogFormatter",
    "configure_logging",
    "get_logger",
    "reset_loggers",
]
