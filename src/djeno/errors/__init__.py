"""Djeno error handling - Structured errors with template locations."""

from .errors import ErrorCategory, ErrorTemplate, TemplateError
from .factory import ErrorFactory, create_error, get_error_factory, wrap_error
from .registry import ErrorRegistry, format_location

__all__ = [
    # Core error types
    "TemplateError",
    "ErrorCategory",
    "ErrorTemplate",
    # Registry and factory
    "ErrorRegistry",
    "ErrorFactory",
    # Convenience functions
    "get_error_factory",
    "create_error",
    "wrap_error",
    "format_location",
]
