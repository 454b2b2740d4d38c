"""Shortcuts for building TemplateErrors from registered codes."""

from typing import Any

from .errors import TemplateError
from .registry import ErrorRegistry


class ErrorFactory:
    """Builds TemplateErrors, either from a code or by wrapping a lower-level exception."""

    def __init__(self, registry: ErrorRegistry | None = None):
        self.registry = registry or ErrorRegistry()

    def create(
        self,
        code: str,
        context: dict[str, Any] | None = None,
        **kwargs: Any,
    ) -> TemplateError:
        """Create a TemplateError for ``code``.

        Args:
            code: Registered error code
            context: Interpolation values
            **kwargs: More interpolation values, taking precedence over ``context``

        Returns:
            TemplateError instance
        """
        return self.registry.create(code=code, context={**(context or {}), **kwargs})

    def from_exception(self, error: Exception, code: str, **context: Any) -> TemplateError:
        """Wrap ``error`` as a TemplateError with the given code.

        A TemplateError is returned unchanged. Otherwise the original
        exception text becomes the detail unless ``detail`` is passed.
        Callers still chain the cause with ``raise ... from error``.
        """
        if isinstance(error, TemplateError):
            return error
        context.setdefault("detail", f"{type(error).__name__}: {error}")
        return self.create(code, context)


_default_factory: ErrorFactory | None = None


def get_error_factory() -> ErrorFactory:
    """Return the process-wide ErrorFactory, creating it on first use."""
    global _default_factory  # noqa: PLW0603
    if _default_factory is None:
        _default_factory = ErrorFactory()
    return _default_factory


def create_error(code: str, **context: Any) -> TemplateError:
    """Create a TemplateError through the default factory.

    E.g., ``create_error("TEMPLATE_NOT_FOUND", path="base.html")``
    """
    return get_error_factory().create(code, context)


def wrap_error(error: Exception, code: str, **context: Any) -> TemplateError:
    """Wrap a lower-level exception through the default factory."""
    return get_error_factory().from_exception(error, code, **context)
