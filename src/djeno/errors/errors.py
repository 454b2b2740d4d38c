"""Djeno error types."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Error source categories."""

    SYNTAX = "SYNTAX"
    LOADER = "LOADER"
    RENDER = "RENDER"
    CONFIG = "CONFIG"


@dataclass
class TemplateError(Exception):
    """Structured error with context. Base exception for all djeno errors."""

    # Identity
    code: str  # e.g., "TEMPLATE_SYNTAX"
    category: ErrorCategory

    # Messages
    message: str  # Human-readable summary
    detail: str | None = None  # Extended explanation
    suggestion: str | None = None  # Actionable fix

    # Location
    template: str | None = None  # Logical template path
    line: int | None = None
    column: int | None = None

    # Metadata
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    def __post_init__(self) -> None:
        """Set Exception message."""
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message

    def to_dict(self) -> dict[str, Any]:
        """Serialize for logs and API responses.

        Returns:
            Dictionary representation of the error
        """
        return {
            "code": self.code,
            "category": self.category.value,
            "message": self.message,
            "detail": self.detail,
            "suggestion": self.suggestion,
            "template": self.template,
            "line": self.line,
            "column": self.column,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass
class ErrorTemplate:
    """Template for creating errors."""

    code: str
    category: ErrorCategory
    message_template: str  # "Unexpected '{tag}'{location}"
    detail_template: str | None = None
    suggestion_template: str | None = None
