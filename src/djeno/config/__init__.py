"""Djeno configuration."""

from .loader import ConfigLoader, ValidationIssue, ValidationResult, resolve_env_vars
from .models import EngineConfig, LogFormat, LoggingConfig

__all__ = [
    "ConfigLoader",
    "EngineConfig",
    "LogFormat",
    "LoggingConfig",
    "ValidationIssue",
    "ValidationResult",
    "resolve_env_vars",
]
