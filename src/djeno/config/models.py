"""Djeno configuration data models."""

from dataclasses import dataclass, field
from enum import Enum


class LogFormat(str, Enum):
    """Log output format."""

    JSON = "json"
    TEXT = "text"


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "INFO"  # DEBUG | INFO | WARNING | ERROR
    format: LogFormat = LogFormat.JSON


@dataclass
class EngineConfig:
    """Template engine configuration."""

    templates_dir: str = "./templates"
    encoding: str = "utf-8"
    logging: LoggingConfig = field(default_factory=LoggingConfig)
