"""Engine configuration loading.

A config file is YAML with three optional keys::

    templates_dir: ${TEMPLATES_DIR:-./templates}
    encoding: utf-8
    logging:
      level: INFO
      format: json
"""

import codecs
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from djeno.errors import create_error

from .models import EngineConfig, LogFormat, LoggingConfig

CONFIG_ENV_VAR = "DJENO_CONFIG_PATH"
DEFAULT_CONFIG_FILE = "djeno.yaml"

# ${VAR}, ${VAR:-default}, ${VAR:?message}
ENV_VAR_PATTERN = re.compile(r"\$\{(?P<name>[^}:]+)(?::(?P<op>[-?])(?P<arg>[^}]*))?\}")

LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARN", "WARNING", "ERROR", "CRITICAL"})
KNOWN_KEYS = frozenset({"templates_dir", "encoding", "logging"})


@dataclass
class ValidationIssue:
    """One problem found in configuration data."""

    path: str  # dotted key, e.g. "logging.level"
    message: str
    severity: str = "error"  # "error" | "warning"


@dataclass
class ValidationResult:
    """Outcome of ConfigLoader.validate. Never valid while errors exist."""

    valid: bool
    errors: list[ValidationIssue] = field(default_factory=list)
    warnings: list[ValidationIssue] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.valid = self.valid and not self.errors


def _substitute(match: re.Match[str]) -> str:
    name, op, arg = match.group("name", "op", "arg")
    value = os.environ.get(name)
    if value is not None:
        return value
    if op == "-":
        return arg
    raise create_error(
        "CONFIG_INVALID",
        detail=arg if op == "?" and arg else f"Required environment variable {name} not set",
    )


def resolve_env_vars(value: str) -> str:
    """Expand ``${VAR}`` references from the environment.

    ``${VAR:-default}`` falls back to ``default``. A plain ``${VAR}`` or
    ``${VAR:?message}`` that is not set raises TemplateError(CONFIG_INVALID),
    using ``message`` as the detail when given.
    """
    return ENV_VAR_PATTERN.sub(_substitute, value)


def _resolve_tree(data: Any) -> Any:
    if isinstance(data, str):
        return resolve_env_vars(data)
    if isinstance(data, dict):
        return {key: _resolve_tree(value) for key, value in data.items()}
    if isinstance(data, list):
        return [_resolve_tree(item) for item in data]
    return data


def _check_strings(data: dict[str, Any]) -> list[ValidationIssue]:
    return [
        ValidationIssue(path=key, message=f"{key} must be a string")
        for key in ("templates_dir", "encoding")
        if key in data and not isinstance(data[key], str)
    ]


def _check_encoding(data: dict[str, Any]) -> list[ValidationIssue]:
    encoding = data.get("encoding")
    if not isinstance(encoding, str):
        return []
    try:
        codecs.lookup(encoding)
    except LookupError:
        return [ValidationIssue(path="encoding", message=f"Unknown encoding: {encoding}")]
    return []


def _check_logging(data: dict[str, Any]) -> list[ValidationIssue]:
    if "logging" not in data:
        return []
    section = data["logging"]
    if not isinstance(section, dict):
        return [ValidationIssue(path="logging", message="logging must be a dictionary")]

    issues: list[ValidationIssue] = []
    level = section.get("level", "INFO")
    if not isinstance(level, str) or level.upper() not in LOG_LEVELS:
        issues.append(ValidationIssue(path="logging.level", message=f"Invalid log level: {level}"))
    fmt = section.get("format", LogFormat.JSON.value)
    if fmt not in {member.value for member in LogFormat}:
        issues.append(ValidationIssue(path="logging.format", message=f"Invalid log format: {fmt}"))
    return issues


class ConfigLoader:
    """Locate, read and validate the engine configuration."""

    def __init__(self) -> None:
        self._config: EngineConfig | None = None
        self._config_path: Path | None = None

    @property
    def config_path(self) -> Path | None:
        """File the current configuration came from (None for defaults or dicts)."""
        return self._config_path

    def load(self, path: str | Path | None = None, use_defaults: bool = True) -> EngineConfig:
        """Load configuration from a YAML file.

        Without ``path``, the file named by ``DJENO_CONFIG_PATH`` is used,
        then ``./djeno.yaml``.

        Args:
            path: Config file path
            use_defaults: Fall back to EngineConfig() when the file does not exist

        Returns:
            Loaded EngineConfig

        Raises:
            TemplateError(CONFIG_INVALID): Missing file (without defaults),
                unparsable YAML, unresolved env var or failed validation
        """
        config_path = Path(path or os.environ.get(CONFIG_ENV_VAR) or DEFAULT_CONFIG_FILE)
        if not config_path.exists():
            if not use_defaults:
                raise create_error(
                    "CONFIG_INVALID",
                    detail=f"Configuration file not found: {config_path}",
                )
            return self.load_from_dict({})

        return self.load_from_dict(_resolve_tree(self._read(config_path)), config_path)

    def _read(self, config_path: Path) -> dict[str, Any]:
        try:
            data = yaml.safe_load(config_path.read_text(encoding="utf-8"))
        except yaml.YAMLError as e:
            raise create_error(
                "CONFIG_INVALID",
                detail=f"Invalid YAML in config file: {e}",
            ) from e

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise create_error(
                "CONFIG_INVALID",
                detail=f"Configuration root must be a mapping: {config_path}",
            )
        return data

    def load_from_dict(self, data: dict[str, Any], config_path: Path | None = None) -> EngineConfig:
        """Build configuration from already-parsed data.

        Raises:
            TemplateError(CONFIG_INVALID): If validation reports errors
        """
        result = self.validate(data)
        if not result.valid:
            lines = "\n".join(f"- {issue.message}" for issue in result.errors)
            raise create_error(
                "CONFIG_INVALID",
                detail=f"Configuration validation failed:\n{lines}",
            )

        defaults = EngineConfig()
        section = data.get("logging") or {}
        self._config = EngineConfig(
            templates_dir=data.get("templates_dir", defaults.templates_dir),
            encoding=data.get("encoding", defaults.encoding),
            logging=LoggingConfig(
                level=section.get("level", defaults.logging.level).upper(),
                format=LogFormat(section.get("format", defaults.logging.format)),
            ),
        )
        self._config_path = config_path
        return self._config

    def validate(self, data: dict[str, Any]) -> ValidationResult:
        """Check configuration data without loading it.

        Unknown keys are warnings. Wrong types, unknown encodings and bad
        logging values are errors.
        """
        warnings = [
            ValidationIssue(path=key, message=f"Unknown configuration key: {key}", severity="warning")
            for key in data
            if key not in KNOWN_KEYS
        ]
        errors = [*_check_strings(data), *_check_encoding(data), *_check_logging(data)]
        return ValidationResult(valid=True, errors=errors, warnings=warnings)

    def get(self) -> EngineConfig:
        """Return the last loaded configuration.

        Raises:
            TemplateError(CONFIG_INVALID): If nothing has been loaded yet
        """
        if self._config is None:
            raise create_error("CONFIG_INVALID", detail="Configuration not loaded")
        return self._config
