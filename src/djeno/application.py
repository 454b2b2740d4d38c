"""Djeno application bootstrap.

Wires configuration, logging and the template engine together:

    from djeno import create_engine

    engine = create_engine("djeno.yaml")
    html = engine.render_template("index.html", {"title": "Home"})
"""

from pathlib import Path
from typing import TextIO

from djeno.config import ConfigLoader, EngineConfig
from djeno.logging import configure_logging, get_logger
from djeno.template import TemplateEngine

logger = get_logger("application")


def create_engine(
    config_path: str | Path | None = None,
    config: EngineConfig | None = None,
    log_output: TextIO | None = None,
) -> TemplateEngine:
    """Load configuration, configure logging and build a TemplateEngine.

    Args:
        config_path: Optional config file (see ConfigLoader.load for the lookup order)
        config: Explicit configuration, takes precedence over config_path
        log_output: Log stream (defaults to stderr)

    Returns:
        Configured TemplateEngine

    Raises:
        TemplateError(CONFIG_INVALID): If the configuration cannot be loaded
    """
    if config is None:
        config = ConfigLoader().load(config_path)

    configure_logging(config.logging, stream=log_output)
    logger.info(
        "Template engine initialized",
        templates_dir=config.templates_dir,
        encoding=config.encoding,
    )
    return TemplateEngine.from_config(config)
