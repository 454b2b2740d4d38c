"""
Pytest configuration and shared fixtures for djeno tests.
"""

import sys
from collections.abc import Callable
from pathlib import Path

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from djeno.logging import reset_loggers  # noqa: E402
from djeno.template import TemplateEngine  # noqa: E402
from tests.mocks import CountingLoader  # noqa: E402

# =============================================================================
# Path Fixtures
# =============================================================================


@pytest.fixture(scope="session")
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def templates_dir(tmp_path: Path) -> Path:
    """Return an empty templates directory."""
    directory = tmp_path / "templates"
    directory.mkdir()
    return directory


# =============================================================================
# Engine Fixtures
# =============================================================================


@pytest.fixture
def make_engine() -> Callable[..., TemplateEngine]:
    """Build an engine over an in-memory set of templates."""

    def _make_engine(templates: dict[str, str] | None = None) -> TemplateEngine:
        return TemplateEngine(CountingLoader(templates or {}))

    return _make_engine


@pytest.fixture
def render(make_engine: Callable[..., TemplateEngine]) -> Callable[..., str]:
    """Render a source string, with optional extra templates for include/extends."""

    def _render(
        source: str,
        context: dict | None = None,
        templates: dict[str, str] | None = None,
    ) -> str:
        engine = make_engine(templates)
        return engine.render_string(source, context or {})

    return _render


@pytest.fixture(autouse=True)
def reset_logger_state():
    """Reset djeno logger cache and handlers around each test."""
    reset_loggers()
    yield
    reset_loggers()


# =============================================================================
# Markers Configuration
# =============================================================================


def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "property: Property-based tests")
