"""Template Engine implementation."""

import time
from collections.abc import Mapping
from typing import Any

from djeno.config import EngineConfig
from djeno.errors import TemplateError
from djeno.logging import get_logger

from .expressions import ExpressionEvaluator
from .filters import FilterFn
from .loaders import FileSystemLoader, SourceLoader
from .parser import extract_references, parse
from .renderer import Renderer
from .store import TemplateStore
from .types import Template

logger = get_logger("engine")


class TemplateEngine:
    """Compile and render templates.

    Supports:
    - Variables with filters: {{ user.name | upper }}, {{ data | json_script:"page" }}
    - Control flow: {% if %}/{% elif %}/{% else %}/{% endif %}, {% for %}/{% endfor %}
    - Composition: {% include "x.html" %}, {% extends "base.html" %} + {% block %}
    - Comments: {# ... #}

    Does NOT support:
    - Arithmetic or boolean operators
    - Template-defined functions or macros
    """

    def __init__(
        self,
        loader: SourceLoader,
        filters: Mapping[str, FilterFn] | None = None,
    ) -> None:
        """Initialize template engine.

        Args:
            loader: Source loader for template paths
            filters: Filter registry (defaults to the built-in filters)
        """
        self.evaluator = ExpressionEvaluator(filters)
        self.store = TemplateStore(loader)
        self.renderer = Renderer(self.store, self.evaluator)

    @classmethod
    def from_config(cls, config: EngineConfig | None = None) -> "TemplateEngine":
        """Create an engine reading templates from ``config.templates_dir``."""
        config = config or EngineConfig()
        return cls(FileSystemLoader(config.templates_dir, encoding=config.encoding))

    def get_template(self, path: str) -> Template:
        """Load (or fetch from cache) the parsed template for ``path``."""
        return self.store.load(path)

    def render_template(self, path: str, context: Mapping[str, Any] | None = None) -> str:
        """Render the template at ``path``.

        Args:
            path: Logical template path
            context: Name to value mapping

        Returns:
            Rendered text

        Raises:
            TemplateError: Loader failure or structural error in any template involved
        """
        start = time.perf_counter()
        template = self.store.load(path)
        output = self.renderer.render(template.tree, context, template.path)
        logger.debug(
            "Template rendered",
            path=path,
            duration_ms=round((time.perf_counter() - start) * 1000, 3),
            size=len(output),
        )
        return output

    def render_string(self, source: str, context: Mapping[str, Any] | None = None) -> str:
        """Render an ad-hoc source string without caching it.

        Includes and extends inside it still resolve through the store.

        Args:
            source: Template source text
            context: Name to value mapping

        Returns:
            Rendered text
        """
        return self.renderer.render(parse(source), context)

    def register_filter(self, name: str, func: FilterFn) -> None:
        """Register (or replace) a filter for this engine only.

        Args:
            name: Name used after ``|`` in expressions
            func: Callable taking the value and an optional argument
        """
        self.evaluator.filters[name] = func

    def validate(self, source: str) -> list[str]:
        """Validate template syntax without rendering.

        Returns list of errors (empty if valid).
        Does NOT load included or extended templates.

        Args:
            source: Template source text

        Returns:
            List of error messages (empty if valid)
        """
        try:
            parse(source)
        except TemplateError as e:
            return [e.message]
        return []

    def dependencies(self, path: str) -> list[str]:
        """List template paths referenced by include/extends in ``path``.

        E.g., a page extending "base.html" and including "nav.html"
        → ["base.html", "nav.html"]

        Args:
            path: Logical template path

        Returns:
            Referenced paths in source order
        """
        return extract_references(self.store.load(path).tree)
