"""Error registry for creating errors from templates."""

from typing import Any

from .errors import ErrorCategory, ErrorTemplate, TemplateError


def format_location(
    template: str | None = None,
    line: int | None = None,
    column: int | None = None,
) -> str:
    """Format a human-readable locator like ' in "base.html" at line 3, column 5'.

    Args:
        template: Optional logical template path
        line: Optional 1-indexed line
        column: Optional 1-indexed column

    Returns:
        Locator suffix (empty string if nothing is known)
    """
    parts: list[str] = []
    if template:
        parts.append(f' in "{template}"')
    if line is not None:
        parts.append(f" at line {line}")
        if column is not None:
            parts.append(f", column {column}")
    return "".join(parts)



BUILTIN_TEMPLATES: dict[str, ErrorTemplate] = {
    template.code: template
    for template in (
        # Syntax
        ErrorTemplate(
            code="TEMPLATE_SYNTAX",
            category=ErrorCategory.SYNTAX,
            message_template="Unexpected '{tag}'{location}",
            detail_template="The tag does not close or continue the innermost open tag",
            suggestion_template="Check that every if/for/block is closed in the right order",
        ),
        ErrorTemplate(
            code="TEMPLATE_INVALID_TAG",
            category=ErrorCategory.SYNTAX,
            message_template="Invalid '{tag}' tag{location}",
            detail_template="Malformed arguments: {content}",
            suggestion_template="Expected {expected}",
        ),
        ErrorTemplate(
            code="TEMPLATE_UNCLOSED_TAG",
            category=ErrorCategory.SYNTAX,
            message_template="Unclosed '{tag}' tag{location}",
            detail_template="Reached end of template with the tag still open",
            suggestion_template="Add the matching '{{% end{tag} %}}'",
        ),
        # Loader
        ErrorTemplate(
            code="TEMPLATE_NOT_FOUND",
            category=ErrorCategory.LOADER,
            message_template="Template '{path}' not found",
            detail_template="The loader could not read the template source",
            suggestion_template="Check the template path and the templates directory",
        ),
        # Render
        ErrorTemplate(
            code="TEMPLATE_EXTENDS_CYCLE",
            category=ErrorCategory.RENDER,
            message_template="Circular extends: {chain}",
            detail_template="A template in the extends chain extends itself",
            suggestion_template="Remove the cycle from the extends chain",
        ),
        # Config
        ErrorTemplate(
            code="CONFIG_INVALID",
            category=ErrorCategory.CONFIG,
            message_template="Configuration is invalid",
            detail_template="The configuration could not be loaded",
            suggestion_template="Check the configuration file syntax and values",
        ),
    )
}


class _KeepMissing(dict):
    """format_map mapping that leaves unknown placeholders in place."""

    def __missing__(self, key: str) -> str:
        return "{" + key + "}"


def _interpolate(text: str | None, values: _KeepMissing) -> str | None:
    return None if text is None else text.format_map(values)


class ErrorRegistry:
    """Error templates by code. ``create`` fills a template into a TemplateError."""

    def __init__(self) -> None:
        self._templates: dict[str, ErrorTemplate] = dict(BUILTIN_TEMPLATES)

    def get_template(self, code: str) -> ErrorTemplate | None:
        return self._templates.get(code)

    def list_codes(self) -> list[str]:
        """List all registered error codes."""
        return list(self._templates)

    def register(self, template: ErrorTemplate) -> None:
        """Register (or replace) an error template."""
        self._templates[template.code] = template

    def create(
        self,
        code: str,
        context: dict[str, Any] | None = None,
    ) -> TemplateError:
        """Fill the template for ``code`` with ``context``.

        The ``template``, ``line`` and ``column`` keys locate the error: they are
        copied onto it and rendered into the ``{location}`` placeholder. A
        ``detail`` key replaces the template's detail text. Placeholders with
        no value are left as written.

        Raises:
            ValueError: If ``code`` is not registered
        """
        template = self._templates.get(code)
        if template is None:
            raise ValueError(f"Unknown error code: {code}")

        context = context or {}
        where = {key: context.get(key) for key in ("template", "line", "column")}
        values = _KeepMissing(context)
        values.setdefault("location", format_location(**where))

        return TemplateError(
            code=template.code,
            category=template.category,
            message=_interpolate(template.message_template, values) or code,
            detail=context.get("detail") or _interpolate(template.detail_template, values),
            suggestion=_interpolate(template.suggestion_template, values),
            **where,
        )
