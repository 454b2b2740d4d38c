"""Template filter implementations and output escaping."""

import json
import math
import re
from collections.abc import Callable, Sized
from typing import Any

from markupsafe import Markup

from djeno.logging import get_logger

logger = get_logger("filters")

FilterFn = Callable[..., Any]

DEFAULT_JSON_SCRIPT_ID = "__data__"

_HTML_ESCAPES = str.maketrans(
    {
        "&": "&amp;",
        "<": "&lt;",
        ">": "&gt;",
        '"': "&quot;",
        "'": "&#39;",
    }
)

_JS_ESCAPES = str.maketrans(
    {
        "\\": "\\\\",
        '"': '\\"',
        "'": "\\'",
        "\u2028": "\\u2028",
        "\u2029": "\\u2029",
    }
)

_CLOSING_SCRIPT = re.compile(r"</script", re.IGNORECASE)


def to_text(value: Any) -> str:
    """Stringify a value for output.

    None renders as the empty string and booleans as ``true``/``false``,
    matching the template literal keywords.
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def escape_html(text: str) -> str:
    """Replace ``& < > " '`` with their HTML entities."""
    return text.translate(_HTML_ESCAPES)


def defuse_closing_script(text: str) -> str:
    """Break up every ``</script`` (any case) so it cannot end a script element."""
    return _CLOSING_SCRIPT.sub(lambda m: "<\\/" + m.group(0)[2:], text)


def _null_non_finite(value: Any) -> Any:
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if isinstance(value, dict):
        return {key: _null_non_finite(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_null_non_finite(item) for item in value]
    return value


def to_json(value: Any) -> str:
    """Serialize to compact JSON, degrading to ``null`` when not serializable.

    NaN and infinities become ``null`` where they occur.

    Args:
        value: Value to serialize

    Returns:
        JSON text with ``</script`` defused
    """
    try:
        payload = json.dumps(
            _null_non_finite(value),
            ensure_ascii=False,
            separators=(",", ":"),
            allow_nan=False,
        )
    except (TypeError, ValueError, RecursionError) as e:
        logger.debug("JSON serialization failed", error=str(e), value_type=type(value).__name__)
        return "null"
    return defuse_closing_script(payload)


def filter_upper(value: Any) -> Any:
    return value.upper() if isinstance(value, str) else value


def filter_lower(value: Any) -> Any:
    return value.lower() if isinstance(value, str) else value


def filter_safe(value: Any) -> Markup:
    """Mark the stringified value as safe, bypassing output escaping."""
    return Markup(to_text(value))


def filter_escapejs(value: Any) -> Markup:
    """Quote a value as a JavaScript string literal.

    Escapes backslashes, both quote styles, U+2028/U+2029 and ``</script``
    so the result can sit inside an inline script body.

    Args:
        value: Value to quote (None becomes ``""``)

    Returns:
        Double-quoted JavaScript string literal
    """
    if value is None:
        return Markup('""')
    escaped = defuse_closing_script(to_text(value).translate(_JS_ESCAPES))
    return Markup(f'"{escaped}"')


def filter_raw_json(value: Any) -> Markup:
    """Serialize value to JSON text for direct embedding.

    Args:
        value: Value to serialize

    Returns:
        JSON text, or ``null`` if the value is not serializable
    """
    return Markup(to_json(value))


def filter_json_script(value: Any, element_id: Any = None) -> Markup:
    """Wrap the JSON payload in a ``<script type="application/json">`` element.

    Args:
        value: Value to serialize
        element_id: Element id (defaults to ``__data__``)

    Returns:
        Complete script element
    """
    if element_id is None:
        element_id = DEFAULT_JSON_SCRIPT_ID
    return Markup(
        f'<script id="{escape_html(to_text(element_id))}" type="application/json">'
        f"{to_json(value)}</script>"
    )


def filter_length(value: Any) -> int:
    """Return length of a sized value (string, list, dict), 0 otherwise.

    Args:
        value: Value to get length of

    Returns:
        Length of value
    """
    return len(value) if isinstance(value, Sized) else 0


def filter_default(value: Any, default: Any = None) -> Any:
    """Return default if value is None.

    Args:
        value: Value to check
        default: Default value to return if value is None

    Returns:
        value if not None, else default
    """
    return value if value is not None else default


# Registry of available filters
FILTERS: dict[str, FilterFn] = {
    "upper": filter_upper,
    "lower": filter_lower,
    "safe": filter_safe,
    "escapejs": filter_escapejs,
    "raw_json": filter_raw_json,
    "raw_json_escaped": filter_raw_json,
    "json_script": filter_json_script,
    "length": filter_length,
    "default": filter_default,
}
