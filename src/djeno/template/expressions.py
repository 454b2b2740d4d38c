"""Expression evaluation for variables and conditional tests.

Supported forms:
- Literals: true/false, null/undefined, numbers (optional leading -), quoted strings
- Paths: {{ user.name }}, {{ items[0] }}, {{ rows[i].cells[j] }}, {{ user.full_name() }}
- Filters: {{ title | upper }}, {{ data | json_script:"page-data" }}, {{ x | default:fallback }}
- Comparisons (tests only): ==, !=, >, <, >=, <=

Evaluation never raises. A missing name, a step that does not apply to the
current value, or a failing call resolves to None (undefined), and an unknown
or failing filter leaves the value unchanged.
"""

import operator
import re
from collections.abc import Callable, Iterator, Mapping, Sequence
from functools import lru_cache
from numbers import Number, Real
from typing import Any

from djeno.logging import get_logger

from .filters import FILTERS, FilterFn, to_text

logger = get_logger("expressions")

KEYWORDS: dict[str, Any] = {
    "true": True,
    "false": False,
    "null": None,
    "undefined": None,
}

NUMBER_PATTERN = re.compile(r"^-?\d+(?:\.\d+)?$")
STRING_PATTERN = re.compile(r"""^(?:"([^"]*)"|'([^']*)')$""")
IDENTIFIER_PATTERN = re.compile(r"\s*([A-Za-z_$][\w$]*)")
MEMBER_PATTERN = re.compile(r"[\w$]+")
CALL_PATTERN = re.compile(r"\(\s*\)")

COMPARISONS: dict[str, Callable[[Any, Any], bool]] = {
    "==": operator.eq,
    "!=": operator.ne,
    ">=": operator.ge,
    "<=": operator.le,
    ">": operator.gt,
    "<": operator.lt,
}

# Path step kinds
ATTR = "attr"
INDEX = "index"
CALL = "call"

PathStep = tuple[str, str]


def _top_level(text: str) -> Iterator[tuple[int, str]]:
    """Yield (index, char) for characters outside quotes and brackets."""
    quote: str | None = None
    depth = 0
    for index, char in enumerate(text):
        if quote:
            if char == quote:
                quote = None
        elif char in "\"'":
            quote = char
        elif char in "[(":
            depth += 1
        elif char in "])":
            depth = max(depth - 1, 0)
        elif depth == 0:
            yield index, char


@lru_cache(maxsize=1024)
def split_pipeline(expression: str) -> tuple[str, ...]:
    """Split ``value | filter | filter:arg`` on unquoted, unbracketed pipes."""
    segments: list[str] = []
    start = 0
    for index, char in _top_level(expression):
        if char == "|":
            segments.append(expression[start:index].strip())
            start = index + 1
    segments.append(expression[start:].strip())
    return tuple(segments)


@lru_cache(maxsize=1024)
def split_filter(segment: str) -> tuple[str, str | None]:
    """Split ``name:arg`` at the first unquoted colon. The argument is None if absent."""
    for index, char in _top_level(segment):
        if char == ":":
            return segment[:index].strip(), segment[index + 1 :].strip()
    return segment.strip(), None


@lru_cache(maxsize=1024)
def split_comparison(expression: str) -> tuple[str, str, str] | None:
    """Find the first top-level comparison operator.

    Returns:
        (left, operator, right), or None if the expression has no comparison
    """
    for index, char in _top_level(expression):
        if char not in "=!<>":
            continue
        pair = expression[index : index + 2]
        if pair in ("==", "!=", ">=", "<="):
            return expression[:index].strip(), pair, expression[index + 2 :].strip()
        if char in "<>":
            return expression[:index].strip(), char, expression[index + 1 :].strip()
    return None


def _closing_bracket(expression: str, start: int) -> int:
    quote: str | None = None
    depth = 0
    for index in range(start, len(expression)):
        char = expression[index]
        if quote:
            if char == quote:
                quote = None
        elif char in "\"'":
            quote = char
        elif char == "[":
            depth += 1
        elif char == "]":
            depth -= 1
            if depth == 0:
                return index
    return -1


@lru_cache(maxsize=1024)
def parse_path(expression: str) -> tuple[str, tuple[PathStep, ...]] | None:
    """Parse ``name.attr[index]()`` into a root name and its steps.

    Returns:
        (root, steps), or None if the expression is not a well-formed path
    """
    match = IDENTIFIER_PATTERN.match(expression)
    if not match:
        return None

    root = match.group(1)
    steps: list[PathStep] = []
    pos = match.end()
    while pos < len(expression):
        char = expression[pos]
        if char.isspace():
            pos += 1
        elif char == ".":
            member = MEMBER_PATTERN.match(expression, pos + 1)
            if not member:
                return None
            steps.append((ATTR, member.group(0)))
            pos = member.end()
        elif char == "[":
            end = _closing_bracket(expression, pos)
            if end < 0:
                return None
            steps.append((INDEX, expression[pos + 1 : end]))
            pos = end + 1
        elif char == "(":
            call = CALL_PATTERN.match(expression, pos)
            if not call:
                return None
            steps.append((CALL, ""))
            pos = call.end()
        else:
            return None
    return root, tuple(steps)


def _is_sequence(value: Any) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray))


def _is_number(value: Any) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool)


def _is_index_text(text: str) -> bool:
    # ASCII only: str.isdigit also accepts superscripts that int() rejects
    return text.isascii() and text.isdigit()


def _as_index(key: Any) -> int | None:
    if isinstance(key, int) and not isinstance(key, bool):
        return key
    if isinstance(key, str) and _is_index_text(key):
        return int(key)
    return None


def get_attribute(value: Any, name: str) -> Any:
    """Resolve ``value.name``: mapping key, sequence position or public attribute."""
    if isinstance(value, Mapping):
        return value.get(name)
    if _is_sequence(value) and _is_index_text(name):
        return get_item(value, name)
    if name.startswith("_"):
        return None
    try:
        return getattr(value, name, None)
    except Exception as e:  # noqa: BLE001 - properties may raise anything
        logger.debug("Attribute lookup failed", attribute=name, error=str(e))
        return None


def get_item(value: Any, key: Any) -> Any:
    """Resolve ``value[key]`` for mappings, sequences and strings."""
    if key is None:
        return None
    if isinstance(value, Mapping):
        try:
            if key in value:
                return value[key]
        except TypeError:
            return None
        return value.get(to_text(key)) if _is_number(key) else None
    if isinstance(value, (Sequence, str)) and not isinstance(value, (bytes, bytearray)):
        index = _as_index(key)
        if index is not None and 0 <= index < len(value):
            return value[index]
        return None
    if isinstance(key, str) and value is not None:
        return get_attribute(value, key)
    return None


def is_truthy(value: Any) -> bool:
    """Truthiness for conditional tests.

    None, False, "" and zero are falsy. Everything else is truthy, including
    empty lists and mappings.
    """
    if value is None or isinstance(value, bool):
        return bool(value)
    if isinstance(value, Number):
        return value != 0 and value == value
    if isinstance(value, str):
        return value != ""
    return True


def compare(left: Any, op: str, right: Any) -> bool:
    """Compare numerically when both sides are numbers, otherwise as strings."""
    if not (_is_number(left) and _is_number(right)):
        left, right = to_text(left), to_text(right)
    return COMPARISONS[op](left, right)


class ExpressionEvaluator:
    """Evaluate expressions against a context mapping."""

    def __init__(self, filters: Mapping[str, FilterFn] | None = None):
        """Initialize evaluator.

        Args:
            filters: Filter registry (defaults to a copy of the built-in FILTERS)
        """
        self.filters: dict[str, FilterFn] = dict(FILTERS if filters is None else filters)

    def evaluate(self, expression: str, context: Mapping[str, Any]) -> Any:
        """Evaluate a value expression, applying its filter pipeline.

        Args:
            expression: Expression text (without delimiters)
            context: Name to value mapping

        Returns:
            Evaluated value (None when undefined)
        """
        segments = split_pipeline(expression.strip())
        value = self._evaluate_operand(segments[0], context)
        for segment in segments[1:]:
            value = self._apply_filter(segment, value, context)
        return value

    def test(self, expression: str, context: Mapping[str, Any]) -> bool:
        """Evaluate a conditional test.

        Args:
            expression: Test expression, with or without a comparison operator
            context: Name to value mapping

        Returns:
            Boolean outcome
        """
        expression = expression.strip()
        if not expression:
            return False
        comparison = split_comparison(expression)
        if comparison is None:
            return is_truthy(self.evaluate(expression, context))
        left, op, right = comparison
        return compare(self.evaluate(left, context), op, self.evaluate(right, context))

    def _evaluate_operand(self, operand: str, context: Mapping[str, Any]) -> Any:
        if not operand:
            return None
        if operand in KEYWORDS:
            return KEYWORDS[operand]
        if NUMBER_PATTERN.match(operand):
            return float(operand) if "." in operand else int(operand)
        string = STRING_PATTERN.match(operand)
        if string:
            return string.group(1) if string.group(1) is not None else string.group(2)
        return self._resolve_path(operand, context)

    def _resolve_path(self, expression: str, context: Mapping[str, Any]) -> Any:
        parsed = parse_path(expression)
        if parsed is None:
            return None

        root, steps = parsed
        current = context.get(root) if isinstance(context, Mapping) else None
        for kind, argument in steps:
            if current is None:
                return None
            if kind == ATTR:
                current = get_attribute(current, argument)
            elif kind == INDEX:
                current = get_item(current, self.evaluate(argument, context))
            else:
                current = self._invoke(current, expression)
        return current

    def _invoke(self, target: Any, expression: str) -> Any:
        if not callable(target):
            return None
        try:
            return target()
        except Exception as e:  # noqa: BLE001 - a failing call renders as undefined
            logger.debug("Call failed", expression=expression, error=str(e))
            return None

    def _apply_filter(self, segment: str, value: Any, context: Mapping[str, Any]) -> Any:
        name, argument = split_filter(segment)
        filter_func = self.filters.get(name)
        if filter_func is None:
            return value
        try:
            if argument is None:
                return filter_func(value)
            return filter_func(value, self.evaluate(argument, context))
        except Exception as e:  # noqa: BLE001 - a failing filter leaves the value unchanged
            logger.debug("Filter failed", filter=name, error=str(e))
            return value
