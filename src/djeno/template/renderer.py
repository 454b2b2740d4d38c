"""Document tree renderer."""

from collections.abc import Iterable, Iterator, Mapping, Sequence
from typing import Any

from markupsafe import Markup

from djeno.errors import create_error
from djeno.logging import get_logger

from .expressions import ExpressionEvaluator
from .filters import escape_html, to_text
from .store import TemplateStore
from .types import (
    BlockNode,
    ConditionalNode,
    ExtendsNode,
    IncludeNode,
    LoopNode,
    Node,
    TextNode,
    VariableNode,
)

logger = get_logger("renderer")

# Block name -> body supplied by the closest descendant in an extends chain
Overrides = Mapping[str, tuple[Node, ...]]

_NO_OVERRIDES: Overrides = {}


def scan_top_level(tree: Iterable[Node]) -> tuple[dict[str, tuple[Node, ...]], str | None]:
    """Collect top-level blocks and the extends target (last one wins).

    Returns:
        (block name -> body, extends path or None)
    """
    blocks: dict[str, tuple[Node, ...]] = {}
    extends: str | None = None
    for node in tree:
        if isinstance(node, BlockNode):
            blocks[node.name] = node.body
        elif isinstance(node, ExtendsNode):
            extends = node.path
    return blocks, extends


def _loop_bindings(iterable: Any, arity: int) -> Iterator[tuple[Any, ...]]:
    """Yield the values bound on each loop iteration.

    Mappings iterate their entries: one name binds the value, two names bind
    key and value. Other iterables bind each element, or its first two
    positions when two names are given. Strings, None and non-iterables
    produce no iterations.
    """
    if isinstance(iterable, Mapping):
        for key, value in iterable.items():
            yield (value,) if arity == 1 else (key, value)
        return
    if iterable is None or isinstance(iterable, (str, bytes, bytearray)):
        return
    if not isinstance(iterable, Iterable):
        return
    for element in iterable:
        if arity == 1:
            yield (element,)
        elif isinstance(element, Sequence) and not isinstance(element, str):
            yield (
                element[0] if len(element) > 0 else None,
                element[1] if len(element) > 1 else None,
            )
        else:
            yield (None, None)


class Renderer:
    """Render document trees against a context.

    Supports:
    - Variable interpolation with HTML escaping ({{ expr }})
    - Conditionals and loops
    - Includes (independent sub-renders with the same context)
    - Template inheritance (extends + block overrides across a chain)
    """

    def __init__(self, store: TemplateStore, evaluator: ExpressionEvaluator | None = None):
        """Initialize renderer.

        Args:
            store: Template store used to resolve include/extends paths
            evaluator: Expression evaluator (defaults to one with the built-in filters)
        """
        self.store = store
        self.evaluator = evaluator or ExpressionEvaluator()

    def render(
        self,
        tree: Sequence[Node],
        context: Mapping[str, Any] | None = None,
        path: str | None = None,
    ) -> str:
        """Render a template's top-level tree.

        If the tree declares ``extends``, only its top-level blocks take part:
        they override same-named blocks in the parent chain.

        Args:
            tree: Top-level node sequence
            context: Name to value mapping (never mutated)
            path: Logical path of the tree's template, for cycle detection

        Returns:
            Rendered text

        Raises:
            TemplateError: Loader or parse failure of a composed template,
                or a cyclic extends chain
        """
        context = context if context is not None else {}
        blocks, extends = scan_top_level(tree)
        if extends is None:
            return self._render_nodes(tree, context, _NO_OVERRIDES)

        chain = [path] if path else []
        return self._compose(extends, blocks, context, chain)

    def _compose(
        self,
        parent_path: str,
        overrides: Overrides,
        context: Mapping[str, Any],
        chain: list[str],
    ) -> str:
        if parent_path in chain:
            raise create_error(
                "TEMPLATE_EXTENDS_CYCLE",
                template=chain[0],
                chain=" -> ".join([*chain, parent_path]),
            )

        parent = self.store.load(parent_path)
        blocks, extends = scan_top_level(parent.tree)
        if extends is not None:
            # Descendant overrides take precedence over this template's blocks
            return self._compose(extends, {**blocks, **overrides}, context, [*chain, parent_path])

        logger.debug("Composing template", root=parent_path, chain=chain, overrides=list(overrides))
        return self._render_nodes(parent.tree, context, overrides)

    def _render_nodes(
        self,
        nodes: Iterable[Node],
        context: Mapping[str, Any],
        overrides: Overrides,
    ) -> str:
        return "".join(self._render_node(node, context, overrides) for node in nodes)

    def _render_node(self, node: Node, context: Mapping[str, Any], overrides: Overrides) -> str:
        if isinstance(node, TextNode):
            return node.value

        elif isinstance(node, VariableNode):
            value = self.evaluator.evaluate(node.expression, context)
            if isinstance(value, Markup):
                return str(value)
            return escape_html(to_text(value))

        elif isinstance(node, ConditionalNode):
            for branch in node.branches:
                if branch.test is None or self.evaluator.test(branch.test, context):
                    return self._render_nodes(branch.body, context, overrides)
            return ""

        elif isinstance(node, LoopNode):
            return self._render_loop(node, context, overrides)

        elif isinstance(node, BlockNode):
            override = overrides.get(node.name)
            if override is None:
                return self._render_nodes(node.body, context, overrides)
            # A block override must not substitute itself
            remaining = {name: body for name, body in overrides.items() if name != node.name}
            return self._render_nodes(override, context, remaining)

        elif isinstance(node, IncludeNode):
            included = self.store.load(node.path)
            return self.render(included.tree, context, included.path)

        # Nested extends tags have no effect
        return ""

    def _render_loop(self, node: LoopNode, context: Mapping[str, Any], overrides: Overrides) -> str:
        iterable = self.evaluator.evaluate(node.iterable, context)
        parts: list[str] = []
        for values in _loop_bindings(iterable, len(node.bindings)):
            scope = {**context, **dict(zip(node.bindings, values))}
            parts.append(self._render_nodes(node.body, scope, overrides))
        return "".join(parts)
