"""Template parser.

Builds the document tree from the token sequence in a single left-to-right
pass. Open ``if``/``for``/``block`` tags live on an explicit frame stack;
a closing tag pops the innermost frame, finalizes it into an immutable node
and inserts that node into the parent's body.
"""

import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field

from djeno.errors import TemplateError, create_error

from .lexer import tokenize
from .types import (
    BlockNode,
    Branch,
    ConditionalNode,
    ExtendsNode,
    IncludeNode,
    LoopNode,
    Node,
    TextNode,
    Token,
    TokenKind,
    VariableNode,
)

FOR_PATTERN = re.compile(r"^for\s+(\w+)(?:\s*,\s*(\w+))?\s+in\s+(.+)$", re.DOTALL)
BLOCK_PATTERN = re.compile(r"^block\s+(\w+)$")
PATH_PATTERN = re.compile(r"""^\w+\s+(["'])(.+?)\1$""")


@dataclass
class ConditionalFrame:
    """Open ``if``. Nodes go into the body of the current (last) branch."""

    token: Token
    tag: str = "if"
    branches: list[tuple[str | None, list[Node]]] = field(default_factory=list)

    @property
    def has_else(self) -> bool:
        return any(test is None for test, _ in self.branches)

    def insertion_point(self) -> list[Node]:
        return self.branches[-1][1]

    def finalize(self) -> ConditionalNode:
        return ConditionalNode(
            branches=tuple(Branch(test=test, body=tuple(body)) for test, body in self.branches)
        )


@dataclass
class LoopFrame:
    token: Token
    bindings: tuple[str, ...]
    iterable: str
    tag: str = "for"
    body: list[Node] = field(default_factory=list)

    def insertion_point(self) -> list[Node]:
        return self.body

    def finalize(self) -> LoopNode:
        return LoopNode(bindings=self.bindings, iterable=self.iterable, body=tuple(self.body))


@dataclass
class BlockFrame:
    token: Token
    name: str
    tag: str = "block"
    body: list[Node] = field(default_factory=list)

    def insertion_point(self) -> list[Node]:
        return self.body

    def finalize(self) -> BlockNode:
        return BlockNode(name=self.name, body=tuple(self.body))


Frame = ConditionalFrame | LoopFrame | BlockFrame


class Parser:
    """Frame-stack parser for one template.

    Raises:
        TemplateError(TEMPLATE_SYNTAX): close/continuation tag without a matching open tag
        TemplateError(TEMPLATE_INVALID_TAG): malformed for/block/include/extends arguments
        TemplateError(TEMPLATE_UNCLOSED_TAG): open tag left at end of input
    """

    def __init__(self, tokens: Iterable[Token], template: str | None = None):
        """Initialize parser.

        Args:
            tokens: Token sequence from the lexer
            template: Logical template path, used in error messages
        """
        self.tokens = list(tokens)
        self.template = template
        self._root: list[Node] = []
        self._stack: list[Frame] = []
        self._handlers: dict[str, Callable[[Token, str], None]] = {
            "if": self._open_if,
            "elif": self._continue_if,
            "else": self._continue_if,
            "endif": self._close,
            "for": self._open_for,
            "endfor": self._close,
            "block": self._open_block,
            "endblock": self._close,
            "include": self._include,
            "extends": self._extends,
        }

    def parse(self) -> tuple[Node, ...]:
        """Parse the token sequence into a document tree.

        Returns:
            Top-level node sequence
        """
        for token in self.tokens:
            if token.kind == TokenKind.TEXT:
                self._insert(TextNode(value=token.content))
            elif token.kind == TokenKind.VARIABLE:
                self._insert(VariableNode(expression=token.content, position=token.position))
            elif token.kind == TokenKind.TAG:
                words = token.content.split(None, 1)
                keyword = words[0] if words else ""
                handler = self._handlers.get(keyword)
                if handler is None:
                    # Unknown tags pass through as literal text
                    self._insert(TextNode(value=token.raw))
                else:
                    handler(token, keyword)

        if self._stack:
            frame = self._stack[-1]
            raise self._error("TEMPLATE_UNCLOSED_TAG", frame.token, tag=frame.tag)

        return tuple(self._root)

    # ------------------------------------------------------------------
    # Insertion

    def _insert(self, node: Node) -> None:
        if self._stack:
            self._stack[-1].insertion_point().append(node)
        else:
            self._root.append(node)

    def _error(self, code: str, token: Token, **context: object) -> TemplateError:
        return create_error(
            code,
            template=self.template,
            line=token.position.line,
            column=token.position.column,
            content=token.content,
            **context,
        )

    # ------------------------------------------------------------------
    # Tag handlers

    def _open_if(self, token: Token, keyword: str) -> None:
        test = _arguments(token.content, keyword)
        self._stack.append(ConditionalFrame(token=token, branches=[(test, [])]))

    def _continue_if(self, token: Token, keyword: str) -> None:
        top = self._stack[-1] if self._stack else None
        if not isinstance(top, ConditionalFrame) or top.has_else:
            raise self._error("TEMPLATE_SYNTAX", token, tag=keyword)
        test = _arguments(token.content, keyword) if keyword == "elif" else None
        top.branches.append((test, []))

    def _close(self, token: Token, keyword: str) -> None:
        expected = keyword[len("end") :]
        top = self._stack[-1] if self._stack else None
        if top is None or top.tag != expected:
            raise self._error("TEMPLATE_SYNTAX", token, tag=keyword)
        self._stack.pop()
        self._insert(top.finalize())

    def _open_for(self, token: Token, keyword: str) -> None:
        match = FOR_PATTERN.match(token.content)
        if not match:
            raise self._error(
                "TEMPLATE_INVALID_TAG",
                token,
                tag=keyword,
                expected="'for name in expr' or 'for key, value in expr'",
            )
        first, second, iterable = match.groups()
        bindings = (first, second) if second else (first,)
        self._stack.append(LoopFrame(token=token, bindings=bindings, iterable=iterable.strip()))

    def _open_block(self, token: Token, keyword: str) -> None:
        match = BLOCK_PATTERN.match(token.content)
        if not match:
            raise self._error("TEMPLATE_INVALID_TAG", token, tag=keyword, expected="'block name'")
        self._stack.append(BlockFrame(token=token, name=match.group(1)))

    def _include(self, token: Token, keyword: str) -> None:
        self._insert(IncludeNode(path=self._quoted_path(token, keyword)))

    def _extends(self, token: Token, keyword: str) -> None:
        self._insert(ExtendsNode(path=self._quoted_path(token, keyword)))

    def _quoted_path(self, token: Token, keyword: str) -> str:
        match = PATH_PATTERN.match(token.content)
        if not match:
            raise self._error(
                "TEMPLATE_INVALID_TAG",
                token,
                tag=keyword,
                expected=f"{keyword} \"path\"",
            )
        return match.group(2)


def _arguments(content: str, keyword: str) -> str:
    return content[len(keyword) :].strip()


def parse(source: str, template: str | None = None) -> tuple[Node, ...]:
    """Lex and parse a template source.

    Args:
        source: Template source text
        template: Logical template path, used in error messages

    Returns:
        Top-level node sequence
    """
    return Parser(tokenize(source), template=template).parse()


def serialize(nodes: Iterable[Node]) -> str:
    """Render a tree back to template source using normalized tag spacing."""
    parts: list[str] = []
    for node in nodes:
        if isinstance(node, TextNode):
            parts.append(node.value)
        elif isinstance(node, VariableNode):
            parts.append(f"{{{{ {node.expression} }}}}")
        elif isinstance(node, ConditionalNode):
            for index, branch in enumerate(node.branches):
                if branch.test is None:
                    parts.append("{% else %}")
                else:
                    keyword = "if" if index == 0 else "elif"
                    parts.append(_tag(keyword, branch.test))
                parts.append(serialize(branch.body))
            parts.append("{% endif %}")
        elif isinstance(node, LoopNode):
            parts.append(f"{{% for {', '.join(node.bindings)} in {node.iterable} %}}")
            parts.append(serialize(node.body))
            parts.append("{% endfor %}")
        elif isinstance(node, BlockNode):
            parts.append(f"{{% block {node.name} %}}{serialize(node.body)}{{% endblock %}}")
        elif isinstance(node, IncludeNode):
            parts.append(f"{{% include {_quote(node.path)} %}}")
        elif isinstance(node, ExtendsNode):
            parts.append(f"{{% extends {_quote(node.path)} %}}")
    return "".join(parts)


def _tag(*words: str) -> str:
    return "{% " + " ".join(word for word in words if word) + " %}"


def _quote(path: str) -> str:
    return f"'{path}'" if '"' in path else f'"{path}"'


def extract_references(nodes: Iterable[Node]) -> list[str]:
    """Extract template paths referenced by include/extends nodes.

    E.g., '{% extends "base.html" %}' → ["base.html"]

    Useful for dependency analysis.

    Args:
        nodes: Document tree

    Returns:
        Referenced paths in source order (duplicates kept)
    """
    references: list[str] = []
    for node in nodes:
        if isinstance(node, (IncludeNode, ExtendsNode)):
            references.append(node.path)
        elif isinstance(node, ConditionalNode):
            for branch in node.branches:
                references.extend(extract_references(branch.body))
        elif isinstance(node, (LoopNode, BlockNode)):
            references.extend(extract_references(node.body))
    return references
