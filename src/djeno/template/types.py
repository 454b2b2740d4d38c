"""Template engine type definitions.

Tokens come out of the lexer, nodes out of the parser. Both are frozen, and
node bodies are tuples, so a parsed tree can be shared between concurrent
renders without copying.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Union


class TokenKind(str, Enum):
    """Lexical token kind."""

    TEXT = "text"
    VARIABLE = "variable"
    TAG = "tag"
    COMMENT = "comment"


@dataclass(frozen=True)
class Position:
    """Location of a token's first character in the template source."""

    line: int  # 1-indexed
    column: int  # 1-indexed
    offset: int  # 0-indexed character offset


@dataclass(frozen=True)
class Token:
    """Lexical token.

    ``content`` is the trimmed delimiter body for variable/tag/comment tokens
    and the verbatim text for text tokens. ``raw`` is the exact source span.
    """

    kind: TokenKind
    content: str
    position: Position
    raw: str


@dataclass(frozen=True)
class TextNode:
    value: str


@dataclass(frozen=True)
class VariableNode:
    expression: str
    position: Position | None = field(default=None, compare=False)


@dataclass(frozen=True)
class Branch:
    """One arm of a conditional. ``test`` is None for the ``else`` arm."""

    test: str | None
    body: tuple["Node", ...]


@dataclass(frozen=True)
class ConditionalNode:
    branches: tuple[Branch, ...]


@dataclass(frozen=True)
class LoopNode:
    bindings: tuple[str, ...]  # one or two names
    iterable: str
    body: tuple["Node", ...]


@dataclass(frozen=True)
class IncludeNode:
    path: str


@dataclass(frozen=True)
class BlockNode:
    name: str
    body: tuple["Node", ...]


@dataclass(frozen=True)
class ExtendsNode:
    path: str


Node = Union[TextNode, VariableNode, ConditionalNode, LoopNode, IncludeNode, BlockNode, ExtendsNode]


@dataclass(frozen=True)
class Template:
    """A parsed template, owned by the TemplateStore cache entry for ``path``."""

    path: str
    source: str
    tree: tuple[Node, ...]
