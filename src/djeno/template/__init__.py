"""Template engine: lexer, parser, evaluator, renderer and template store."""

from .engine import TemplateEngine
from .expressions import ExpressionEvaluator
from .filters import FILTERS
from .lexer import Lexer, tokenize
from .loaders import DictLoader, FileSystemLoader, SourceLoader
from .parser import Parser, extract_references, parse, serialize
from .renderer import Renderer
from .store import TemplateStore
from .types import Position, Template, Token, TokenKind

__all__ = [
    "TemplateEngine",
    "TemplateStore",
    "Renderer",
    "ExpressionEvaluator",
    "FILTERS",
    "Lexer",
    "Parser",
    "tokenize",
    "parse",
    "serialize",
    "extract_references",
    "SourceLoader",
    "FileSystemLoader",
    "DictLoader",
    "Template",
    "Token",
    "TokenKind",
    "Position",
]
