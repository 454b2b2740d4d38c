"""Djeno - A small Django-flavoured HTML templating engine.

Templates are lexed, parsed into an immutable document tree and cached by
path; rendering walks the tree against a context mapping.
"""

from djeno.application import create_engine
from djeno.errors import TemplateError
from djeno.template import DictLoader, FileSystemLoader, TemplateEngine, TemplateStore

__version__ = "0.1.0"
__all__ = [
    "__version__",
    "create_engine",
    "TemplateEngine",
    "TemplateStore",
    "TemplateError",
    "FileSystemLoader",
    "DictLoader",
]
