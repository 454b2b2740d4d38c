"""Template source loaders.

A loader turns a logical template path into source text and raises
TemplateError(TEMPLATE_NOT_FOUND) when the path does not resolve.
"""

from collections.abc import Mapping
from pathlib import Path
from typing import Protocol

from djeno.errors import create_error, wrap_error


class SourceLoader(Protocol):
    """Anything that can read template source for a logical path."""

    def read_source(self, path: str) -> str:
        """Return the source text for ``path``."""
        ...


class FileSystemLoader:
    """Read templates from a directory on disk."""

    def __init__(self, root: str | Path, encoding: str = "utf-8"):
        """Initialize loader.

        Args:
            root: Templates directory
            encoding: Source file encoding
        """
        self.root = Path(root).resolve()
        self.encoding = encoding

    def read_source(self, path: str) -> str:
        """Read ``root/path``.

        Args:
            path: Path relative to the templates directory

        Returns:
            Source text

        Raises:
            TemplateError(TEMPLATE_NOT_FOUND): If the file cannot be read or
                resolves outside the templates directory
        """
        full_path = (self.root / path).resolve()
        if not full_path.is_relative_to(self.root):
            raise create_error(
                "TEMPLATE_NOT_FOUND",
                path=path,
                detail=f"Path resolves outside the templates directory {self.root}",
            )
        try:
            return full_path.read_text(encoding=self.encoding)
        except (OSError, UnicodeDecodeError) as e:
            raise wrap_error(e, "TEMPLATE_NOT_FOUND", path=path) from e


class DictLoader:
    """Serve templates from an in-memory mapping of path to source."""

    def __init__(self, templates: Mapping[str, str]):
        self.templates = dict(templates)

    def read_source(self, path: str) -> str:
        try:
            return self.templates[path]
        except KeyError as e:
            raise wrap_error(e, "TEMPLATE_NOT_FOUND", path=path) from e
