"""Parsed template cache."""

import threading
import time
from pathlib import Path

from djeno.errors import TemplateError
from djeno.logging import get_logger

from .loaders import FileSystemLoader, SourceLoader
from .parser import parse
from .types import Template

logger = get_logger("store")


class TemplateStore:
    """Load, parse and cache templates by logical path.

    The first ``load`` of a path reads the source through the loader, lexes and
    parses it, and caches the resulting Template for the lifetime of the store.
    Later loads return the same instance. Sources are never re-read, so edits
    on disk are not picked up until a new store is created.
    """

    def __init__(self, loader: SourceLoader):
        """Initialize template store.

        Args:
            loader: Source loader used on cache misses
        """
        self.loader = loader
        self._cache: dict[str, Template] = {}
        self._lock = threading.Lock()

    @classmethod
    def from_directory(cls, root: str | Path, encoding: str = "utf-8") -> "TemplateStore":
        """Create a store reading templates from ``root``."""
        return cls(FileSystemLoader(root, encoding=encoding))

    def load(self, path: str) -> Template:
        """Get the parsed template for ``path``.

        Args:
            path: Logical template path

        Returns:
            Cached or freshly parsed Template

        Raises:
            TemplateError: Loader failure or structural parse error
        """
        template = self._cache.get(path)
        if template is not None:
            return template

        # Held across read + parse so concurrent misses parse a path only once
        with self._lock:
            template = self._cache.get(path)
            if template is not None:
                return template

            source = self.loader.read_source(path)
            start = time.perf_counter()
            try:
                tree = parse(source, template=path)
            except TemplateError as e:
                logger.warning("Template parse failed", path=path, code=e.code, error=e.message)
                raise
            parse_ms = round((time.perf_counter() - start) * 1000, 3)

            template = Template(path=path, source=source, tree=tree)
            self._cache[path] = template

        logger.debug("Template loaded", path=path, parse_ms=parse_ms, nodes=len(tree))
        return template

    def __contains__(self, path: object) -> bool:
        return path in self._cache

    def __len__(self) -> int:
        return len(self._cache)
