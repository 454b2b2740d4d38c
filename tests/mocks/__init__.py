"""Test mocks for djeno.

Provides mock implementations for testing:
- CountingLoader: In-memory loader that counts source reads
"""

from .loaders import CountingLoader

__all__ = ["CountingLoader"]
