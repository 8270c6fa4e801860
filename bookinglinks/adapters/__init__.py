"""
Adapters layer - Storage implementations and data loading.
"""

from .fixture_loader import load_fixture, populate_storage
from .memory_storage import InMemoryStorage

__all__ = ["InMemoryStorage", "load_fixture", "populate_storage"]
