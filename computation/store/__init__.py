"""Generation store: protocol, key layout and implementations."""

from .base import Store
from .local_store import LocalStore
from .memory_store import InMemoryStore

__all__ = [
    "Store",
    "LocalStore",
    "InMemoryStore",
]
