"""Entity store abstraction and in-memory backend."""

from chainagg.store.base import EntityStore, normalize_key, require
from chainagg.store.memory import MemoryStore

__all__ = [
    "EntityStore",
    "MemoryStore",
    "normalize_key",
    "require",
]
