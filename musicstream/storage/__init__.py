"""Local persistence module."""

from .store import JsonFileStore, MemoryStore, PersistenceStore

__all__ = [
    "JsonFileStore",
    "MemoryStore",
    "PersistenceStore",
]
