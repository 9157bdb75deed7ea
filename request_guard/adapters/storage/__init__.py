"""Durable key-value store adapters.

Limiter state that must outlive the process (and be shared by several
processes of the same subject) is written through this small interface.
"""

from request_guard.adapters.storage.base import AbstractKeyValueStore
from request_guard.adapters.storage.file_store import FileKeyValueStore
from request_guard.adapters.storage.in_memory import InMemoryKeyValueStore

__all__ = [
    "AbstractKeyValueStore",
    "FileKeyValueStore",
    "InMemoryKeyValueStore",
]
