"""Dict-backed store.

Several limiter instances sharing one ``InMemoryKeyValueStore`` behave like
several tabs sharing a browser profile's storage.
"""

from __future__ import annotations

import threading

from request_guard.adapters.storage.base import AbstractKeyValueStore


class InMemoryKeyValueStore(AbstractKeyValueStore):
    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})
        self._lock = threading.Lock()

    def get_item(self, key: str) -> str | None:
        with self._lock:
            return self._data.get(key)

    def set_item(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value

    def remove_item(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)
