"""Key-value store interface used by the durable window limiter."""

from __future__ import annotations

from abc import ABC, abstractmethod


class AbstractKeyValueStore(ABC):
    """String-keyed, string-valued persistent store."""

    @abstractmethod
    def get_item(self, key: str) -> str | None:
        """Return the stored value, or None when the key is absent."""
        raise NotImplementedError

    @abstractmethod
    def set_item(self, key: str, value: str) -> None:
        """Replace the value stored under key."""
        raise NotImplementedError

    @abstractmethod
    def remove_item(self, key: str) -> None:
        """Delete key; missing keys are ignored."""
        raise NotImplementedError
