"""Durable fixed-window rate limiter.

The entry table lives in an ``AbstractKeyValueStore`` under one fixed key and
is the source of truth: every call reloads it, every mutation writes the whole
table back. Several processes (or browser-like tabs) pointing at the same
store therefore observe each other's counts on their next call.

Stored format (JSON)::

    [["plain-key", {"count": 3, "reset_at": 1700000060.0}],
     [["subject-id", "create_goal"], {"count": 1, "reset_at": 1700000075.5}]]

Notes:
- No cross-process locking: each call is a read-modify-write, so two
  processes checking the same key at the same instant may lose one increment
  (last writer wins). Each save still writes a complete, valid table.
- Missing or unreadable data is treated as an empty table.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Union

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from request_guard.adapters.rate_limit.base import AbstractWindowLimiter
from request_guard.adapters.rate_limit.registry import (
    KeyLike,
    LimiterKey,
    LimiterRegistry,
    RateLimitEntry,
)
from request_guard.adapters.storage.base import AbstractKeyValueStore

logger = logging.getLogger(__name__)

DEFAULT_STORAGE_KEY = "rateLimits"


class StoredEntry(BaseModel):
    """Serialized form of a ``RateLimitEntry``."""

    count: int = Field(..., ge=0)
    reset_at: float


StoredKey = Union[str, tuple[str, str]]

_TABLE_ADAPTER: TypeAdapter[list[tuple[StoredKey, StoredEntry]]] = TypeAdapter(
    list[tuple[StoredKey, StoredEntry]]
)


def _decode_key(key: StoredKey) -> KeyLike:
    if isinstance(key, tuple):
        return LimiterKey(subject=key[0], operation=key[1])
    return key


def _encode_key(key: KeyLike) -> StoredKey:
    if isinstance(key, LimiterKey):
        return (key.subject, key.operation)
    return key


def serialize_registry(registry: LimiterRegistry) -> str:
    """Render the registry as the JSON list of ``[key, entry]`` pairs."""

    pairs = [
        (_encode_key(key), StoredEntry(count=entry.count, reset_at=entry.reset_at))
        for key, entry in registry.items()
    ]
    return _TABLE_ADAPTER.dump_json(pairs).decode()


class DurableWindowLimiter(AbstractWindowLimiter):
    """Window limiter whose table round-trips through a key-value store.

    Args:
        store: Shared durable store.
        storage_key: Store key holding the serialized table.
        max_requests: Maximum number of accepted requests per window.
        window_seconds: Size of the fixed window in seconds.
        clock: Time source function returning UNIX time in seconds.
        max_entries: Optional bound on stored keys (LRU eviction).
        sweep_every: Drop expired entries every N saves; 1 keeps the stored
            table free of dead windows.
    """

    def __init__(
        self,
        store: AbstractKeyValueStore,
        *,
        storage_key: str = DEFAULT_STORAGE_KEY,
        max_requests: int = 10,
        window_seconds: float = 60.0,
        clock: Callable[[], float] = time.time,
        max_entries: int | None = None,
        sweep_every: int = 1,
    ) -> None:
        super().__init__(
            max_requests=max_requests,
            window_seconds=window_seconds,
            clock=clock,
            sweep_every=sweep_every,
        )
        if not storage_key:
            raise ValueError("storage_key must be a non-empty string")
        self._store = store
        self._storage_key = storage_key
        self._max_entries = max_entries

    @property
    def storage_key(self) -> str:
        return self._storage_key

    def _load_registry(self) -> LimiterRegistry:
        registry = LimiterRegistry(max_entries=self._max_entries)

        try:
            raw = self._store.get_item(self._storage_key)
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning(
                "limiter.store_unreadable",
                extra={"storage_key": self._storage_key, "reason": type(exc).__name__},
            )
            return registry

        if not raw:
            return registry

        try:
            pairs = _TABLE_ADAPTER.validate_json(raw)
        except ValidationError as exc:
            logger.warning(
                "limiter.store_unreadable",
                extra={
                    "storage_key": self._storage_key,
                    "reason": "invalid_table",
                    "error_count": exc.error_count(),
                },
            )
            return registry

        now = self._clock()
        for stored_key, stored in pairs:
            key = _decode_key(stored_key)
            if isinstance(key, LimiterKey) and not (key.subject and key.operation):
                continue
            if not key:
                continue
            registry.put(key, RateLimitEntry(count=stored.count, reset_at=stored.reset_at), now=now)
        return registry

    def _save_registry(self, registry: LimiterRegistry) -> None:
        self._store.set_item(self._storage_key, serialize_registry(registry))
