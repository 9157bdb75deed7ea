"""Rate limiter interfaces.

Callers depend on ``AbstractWindowLimiter`` rather than a concrete class so
the volatile and durable variants stay interchangeable. The fixed-window
algorithm lives here exactly once; subclasses only decide where the entry
table comes from and where it goes after a mutation.
"""

from __future__ import annotations

import math
import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable

from request_guard.adapters.rate_limit.registry import (
    KeyLike,
    LimiterKey,
    LimiterRegistry,
    RateLimitEntry,
)


@dataclass(frozen=True)
class RateLimitResult:
    """Result of a rate limit consume operation.

    Attributes:
        allowed: Whether the request is allowed to proceed.
        limit: Max requests per window.
        remaining: Remaining requests in the current window (0 when blocked).
        reset_at: UNIX time in seconds when the current window ends.
        retry_after_seconds: Suggested wait time in seconds when blocked.
    """

    allowed: bool
    limit: int
    remaining: int
    reset_at: float
    retry_after_seconds: int | None


def _validate_key(key: KeyLike) -> None:
    if isinstance(key, LimiterKey):
        if not key.subject or not key.operation:
            raise ValueError("subject and operation must be non-empty strings")
        return
    if not key:
        raise ValueError("key must be a non-empty string")


class AbstractWindowLimiter(ABC):
    """Fixed-window request counter keyed by string or ``LimiterKey``.

    A window opens on the first request for a key and lasts
    ``window_seconds``. Up to ``max_requests`` requests are accepted inside
    it; the window is replaced (not slid) once the clock passes its end, so
    up to twice the budget can pass across a window boundary.
    """

    def __init__(
        self,
        *,
        max_requests: int = 10,
        window_seconds: float = 60.0,
        clock: Callable[[], float] = time.time,
        sweep_every: int = 256,
    ) -> None:
        """Initialize the limiter.

        Args:
            max_requests: Maximum number of accepted requests per window.
            window_seconds: Size of the fixed window in seconds.
            clock: Time source function returning UNIX time in seconds.
            sweep_every: Drop expired entries every N mutations.

        Raises:
            ValueError: If any argument is out of range.
        """
        if max_requests < 1:
            raise ValueError("max_requests must be >= 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be > 0")
        if sweep_every < 1:
            raise ValueError("sweep_every must be >= 1")

        self._max_requests = max_requests
        self._window_seconds = window_seconds
        self._clock = clock
        self._sweep_every = sweep_every
        self._mutations = 0
        self._lock = threading.RLock()

    @property
    def max_requests(self) -> int:
        return self._max_requests

    @property
    def window_seconds(self) -> float:
        return self._window_seconds

    @abstractmethod
    def _load_registry(self) -> LimiterRegistry:
        """Return the entry table to evaluate against."""
        raise NotImplementedError

    @abstractmethod
    def _save_registry(self, registry: LimiterRegistry) -> None:
        """Persist the entry table after a mutation."""
        raise NotImplementedError

    def consume(self, key: KeyLike) -> RateLimitResult:
        """Count one request for key and report whether it is accepted.

        Args:
            key: Plain string or ``LimiterKey``.

        Returns:
            RateLimitResult with allowance decision and metadata.

        Raises:
            ValueError: If key is empty.
        """
        _validate_key(key)
        now = self._clock()

        with self._lock:
            registry = self._load_registry()
            entry = registry.get(key)

            if entry is None or entry.is_expired(now):
                entry = RateLimitEntry(count=1, reset_at=now + self._window_seconds)
                registry.put(key, entry, now=now)
                self._commit(registry, now)
                return self._allowed(entry)

            if entry.count >= self._max_requests:
                return self._blocked(entry, now)

            entry.count += 1
            registry.touch(key)
            self._commit(registry, now)
            return self._allowed(entry)

    def check(self, key: KeyLike) -> bool:
        """Return True when the request is rejected, False when counted."""
        return not self.consume(key).allowed

    def check_operation(self, subject_id: str, operation_name: str) -> bool:
        """``check`` for the budget of one subject performing one operation."""
        return self.check(LimiterKey(subject_id, operation_name))

    def remaining(self, key: KeyLike) -> int:
        """Requests still accepted in key's current window."""
        entry = self._active_entry(key)
        if entry is None:
            return self._max_requests
        return max(0, self._max_requests - entry.count)

    def reset_at(self, key: KeyLike) -> float | None:
        """End of key's current window, or None when no window is active."""
        entry = self._active_entry(key)
        return entry.reset_at if entry is not None else None

    def _active_entry(self, key: KeyLike) -> RateLimitEntry | None:
        now = self._clock()
        with self._lock:
            entry = self._load_registry().get(key)
        if entry is None or entry.is_expired(now):
            return None
        return entry

    def _commit(self, registry: LimiterRegistry, now: float) -> None:
        self._mutations += 1
        if self._mutations % self._sweep_every == 0:
            registry.prune_expired(now)
        self._save_registry(registry)

    def _allowed(self, entry: RateLimitEntry) -> RateLimitResult:
        return RateLimitResult(
            allowed=True,
            limit=self._max_requests,
            remaining=max(0, self._max_requests - entry.count),
            reset_at=entry.reset_at,
            retry_after_seconds=None,
        )

    def _blocked(self, entry: RateLimitEntry, now: float) -> RateLimitResult:
        retry_after = max(0, int(math.ceil(entry.reset_at - now)))
        return RateLimitResult(
            allowed=False,
            limit=self._max_requests,
            remaining=max(0, self._max_requests - entry.count),
            reset_at=entry.reset_at,
            retry_after_seconds=retry_after,
        )
