"""In-memory fixed-window rate limiter.

Notes:
- Per-process only: state lives as long as the limiter instance, and running
  multiple workers multiplies the effective limit.
- Thread-safe: the base class serializes access with a lock.
"""

from __future__ import annotations

import time
from typing import Callable

from request_guard.adapters.rate_limit.base import AbstractWindowLimiter
from request_guard.adapters.rate_limit.registry import LimiterRegistry


class InMemoryWindowLimiter(AbstractWindowLimiter):
    """Volatile window limiter backed by a process-local registry.

    Important:
        Nothing is persisted. Restarting the process (or constructing a new
        instance) starts every key with a fresh budget.
    """

    def __init__(
        self,
        *,
        max_requests: int = 10,
        window_seconds: float = 60.0,
        clock: Callable[[], float] = time.time,
        max_entries: int | None = None,
        sweep_every: int = 256,
    ) -> None:
        super().__init__(
            max_requests=max_requests,
            window_seconds=window_seconds,
            clock=clock,
            sweep_every=sweep_every,
        )
        self._registry = LimiterRegistry(max_entries=max_entries)

    def __len__(self) -> int:
        return len(self._registry)

    def _load_registry(self) -> LimiterRegistry:
        return self._registry

    def _save_registry(self, registry: LimiterRegistry) -> None:
        # The registry is mutated in place; nothing to write back.
        return None
