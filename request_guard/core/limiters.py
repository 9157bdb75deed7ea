"""Construction of the named window limiters.

Limiters are built explicitly from settings and handed to whichever component
needs them (the FastAPI app keeps its set on ``app.state``). Nothing here is
a module-level singleton, so each app or test gets independent state.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable

from request_guard.adapters.rate_limit.base import AbstractWindowLimiter
from request_guard.adapters.rate_limit.durable import DurableWindowLimiter
from request_guard.adapters.rate_limit.in_memory import InMemoryWindowLimiter
from request_guard.adapters.storage.base import AbstractKeyValueStore
from request_guard.adapters.storage.file_store import FileKeyValueStore
from request_guard.adapters.storage.in_memory import InMemoryKeyValueStore
from request_guard.core.config import LimiterSettings

logger = logging.getLogger(__name__)

TRANSACTIONS = "transactions"
BUDGETS = "budgets"
GOALS = "goals"


@dataclass
class LimiterSet:
    """Named limiters plus a fallback for unknown operation categories."""

    default: AbstractWindowLimiter
    named: dict[str, AbstractWindowLimiter] = field(default_factory=dict)

    def for_operation(self, operation: str) -> AbstractWindowLimiter:
        return self.named.get(operation, self.default)

    def __contains__(self, operation: str) -> bool:
        return operation in self.named


def _build_store(cfg: LimiterSettings) -> AbstractKeyValueStore:
    if cfg.storage_dir:
        return FileKeyValueStore(cfg.storage_dir)
    logger.warning(
        "limiter.durable_without_storage_dir",
        extra={"hint": "Set LIMITER_STORAGE_DIR to persist limiter state across restarts"},
    )
    return InMemoryKeyValueStore()


def create_window_limiter(
    cfg: LimiterSettings,
    *,
    max_requests: int,
    name: str,
    store: AbstractKeyValueStore | None = None,
    clock: Callable[[], float] = time.time,
) -> AbstractWindowLimiter:
    """Build one limiter according to ``cfg.durable``.

    Durable limiters share the store but each category gets its own storage
    key (``<storage_key>:<name>``) so their tables never overwrite each other.
    """
    if cfg.durable:
        return DurableWindowLimiter(
            store if store is not None else _build_store(cfg),
            storage_key=f"{cfg.storage_key}:{name}",
            max_requests=max_requests,
            window_seconds=cfg.default_window_seconds,
            clock=clock,
            max_entries=cfg.max_entries,
        )
    return InMemoryWindowLimiter(
        max_requests=max_requests,
        window_seconds=cfg.default_window_seconds,
        clock=clock,
        max_entries=cfg.max_entries,
        sweep_every=cfg.sweep_every,
    )


def build_limiters(
    cfg: LimiterSettings,
    *,
    store: AbstractKeyValueStore | None = None,
    clock: Callable[[], float] = time.time,
) -> LimiterSet:
    """Build the default limiter and one per finance operation category."""
    if cfg.durable and store is None:
        store = _build_store(cfg)

    budgets = {
        TRANSACTIONS: cfg.transaction_max_requests,
        BUDGETS: cfg.budget_max_requests,
        GOALS: cfg.goal_max_requests,
    }
    named = {
        name: create_window_limiter(cfg, max_requests=limit, name=name, store=store, clock=clock)
        for name, limit in budgets.items()
    }
    default = create_window_limiter(
        cfg,
        max_requests=cfg.default_max_requests,
        name="default",
        store=store,
        clock=clock,
    )
    return LimiterSet(default=default, named=named)
