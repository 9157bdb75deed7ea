"""Rate limiting adapters.

This package provides a small abstraction layer so callers can use the
volatile (process-lifetime) limiter or the durable (store-backed) limiter
behind the same contract.
"""

from request_guard.adapters.rate_limit.base import AbstractWindowLimiter, RateLimitResult
from request_guard.adapters.rate_limit.durable import DurableWindowLimiter
from request_guard.adapters.rate_limit.in_memory import InMemoryWindowLimiter
from request_guard.adapters.rate_limit.registry import (
    LimiterKey,
    LimiterRegistry,
    RateLimitEntry,
)

__all__ = [
    "AbstractWindowLimiter",
    "DurableWindowLimiter",
    "InMemoryWindowLimiter",
    "LimiterKey",
    "LimiterRegistry",
    "RateLimitEntry",
    "RateLimitResult",
]
