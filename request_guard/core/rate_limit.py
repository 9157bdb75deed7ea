"""Rate limiting dependency for FastAPI routes.

This module wires the window limiters into the HTTP layer.

Design goals:
- Minimal coupling: routes depend on a dependency factory only.
- Injected state: limiters come from ``app.state.limiters`` built by the app
  factory, never from module globals.
- Per-subject budgets: the limiter key is ``(subject, operation)``.
"""

from __future__ import annotations

import logging
from typing import Awaitable, Callable

from fastapi import Depends, HTTPException, Request, status

from request_guard.adapters.auth.base import Subject
from request_guard.adapters.rate_limit.base import RateLimitResult
from request_guard.adapters.rate_limit.registry import LimiterKey
from request_guard.core.auth import verify_api_key
from request_guard.core.config import settings
from request_guard.core.limiters import LimiterSet
from request_guard.core.logging import hash_identifier

logger = logging.getLogger(__name__)


def get_limiters(request: Request) -> LimiterSet:
    """Return the limiter set owned by the running application."""
    return request.app.state.limiters


def apply_rate_limit(subject: Subject, operation: str, limiters: LimiterSet) -> RateLimitResult:
    """Consume one unit of ``operation``'s budget for ``subject``.

    Raises:
        HTTPException: 429 with ``Retry-After`` and ``X-RateLimit-*`` headers
            when the budget for the current window is exhausted.
    """
    limiter = limiters.for_operation(operation)
    result = limiter.consume(LimiterKey(subject.id, operation))
    subject_hash = hash_identifier(subject.id)

    if result.allowed:
        logger.info(
            "rate_limit.allowed",
            extra={
                "subject_hash": subject_hash,
                "operation": operation,
                "limit": result.limit,
                "remaining": result.remaining,
                "window_s": limiter.window_seconds,
            },
        )
        return result

    retry_after = result.retry_after_seconds or 0
    logger.warning(
        "rate_limit.exceeded",
        extra={
            "subject_hash": subject_hash,
            "operation": operation,
            "limit": result.limit,
            "remaining": result.remaining,
            "window_s": limiter.window_seconds,
            "retry_after_s": retry_after,
        },
    )

    headers: dict[str, str] = {}
    if settings.app.rate_limit_include_headers:
        headers["Retry-After"] = str(retry_after)
        headers["X-RateLimit-Limit"] = str(result.limit)
        headers["X-RateLimit-Remaining"] = str(result.remaining)
        headers["X-RateLimit-Reset"] = str(int(result.reset_at))

    raise HTTPException(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        detail="Rate limit exceeded. Try again later.",
        headers=headers or None,
    )


def enforce_rate_limit(operation: str) -> Callable[..., Awaitable[Subject]]:
    """Build a dependency that consumes one unit of the operation's budget.

    Usage:
        @router.post("/goals", dependencies=[Depends(enforce_rate_limit("goals"))])

    Args:
        operation: Operation category; selects the named limiter (or the
            default one) and forms the second half of the limiter key.

    Returns:
        Dependency resolving to the calling subject.
    """

    async def _enforce(
        subject: Subject = Depends(verify_api_key),
        limiters: LimiterSet = Depends(get_limiters),
    ) -> Subject:
        if settings.app.rate_limit_enabled:
            apply_rate_limit(subject, operation, limiters)
        return subject

    return _enforce
