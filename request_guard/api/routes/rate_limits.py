from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from request_guard.adapters.auth.base import Subject
from request_guard.adapters.rate_limit.base import AbstractWindowLimiter
from request_guard.adapters.rate_limit.registry import LimiterKey
from request_guard.core.auth import verify_api_key
from request_guard.core.config import settings
from request_guard.core.limiters import LimiterSet
from request_guard.core.rate_limit import apply_rate_limit, get_limiters
from request_guard.schemas.rate_limit import RateLimitStatus

router = APIRouter(prefix="/rate-limits", tags=["Rate limits"])


def _status(limiter: AbstractWindowLimiter, subject: Subject, operation: str) -> RateLimitStatus:
    key = LimiterKey(subject.id, operation)
    return RateLimitStatus(
        operation=operation,
        limit=limiter.max_requests,
        remaining=limiter.remaining(key),
        window_seconds=limiter.window_seconds,
        reset_at=limiter.reset_at(key),
    )


@router.get("/{operation}", response_model=RateLimitStatus)
async def get_rate_limit_status(
    operation: str,
    subject: Annotated[Subject, Depends(verify_api_key)],
    limiters: Annotated[LimiterSet, Depends(get_limiters)],
) -> RateLimitStatus:
    """Report the caller's budget for an operation without consuming it."""

    return _status(limiters.for_operation(operation), subject, operation)


@router.post("/{operation}/check", response_model=RateLimitStatus)
async def check_rate_limit(
    operation: str,
    subject: Annotated[Subject, Depends(verify_api_key)],
    limiters: Annotated[LimiterSet, Depends(get_limiters)],
) -> RateLimitStatus:
    """Record one request against the caller's budget.

    Clients call this before running an operation on another backend.
    Responds 429 with ``Retry-After`` once the window's budget is spent.
    """

    if settings.app.rate_limit_enabled:
        apply_rate_limit(subject, operation, limiters)
    return _status(limiters.for_operation(operation), subject, operation)
