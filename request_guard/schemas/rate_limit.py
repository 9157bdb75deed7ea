"""Pydantic schemas for rate limit status responses."""

from __future__ import annotations

from pydantic import BaseModel, Field


class RateLimitStatus(BaseModel):
    """Current budget of the calling subject for one operation."""

    operation: str = Field(..., description="Operation category the budget applies to.")
    limit: int = Field(..., description="Requests allowed per window.")
    remaining: int = Field(..., description="Requests left in the current window.")
    window_seconds: float = Field(..., description="Fixed window size in seconds.")
    reset_at: float | None = Field(
        default=None,
        description="UNIX time when the current window ends; null when no window is open.",
    )
