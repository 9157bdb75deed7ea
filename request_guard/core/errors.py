"""Application-level exception types.

This module defines the failure taxonomy shared by the guarded executor,
the HTTP layer and the authorization helpers. Each ``AppError`` subclass
carries a ``FailureKind`` so failures can be classified structurally instead
of by inspecting message text.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar, NotRequired, TypedDict


class FailureKind(str, Enum):
    """Categories a guarded operation can fail with."""

    NOT_AUTHENTICATED = "not_authenticated"
    RATE_LIMITED = "rate_limited"
    UNAUTHORIZED = "unauthorized"
    VALIDATION_FAILED = "validation_failed"
    UNCLASSIFIED = "unclassified"


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients.

    Fields are optional to keep backward compatibility while encouraging
    consistent shapes across the codebase.
    """

    code: str
    message: str
    hint: str
    operation: str
    resource_type: str
    limit: int
    remaining: int
    retry_after: float
    errors: list[str]
    request_id: str
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    kind: ClassVar[FailureKind] = FailureKind.UNCLASSIFIED

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when input/config validation fails."""

    kind = FailureKind.VALIDATION_FAILED


class AuthenticationAppError(AppError):
    """Raised when the current subject cannot be authenticated."""

    kind = FailureKind.NOT_AUTHENTICATED


class AuthorizationAppError(AppError):
    """Raised when an authenticated subject lacks permission."""

    kind = FailureKind.UNAUTHORIZED


class RateLimitAppError(AppError):
    """Raised by operations that were throttled downstream."""

    kind = FailureKind.RATE_LIMITED
