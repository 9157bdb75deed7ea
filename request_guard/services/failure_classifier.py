"""Failure classification for guarded operations.

Structured errors (``AppError`` subclasses) are classified by type. Anything
else falls back to best-effort matching on the exception message: only
messages containing one of the substrings below are recognized, so an
operation that wants a reliable category should raise the matching
``AppError`` subclass instead of relying on wording.
"""

from __future__ import annotations

from dataclasses import dataclass

from request_guard.core.errors import AppError, FailureKind

# Checked in order; the first matching group wins.
TEXT_PATTERNS: tuple[tuple[FailureKind, tuple[str, ...]], ...] = (
    (FailureKind.RATE_LIMITED, ("rate limit", "too many requests", "demasiadas solicitudes")),
    (FailureKind.UNAUTHORIZED, ("unauthorized", "permission", "permisos", "forbidden")),
    (FailureKind.VALIDATION_FAILED, ("validation",)),
)

NOT_AUTHENTICATED_MESSAGE = "You must be signed in to perform this operation."
RATE_LIMITED_MESSAGE = "Too many requests. Please wait a moment before trying again."
UNAUTHORIZED_MESSAGE = "You do not have permission to perform this operation."


@dataclass(frozen=True)
class ClassifiedFailure:
    """A failure reduced to its category and original message."""

    kind: FailureKind
    message: str


def _error_message(exc: BaseException) -> str:
    if isinstance(exc, AppError):
        return exc.message
    return str(exc)


def classify_message(message: str) -> FailureKind:
    """Map free-form failure text to a category."""
    lowered = message.lower()
    for kind, needles in TEXT_PATTERNS:
        if any(needle in lowered for needle in needles):
            return kind
    return FailureKind.UNCLASSIFIED


def classify_failure(exc: BaseException) -> ClassifiedFailure:
    """Classify an exception raised by a guarded operation.

    Args:
        exc: The raised exception.

    Returns:
        ClassifiedFailure carrying the category and the original message.
    """
    message = _error_message(exc)
    if isinstance(exc, AppError) and exc.kind is not FailureKind.UNCLASSIFIED:
        return ClassifiedFailure(kind=exc.kind, message=message)
    return ClassifiedFailure(kind=classify_message(message), message=message)


def user_message(failure: ClassifiedFailure, operation_name: str = "operation") -> str:
    """Build the end-user text for a classified failure."""
    if failure.kind is FailureKind.NOT_AUTHENTICATED:
        return NOT_AUTHENTICATED_MESSAGE
    if failure.kind is FailureKind.RATE_LIMITED:
        return RATE_LIMITED_MESSAGE
    if failure.kind is FailureKind.UNAUTHORIZED:
        return UNAUTHORIZED_MESSAGE
    if failure.kind is FailureKind.VALIDATION_FAILED:
        return f"Invalid data: {failure.message}"
    return failure.message or f"Error in {operation_name}"
