"""Per-operation rate limit gate with user notification.

Wraps a window limiter for one named operation: each check counts against
the ``(subject, operation)`` budget and, on rejection, tells the user how long
to wait.
"""

from __future__ import annotations

import logging

from request_guard.adapters.notify.base import AbstractNotifier, Severity
from request_guard.adapters.rate_limit.base import AbstractWindowLimiter
from request_guard.adapters.rate_limit.registry import LimiterKey
from request_guard.core.logging import hash_identifier

logger = logging.getLogger(__name__)


class RateLimitGate:
    """Consult a limiter before an operation and report rejections.

    Attributes:
        is_rate_limited: Result of the most recent check; meant for UI state
            such as disabling a submit button.
    """

    def __init__(
        self,
        limiter: AbstractWindowLimiter,
        notifier: AbstractNotifier,
        operation_name: str = "operation",
    ) -> None:
        self._limiter = limiter
        self._notifier = notifier
        self._operation_name = operation_name
        self.is_rate_limited = False

    @property
    def limiter(self) -> AbstractWindowLimiter:
        return self._limiter

    def evaluate(self, subject_id: str, operation_name: str | None = None) -> str | None:
        """Count one request and return the rejection message, if any.

        Returns:
            None when the request is accepted, otherwise the message that was
            sent to the notifier.
        """
        name = operation_name or self._operation_name
        result = self._limiter.consume(LimiterKey(subject_id, name))

        if result.allowed:
            self.is_rate_limited = False
            return None

        self.is_rate_limited = True
        wait_seconds = result.retry_after_seconds or 0
        logger.warning(
            "rate_limit.exceeded",
            extra={
                "subject_hash": hash_identifier(subject_id),
                "operation": name,
                "limit": result.limit,
                "retry_after_s": wait_seconds,
            },
        )
        message = f"You have exceeded the {name} limit. Try again in {wait_seconds} seconds."
        try:
            self._notifier.notify(message, Severity.ERROR)
        except Exception as exc:
            logger.warning("rate_limit.notify_failed", extra={"error_type": type(exc).__name__})
        return message

    def check(self, subject_id: str, operation_name: str | None = None) -> bool:
        """Return True when the subject is over the limit for the operation."""
        return self.evaluate(subject_id, operation_name) is not None
