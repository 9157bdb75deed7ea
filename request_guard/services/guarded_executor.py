"""Guarded operation executor.

Runs a caller-supplied operation behind three checks:

1. Authentication: the authenticator must resolve a subject.
2. Rate limiting: when a limiter is configured, the subject's budget for the
   operation must not be exhausted.
3. Failure classification: exceptions raised by the operation are mapped to a
   ``FailureKind`` and reported to the user through the notifier.

No failure is raised to the caller. ``execute`` returns the operation's result
or None; ``execute_with_outcome`` also tells the caller which kind of failure
happened.

The wrapped operation is awaited to completion; this layer neither cancels
it nor applies a timeout.
"""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Generic, TypeVar, Union

from request_guard.adapters.auth.base import AbstractAuthenticator, Subject
from request_guard.adapters.notify.base import AbstractNotifier, Severity
from request_guard.adapters.rate_limit.base import AbstractWindowLimiter
from request_guard.core.errors import FailureKind
from request_guard.core.logging import hash_identifier
from request_guard.services.failure_classifier import (
    NOT_AUTHENTICATED_MESSAGE,
    classify_failure,
    user_message,
)
from request_guard.services.rate_limit_gate import RateLimitGate

logger = logging.getLogger(__name__)

T = TypeVar("T")

Operation = Callable[[], Union[Awaitable[T], T]]


@dataclass(frozen=True)
class OperationOutcome(Generic[T]):
    """Typed result of a guarded execution.

    Attributes:
        value: Operation result on success, None otherwise.
        kind: Failure category, None on success.
        message: User-facing message that was sent to the notifier.
    """

    value: T | None = None
    kind: FailureKind | None = None
    message: str | None = None

    @property
    def ok(self) -> bool:
        return self.kind is None


class GuardedOperationExecutor:
    """Compose authentication, rate limiting and error reporting.

    Args:
        authenticator: Resolves the current subject.
        notifier: Receives user-facing messages.
        limiter: Optional window limiter; budgets are tracked per
            ``(subject, operation_name)``.
    """

    def __init__(
        self,
        authenticator: AbstractAuthenticator,
        notifier: AbstractNotifier,
        *,
        limiter: AbstractWindowLimiter | None = None,
    ) -> None:
        self._authenticator = authenticator
        self._notifier = notifier
        self._gate = RateLimitGate(limiter, notifier) if limiter is not None else None
        self._in_flight = False

    @property
    def in_flight(self) -> bool:
        """True while an execution is in progress (UI affordance, not a lock)."""
        return self._in_flight

    async def execute(self, operation: Operation[T], operation_name: str = "operation") -> T | None:
        """Run operation behind the guards and return its result or None."""
        outcome = await self.execute_with_outcome(operation, operation_name)
        return outcome.value

    async def execute_with_outcome(
        self,
        operation: Operation[T],
        operation_name: str = "operation",
    ) -> OperationOutcome[T]:
        """Run operation behind the guards and describe what happened."""
        self._in_flight = True
        try:
            subject = await self._resolve_subject(operation_name)
            if subject is None:
                self._notify(NOT_AUTHENTICATED_MESSAGE)
                return OperationOutcome(
                    kind=FailureKind.NOT_AUTHENTICATED,
                    message=NOT_AUTHENTICATED_MESSAGE,
                )

            if self._gate is not None:
                try:
                    rejection = self._gate.evaluate(subject.id, operation_name)
                except Exception as exc:
                    return self._report_failure(
                        exc, subject, operation_name, event="guarded_operation.limiter_error"
                    )
                if rejection is not None:
                    return OperationOutcome(kind=FailureKind.RATE_LIMITED, message=rejection)

            try:
                result = operation()
                if inspect.isawaitable(result):
                    result = await result
            except Exception as exc:
                return self._report_failure(exc, subject, operation_name)

            return OperationOutcome(value=result)
        finally:
            self._in_flight = False

    async def _resolve_subject(self, operation_name: str) -> Subject | None:
        try:
            verification = await self._authenticator.verify_authentication()
        except Exception as exc:
            logger.warning(
                "guarded_operation.auth_error",
                extra={"operation": operation_name, "error_type": type(exc).__name__},
            )
            return None

        if not verification.authenticated or not verification.subject.id:
            logger.info(
                "guarded_operation.not_authenticated",
                extra={"operation": operation_name, "reason": verification.error},
            )
            return None
        return verification.subject

    def _report_failure(
        self,
        exc: Exception,
        subject: Subject,
        operation_name: str,
        event: str = "guarded_operation.failed",
    ) -> OperationOutcome:
        failure = classify_failure(exc)
        message = user_message(failure, operation_name)
        logger.error(
            event,
            extra={
                "operation": operation_name,
                "subject_hash": hash_identifier(subject.id),
                "failure_kind": failure.kind.value,
                "error_type": type(exc).__name__,
                "error_msg": failure.message,
            },
        )
        self._notify(message)
        return OperationOutcome(kind=failure.kind, message=message)

    def _notify(self, message: str) -> None:
        try:
            self._notifier.notify(message, Severity.ERROR)
        except Exception as exc:
            logger.warning(
                "guarded_operation.notify_failed",
                extra={"error_type": type(exc).__name__},
            )
