"""Operation authorization for finance resources.

``OperationAuthorizer`` combines the window limiter with a resource ownership
check for mutating operations. Ownership lookups go through an injected
``AbstractOwnershipChecker`` (typically backed by the data service), so this
module never talks to storage itself.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass

from request_guard.adapters.rate_limit.base import AbstractWindowLimiter
from request_guard.adapters.rate_limit.registry import LimiterKey
from request_guard.core.errors import (
    AuthorizationAppError,
    FailureKind,
    RateLimitAppError,
)
from request_guard.core.logging import hash_identifier
from request_guard.utils.input_validation import is_valid_uuid

logger = logging.getLogger(__name__)

RESOURCE_TYPES = frozenset({"budgets", "transactions", "goals", "categories", "debts"})
OWNERSHIP_CHECKED_OPERATIONS = frozenset({"update", "delete"})

RATE_LIMITED_ERROR = "Too many requests. Try again later."
NOT_OWNER_ERROR = "You do not have permission for this operation."


class AbstractOwnershipChecker(ABC):
    """Answers whether a subject owns a stored resource."""

    @abstractmethod
    async def owns(self, resource_type: str, resource_id: str, subject_id: str) -> bool:
        raise NotImplementedError


@dataclass(frozen=True)
class AuthorizationDecision:
    authorized: bool
    error: str | None = None
    kind: FailureKind | None = None


class OperationAuthorizer:
    """Decide whether a subject may perform an operation right now.

    Args:
        limiter: Budget shared by all operations routed through this
            authorizer, tracked per ``(subject, operation)``.
        ownership_checker: Resolves resource ownership; without one, every
            ownership check fails closed.
    """

    def __init__(
        self,
        limiter: AbstractWindowLimiter,
        ownership_checker: AbstractOwnershipChecker | None = None,
    ) -> None:
        self._limiter = limiter
        self._ownership_checker = ownership_checker

    async def verify_resource_ownership(
        self,
        resource_type: str,
        resource_id: str,
        subject_id: str,
    ) -> bool:
        """Return True only when the subject provably owns the resource."""
        if resource_type not in RESOURCE_TYPES:
            return False
        if not is_valid_uuid(resource_id) or not is_valid_uuid(subject_id):
            return False
        if self._ownership_checker is None:
            return False

        try:
            return await self._ownership_checker.owns(resource_type, resource_id, subject_id)
        except Exception as exc:
            logger.error(
                "authorization.ownership_lookup_failed",
                extra={
                    "resource_type": resource_type,
                    "subject_hash": hash_identifier(subject_id),
                    "error_type": type(exc).__name__,
                },
            )
            return False

    async def authorize(
        self,
        operation: str,
        subject_id: str,
        resource_id: str | None = None,
        resource_type: str | None = None,
    ) -> AuthorizationDecision:
        """Rate limit the subject, then check ownership for update/delete.

        Args:
            operation: Operation name, e.g. ``create``, ``read``, ``update``.
            subject_id: Authenticated subject.
            resource_id: Target resource for mutating operations.
            resource_type: Table/collection of the resource.
        """
        if self._limiter.check(LimiterKey(subject_id, operation)):
            return AuthorizationDecision(
                authorized=False,
                error=RATE_LIMITED_ERROR,
                kind=FailureKind.RATE_LIMITED,
            )

        if resource_id and resource_type and operation in OWNERSHIP_CHECKED_OPERATIONS:
            if not await self.verify_resource_ownership(resource_type, resource_id, subject_id):
                logger.warning(
                    "authorization.not_owner",
                    extra={
                        "operation": operation,
                        "resource_type": resource_type,
                        "subject_hash": hash_identifier(subject_id),
                    },
                )
                return AuthorizationDecision(
                    authorized=False,
                    error=NOT_OWNER_ERROR,
                    kind=FailureKind.UNAUTHORIZED,
                )

        return AuthorizationDecision(authorized=True)

    async def require(
        self,
        operation: str,
        subject_id: str,
        resource_id: str | None = None,
        resource_type: str | None = None,
    ) -> None:
        """Like ``authorize`` but raises a typed ``AppError`` when denied.

        Intended for use inside a guarded operation, so the executor can
        classify the denial structurally.
        """
        decision = await self.authorize(operation, subject_id, resource_id, resource_type)
        if decision.authorized:
            return
        if decision.kind is FailureKind.RATE_LIMITED:
            raise RateLimitAppError(
                code="rate_limited",
                message=decision.error or RATE_LIMITED_ERROR,
                details={"operation": operation},
            )
        raise AuthorizationAppError(
            code="not_resource_owner",
            message=decision.error or NOT_OWNER_ERROR,
            details={"operation": operation, "resource_type": resource_type or ""},
        )
