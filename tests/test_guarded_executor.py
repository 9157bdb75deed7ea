"""Unit tests for GuardedOperationExecutor."""

from unittest.mock import AsyncMock, Mock

import pytest

from conftest import RecordingNotifier, StaticAuthenticator
from request_guard.adapters.auth.base import AuthVerification, Subject
from request_guard.adapters.notify.base import Severity
from request_guard.adapters.rate_limit.durable import DurableWindowLimiter
from request_guard.adapters.rate_limit.in_memory import InMemoryWindowLimiter
from request_guard.adapters.storage.in_memory import InMemoryKeyValueStore
from request_guard.core.errors import (
    AuthorizationAppError,
    FailureKind,
    RateLimitAppError,
    ValidationAppError,
)
from request_guard.services.failure_classifier import (
    NOT_AUTHENTICATED_MESSAGE,
    RATE_LIMITED_MESSAGE,
    UNAUTHORIZED_MESSAGE,
)
from request_guard.services.guarded_executor import GuardedOperationExecutor


class TestAuthentication:
    """The operation never runs without a subject."""

    @pytest.mark.asyncio
    async def test_no_subject_returns_none_and_notifies(self, notifier: RecordingNotifier) -> None:
        authenticator = StaticAuthenticator(AuthVerification(subject=None, error=None))
        executor = GuardedOperationExecutor(authenticator, notifier)
        operation = AsyncMock(return_value="saved")

        result = await executor.execute(operation, "create_goal")

        assert result is None
        operation.assert_not_called()
        assert notifier.messages == [(NOT_AUTHENTICATED_MESSAGE, Severity.ERROR)]

    @pytest.mark.asyncio
    async def test_auth_error_with_subject_is_not_authenticated(
        self, notifier: RecordingNotifier, subject: Subject
    ) -> None:
        authenticator = StaticAuthenticator(AuthVerification(subject=subject, error="expired"))
        executor = GuardedOperationExecutor(authenticator, notifier)
        operation = AsyncMock()

        outcome = await executor.execute_with_outcome(operation, "update_budget")

        assert outcome.kind is FailureKind.NOT_AUTHENTICATED
        operation.assert_not_called()

    @pytest.mark.asyncio
    async def test_authenticator_exception_is_not_authenticated(
        self, notifier: RecordingNotifier
    ) -> None:
        authenticator = Mock()
        authenticator.verify_authentication = AsyncMock(side_effect=ConnectionError("down"))
        executor = GuardedOperationExecutor(authenticator, notifier)

        assert await executor.execute(AsyncMock(), "list_transactions") is None
        assert notifier.texts == [NOT_AUTHENTICATED_MESSAGE]


class TestExecution:
    @pytest.mark.asyncio
    async def test_success_returns_result_unchanged(
        self, authenticator: StaticAuthenticator, notifier: RecordingNotifier
    ) -> None:
        payload = {"id": 7, "amount": "12.50"}
        executor = GuardedOperationExecutor(authenticator, notifier)

        result = await executor.execute(AsyncMock(return_value=payload), "create_transaction")

        assert result is payload
        assert notifier.messages == []

    @pytest.mark.asyncio
    async def test_sync_operation_is_supported(
        self, authenticator: StaticAuthenticator, notifier: RecordingNotifier
    ) -> None:
        executor = GuardedOperationExecutor(authenticator, notifier)

        assert await executor.execute(lambda: 42) == 42

    @pytest.mark.asyncio
    async def test_in_flight_is_set_during_operation_and_cleared_after(
        self, authenticator: StaticAuthenticator, notifier: RecordingNotifier
    ) -> None:
        executor = GuardedOperationExecutor(authenticator, notifier)
        seen: list[bool] = []

        async def operation() -> None:
            seen.append(executor.in_flight)
            raise RuntimeError("boom")

        await executor.execute(operation)

        assert seen == [True]
        assert executor.in_flight is False

    @pytest.mark.asyncio
    async def test_in_flight_cleared_when_not_authenticated(self, notifier: RecordingNotifier) -> None:
        executor = GuardedOperationExecutor(
            StaticAuthenticator(AuthVerification(subject=None, error="no session")), notifier
        )

        await executor.execute(AsyncMock())

        assert executor.in_flight is False


class TestFailureClassification:
    @pytest.mark.asyncio
    async def test_rate_limit_wording_uses_rate_limited_message(
        self, authenticator: StaticAuthenticator, notifier: RecordingNotifier
    ) -> None:
        executor = GuardedOperationExecutor(authenticator, notifier)
        operation = AsyncMock(side_effect=RuntimeError("backend rate limit reached"))

        outcome = await executor.execute_with_outcome(operation, "create_goal")

        assert outcome.value is None
        assert outcome.kind is FailureKind.RATE_LIMITED
        assert notifier.texts == [RATE_LIMITED_MESSAGE]

    @pytest.mark.asyncio
    async def test_permission_wording(
        self, authenticator: StaticAuthenticator, notifier: RecordingNotifier
    ) -> None:
        executor = GuardedOperationExecutor(authenticator, notifier)

        result = await executor.execute(AsyncMock(side_effect=RuntimeError("unauthorized access")))

        assert result is None
        assert notifier.texts == [UNAUTHORIZED_MESSAGE]

    @pytest.mark.asyncio
    async def test_validation_wording_includes_original_message(
        self, authenticator: StaticAuthenticator, notifier: RecordingNotifier
    ) -> None:
        executor = GuardedOperationExecutor(authenticator, notifier)
        error = ValueError("Validation errors: Required field: month")

        await executor.execute(AsyncMock(side_effect=error), "create_budget")

        assert notifier.texts == ["Invalid data: Validation errors: Required field: month"]

    @pytest.mark.asyncio
    async def test_unmatched_failure_passes_message_through(
        self, authenticator: StaticAuthenticator, notifier: RecordingNotifier
    ) -> None:
        executor = GuardedOperationExecutor(authenticator, notifier)

        outcome = await executor.execute_with_outcome(
            AsyncMock(side_effect=RuntimeError("connection reset by peer")), "delete_debt"
        )

        assert outcome.kind is FailureKind.UNCLASSIFIED
        assert notifier.texts == ["connection reset by peer"]

    @pytest.mark.asyncio
    async def test_empty_message_falls_back_to_operation_name(
        self, authenticator: StaticAuthenticator, notifier: RecordingNotifier
    ) -> None:
        executor = GuardedOperationExecutor(authenticator, notifier)

        await executor.execute(AsyncMock(side_effect=RuntimeError()), "delete_debt")

        assert notifier.texts == ["Error in delete_debt"]

    @pytest.mark.parametrize(
        ("error", "kind"),
        [
            (RateLimitAppError(code="rl", message="slow down"), FailureKind.RATE_LIMITED),
            (AuthorizationAppError(code="owner", message="not yours"), FailureKind.UNAUTHORIZED),
            (ValidationAppError(code="bad", message="month missing"), FailureKind.VALIDATION_FAILED),
        ],
    )
    @pytest.mark.asyncio
    async def test_structured_errors_do_not_depend_on_wording(
        self,
        authenticator: StaticAuthenticator,
        notifier: RecordingNotifier,
        error: Exception,
        kind: FailureKind,
    ) -> None:
        executor = GuardedOperationExecutor(authenticator, notifier)

        outcome = await executor.execute_with_outcome(AsyncMock(side_effect=error))

        assert outcome.kind is kind
        assert len(notifier.messages) == 1


class TestRateLimiting:
    @pytest.mark.asyncio
    async def test_limiter_rejection_skips_operation(
        self, authenticator: StaticAuthenticator, notifier: RecordingNotifier, clock: Mock
    ) -> None:
        limiter = InMemoryWindowLimiter(max_requests=2, window_seconds=60, clock=clock)
        executor = GuardedOperationExecutor(authenticator, notifier, limiter=limiter)
        operation = AsyncMock(return_value="ok")

        results = [await executor.execute(operation, "create_goal") for _ in range(3)]

        assert results == ["ok", "ok", None]
        assert operation.await_count == 2
        assert notifier.texts == [
            "You have exceeded the create_goal limit. Try again in 60 seconds."
        ]

    @pytest.mark.asyncio
    async def test_budgets_are_per_operation(
        self, authenticator: StaticAuthenticator, notifier: RecordingNotifier, clock: Mock
    ) -> None:
        limiter = InMemoryWindowLimiter(max_requests=1, window_seconds=60, clock=clock)
        executor = GuardedOperationExecutor(authenticator, notifier, limiter=limiter)

        assert await executor.execute(AsyncMock(return_value=1), "create_goal") == 1
        assert await executor.execute(AsyncMock(return_value=2), "update_goal") == 2

        outcome = await executor.execute_with_outcome(AsyncMock(), "create_goal")
        assert outcome.kind is FailureKind.RATE_LIMITED
        assert outcome.message == notifier.texts[-1]

    @pytest.mark.asyncio
    async def test_unauthenticated_calls_do_not_consume_budget(
        self, notifier: RecordingNotifier, clock: Mock
    ) -> None:
        limiter = InMemoryWindowLimiter(max_requests=1, window_seconds=60, clock=clock)
        executor = GuardedOperationExecutor(
            StaticAuthenticator(AuthVerification(subject=None, error="no session")),
            notifier,
            limiter=limiter,
        )

        await executor.execute(AsyncMock(), "create_goal")

        assert len(limiter) == 0

    @pytest.mark.asyncio
    async def test_store_write_failure_is_reported_not_raised(
        self, authenticator: StaticAuthenticator, notifier: RecordingNotifier, clock: Mock
    ) -> None:
        store = InMemoryKeyValueStore()
        store.set_item = Mock(side_effect=OSError("disk full"))
        limiter = DurableWindowLimiter(store, max_requests=5, window_seconds=60, clock=clock)
        executor = GuardedOperationExecutor(authenticator, notifier, limiter=limiter)
        operation = AsyncMock(return_value="ok")

        outcome = await executor.execute_with_outcome(operation, "goals")

        assert outcome.value is None
        assert outcome.kind is FailureKind.UNCLASSIFIED
        assert notifier.texts == ["disk full"]
        operation.assert_not_called()
        assert executor.in_flight is False

    @pytest.mark.asyncio
    async def test_empty_subject_id_is_not_authenticated(
        self, notifier: RecordingNotifier, clock: Mock
    ) -> None:
        limiter = InMemoryWindowLimiter(max_requests=1, window_seconds=60, clock=clock)
        executor = GuardedOperationExecutor(
            StaticAuthenticator(AuthVerification(subject=Subject(id=""))),
            notifier,
            limiter=limiter,
        )
        operation = AsyncMock()

        outcome = await executor.execute_with_outcome(operation, "goals")

        assert outcome.kind is FailureKind.NOT_AUTHENTICATED
        assert notifier.texts == [NOT_AUTHENTICATED_MESSAGE]
        operation.assert_not_called()
        assert len(limiter) == 0


class FailingNotifier(RecordingNotifier):
    def notify(self, message: str, severity: Severity = Severity.ERROR) -> None:
        raise RuntimeError("toast queue closed")


class TestNotifierFailures:
    @pytest.mark.asyncio
    async def test_operation_failure_survives_broken_notifier(
        self, authenticator: StaticAuthenticator
    ) -> None:
        executor = GuardedOperationExecutor(authenticator, FailingNotifier())

        outcome = await executor.execute_with_outcome(
            AsyncMock(side_effect=RuntimeError("too many requests")), "create_goal"
        )

        assert outcome.kind is FailureKind.RATE_LIMITED
        assert outcome.message == RATE_LIMITED_MESSAGE

    @pytest.mark.asyncio
    async def test_rejection_survives_broken_notifier(
        self, authenticator: StaticAuthenticator, clock: Mock
    ) -> None:
        limiter = InMemoryWindowLimiter(max_requests=1, window_seconds=60, clock=clock)
        executor = GuardedOperationExecutor(authenticator, FailingNotifier(), limiter=limiter)

        await executor.execute(AsyncMock(return_value=1), "create_goal")
        outcome = await executor.execute_with_outcome(AsyncMock(), "create_goal")

        assert outcome.kind is FailureKind.RATE_LIMITED

    @pytest.mark.asyncio
    async def test_not_authenticated_survives_broken_notifier(self) -> None:
        executor = GuardedOperationExecutor(
            StaticAuthenticator(AuthVerification(subject=None, error="no session")),
            FailingNotifier(),
        )

        assert await executor.execute(AsyncMock()) is None
