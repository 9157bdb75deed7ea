"""Tests for RateLimitGate."""

from unittest.mock import Mock

from conftest import RecordingNotifier
from request_guard.adapters.rate_limit.in_memory import InMemoryWindowLimiter
from request_guard.services.rate_limit_gate import RateLimitGate


def test_flag_and_message_follow_last_check(clock: Mock, notifier: RecordingNotifier) -> None:
    limiter = InMemoryWindowLimiter(max_requests=1, window_seconds=30, clock=clock)
    gate = RateLimitGate(limiter, notifier, operation_name="transfer")

    assert gate.check("user-1") is False
    assert gate.is_rate_limited is False

    clock.return_value = 1012.4
    assert gate.check("user-1") is True
    assert gate.is_rate_limited is True
    assert notifier.texts == ["You have exceeded the transfer limit. Try again in 18 seconds."]

    clock.return_value = 1031.0
    assert gate.check("user-1") is False
    assert gate.is_rate_limited is False


def test_operation_name_override_uses_separate_budget(
    clock: Mock, notifier: RecordingNotifier
) -> None:
    limiter = InMemoryWindowLimiter(max_requests=1, window_seconds=30, clock=clock)
    gate = RateLimitGate(limiter, notifier)

    assert gate.evaluate("user-1", "create_goal") is None
    assert gate.evaluate("user-1", "delete_goal") is None
    assert gate.evaluate("user-1", "create_goal") is not None
    assert gate.limiter is limiter
