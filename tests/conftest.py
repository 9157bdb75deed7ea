"""Pytest configuration and fixtures shared across all test modules.

Environment variables are set before anything imports
``request_guard.core.config`` so the global settings object is built from
test values rather than a developer's .env file.
"""

import os

# CRITICAL: Set this before any imports that might load settings
os.environ["TESTING"] = "true"
os.environ.setdefault("APP_API_KEY_REQUIRED", "true")
os.environ.setdefault("APP_API_KEYS", "test-api-key-123,test-api-key-456")
os.environ.setdefault("LIMITER_DURABLE", "false")
os.environ.setdefault("LOG_FORMAT", "plain")

from unittest.mock import Mock

import pytest

from request_guard.adapters.auth.base import AbstractAuthenticator, AuthVerification, Subject
from request_guard.adapters.notify.base import AbstractNotifier, Severity


class RecordingNotifier(AbstractNotifier):
    """Notifier that keeps every message for assertions."""

    def __init__(self) -> None:
        self.messages: list[tuple[str, Severity]] = []

    def notify(self, message: str, severity: Severity = Severity.ERROR) -> None:
        self.messages.append((message, severity))

    @property
    def texts(self) -> list[str]:
        return [message for message, _ in self.messages]


class StaticAuthenticator(AbstractAuthenticator):
    """Authenticator returning a fixed verification."""

    def __init__(self, verification: AuthVerification) -> None:
        self.verification = verification
        self.calls = 0

    async def verify_authentication(self) -> AuthVerification:
        self.calls += 1
        return self.verification


@pytest.fixture
def clock() -> Mock:
    return Mock(return_value=1000.0)


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def subject() -> Subject:
    return Subject(id="3f0c1c6e-8d1a-4b7e-9a55-0c1f2d3e4a5b")


@pytest.fixture
def authenticator(subject: Subject) -> StaticAuthenticator:
    return StaticAuthenticator(AuthVerification(subject=subject))
