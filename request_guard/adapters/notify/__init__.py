"""User-facing notification collaborators."""

from request_guard.adapters.notify.base import AbstractNotifier, Severity
from request_guard.adapters.notify.logging_notifier import LoggingNotifier

__all__ = ["AbstractNotifier", "LoggingNotifier", "Severity"]
