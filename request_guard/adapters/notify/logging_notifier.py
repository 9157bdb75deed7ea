"""Notifier that writes user-facing messages to the log."""

from __future__ import annotations

import logging

from request_guard.adapters.notify.base import AbstractNotifier, Severity

_LEVELS = {
    Severity.INFO: logging.INFO,
    Severity.SUCCESS: logging.INFO,
    Severity.WARNING: logging.WARNING,
    Severity.ERROR: logging.ERROR,
}


class LoggingNotifier(AbstractNotifier):
    """Emit each notification as a ``user_notification`` log event.

    Useful for headless callers (jobs, CLIs) where there is no UI toast.
    """

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or logging.getLogger("request_guard.notifications")

    def notify(self, message: str, severity: Severity = Severity.ERROR) -> None:
        self._logger.log(
            _LEVELS.get(severity, logging.INFO),
            "user_notification",
            extra={"user_message": message, "severity": severity.value},
        )
