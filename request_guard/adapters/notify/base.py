"""Notifier interface.

The governance layer reports rejections and classified failures to the end
user through a notifier and never depends on its return value.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum


class Severity(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class AbstractNotifier(ABC):
    """Fire-and-forget channel to the end user."""

    @abstractmethod
    def notify(self, message: str, severity: Severity = Severity.ERROR) -> None:
        """Surface message to the user."""
        raise NotImplementedError
