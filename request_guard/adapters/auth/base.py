"""Authenticator interface.

Session management is outside this package; an authenticator only answers
"who is the current subject?".
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class Subject:
    """Authenticated end user on whose behalf an operation runs."""

    id: str
    anonymous: bool = False


@dataclass(frozen=True)
class AuthVerification:
    """Outcome of resolving the current subject.

    Either ``subject`` is set and ``error`` is None, or ``subject`` is None
    and ``error`` explains why.
    """

    subject: Subject | None
    error: str | None = None

    @property
    def authenticated(self) -> bool:
        return self.error is None and self.subject is not None


class AbstractAuthenticator(ABC):
    """Interface for identity collaborators."""

    @abstractmethod
    async def verify_authentication(self) -> AuthVerification:
        """Resolve the current subject.

        Returns:
            AuthVerification; implementations report failures through
            ``error`` rather than raising.
        """
        raise NotImplementedError
