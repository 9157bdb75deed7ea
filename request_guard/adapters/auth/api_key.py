"""Authenticator that resolves the subject from an API key."""

from __future__ import annotations

from request_guard.adapters.auth.base import AbstractAuthenticator, AuthVerification
from request_guard.core.auth import validate_api_key
from request_guard.core.errors import AuthenticationAppError


class ApiKeyAuthenticator(AbstractAuthenticator):
    """Verify a caller-held API key against the configured keys.

    Args:
        api_key: Key presented by the current caller (None when absent).
    """

    def __init__(self, api_key: str | None) -> None:
        self._api_key = api_key

    async def verify_authentication(self) -> AuthVerification:
        try:
            subject = validate_api_key(self._api_key or "")
        except AuthenticationAppError as exc:
            return AuthVerification(subject=None, error=exc.message)
        return AuthVerification(subject=subject)
