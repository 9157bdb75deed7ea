"""API key authentication logic.

Keys are validated against a comma-separated list from environment variables.
A valid key resolves to a ``Subject`` whose id is a digest of the key, so rate
limit accounting can be keyed per subject without storing the key itself.

Design principles:
- Pure validation logic (``validate_api_key``) separate from the FastAPI
  dependency (``verify_api_key``) for easy testing
- Configuration-driven: keys managed via env vars, not hardcoded
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import Header, HTTPException, status

from request_guard.adapters.auth.base import Subject
from request_guard.core.config import settings
from request_guard.core.errors import AuthenticationAppError
from request_guard.core.logging import hash_identifier

logger = logging.getLogger(__name__)

ANONYMOUS_SUBJECT = Subject(id="anonymous", anonymous=True)


def parse_api_keys(keys_string: str | None) -> set[str]:
    """Parse comma-separated API keys into a set.

    Examples:
        >>> parse_api_keys("key1, key2 , key3 ")
        {'key1', 'key2', 'key3'}
        >>> parse_api_keys(None)
        set()
    """
    if not keys_string:
        return set()

    return {key.strip() for key in keys_string.split(",") if key.strip()}


def subject_for_api_key(api_key: str) -> Subject:
    """Derive the stable subject for a (valid) API key."""
    return Subject(id=f"key_{hash_identifier(api_key)}")


def validate_api_key(provided_key: str) -> Subject:
    """Validate the provided API key and resolve its subject.

    Args:
        provided_key: API key to validate.

    Returns:
        The resolved subject; ``ANONYMOUS_SUBJECT`` when authentication is
        disabled.

    Raises:
        AuthenticationAppError: If the key is invalid or authentication is
            required but no keys are configured.
    """
    if not settings.app.api_key_required:
        return ANONYMOUS_SUBJECT

    valid_keys = parse_api_keys(settings.app.api_keys)

    if not valid_keys:
        logger.error(
            "api_key_validation_failed",
            extra={
                "reason": "api_keys_not_configured",
                "auth_required": settings.app.api_key_required,
            },
        )
        raise AuthenticationAppError(
            code="api_keys_not_configured",
            message="API key authentication is enabled but no valid keys are configured",
            details={"hint": "Set APP_API_KEYS or disable auth with APP_API_KEY_REQUIRED=false"},
        )

    if provided_key not in valid_keys:
        logger.warning(
            "api_key_validation_failed",
            extra={
                "reason": "invalid_api_key",
                "api_key_hash": hash_identifier(provided_key),
                "auth_required": settings.app.api_key_required,
            },
        )
        raise AuthenticationAppError(
            code="invalid_api_key",
            message="Invalid or missing API key",
        )

    return subject_for_api_key(provided_key)


async def verify_api_key(
    x_api_key: Annotated[str | None, Header(alias="X-API-Key")] = None,
) -> Subject:
    """FastAPI dependency resolving the calling subject from X-API-Key.

    Usage:
        @router.get("/protected")
        async def protected(subject: Subject = Depends(verify_api_key)): ...

    Raises:
        HTTPException: 401 when the header is missing or the key is invalid.
    """
    if not settings.app.api_key_required:
        logger.debug("auth.skipped", extra={"reason": "auth_required_false"})
        return ANONYMOUS_SUBJECT

    if not x_api_key:
        logger.warning(
            "auth.missing_key",
            extra={"auth_required": True, "api_key_present": False},
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing API key. Provide X-API-Key header.",
        )

    try:
        subject = validate_api_key(x_api_key)
    except AuthenticationAppError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=exc.message,
        ) from exc

    logger.info(
        "auth.success",
        extra={"api_key_present": True, "api_key_hash": hash_identifier(x_api_key)},
    )
    return subject
