"""Input sanitation and validation for guarded write operations.

These helpers run before a payload reaches the backend: they whitelist
fields, strip markup characters, reject obvious SQL injection attempts and
malformed identifiers, and check financial amounts.
"""

from __future__ import annotations

import logging
import re
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Mapping

from request_guard.schemas.validation import ValidationResult

logger = logging.getLogger(__name__)

SQL_INJECTION_PATTERNS = (
    re.compile(r"\b(SELECT|INSERT|UPDATE|DELETE|DROP|UNION|ALTER)\b", re.IGNORECASE),
    re.compile(r"(--|#|/\*|\*/)"),
    re.compile(r"('|\"|;|\||&)"),
)

_UUID_RE = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[1-5][0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$",
    re.IGNORECASE,
)

NUMERIC_FIELDS = ("amount", "income", "expenses", "savings", "target", "balance")
MAX_AMOUNT = Decimal("999999999")


def sanitize_and_validate(data: Mapping[str, Any], allowed_fields: Iterable[str]) -> dict[str, Any]:
    """Keep only allowed fields; trim strings and drop ``<`` and ``>``.

    Fields that are absent (or None) in data are omitted from the result.
    """
    sanitized: dict[str, Any] = {}
    for field in allowed_fields:
        value = data.get(field)
        if value is None:
            continue
        if isinstance(value, str):
            value = value.strip().replace("<", "").replace(">", "")
        sanitized[field] = value
    return sanitized


def detect_sql_injection(value: str) -> bool:
    """Return True when value looks like an SQL injection attempt.

    Deliberately coarse: quotes, semicolons and pipes are rejected too.
    """
    return any(pattern.search(value) for pattern in SQL_INJECTION_PATTERNS)


def is_valid_uuid(value: str) -> bool:
    """Check for an RFC 4122 (versions 1-5) UUID string."""
    return bool(_UUID_RE.match(value))


def validate_input(
    data: Mapping[str, Any],
    allowed_fields: Iterable[str],
    required_fields: Iterable[str] = (),
) -> ValidationResult:
    """Validate a user payload.

    Args:
        data: Raw payload.
        allowed_fields: Whitelist of accepted fields.
        required_fields: Fields that must be present and non-empty.

    Returns:
        ValidationResult with the sanitized payload when valid.
    """
    errors: list[str] = []

    for field in required_fields:
        value = data.get(field)
        if value is None or value == "":
            errors.append(f"Required field: {field}")

    sanitized = sanitize_and_validate(data, allowed_fields)

    for key, value in sanitized.items():
        if isinstance(value, str) and detect_sql_injection(value):
            errors.append(f"Invalid input detected in field: {key}")

    for key, value in sanitized.items():
        if "id" in key and isinstance(value, str) and value and not is_valid_uuid(value):
            errors.append(f"Invalid ID in field: {key}")

    if errors:
        logger.info(
            "input_validation.rejected",
            extra={"error_count": len(errors), "fields": sorted(sanitized)},
        )

    return ValidationResult(
        is_valid=not errors,
        errors=errors,
        sanitized_data=None if errors else sanitized,
    )


def _to_decimal(value: Any) -> Decimal | None:
    if isinstance(value, bool):
        return None
    if value is None or value == "":
        return Decimal(0)
    try:
        number = Decimal(str(value).strip())
    except InvalidOperation:
        return None
    return number if number.is_finite() else None


def validate_financial_data(data: Mapping[str, Any]) -> ValidationResult:
    """Check monetary fields are non-negative numbers within bounds.

    A field counts as monetary when its name contains one of
    ``NUMERIC_FIELDS`` (e.g. ``fixed_expenses``, ``savings_goal``). Empty or
    missing amounts are treated as zero. Other fields pass through unchanged.
    """
    errors: list[str] = []
    sanitized: dict[str, Any] = {}

    for key, value in data.items():
        if not any(field in key for field in NUMERIC_FIELDS):
            sanitized[key] = value
            continue

        number = _to_decimal(value)
        if number is None:
            errors.append(f"Invalid numeric value in {key}")
        elif number < 0:
            errors.append(f"{key} cannot be negative")
        elif number > MAX_AMOUNT:
            errors.append(f"{key} exceeds the maximum allowed")
        else:
            sanitized[key] = number

    return ValidationResult(
        is_valid=not errors,
        errors=errors,
        sanitized_data=None if errors else sanitized,
    )
