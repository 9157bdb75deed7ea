"""Pydantic schemas for input validation results."""

from __future__ import annotations

from typing import Any, Dict, List

from pydantic import BaseModel, Field

from request_guard.core.errors import ValidationAppError


class ValidationResult(BaseModel):
    """Outcome of validating a user-supplied payload."""

    is_valid: bool = Field(..., description="True when no errors were found.")
    errors: List[str] = Field(
        default_factory=list,
        description="Human-readable problems, one per offending field.",
    )
    sanitized_data: Dict[str, Any] | None = Field(
        default=None,
        description="Whitelisted, cleaned payload; None when invalid.",
    )

    def raise_for_errors(self, code: str = "validation_failed") -> Dict[str, Any]:
        """Return the sanitized payload or raise ``ValidationAppError``."""
        if not self.is_valid or self.sanitized_data is None:
            raise ValidationAppError(
                code=code,
                message=f"Validation errors: {', '.join(self.errors)}",
                details={"errors": list(self.errors)},
            )
        return self.sanitized_data
