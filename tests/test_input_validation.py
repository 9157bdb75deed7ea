"""Tests for input sanitation and validation helpers."""

from decimal import Decimal

import pytest

from request_guard.core.errors import ValidationAppError
from request_guard.utils.input_validation import (
    detect_sql_injection,
    is_valid_uuid,
    sanitize_and_validate,
    validate_financial_data,
    validate_input,
)

USER_ID = "3f0c1c6e-8d1a-4b7e-9a55-0c1f2d3e4a5b"


class TestSanitize:
    def test_drops_unknown_fields_and_strips_markup(self) -> None:
        data = {"name": "  <b>Rent</b> ", "admin": True, "month": None}

        assert sanitize_and_validate(data, ["name", "month"]) == {"name": "bRent/b"}


class TestDetectors:
    @pytest.mark.parametrize(
        "value",
        ["1 UNION select password", "x -- comment", "O'Brien", "a; b", "/* hi */"],
    )
    def test_sql_injection_detected(self, value: str) -> None:
        assert detect_sql_injection(value) is True

    @pytest.mark.parametrize("value", ["Groceries", "2024-05", "Selection of goods"])
    def test_plain_text_passes(self, value: str) -> None:
        assert detect_sql_injection(value) is False

    def test_uuid(self) -> None:
        assert is_valid_uuid(USER_ID) is True
        assert is_valid_uuid(USER_ID.upper()) is True
        assert is_valid_uuid("3f0c1c6e-8d1a-0b7e-9a55-0c1f2d3e4a5b") is False
        assert is_valid_uuid("not-a-uuid") is False


class TestValidateInput:
    def test_valid_payload(self) -> None:
        result = validate_input(
            {"user_id": USER_ID, "month": "2024-05", "notes": "ok"},
            ["user_id", "month"],
            ["user_id", "month"],
        )

        assert result.is_valid is True
        assert result.sanitized_data == {"user_id": USER_ID, "month": "2024-05"}
        assert result.raise_for_errors() == result.sanitized_data

    def test_collects_all_errors(self) -> None:
        result = validate_input(
            {"user_id": "42", "month": "", "category": "food'; DROP"},
            ["user_id", "month", "category"],
            ["user_id", "month"],
        )

        assert result.is_valid is False
        assert result.sanitized_data is None
        assert result.errors == [
            "Required field: month",
            "Invalid input detected in field: category",
            "Invalid ID in field: user_id",
        ]

    def test_raise_for_errors(self) -> None:
        result = validate_input({}, ["month"], ["month"])

        with pytest.raises(ValidationAppError) as exc_info:
            result.raise_for_errors()

        assert exc_info.value.message == "Validation errors: Required field: month"
        assert exc_info.value.details == {"errors": ["Required field: month"]}


class TestValidateFinancialData:
    def test_converts_amount_fields(self) -> None:
        result = validate_financial_data(
            {"income": "2500.50", "fixed_expenses": 900, "savings_goal": "", "month": "2024-05"}
        )

        assert result.is_valid is True
        assert result.sanitized_data == {
            "income": Decimal("2500.50"),
            "fixed_expenses": Decimal("900"),
            "savings_goal": Decimal("0"),
            "month": "2024-05",
        }

    @pytest.mark.parametrize(
        ("data", "error"),
        [
            ({"amount": "abc"}, "Invalid numeric value in amount"),
            ({"amount": True}, "Invalid numeric value in amount"),
            ({"amount": "NaN"}, "Invalid numeric value in amount"),
            ({"target_amount": -1}, "target_amount cannot be negative"),
            ({"balance": 1_000_000_000}, "balance exceeds the maximum allowed"),
        ],
    )
    def test_rejects_bad_amounts(self, data: dict, error: str) -> None:
        result = validate_financial_data(data)

        assert result.is_valid is False
        assert result.errors == [error]
