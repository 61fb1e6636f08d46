"""
Validators and sanitizers shared by the production domain.

All validators raise the domain ValidationError so the calling layer gets
the offending field, value and an error code.
"""

import math
import re
from datetime import date
from decimal import Decimal
from typing import Any

from .exceptions import ValidationError


class DataSanitizer:
    """Utilities for cleaning and sanitizing input data."""

    @staticmethod
    def sanitize_string(
        value: str, max_length: int | None = None, strip: bool = True, allow_empty: bool = True
    ) -> str:
        """
        Sanitize string input.

        Args:
            value: Input string
            max_length: Maximum allowed length
            strip: Whether to strip whitespace
            allow_empty: Whether to allow empty strings

        Returns:
            Sanitized string

        Raises:
            ValidationError: If validation fails
        """
        if not isinstance(value, str):
            raise ValidationError("input", value, "Input must be a string", "INVALID_TYPE")

        if strip:
            value = value.strip()

        if not allow_empty and not value:
            raise ValidationError("input", value, "Value cannot be empty", "EMPTY_VALUE")

        if max_length and len(value) > max_length:
            raise ValidationError(
                "input",
                value,
                f"Value exceeds maximum length of {max_length}",
                "TOO_LONG",
            )

        # Remove null bytes and control characters
        return re.sub(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f-\x84\x86-\x9f]", "", value)

    @staticmethod
    def sanitize_notes(value: str | None, max_length: int = 1000) -> str | None:
        """Trim free-text notes; blank notes become None."""
        if value is None:
            return None
        value = DataSanitizer.sanitize_string(value, max_length=max_length)
        return value or None

    @staticmethod
    def sanitize_label(field_name: str, value: Any) -> str:
        """Normalize a color or size label."""
        label = str(value if value is not None else "").strip()
        if not label:
            raise ValidationError(field_name, value, f"{field_name} is required", "REQUIRED_FIELD")
        return label


class BusinessRuleValidators:
    """Collection of business rule validation functions."""

    @staticmethod
    def validate_integer(field_name: str, value: Any) -> int:
        """Validate that value is an integer (booleans are rejected)."""
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValidationError(
                field_name, value, "Value must be an integer", "INVALID_INTEGER"
            )
        return value

    @staticmethod
    def validate_non_negative_int(field_name: str, value: Any) -> int:
        """Validate a quantity that may be zero."""
        value = BusinessRuleValidators.validate_integer(field_name, value)
        if value < 0:
            raise ValidationError(
                field_name, value, "Value cannot be negative", "NEGATIVE_VALUE"
            )
        return value

    @staticmethod
    def validate_positive_number(
        field_name: str, value: int | float | Decimal | None
    ) -> float:
        """Validate that a number is present and strictly positive."""
        if value is None or isinstance(value, bool):
            raise ValidationError(
                field_name, value, f"{field_name} is required", "REQUIRED_FIELD"
            )
        if not math.isfinite(value):
            raise ValidationError(
                field_name, value, "Value must be a finite number", "NOT_FINITE"
            )
        if value <= 0:
            raise ValidationError(
                field_name, value, "Value must be positive", "NOT_POSITIVE"
            )
        return float(value)

    @staticmethod
    def validate_range(
        field_name: str,
        value: int | float | Decimal,
        min_val: int | float | Decimal | None = None,
        max_val: int | float | Decimal | None = None,
    ) -> None:
        """Validate that value is within specified range."""
        if min_val is not None and value < min_val:
            raise ValidationError(
                field_name, value, f"Value must be at least {min_val}", "BELOW_MINIMUM"
            )

        if max_val is not None and value > max_val:
            raise ValidationError(
                field_name, value, f"Value must be at most {max_val}", "ABOVE_MAXIMUM"
            )

    @staticmethod
    def validate_date_range(
        start_field: str, start_date: date, end_field: str, end_date: date
    ) -> None:
        """Validate an inclusive date range (end not before start)."""
        if end_date < start_date:
            raise ValidationError(
                end_field,
                end_date,
                f"{end_field} cannot be before {start_field}",
                "INVALID_DATE_RANGE",
            )

    @staticmethod
    def validate_required_field(field_name: str, value: Any) -> None:
        """Validate that required field is not empty."""
        if value is None or (isinstance(value, str) and not value.strip()):
            raise ValidationError(
                field_name, value, f"{field_name} is required", "REQUIRED_FIELD"
            )
