"""
Calendar Value Objects

Planning periods are closed ranges of calendar days. No weekend or
holiday calendar is modeled: every day in the range is a working day.
"""

from __future__ import annotations

from datetime import date, timedelta

from pydantic import model_validator
from typing_extensions import Self

from ...shared.base import ValueObject
from ...shared.validation import BusinessRuleValidators


class DateRange(ValueObject):
    """Inclusive range of calendar days."""

    start: date
    end: date

    @model_validator(mode="after")
    def _end_not_before_start(self) -> Self:
        BusinessRuleValidators.validate_date_range("from", self.start, "to", self.end)
        return self

    @classmethod
    def between(cls, start: date, end: date) -> DateRange:
        return cls(start=start, end=end)

    @property
    def day_count(self) -> int:
        return (self.end - self.start).days + 1

    def days(self) -> list[date]:
        """Every day of the range in ascending order."""
        return [self.start + timedelta(days=offset) for offset in range(self.day_count)]

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end

    def __str__(self) -> str:
        return f"{self.start.isoformat()}..{self.end.isoformat()}"
