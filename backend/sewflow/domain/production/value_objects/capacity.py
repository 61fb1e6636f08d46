"""Capacity planning value objects."""

from datetime import date
from uuid import UUID

from pydantic import Field

from ...shared.base import ValueObject


class PlanDayKey(ValueObject):
    """Unique key of a production plan day; floor is None for single-floor workshops."""

    order_id: UUID
    workshop_id: int
    day: date
    floor_id: int | None = None


class PlannedDay(ValueObject):
    """One day of a computed schedule."""

    day: date
    planned_qty: int = Field(ge=0)


class CapacityPlan(ValueObject):
    """
    Result of a capacity calculation for one order over a period.

    When overload is set, days is empty: the caller must widen the period
    or reduce scope before anything can be applied.
    """

    remaining: int
    daily_capacity: float
    working_days: int
    total_capacity: int
    capacity_per_week: int | None = None
    percent: int
    overload: bool
    days: tuple[PlannedDay, ...] = ()

    @property
    def planned_sum(self) -> int:
        return sum(day.planned_qty for day in self.days)
