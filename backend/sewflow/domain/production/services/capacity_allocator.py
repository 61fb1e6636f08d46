"""
CapacityAllocator Domain Service

Spreads an order's remaining quantity over a closed range of calendar days
under a daily or weekly capacity limit, and writes the resulting schedule
as production plan days.
"""

from collections.abc import Iterable, Mapping, Sequence
from datetime import date
from typing import Any
from uuid import UUID

from ...shared.base import DomainService
from ...shared.exceptions import BusinessRuleError, OverloadError, ValidationError
from ...shared.validation import BusinessRuleValidators, DataSanitizer
from ..entities.order import Order
from ..entities.plan_day import ProductionPlanDay
from ..repositories import PlanDayRepository
from ..value_objects.calendar import DateRange
from ..value_objects.capacity import CapacityPlan, PlanDayKey, PlannedDay
from ..value_objects.planning_config import PlanningConfig
from ..value_objects.reference import Worker, Workshop
from ..value_objects.variant_matrix import split_evenly


class CapacityAllocator(DomainService):
    """Domain service for day-by-day capacity planning."""

    def __init__(self, config: PlanningConfig | None = None) -> None:
        self._config = config or PlanningConfig()

    def working_days(self, period: DateRange) -> list[date]:
        """Every calendar day of the period; there is no weekend calendar."""
        return period.days()

    def resolve_remaining(self, total: int, produced: int = 0, cut_actual: int = 0) -> int:
        """
        Quantity still to be planned.

        Once cutting has reported an actual, the cut quantity (not the
        ordered one) is what the line can still sew.
        """
        base = cut_actual if cut_actual and cut_actual > 0 else total
        return max(0, base - (produced or 0))

    def resolve_daily_capacity(
        self, daily_capacity: int | None = None, workers: Iterable[Worker] = ()
    ) -> int:
        """Explicit figure first, then the floor's workers, then the configured default."""
        if daily_capacity is not None:
            return BusinessRuleValidators.validate_non_negative_int(
                "daily_capacity", daily_capacity
            )
        team_capacity = sum(worker.capacity_per_day for worker in workers)
        return team_capacity or self._config.default_daily_capacity

    def calculate(
        self,
        remaining: int,
        period: DateRange,
        capacity_per_week: int | None = None,
        daily_capacity: int | None = None,
        workers: Iterable[Worker] = (),
    ) -> CapacityPlan:
        """
        Compute the capacity of the period and, if it suffices, the day schedule.

        A weekly figure takes precedence: daily = week / 7 and
        total = round(week * days / 7). Overloaded plans carry no days.
        """
        remaining = BusinessRuleValidators.validate_non_negative_int("remaining", remaining)
        days = self.working_days(period)

        if capacity_per_week is not None:
            week = BusinessRuleValidators.validate_integer("capacity_per_week", capacity_per_week)
            BusinessRuleValidators.validate_range(
                "capacity_per_week",
                week,
                self._config.capacity_week_min,
                self._config.capacity_week_max,
            )
            daily = week / 7
            total = round(week * len(days) / 7)
        else:
            week = None
            daily = self.resolve_daily_capacity(daily_capacity, workers)
            total = daily * len(days)

        percent = round(remaining / total * 100) if total > 0 else 0
        overload = remaining > total

        return CapacityPlan(
            remaining=remaining,
            daily_capacity=round(daily, 2),
            working_days=len(days),
            total_capacity=total,
            capacity_per_week=week,
            percent=percent,
            overload=overload,
            days=() if overload else tuple(self.distribute(remaining, days)),
        )

    def distribute(self, remaining: int, days: Sequence[date]) -> list[PlannedDay]:
        """Even split in date order; the first days absorb the remainder."""
        if not days:
            raise ValidationError("days", [], "At least one day is required", "NO_DAYS")
        ordered = sorted(days)
        return [
            PlannedDay(day=day, planned_qty=qty)
            for day, qty in zip(ordered, split_evenly(remaining, len(ordered)))
        ]

    def ensure_fits(self, plan: CapacityPlan) -> None:
        if plan.overload:
            raise OverloadError(plan.percent, plan.remaining, plan.total_capacity)

    def plan_floor(self, workshop: Workshop, floor_id: int | None) -> int | None:
        """Multi-floor workshops plan per floor; single-floor ones ignore the floor."""
        if not workshop.plans_per_floor:
            return None
        if floor_id is None:
            raise ValidationError(
                "floor_id",
                None,
                f"Workshop '{workshop.name}' plans per floor; specify floor 1-{workshop.floors_count}",
                "REQUIRED_FIELD",
            )
        floor = BusinessRuleValidators.validate_integer("floor_id", floor_id)
        BusinessRuleValidators.validate_range("floor_id", floor, 1, workshop.floors_count)
        return floor

    def ensure_order_in_workshop(self, order: Order, workshop: Workshop) -> None:
        if order.workshop_id != workshop.id:
            raise BusinessRuleError(
                f"Order does not belong to workshop '{workshop.name}'",
                {"order_id": str(order.id), "workshop_id": workshop.id},
            )

    def apply(
        self,
        repository: PlanDayRepository,
        order_id: UUID,
        workshop_id: int,
        floor_id: int | None,
        days: Sequence[PlannedDay | Mapping[str, Any]],
    ) -> list[ProductionPlanDay]:
        """
        Upsert the schedule on (order, workshop, date, floor).

        Existing actual quantities and notes are preserved; only the
        planned quantity is overwritten. Input is validated in full first.
        """
        if not days:
            raise ValidationError("days", [], "At least one day is required", "NO_DAYS")

        entries: list[PlannedDay] = []
        seen: set[date] = set()
        for raw in days:
            entry = _coerce_planned_day(raw)
            if entry.day in seen:
                raise ValidationError(
                    "days", entry.day, f"Day {entry.day} is listed twice", "DUPLICATE_DAY"
                )
            seen.add(entry.day)
            entries.append(entry)

        saved: list[ProductionPlanDay] = []
        for entry in entries:
            key = PlanDayKey(
                order_id=order_id, workshop_id=workshop_id, day=entry.day, floor_id=floor_id
            )
            plan_day = repository.get(key) or ProductionPlanDay(key=key)
            plan_day.planned_qty = entry.planned_qty
            saved.append(repository.save(plan_day))
        return saved

    def update_day(
        self,
        repository: PlanDayRepository,
        key: PlanDayKey,
        planned_qty: Any = 0,
        actual_qty: Any = 0,
        notes: str | None = None,
    ) -> ProductionPlanDay:
        """
        Manual override of one day.

        Totals across the period are deliberately not re-validated.
        """
        planned = BusinessRuleValidators.validate_non_negative_int("planned_qty", planned_qty)
        actual = BusinessRuleValidators.validate_non_negative_int("actual_qty", actual_qty)
        cleaned_notes = DataSanitizer.sanitize_notes(notes)

        plan_day = repository.get(key) or ProductionPlanDay(key=key)
        plan_day.planned_qty = planned
        plan_day.actual_qty = actual
        plan_day.notes = cleaned_notes
        return repository.save(plan_day)


def _coerce_planned_day(raw: PlannedDay | Mapping[str, Any]) -> PlannedDay:
    if isinstance(raw, PlannedDay):
        return raw
    day = raw.get("day") or raw.get("date")
    if not isinstance(day, date):
        raise ValidationError("day", day, "A calendar date is required", "INVALID_DATE")
    qty = BusinessRuleValidators.validate_non_negative_int(
        f"planned_qty[{day.isoformat()}]", raw.get("planned_qty")
    )
    return PlannedDay(day=day, planned_qty=qty)
