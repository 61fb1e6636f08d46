"""
Plan Day Repository Interface

Defines the contract for production plan day storage.
"""

from abc import ABC, abstractmethod
from datetime import date
from uuid import UUID

from ..entities.plan_day import ProductionPlanDay
from ..value_objects.capacity import PlanDayKey


class PlanDayRepository(ABC):
    """
    Abstract repository interface for production plan days.

    Rows are unique per PlanDayKey; save() inserts or replaces the row
    stored under the day's key.
    """

    @abstractmethod
    def get(self, key: PlanDayKey) -> ProductionPlanDay | None:
        """
        Retrieve the plan day stored under a key.

        Args:
            key: (order, workshop, date, floor) key

        Returns:
            Plan day or None if nothing is scheduled
        """
        pass

    @abstractmethod
    def save(self, plan_day: ProductionPlanDay) -> ProductionPlanDay:
        """
        Insert or replace a plan day.

        Args:
            plan_day: Plan day to store

        Returns:
            Stored plan day
        """
        pass

    @abstractmethod
    def find_in_period(
        self,
        order_id: UUID,
        workshop_id: int,
        floor_id: int | None,
        start: date,
        end: date,
    ) -> list[ProductionPlanDay]:
        """
        Retrieve an order's plan days in an inclusive date range.

        Args:
            order_id: Order identifier
            workshop_id: Workshop identifier
            floor_id: Floor, or None for single-floor workshops
            start: First day of the range
            end: Last day of the range

        Returns:
            Plan days ordered by date
        """
        pass
