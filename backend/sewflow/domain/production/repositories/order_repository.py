"""
Order Repository Interface

Defines the contract for order aggregate persistence.
"""

from abc import ABC, abstractmethod
from uuid import UUID

from ..entities.order import Order


class OrderRepository(ABC):
    """
    Abstract repository interface for the Order aggregate.

    Assignments and their variant rows are loaded and saved together with
    the order; the aggregate is the unit of consistency.
    """

    @abstractmethod
    def get_by_id(self, order_id: UUID) -> Order | None:
        """
        Retrieve an order with all of its assignments.

        Args:
            order_id: Unique order identifier

        Returns:
            Order aggregate or None if not found
        """
        pass

    @abstractmethod
    def get_by_assignment_id(self, assignment_id: UUID) -> Order | None:
        """
        Retrieve the order owning an operation assignment.

        Args:
            assignment_id: Unique assignment identifier

        Returns:
            Owning order aggregate or None if no order holds the assignment
        """
        pass

    @abstractmethod
    def save(self, order: Order) -> Order:
        """
        Save an order and replace its stored assignment set.

        Args:
            order: Order aggregate to save

        Returns:
            Saved order aggregate
        """
        pass
