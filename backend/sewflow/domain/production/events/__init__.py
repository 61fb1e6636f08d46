"""Domain events raised by the Order aggregate."""

from datetime import date
from uuid import UUID

from ...shared.base import DomainEvent
from ..value_objects.enums import OperationStatus, StageCategory


class OperationsAssigned(DomainEvent):
    """Raised when an order's whole operation set is (re)distributed."""

    order_id: UUID
    floor_id: int
    technologist_id: int
    operation_count: int
    replaced_count: int


class OperationStatusChanged(DomainEvent):
    """Raised when an operation assignment changes status."""

    order_id: UUID
    assignment_id: UUID
    operation_name: str
    category: StageCategory
    old_status: OperationStatus
    new_status: OperationStatus


class OrderCompleted(DomainEvent):
    """Raised when an order passes completion checks."""

    order_id: UUID
    deadline: date
    is_overdue: bool


__all__ = ["OperationStatusChanged", "OperationsAssigned", "OrderCompleted"]
