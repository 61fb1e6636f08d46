"""Order aggregate: demand grid plus the operation chain that fulfils it."""

from collections.abc import Iterable, Mapping
from datetime import date, datetime
from typing import Any
from uuid import UUID

from pydantic import Field

from ...shared.base import AggregateRoot
from ...shared.exceptions import BusinessRuleError, EntityNotFoundError
from ..events import OperationsAssigned, OperationStatusChanged, OrderCompleted
from ..value_objects.enums import OperationStatus, OrderStatus, StageCategory
from ..value_objects.variant_matrix import VariantCell, VariantMatrix, validate_matrix
from .assignment import AnyAssignment, OperationAssignment


class Order(AggregateRoot):
    """
    Order aggregate root.

    Owns the variant matrix and every operation assignment of the order.
    Stage gating across assignments is enforced by the StageGraph service;
    the aggregate keeps its own fields consistent and records events.
    """

    title: str = Field(min_length=1, max_length=255)
    workshop_id: int | None = None
    total_quantity: int = Field(gt=0)
    sizes: list[str] = Field(default_factory=list)
    colors: list[str] = Field(default_factory=list)
    deadline: date
    status: OrderStatus = OrderStatus.ACCEPTED
    variant_matrix: VariantMatrix | None = None
    floor_id: int | None = None
    technologist_id: int | None = None
    completed_at: datetime | None = None
    assignments: list[AnyAssignment] = Field(default_factory=list)

    def is_valid(self) -> bool:
        """Validate business rules."""
        if self.variant_matrix and self.variant_matrix.grand_total != self.total_quantity:
            return False
        return all(assignment.is_valid() for assignment in self.assignments)

    @property
    def is_done(self) -> bool:
        return self.status == OrderStatus.DONE

    def is_overdue(self, today: date) -> bool:
        """Overdue is informational only; it never blocks completion."""
        return today > self.deadline

    def set_variant_matrix(
        self, cells: Iterable[VariantCell | Mapping[str, Any]]
    ) -> VariantMatrix:
        """Replace the demand grid wholesale after validation."""
        if self.is_done:
            raise BusinessRuleError(
                "Cannot change the variant matrix of a completed order",
                {"order_id": str(self.id)},
            )
        matrix = validate_matrix(cells, self.total_quantity, self.sizes, self.colors)
        self.variant_matrix = matrix
        self.mark_updated()
        return matrix

    def get_assignment(self, assignment_id: UUID) -> OperationAssignment:
        for assignment in self.assignments:
            if assignment.id == assignment_id:
                return assignment
        raise EntityNotFoundError("OperationAssignment", assignment_id)

    def has_assignment(self, assignment_id: UUID) -> bool:
        return any(assignment.id == assignment_id for assignment in self.assignments)

    def assignments_in(self, *categories: StageCategory) -> list[OperationAssignment]:
        return [a for a in self.assignments if a.category in categories]

    def replace_assignments(
        self,
        assignments: list[OperationAssignment],
        floor_id: int,
        technologist_id: int,
    ) -> None:
        """Swap in a complete new assignment set in one step."""
        replaced = len(self.assignments)
        self.assignments = list(assignments)
        self.floor_id = floor_id
        self.technologist_id = technologist_id
        if self.status == OrderStatus.ACCEPTED:
            self.status = OrderStatus.IN_WORK
        self.mark_updated()

        self.add_domain_event(
            OperationsAssigned(
                aggregate_id=self.id,
                order_id=self.id,
                floor_id=floor_id,
                technologist_id=technologist_id,
                operation_count=len(assignments),
                replaced_count=replaced,
            )
        )

    def record_status_change(
        self, assignment: OperationAssignment, old_status: OperationStatus
    ) -> None:
        self.mark_updated()
        self.add_domain_event(
            OperationStatusChanged(
                aggregate_id=self.id,
                order_id=self.id,
                assignment_id=assignment.id,
                operation_name=assignment.operation_name,
                category=assignment.category,
                old_status=old_status,
                new_status=assignment.status,
            )
        )

    def mark_completed(self, completed_at: datetime) -> bool:
        """Close the order; returns whether it finished after its deadline."""
        overdue = self.is_overdue(completed_at.date())
        self.status = OrderStatus.DONE
        self.completed_at = completed_at
        self.mark_updated()
        self.add_domain_event(
            OrderCompleted(
                aggregate_id=self.id,
                order_id=self.id,
                deadline=self.deadline,
                is_overdue=overdue,
            )
        )
        return overdue

    def bind_floor(self, floor_id: int | None) -> bool:
        """Attach the order to a floor if it has none yet."""
        if floor_id is None or self.floor_id is not None:
            return False
        self.floor_id = floor_id
        self.mark_updated()
        return True
