"""
StageGraph Domain Service

Enforces the CUTTING -> SEWING -> FINISH chain across the assignments of an
order: stage gating on start, edit and completion, fulfilment checks on
completion, atomic (re)distribution and floor placement rules.
"""

from collections.abc import Sequence
from datetime import date, datetime
from uuid import UUID

from pydantic import Field

from ...shared.base import DomainService, ValueObject
from ...shared.exceptions import (
    BusinessRuleError,
    FloorLockedError,
    IncompleteOperationsError,
    IncompleteVariantsError,
    StageBlockedError,
    ValidationError,
)
from ...shared.validation import BusinessRuleValidators
from ..entities.assignment import OperationAssignment, VariantActual, build_assignment
from ..entities.order import Order
from ..value_objects.enums import OperationStatus, StageCategory
from ..value_objects.planning_config import PlanningConfig
from ..value_objects.reference import OperationDefinition, Worker


class OperationPlan(ValueObject):
    """One operation of a distribution request, with reference data resolved."""

    definition: OperationDefinition
    worker: Worker | None = None
    planned_quantity: int
    planned_date: date | None = None
    floor_id: int | None = None


class ChainStatus(ValueObject):
    """What the UI may offer for an assignment right now."""

    assignment_id: UUID
    status: OperationStatus
    can_start: bool
    can_complete: bool
    blocking_stage: StageCategory | None = None
    block_reason: str | None = None


class OrderCompletionSummary(ValueObject):
    """Outcome of closing an order."""

    order_id: UUID
    completed_at: datetime
    deadline: date
    is_overdue: bool
    operations_count: int
    planned_units: int
    actual_units: int
    planned_minutes: float = Field(ge=0)
    actual_minutes: float = Field(ge=0)


class StageGraph(DomainService):
    """
    Domain service for the sequential stage chain of an order.

    Every method validates first and mutates last, so a rejected call
    leaves the order exactly as it was.
    """

    def __init__(self, config: PlanningConfig | None = None) -> None:
        self._config = config or PlanningConfig()

    @property
    def finish_floor_id(self) -> int:
        return self._config.finish_floor_id

    def blocking_stage(
        self, order: Order, assignment: OperationAssignment
    ) -> StageCategory | None:
        """
        Earliest stage before the assignment's own with an unfinished operation.

        Gating is a rank comparison on StageCategory; stages with no
        assignments never block.
        """
        for stage in assignment.category.earlier_stages():
            if any(not other.is_done for other in order.assignments_in(stage)):
                return stage
        return None

    def ensure_not_blocked(self, order: Order, assignment: OperationAssignment) -> None:
        stage = self.blocking_stage(order, assignment)
        if stage is not None:
            raise StageBlockedError(assignment.operation_name, stage.value)

    def start(
        self, order: Order, assignment_id: UUID, at: datetime | None = None
    ) -> OperationAssignment:
        """Waiting -> InProgress once every earlier stage is done."""
        return self.change_status(order, assignment_id, OperationStatus.IN_PROGRESS, at=at)

    def change_status(
        self,
        order: Order,
        assignment_id: UUID,
        target: OperationStatus,
        allow_rollback: bool = False,
        at: datetime | None = None,
    ) -> OperationAssignment:
        """
        Generic status change honoring the transition table.

        Completion is routed through complete() so fulfilment is always
        checked. Rolling back a done operation requires allow_rollback.
        """
        if target == OperationStatus.DONE:
            return self.complete(order, assignment_id, at=at)

        assignment = order.get_assignment(assignment_id)
        if target == OperationStatus.IN_PROGRESS:
            self.ensure_not_blocked(order, assignment)

        old_status = assignment.change_status(target, allow_rollback=allow_rollback, at=at)
        order.record_status_change(assignment, old_status)
        return assignment

    def complete(
        self, order: Order, assignment_id: UUID, at: datetime | None = None
    ) -> OperationAssignment:
        """
        InProgress -> Done.

        Raises:
            StageBlockedError: an earlier stage still has open operations
            StatusTransitionError: the operation is not in progress
            IncompleteVariantsError: some row (or the rowless total) is below plan
        """
        assignment = order.get_assignment(assignment_id)
        self.ensure_not_blocked(order, assignment)
        assignment.ensure_can_transition(OperationStatus.DONE)

        unfilled = assignment.unfilled_rows()
        if unfilled:
            raise IncompleteVariantsError(unfilled)

        assignment.recalculate_actual_total()
        old_status = assignment.change_status(OperationStatus.DONE, at=at)
        order.record_status_change(assignment, old_status)
        return assignment

    def update_variants(
        self,
        order: Order,
        assignment_id: UUID,
        actuals: Sequence[VariantActual],
    ) -> OperationAssignment:
        """Record actual quantities per color/size row."""
        assignment = self._editable_assignment(order, assignment_id)
        assignment.record_actuals(actuals)
        order.mark_updated()
        return assignment

    def update_actual_total(
        self, order: Order, assignment_id: UUID, actual_total: int
    ) -> OperationAssignment:
        """Record the actual total of an operation without variant rows."""
        assignment = self._editable_assignment(order, assignment_id)
        assignment.record_actual_total(actual_total)
        order.mark_updated()
        return assignment

    def _editable_assignment(self, order: Order, assignment_id: UUID) -> OperationAssignment:
        assignment = order.get_assignment(assignment_id)
        if assignment.is_done:
            raise BusinessRuleError(
                f"Operation '{assignment.operation_name}' is done; actuals can no longer change",
                {"assignment_id": str(assignment.id)},
            )
        self.ensure_not_blocked(order, assignment)
        return assignment

    def chain_status(self, order: Order, assignment_id: UUID) -> ChainStatus:
        assignment = order.get_assignment(assignment_id)
        stage = self.blocking_stage(order, assignment)

        reason = None
        if stage is not None:
            reason = f"Waiting for stage {stage.value} to be done"
        elif assignment.status == OperationStatus.IN_PROGRESS and not assignment.is_fulfilled:
            reason = "Fill actuals for every variant"

        return ChainStatus(
            assignment_id=assignment.id,
            status=assignment.status,
            can_start=stage is None and assignment.status == OperationStatus.WAITING,
            can_complete=(
                stage is None
                and assignment.status == OperationStatus.IN_PROGRESS
                and assignment.is_fulfilled
            ),
            blocking_stage=stage,
            block_reason=reason,
        )

    def complete_order(self, order: Order, now: datetime) -> OrderCompletionSummary:
        """
        Close an order whose whole chain is done and fulfilled.

        Lateness is reported through is_overdue and never blocks completion.
        """
        if order.is_done:
            raise BusinessRuleError(
                "Order is already completed", {"order_id": str(order.id)}
            )
        if not order.assignments:
            raise IncompleteOperationsError(
                [], message="Order has no operations assigned; distribute it first"
            )

        unfinished = [a.operation_name for a in order.assignments if not a.is_done]
        if unfinished:
            raise IncompleteOperationsError(unfinished)

        unfilled = [row for a in order.assignments for row in a.unfilled_rows()]
        if unfilled:
            raise IncompleteVariantsError(unfilled)

        is_overdue = order.mark_completed(now)

        planned_units = sum(a.planned_total for a in order.assignments)
        actual_units = sum(a.actual_total for a in order.assignments)
        return OrderCompletionSummary(
            order_id=order.id,
            completed_at=now,
            deadline=order.deadline,
            is_overdue=is_overdue,
            operations_count=len(order.assignments),
            planned_units=planned_units,
            actual_units=actual_units,
            planned_minutes=round(
                sum(a.planned_total * a.norm_minutes for a in order.assignments), 2
            ),
            actual_minutes=round(
                sum(a.actual_total * a.norm_minutes for a in order.assignments), 2
            ),
        )

    def resolve_floor(
        self,
        definition: OperationDefinition,
        requested_floor_id: int | None,
        distribution_floor_id: int,
    ) -> int:
        """
        Pick the floor an assigned operation runs on.

        Locked operations stay on their own floor (finish floor for FINISH).
        Otherwise an explicit production floor wins, then the catalogue
        default, then the floor the order is being distributed to.
        """
        if definition.locked_to_floor:
            if definition.category == StageCategory.FINISH:
                return self.finish_floor_id
            return definition.default_floor_id or distribution_floor_id
        if requested_floor_id is not None and requested_floor_id != self.finish_floor_id:
            return requested_floor_id
        if definition.default_floor_id is not None:
            return definition.default_floor_id
        return distribution_floor_id

    def assign(
        self,
        order: Order,
        plans: Sequence[OperationPlan],
        floor_id: int,
        technologist_id: int,
    ) -> list[OperationAssignment]:
        """
        Replace the order's whole assignment set.

        The new set is built and validated in full before it is swapped in;
        on any error the previous set is untouched.
        """
        if not order.status.is_assignable:
            raise BusinessRuleError(
                f"Order in status '{order.status.value}' cannot be distributed",
                {"order_id": str(order.id), "status": order.status.value},
            )
        if not plans:
            raise ValidationError(
                "operations", [], "At least one operation is required", "NO_OPERATIONS"
            )

        matrix_total = order.variant_matrix.grand_total if order.variant_matrix else None
        seen: set[tuple[int, date]] = set()
        assignments: list[OperationAssignment] = []

        for plan in plans:
            definition = plan.definition
            quantity = BusinessRuleValidators.validate_integer(
                f"planned_quantity[{definition.name}]", plan.planned_quantity
            )
            if quantity <= 0:
                raise ValidationError(
                    f"planned_quantity[{definition.name}]",
                    quantity,
                    "Planned quantity must be positive",
                    "NOT_POSITIVE",
                )
            if matrix_total is not None and quantity != matrix_total:
                raise ValidationError(
                    f"planned_quantity[{definition.name}]",
                    quantity,
                    f"Planned quantity must equal the variant matrix total ({matrix_total})",
                    "PLANNED_SUM_MISMATCH",
                    {"matrix_total": matrix_total},
                )
            if plan.planned_date is None:
                raise ValidationError(
                    f"planned_date[{definition.name}]",
                    None,
                    "Planned date is required",
                    "REQUIRED_FIELD",
                )
            if plan.worker is not None and plan.worker.technologist_id != technologist_id:
                raise BusinessRuleError(
                    f"Worker {plan.worker.id} is not on technologist {technologist_id}'s team",
                    {"worker_id": plan.worker.id, "technologist_id": technologist_id},
                )
            slot = (definition.id, plan.planned_date)
            if slot in seen:
                raise ValidationError(
                    "operations",
                    f"{definition.name}@{plan.planned_date.isoformat()}",
                    f"Operation '{definition.name}' is planned twice on {plan.planned_date}",
                    "DUPLICATE_OPERATION",
                )
            seen.add(slot)

            assignment = build_assignment(
                definition.category,
                order_id=order.id,
                operation_id=definition.id,
                operation_name=definition.name,
                floor_id=self.resolve_floor(definition, plan.floor_id, floor_id),
                locked_to_floor=definition.locked_to_floor,
                worker_id=plan.worker.id if plan.worker else None,
                planned_total=quantity,
                planned_date=plan.planned_date,
                norm_minutes=definition.norm_minutes,
            )
            assignment.seed_variant_rows(order.variant_matrix)
            assignments.append(assignment)

        order.replace_assignments(assignments, floor_id, technologist_id)
        return assignments

    def change_floor(
        self, order: Order, assignment_id: UUID, floor_id: int
    ) -> OperationAssignment:
        """Move an assignment to another floor within the placement rules."""
        assignment = order.get_assignment(assignment_id)
        if assignment.locked_to_floor:
            raise FloorLockedError(
                assignment.operation_name, floor_id, "the operation is locked to its floor"
            )
        if assignment.category == StageCategory.FINISH and floor_id != self.finish_floor_id:
            raise FloorLockedError(
                assignment.operation_name,
                floor_id,
                f"finish operations run on floor {self.finish_floor_id}",
            )
        if assignment.category != StageCategory.FINISH and floor_id == self.finish_floor_id:
            raise FloorLockedError(
                assignment.operation_name,
                floor_id,
                "the floor is reserved for finish operations",
            )

        assignment.floor_id = floor_id
        assignment.mark_updated()
        order.mark_updated()
        return assignment
