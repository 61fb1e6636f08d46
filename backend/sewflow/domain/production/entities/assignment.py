"""Operation assignment entities: one per order x operation x planned date."""

from collections.abc import Sequence
from datetime import date, datetime
from typing import Annotated, Any, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from ...shared.base import Entity, ValueObject
from ...shared.exceptions import BusinessRuleError, StatusTransitionError, ValidationError
from ...shared.validation import BusinessRuleValidators
from ..value_objects.enums import OperationStatus, StageCategory
from ..value_objects.variant_matrix import VariantMatrix


class OperationVariantRow(BaseModel):
    """Planned and actual quantity of one color/size under an assignment."""

    model_config = ConfigDict(validate_assignment=True)

    color: str
    size: str
    planned_qty: int = Field(ge=0)
    actual_qty: int = Field(default=0, ge=0)

    @property
    def is_filled(self) -> bool:
        return self.actual_qty >= self.planned_qty


class VariantActual(ValueObject):
    """Reported actual quantity for one color/size row."""

    color: str
    size: str
    actual_qty: Any


class OperationAssignment(Entity):
    """
    Operation assignment entity.

    Tracks planned and actual output of one catalogue operation for an order,
    optionally broken down into color/size rows copied from the order's
    variant matrix. Cross-assignment rules (stage gating) live in StageGraph.
    """

    order_id: UUID
    operation_id: int
    operation_name: str
    category: StageCategory = Field(frozen=True)
    floor_id: int | None = None
    locked_to_floor: bool = False
    worker_id: int | None = None
    planned_total: int = Field(ge=0)
    actual_total: int = Field(default=0, ge=0)
    planned_date: date
    status: OperationStatus = OperationStatus.WAITING
    norm_minutes: float = Field(default=0.0, ge=0)
    variant_rows: list[OperationVariantRow] = Field(default_factory=list)
    started_at: datetime | None = None
    completed_at: datetime | None = None

    def is_valid(self) -> bool:
        """Validate business rules."""
        return all(row.actual_qty <= row.planned_qty for row in self.variant_rows)

    @property
    def is_done(self) -> bool:
        return self.status == OperationStatus.DONE

    @property
    def has_variant_rows(self) -> bool:
        return len(self.variant_rows) > 0

    def find_row(self, color: str, size: str) -> OperationVariantRow | None:
        for row in self.variant_rows:
            if row.color == color and row.size == size:
                return row
        return None

    def seed_variant_rows(self, matrix: VariantMatrix | None) -> bool:
        """
        Copy the order's demand grid into rows if none exist yet.

        Idempotent: an assignment that already has rows is left alone.
        Returns True when rows were created.
        """
        if self.variant_rows or matrix is None:
            return False
        self.variant_rows = [
            OperationVariantRow(color=cell.color, size=cell.size, planned_qty=cell.quantity)
            for cell in matrix.stored_cells()
        ]
        return bool(self.variant_rows)

    @property
    def is_fulfilled(self) -> bool:
        """Every row reached its plan; rowless assignments compare totals."""
        if self.variant_rows:
            return all(row.is_filled for row in self.variant_rows)
        return self.actual_total >= self.planned_total

    def unfilled_rows(self) -> list[dict[str, Any]]:
        """Rows (or the assignment itself when rowless) still below plan."""
        if not self.variant_rows:
            if self.actual_total >= self.planned_total:
                return []
            return [
                {
                    "operation": self.operation_name,
                    "assignment_id": str(self.id),
                    "color": None,
                    "size": None,
                    "planned": self.planned_total,
                    "actual": self.actual_total,
                }
            ]
        return [
            {
                "operation": self.operation_name,
                "assignment_id": str(self.id),
                "color": row.color,
                "size": row.size,
                "planned": row.planned_qty,
                "actual": row.actual_qty,
            }
            for row in self.variant_rows
            if not row.is_filled
        ]

    def record_actuals(self, actuals: Sequence[VariantActual]) -> None:
        """
        Apply reported actual quantities to rows.

        All updates are validated before any row changes, so a rejected
        batch leaves the assignment untouched.
        """
        pending: list[tuple[OperationVariantRow, int]] = []
        for actual in actuals:
            label = f"{actual.color}/{actual.size}"
            row = self.find_row(actual.color, actual.size)
            if row is None:
                raise ValidationError(
                    "variants",
                    label,
                    f"Operation '{self.operation_name}' has no row for {label}",
                    "UNKNOWN_VARIANT",
                )
            qty = BusinessRuleValidators.validate_non_negative_int(
                f"actual_qty[{label}]", actual.actual_qty
            )
            if qty > row.planned_qty:
                raise ValidationError(
                    f"actual_qty[{label}]",
                    qty,
                    f"Actual for {label} cannot exceed plan ({row.planned_qty})",
                    "ACTUAL_ABOVE_PLAN",
                    {"planned": row.planned_qty},
                )
            pending.append((row, qty))

        for row, qty in pending:
            row.actual_qty = qty
        self.recalculate_actual_total()

    def recalculate_actual_total(self) -> int:
        if self.variant_rows:
            self.actual_total = sum(row.actual_qty for row in self.variant_rows)
        self.mark_updated()
        return self.actual_total

    def record_actual_total(self, actual_total: Any) -> None:
        """Set the actual total of an assignment that has no variant rows."""
        if self.variant_rows:
            raise BusinessRuleError(
                f"Operation '{self.operation_name}' tracks actuals per variant; "
                "report variant rows instead of a total",
                {"assignment_id": str(self.id)},
            )
        qty = BusinessRuleValidators.validate_non_negative_int("actual_total", actual_total)
        if qty > self.planned_total:
            raise ValidationError(
                "actual_total",
                qty,
                f"Actual total cannot exceed plan ({self.planned_total})",
                "ACTUAL_ABOVE_PLAN",
                {"planned": self.planned_total},
            )
        self.actual_total = qty
        self.mark_updated()

    def ensure_can_transition(
        self, target: OperationStatus, allow_rollback: bool = False
    ) -> None:
        """Raise StatusTransitionError unless the transition table allows target."""
        current = self.status
        if current.can_transition_to(target, allow_rollback=allow_rollback):
            return
        message = None
        if current == OperationStatus.WAITING and target == OperationStatus.DONE:
            message = (
                f"Operation '{self.operation_name}' cannot be completed directly; "
                "start it first"
            )
        elif current == OperationStatus.DONE and target == OperationStatus.DONE:
            message = f"Operation '{self.operation_name}' is already done"
        elif current == OperationStatus.DONE:
            message = (
                f"Operation '{self.operation_name}' is done; "
                "reopening it requires an administrative rollback"
            )
        raise StatusTransitionError(self.id, current.value, target.value, message)

    def change_status(
        self,
        target: OperationStatus,
        allow_rollback: bool = False,
        at: datetime | None = None,
    ) -> OperationStatus:
        """Move to target status following the transition table; returns the old status."""
        current = self.status
        self.ensure_can_transition(target, allow_rollback=allow_rollback)

        moment = at or datetime.utcnow()
        self.status = target
        if target == OperationStatus.IN_PROGRESS:
            self.started_at = self.started_at or moment
            self.completed_at = None
        elif target == OperationStatus.DONE:
            self.completed_at = moment
        else:
            self.started_at = None
            self.completed_at = None
        self.mark_updated()
        return current


class CuttingAssignment(OperationAssignment):
    """Cutting operation; a responsible worker is mandatory."""

    category: Literal[StageCategory.CUTTING] = Field(default=StageCategory.CUTTING, frozen=True)
    worker_id: int


class SewingAssignment(OperationAssignment):
    """Sewing operation; a responsible worker is mandatory."""

    category: Literal[StageCategory.SEWING] = Field(default=StageCategory.SEWING, frozen=True)
    worker_id: int


class FinishAssignment(OperationAssignment):
    """Finish operation (QC, packing); the worker is optional."""

    category: Literal[StageCategory.FINISH] = Field(default=StageCategory.FINISH, frozen=True)
    worker_id: int | None = None


AnyAssignment = Annotated[
    CuttingAssignment | SewingAssignment | FinishAssignment,
    Field(discriminator="category"),
]

ASSIGNMENT_TYPES: dict[StageCategory, type[OperationAssignment]] = {
    StageCategory.CUTTING: CuttingAssignment,
    StageCategory.SEWING: SewingAssignment,
    StageCategory.FINISH: FinishAssignment,
}


def build_assignment(category: StageCategory, **data: Any) -> OperationAssignment:
    """Create the assignment variant matching the operation's category."""
    if category.requires_worker and data.get("worker_id") is None:
        raise ValidationError(
            "worker_id",
            None,
            f"A worker is required for {category.value} operations",
            "WORKER_REQUIRED",
            {"operation": data.get("operation_name")},
        )
    return ASSIGNMENT_TYPES[category](**data)
