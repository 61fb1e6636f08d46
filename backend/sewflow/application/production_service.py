"""
Production engine application service.

Coordinates the production domain services: loads the order aggregate
through the repositories, runs the domain operation, saves the result and
publishes the collected domain events to the log. Every call that mutates
an order holds that order's lock for its whole duration.
"""

from collections.abc import Callable, Iterator, Mapping, Sequence
from contextlib import contextmanager
from datetime import date, datetime
from typing import Any, TypeVar
from uuid import UUID

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from sewflow.core.config import settings
from sewflow.core.locking import OrderLockRegistry
from sewflow.core.observability import get_logger, set_operation_id
from sewflow.domain.production.entities.assignment import (
    OperationAssignment,
    VariantActual,
)
from sewflow.domain.production.entities.order import Order
from sewflow.domain.production.entities.plan_day import ProductionPlanDay
from sewflow.domain.production.repositories import (
    OperationCatalog,
    OrderRepository,
    PlanDayRepository,
    WorkforceDirectory,
    WorkshopRepository,
)
from sewflow.domain.production.services import (
    CapacityAllocator,
    ChainStatus,
    LineBalanceCalculator,
    OperationPlan,
    OrderCompletionSummary,
    StageGraph,
)
from sewflow.domain.production.value_objects.calendar import DateRange
from sewflow.domain.production.value_objects.capacity import CapacityPlan, PlanDayKey
from sewflow.domain.production.value_objects.enums import OperationStatus, StageCategory
from sewflow.domain.production.value_objects.flow import (
    FlowCalculationResult,
    FlowParameters,
)
from sewflow.domain.production.value_objects.planning_config import PlanningConfig
from sewflow.domain.production.value_objects.reference import Workshop
from sewflow.domain.production.value_objects.variant_matrix import (
    VariantCell,
    VariantMatrix,
    validate_matrix,
)
from sewflow.domain.shared.exceptions import (
    DomainError,
    EntityNotFoundError,
    ValidationError,
)
from sewflow.domain.shared.validation import BusinessRuleValidators

from .dtos import CapacityApplyResult, FlowAutoApplyResult, OperationAssignmentRequest

logger = get_logger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


class ProductionEngine:
    """
    Application service exposing the production allocation and completion
    operations to the calling layer.

    Inputs are plain data; outputs are domain value objects or entities.
    Failures are raised as DomainError subclasses before anything is saved.
    """

    def __init__(
        self,
        orders: OrderRepository,
        catalog: OperationCatalog,
        workforce: WorkforceDirectory,
        workshops: WorkshopRepository,
        plan_days: PlanDayRepository,
        config: PlanningConfig | None = None,
        locks: OrderLockRegistry | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        """
        Initialize the production engine.

        Args:
            orders: Order aggregate repository
            catalog: Operation catalogue lookup
            workforce: Workers and technologists lookup
            workshops: Workshop lookup
            plan_days: Production plan day storage
            config: Planning constants; defaults to the environment settings
            locks: Per-order lock registry, shareable between engines
            clock: Source of the current time
        """
        self._orders = orders
        self._catalog = catalog
        self._workforce = workforce
        self._workshops = workshops
        self._plan_days = plan_days
        self._config = config or settings.planning_config()
        self._locks = locks if locks is not None else OrderLockRegistry()
        self._clock = clock or datetime.utcnow

        self._stage_graph = StageGraph(self._config)
        self._allocator = CapacityAllocator(self._config)
        self._calculator = LineBalanceCalculator(self._config)

    @property
    def config(self) -> PlanningConfig:
        return self._config

    # Variant matrix

    def validate_matrix(
        self,
        total_quantity: int,
        sizes: Sequence[str],
        colors: Sequence[str],
        cells: Sequence[VariantCell | Mapping[str, Any]],
    ) -> VariantMatrix:
        """Validate a demand grid without touching any order."""
        with self._operation("validate_matrix", total_quantity=total_quantity):
            return validate_matrix(cells, total_quantity, sizes, colors)

    def set_variant_matrix(
        self, order_id: UUID, cells: Sequence[VariantCell | Mapping[str, Any]]
    ) -> VariantMatrix:
        with self._order_operation("set_variant_matrix", order_id) as order:
            matrix = order.set_variant_matrix(cells)
            self._save(order)
            logger.info(
                "Variant matrix replaced",
                order_id=str(order.id),
                cells=len(matrix.cells),
                total_quantity=matrix.total_quantity,
            )
            return matrix

    # Stage graph

    def assign_operations(
        self,
        order_id: UUID,
        floor_id: int,
        technologist_id: int,
        operations: Sequence[OperationAssignmentRequest | Mapping[str, Any]],
    ) -> list[OperationAssignment]:
        """
        Replace the order's whole operation set.

        Raises:
            EntityNotFoundError: order, technologist, operation or worker unknown
            ValidationError: malformed distribution
            BusinessRuleError: order not assignable or worker off the team
        """
        with self._order_operation(
            "assign_operations",
            order_id,
            floor_id=floor_id,
            technologist_id=technologist_id,
        ) as order:
            BusinessRuleValidators.validate_integer("floor_id", floor_id)
            if not self._workforce.technologist_exists(technologist_id):
                raise EntityNotFoundError("Technologist", technologist_id)

            plans = [self._resolve_plan(raw) for raw in operations]
            assignments = self._stage_graph.assign(order, plans, floor_id, technologist_id)
            self._save(order)
            return assignments

    def start_operation(self, assignment_id: UUID) -> OperationAssignment:
        with self._assignment_operation("start_operation", assignment_id) as order:
            assignment = self._stage_graph.start(order, assignment_id, at=self._clock())
            self._save(order)
            return assignment

    def change_operation_status(
        self,
        assignment_id: UUID,
        status: OperationStatus | str,
        allow_rollback: bool = False,
    ) -> OperationAssignment:
        """Generic status change; rolling back a done operation needs allow_rollback."""
        target = self._coerce_status(status)
        with self._assignment_operation(
            "change_operation_status",
            assignment_id,
            status=target.value,
            allow_rollback=allow_rollback,
        ) as order:
            assignment = self._stage_graph.change_status(
                order, assignment_id, target, allow_rollback=allow_rollback, at=self._clock()
            )
            self._save(order)
            return assignment

    def update_operation_variants(
        self,
        assignment_id: UUID,
        rows: Sequence[VariantActual | Mapping[str, Any]] | None = None,
        actual_total: int | None = None,
    ) -> OperationAssignment:
        """
        Record actuals for an operation.

        Operations with variant rows take per-row actuals; operations
        without rows take a single actual_total.
        """
        if rows is None and actual_total is None:
            raise ValidationError(
                "rows", None, "Either variant rows or an actual total is required",
                "REQUIRED_FIELD",
            )
        with self._assignment_operation("update_operation_variants", assignment_id) as order:
            if rows is not None:
                actuals = [self._coerce_actual(raw) for raw in rows]
                assignment = self._stage_graph.update_variants(order, assignment_id, actuals)
            else:
                assignment = self._stage_graph.update_actual_total(
                    order, assignment_id, actual_total
                )
            self._save(order)
            logger.info(
                "Operation actuals recorded",
                assignment_id=str(assignment_id),
                actual_total=assignment.actual_total,
                planned_total=assignment.planned_total,
            )
            return assignment

    def complete_operation(self, assignment_id: UUID) -> OperationAssignment:
        with self._assignment_operation("complete_operation", assignment_id) as order:
            assignment = self._stage_graph.complete(order, assignment_id, at=self._clock())
            self._save(order)
            return assignment

    def change_operation_floor(self, assignment_id: UUID, floor_id: int) -> OperationAssignment:
        with self._assignment_operation(
            "change_operation_floor", assignment_id, floor_id=floor_id
        ) as order:
            assignment = self._stage_graph.change_floor(order, assignment_id, floor_id)
            self._save(order)
            logger.info(
                "Operation moved",
                assignment_id=str(assignment_id),
                floor_id=floor_id,
            )
            return assignment

    def chain_status(self, assignment_id: UUID) -> ChainStatus:
        with self._operation("chain_status", assignment_id=str(assignment_id)):
            order = self._order_for_assignment(assignment_id)
            return self._stage_graph.chain_status(order, assignment_id)

    def complete_order(
        self, order_id: UUID, now: datetime | None = None
    ) -> OrderCompletionSummary:
        """Close an order; overdue orders complete too and are flagged."""
        with self._order_operation("complete_order", order_id) as order:
            summary = self._stage_graph.complete_order(order, now or self._clock())
            self._save(order)
            return summary

    # Capacity allocator

    def calc_capacity(
        self,
        order_id: UUID,
        workshop_id: int,
        floor_id: int | None,
        start: date,
        end: date,
        capacity_per_week: int | None = None,
        daily_capacity: int | None = None,
    ) -> CapacityPlan:
        """
        Compute the capacity plan of an order over a period.

        Nothing is written; use apply_capacity to store the days.
        """
        with self._operation(
            "calc_capacity", order_id=str(order_id), workshop_id=workshop_id
        ):
            order = self._load_order(order_id)
            workshop = self._load_workshop(workshop_id)
            self._allocator.ensure_order_in_workshop(order, workshop)
            plan_floor = self._allocator.plan_floor(workshop, floor_id)
            period = DateRange.between(start, end)

            workers = self._workforce.workers_on_floor(plan_floor) if plan_floor else []
            plan = self._allocator.calculate(
                self._remaining_for(order, workshop, plan_floor),
                period,
                capacity_per_week=capacity_per_week,
                daily_capacity=daily_capacity,
                workers=workers,
            )
            log = logger.warning if plan.overload else logger.info
            log(
                "Capacity calculated",
                order_id=str(order_id),
                remaining=plan.remaining,
                total_capacity=plan.total_capacity,
                percent=plan.percent,
                overload=plan.overload,
            )
            return plan

    def apply_capacity(
        self,
        order_id: UUID,
        workshop_id: int,
        floor_id: int | None,
        days: Sequence[Mapping[str, Any]],
    ) -> CapacityApplyResult:
        """Store a day schedule; existing actuals on those days are kept."""
        with self._order_operation(
            "apply_capacity", order_id, workshop_id=workshop_id
        ) as order:
            workshop = self._load_workshop(workshop_id)
            self._allocator.ensure_order_in_workshop(order, workshop)
            plan_floor = self._allocator.plan_floor(workshop, floor_id)

            saved = self._allocator.apply(
                self._plan_days, order.id, workshop.id, plan_floor, days
            )
            bound = order.bind_floor(plan_floor)
            if bound:
                self._save(order)
            logger.info(
                "Capacity applied",
                order_id=str(order.id),
                days=len(saved),
                planned=sum(day.planned_qty for day in saved),
                floor_id=plan_floor,
            )
            return CapacityApplyResult(floor_id=plan_floor, days=saved, order_floor_bound=bound)

    def update_plan_day(
        self,
        order_id: UUID,
        workshop_id: int,
        day: date,
        floor_id: int | None = None,
        planned_qty: int = 0,
        actual_qty: int = 0,
        notes: str | None = None,
    ) -> ProductionPlanDay:
        """Manual override of one plan day; period totals are not re-checked."""
        with self._order_operation(
            "update_plan_day", order_id, workshop_id=workshop_id, day=str(day)
        ) as order:
            workshop = self._load_workshop(workshop_id)
            self._allocator.ensure_order_in_workshop(order, workshop)
            key = PlanDayKey(
                order_id=order.id,
                workshop_id=workshop.id,
                day=day,
                floor_id=self._allocator.plan_floor(workshop, floor_id),
            )
            plan_day = self._allocator.update_day(
                self._plan_days, key, planned_qty, actual_qty, notes
            )
            logger.info(
                "Plan day updated",
                order_id=str(order.id),
                day=str(day),
                planned_qty=plan_day.planned_qty,
                actual_qty=plan_day.actual_qty,
            )
            return plan_day

    # Line-balance calculator

    def flow_calc(
        self,
        params: FlowParameters | Mapping[str, Any],
        order_id: UUID | None = None,
        workshop_id: int | None = None,
        floor_id: int | None = None,
        start: date | None = None,
        end: date | None = None,
        planned_total: int | None = None,
    ) -> FlowCalculationResult:
        """
        Compute line parameters and, when a period is given, compare the
        line's capacity with what is planned in that period.

        The planned figure comes from stored plan days when the order has
        any in the period, otherwise from planned_total.
        """
        with self._operation("flow_calc", order_id=str(order_id) if order_id else None):
            result = self._calculator.calculate(self._coerce_params(params))
            if start is None or end is None:
                return result

            period = DateRange.between(start, end)
            planned = 0
            if order_id is not None and workshop_id is not None:
                workshop = self._load_workshop(workshop_id)
                stored = self._plan_days.find_in_period(
                    order_id,
                    workshop.id,
                    self._allocator.plan_floor(workshop, floor_id),
                    period.start,
                    period.end,
                )
                planned = sum(day.planned_qty for day in stored)
            if planned == 0 and planned_total is not None:
                planned = planned_total
            return self._calculator.check_period(result, period, planned)

    def flow_apply_auto(
        self,
        order_id: UUID,
        workshop_id: int,
        floor_id: int | None,
        start: date,
        end: date,
        params: FlowParameters | Mapping[str, Any],
        planned_total: int | None = None,
    ) -> FlowAutoApplyResult:
        """
        Plan an order from a line-balance calculation.

        The whole-unit per-shift output becomes the daily capacity of an
        even day split; an overloaded period raises OverloadError and
        writes nothing.
        """
        with self._order_operation(
            "flow_apply_auto", order_id, workshop_id=workshop_id
        ) as order:
            flow = self._calculator.calculate(self._coerce_params(params))
            daily = self._calculator.daily_capacity(flow)

            workshop = self._load_workshop(workshop_id)
            self._allocator.ensure_order_in_workshop(order, workshop)
            plan_floor = self._allocator.plan_floor(workshop, floor_id)
            period = DateRange.between(start, end)

            if planned_total is None:
                remaining = self._remaining_for(order, workshop, plan_floor)
            else:
                remaining = BusinessRuleValidators.validate_integer(
                    "planned_total", planned_total
                )
            if remaining <= 0:
                raise ValidationError(
                    "planned_total", remaining, "Nothing left to plan", "NOT_POSITIVE"
                )

            plan = self._allocator.calculate(remaining, period, daily_capacity=daily)
            self._allocator.ensure_fits(plan)

            saved = self._allocator.apply(
                self._plan_days, order.id, workshop.id, plan_floor, plan.days
            )
            if order.bind_floor(plan_floor):
                self._save(order)

            logger.info(
                "Flow plan applied",
                order_id=str(order.id),
                daily_capacity=daily,
                days=len(saved),
                planned=plan.planned_sum,
            )
            return FlowAutoApplyResult(
                flow=self._calculator.check_period(flow, period, remaining),
                plan=plan,
                daily_capacity=daily,
                days=saved,
            )

    # Helpers

    @contextmanager
    def _operation(self, name: str, **context: Any) -> Iterator[None]:
        set_operation_id()
        try:
            yield
        except DomainError as error:
            logger.warning("Operation rejected", operation=name, **context, **error.to_dict())
            raise

    @contextmanager
    def _order_operation(self, name: str, order_id: UUID, **context: Any) -> Iterator[Order]:
        with self._operation(name, order_id=str(order_id), **context):
            with self._locks.hold(order_id):
                yield self._load_order(order_id)

    @contextmanager
    def _assignment_operation(
        self, name: str, assignment_id: UUID, **context: Any
    ) -> Iterator[Order]:
        with self._operation(name, assignment_id=str(assignment_id), **context):
            order_id = self._order_for_assignment(assignment_id).id
            with self._locks.hold(order_id):
                yield self._order_for_assignment(assignment_id)

    def _load_order(self, order_id: UUID) -> Order:
        order = self._orders.get_by_id(order_id)
        if order is None:
            raise EntityNotFoundError("Order", order_id)
        return order

    def _order_for_assignment(self, assignment_id: UUID) -> Order:
        order = self._orders.get_by_assignment_id(assignment_id)
        if order is None:
            raise EntityNotFoundError("OperationAssignment", assignment_id)
        return order

    def _load_workshop(self, workshop_id: int) -> Workshop:
        workshop = self._workshops.get_by_id(workshop_id)
        if workshop is None:
            raise EntityNotFoundError("Workshop", workshop_id)
        return workshop

    def _save(self, order: Order) -> None:
        self._orders.save(order)
        for event in order.get_domain_events():
            logger.info(
                "Domain event",
                event_type=event.event_type,
                **event.model_dump(mode="json", exclude={"event_id", "occurred_at"}),
            )
        order.clear_domain_events()

    def _remaining_for(self, order: Order, workshop: Workshop, floor_id: int | None) -> int:
        produced = sum(
            day.actual_qty
            for day in self._plan_days.find_in_period(
                order.id, workshop.id, floor_id, date.min, date.max
            )
        )
        cut_actual = sum(a.actual_total for a in order.assignments_in(StageCategory.CUTTING))
        return self._allocator.resolve_remaining(order.total_quantity, produced, cut_actual)

    def _resolve_plan(
        self, raw: OperationAssignmentRequest | Mapping[str, Any]
    ) -> OperationPlan:
        request = (
            raw
            if isinstance(raw, OperationAssignmentRequest)
            else self._parse(OperationAssignmentRequest, raw)
        )
        definition = self._catalog.get_by_id(request.operation_id)
        if definition is None:
            raise EntityNotFoundError("Operation", request.operation_id)

        worker = None
        if request.worker_id is not None:
            worker = self._workforce.get_worker(request.worker_id)
            if worker is None:
                raise EntityNotFoundError("Worker", request.worker_id)

        return OperationPlan(
            definition=definition,
            worker=worker,
            planned_quantity=request.planned_quantity,
            planned_date=request.planned_date,
            floor_id=request.floor_id,
        )

    @staticmethod
    def _coerce_status(status: OperationStatus | str) -> OperationStatus:
        try:
            return OperationStatus(status)
        except ValueError:
            raise ValidationError(
                "status",
                status,
                "Status must be one of: " + ", ".join(s.value for s in OperationStatus),
                "INVALID_STATUS",
            ) from None

    @staticmethod
    def _coerce_actual(raw: VariantActual | Mapping[str, Any]) -> VariantActual:
        if isinstance(raw, VariantActual):
            return raw
        return VariantActual(
            color=str(raw.get("color", "")).strip(),
            size=str(raw.get("size", "")).strip(),
            actual_qty=raw.get("actual_qty"),
        )

    @staticmethod
    def _coerce_params(params: FlowParameters | Mapping[str, Any]) -> FlowParameters:
        if isinstance(params, FlowParameters):
            return params
        return ProductionEngine._parse(FlowParameters, params)

    @staticmethod
    def _parse(model: type[ModelT], raw: Mapping[str, Any]) -> ModelT:
        """Validate plain input data, reporting the first failure as a domain error."""
        try:
            return model.model_validate(raw)
        except PydanticValidationError as exc:
            error = exc.errors()[0]
            field = ".".join(str(part) for part in error["loc"]) or model.__name__
            raise ValidationError(
                field, error.get("input"), error["msg"], "INVALID_INPUT"
            ) from None
