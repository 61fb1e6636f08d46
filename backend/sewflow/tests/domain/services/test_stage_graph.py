"""
Unit Tests for the StageGraph Domain Service

Tests stage gating, fulfilment checks, order completion, distribution
and floor placement.
"""

from datetime import date, datetime
from uuid import uuid4

import pytest

from sewflow.domain.production.entities.assignment import VariantActual
from sewflow.domain.production.services import OperationPlan
from sewflow.domain.production.value_objects.enums import (
    OperationStatus,
    OrderStatus,
    StageCategory,
)
from sewflow.domain.shared.exceptions import (
    BusinessRuleError,
    EntityNotFoundError,
    FloorLockedError,
    IncompleteOperationsError,
    IncompleteVariantsError,
    StageBlockedError,
    StatusTransitionError,
    ValidationError,
)
from sewflow.tests.factories import AssignmentFactory, OrderFactory, ReferenceDataFactory

FULL = [
    VariantActual(color="red", size="S", actual_qty=10),
    VariantActual(color="red", size="M", actual_qty=5),
]


def _finish(stage_graph, order, assignment):
    """Drive one assignment through start, full actuals and completion."""
    stage_graph.start(order, assignment.id)
    if assignment.has_variant_rows:
        stage_graph.update_variants(order, assignment.id, FULL)
    else:
        stage_graph.update_actual_total(order, assignment.id, assignment.planned_total)
    stage_graph.complete(order, assignment.id)


class TestStageGating:
    """Test the CUTTING -> SEWING -> FINISH chain."""

    def test_sewing_cannot_start_before_cutting_done(self, stage_graph):
        order = OrderFactory.create()
        cutting, sewing, _ = AssignmentFactory.chain(order)

        with pytest.raises(StageBlockedError) as exc_info:
            stage_graph.start(order, sewing.id)

        assert exc_info.value.blocking_stage == "CUTTING"
        assert sewing.status == OperationStatus.WAITING

    def test_finish_blocked_by_sewing(self, stage_graph):
        """Test that finish waits for sewing even when cutting is done."""
        order = OrderFactory.create()
        cutting, sewing, finish = AssignmentFactory.chain(order)
        _finish(stage_graph, order, cutting)

        with pytest.raises(StageBlockedError) as exc_info:
            stage_graph.start(order, finish.id)

        assert exc_info.value.blocking_stage == "SEWING"

    def test_chain_in_order_succeeds(self, stage_graph):
        order = OrderFactory.create()
        assignments = AssignmentFactory.chain(order)

        for assignment in assignments:
            _finish(stage_graph, order, assignment)

        assert all(a.status == OperationStatus.DONE for a in order.assignments)

    def test_stage_without_assignments_does_not_block(self, stage_graph):
        """Test that sewing may start on an order with no cutting operation."""
        order = OrderFactory.create()
        sewing = AssignmentFactory.create(order, StageCategory.SEWING)

        stage_graph.start(order, sewing.id)

        assert sewing.status == OperationStatus.IN_PROGRESS

    def test_variant_edit_blocked_by_earlier_stage(self, stage_graph):
        order = OrderFactory.create()
        _, sewing, _ = AssignmentFactory.chain(order)

        with pytest.raises(StageBlockedError):
            stage_graph.update_variants(order, sewing.id, FULL)

        assert sewing.actual_total == 0

    def test_status_change_records_event(self, stage_graph):
        order = OrderFactory.create()
        cutting = AssignmentFactory.create(order, StageCategory.CUTTING)

        stage_graph.start(order, cutting.id, at=datetime(2026, 3, 2, 8, 0))

        event = order.get_domain_events()[-1]
        assert event.assignment_id == cutting.id
        assert event.old_status == OperationStatus.WAITING
        assert event.new_status == OperationStatus.IN_PROGRESS


class TestCompleteOperation:
    """Test completion of a single operation."""

    def test_partial_actuals_reject_completion(self, stage_graph):
        """Test that planned {10, 5} with actual {10, 4} cannot complete."""
        order = OrderFactory.create()
        cutting = AssignmentFactory.create(order, StageCategory.CUTTING)
        stage_graph.start(order, cutting.id)
        stage_graph.update_variants(
            order,
            cutting.id,
            [
                VariantActual(color="red", size="S", actual_qty=10),
                VariantActual(color="red", size="M", actual_qty=4),
            ],
        )

        with pytest.raises(IncompleteVariantsError) as exc_info:
            stage_graph.complete(order, cutting.id)

        assert exc_info.value.operations == ["Cutting"]
        assert exc_info.value.rows[0]["size"] == "M"
        assert cutting.status == OperationStatus.IN_PROGRESS

    def test_full_actuals_complete_with_total(self, stage_graph):
        """Test that planned {10, 5} with actual {10, 5} completes with total 15."""
        order = OrderFactory.create()
        cutting = AssignmentFactory.create(order, StageCategory.CUTTING)
        stage_graph.start(order, cutting.id)
        stage_graph.update_variants(order, cutting.id, FULL)

        stage_graph.complete(order, cutting.id)

        assert cutting.status == OperationStatus.DONE
        assert cutting.actual_total == 15

    def test_waiting_operation_cannot_complete(self, stage_graph):
        order = OrderFactory.create()
        cutting = AssignmentFactory.create(order, StageCategory.CUTTING)

        with pytest.raises(StatusTransitionError) as exc_info:
            stage_graph.complete(order, cutting.id)

        assert "start it first" in exc_info.value.message

    def test_rowless_operation_compares_totals(self, stage_graph):
        order = OrderFactory.create(with_matrix=False)
        cutting = AssignmentFactory.create(order, StageCategory.CUTTING)
        stage_graph.start(order, cutting.id)
        stage_graph.update_actual_total(order, cutting.id, 14)

        with pytest.raises(IncompleteVariantsError):
            stage_graph.complete(order, cutting.id)

        stage_graph.update_actual_total(order, cutting.id, 15)
        stage_graph.complete(order, cutting.id)
        assert cutting.is_done

    def test_done_operation_rejects_edits(self, stage_graph):
        order = OrderFactory.create()
        cutting = AssignmentFactory.create(order, StageCategory.CUTTING)
        _finish(stage_graph, order, cutting)

        with pytest.raises(BusinessRuleError):
            stage_graph.update_variants(order, cutting.id, FULL)

    def test_change_status_to_done_checks_fulfilment(self, stage_graph):
        """Test that the generic status change cannot bypass the row check."""
        order = OrderFactory.create()
        cutting = AssignmentFactory.create(order, StageCategory.CUTTING)
        stage_graph.change_status(order, cutting.id, OperationStatus.IN_PROGRESS)

        with pytest.raises(IncompleteVariantsError):
            stage_graph.change_status(order, cutting.id, OperationStatus.DONE)

    def test_rollback_reopens_done_operation(self, stage_graph):
        order = OrderFactory.create()
        cutting = AssignmentFactory.create(order, StageCategory.CUTTING)
        _finish(stage_graph, order, cutting)

        with pytest.raises(StatusTransitionError):
            stage_graph.change_status(order, cutting.id, OperationStatus.IN_PROGRESS)

        stage_graph.change_status(
            order, cutting.id, OperationStatus.IN_PROGRESS, allow_rollback=True
        )
        assert cutting.status == OperationStatus.IN_PROGRESS


class TestChainStatus:
    def test_blocked_operation(self, stage_graph):
        order = OrderFactory.create()
        _, sewing, _ = AssignmentFactory.chain(order)

        status = stage_graph.chain_status(order, sewing.id)

        assert not status.can_start
        assert not status.can_complete
        assert status.blocking_stage == StageCategory.CUTTING
        assert "CUTTING" in status.block_reason

    def test_in_progress_with_missing_actuals(self, stage_graph):
        order = OrderFactory.create()
        cutting = AssignmentFactory.create(order, StageCategory.CUTTING)
        stage_graph.start(order, cutting.id)

        status = stage_graph.chain_status(order, cutting.id)

        assert not status.can_start
        assert not status.can_complete
        assert status.block_reason == "Fill actuals for every variant"

    def test_ready_to_complete(self, stage_graph):
        order = OrderFactory.create()
        cutting = AssignmentFactory.create(order, StageCategory.CUTTING)
        stage_graph.start(order, cutting.id)
        stage_graph.update_variants(order, cutting.id, FULL)

        status = stage_graph.chain_status(order, cutting.id)

        assert status.can_complete
        assert status.block_reason is None


class TestCompleteOrder:
    """Test closing an order."""

    def test_unfinished_operations_block_completion(self, stage_graph):
        order = OrderFactory.create()
        cutting, _, _ = AssignmentFactory.chain(order)
        _finish(stage_graph, order, cutting)

        with pytest.raises(IncompleteOperationsError) as exc_info:
            stage_graph.complete_order(order, datetime(2026, 3, 10))

        assert exc_info.value.operations == ["Sewing", "Packing"]
        assert order.status == OrderStatus.ACCEPTED

    def test_order_without_assignments_is_rejected(self, stage_graph):
        order = OrderFactory.create()

        with pytest.raises(IncompleteOperationsError):
            stage_graph.complete_order(order, datetime(2026, 3, 10))

    def test_unfilled_rows_block_completion(self, stage_graph):
        """Test that a done operation with short rows still blocks the order."""
        order = OrderFactory.create()
        AssignmentFactory.create(order, StageCategory.CUTTING, status=OperationStatus.DONE)

        with pytest.raises(IncompleteVariantsError):
            stage_graph.complete_order(order, datetime(2026, 3, 10))

    def test_overdue_order_completes(self, stage_graph):
        """Test that lateness is reported, not enforced."""
        order = OrderFactory.create(deadline=date(2026, 3, 1))
        for assignment in AssignmentFactory.chain(order):
            _finish(stage_graph, order, assignment)

        summary = stage_graph.complete_order(order, datetime(2026, 3, 10, 12, 0))

        assert order.status == OrderStatus.DONE
        assert summary.is_overdue
        assert summary.operations_count == 3
        assert summary.planned_units == 45
        assert summary.actual_units == 45

    def test_summary_weights_minutes_by_norm(self, stage_graph):
        order = OrderFactory.create(deadline=date(2026, 4, 1))
        cutting = AssignmentFactory.create(order, StageCategory.CUTTING, norm_minutes=2.0)
        _finish(stage_graph, order, cutting)

        summary = stage_graph.complete_order(order, datetime(2026, 3, 10))

        assert not summary.is_overdue
        assert summary.planned_minutes == 30.0
        assert summary.actual_minutes == 30.0

    def test_done_order_cannot_complete_again(self, stage_graph):
        order = OrderFactory.create()
        cutting = AssignmentFactory.create(order, StageCategory.CUTTING)
        _finish(stage_graph, order, cutting)
        stage_graph.complete_order(order, datetime(2026, 3, 10))

        with pytest.raises(BusinessRuleError):
            stage_graph.complete_order(order, datetime(2026, 3, 11))


def _plans(*entries):
    operations = {op.id: op for op in ReferenceDataFactory.operations()}
    workers = {worker.id: worker for worker in ReferenceDataFactory.workers()}
    return [
        OperationPlan(
            definition=operations[operation_id],
            worker=workers.get(worker_id),
            planned_quantity=quantity,
            planned_date=planned_date,
            floor_id=floor_id,
        )
        for operation_id, worker_id, quantity, planned_date, floor_id in entries
    ]


DAY = date(2026, 3, 2)


class TestAssign:
    """Test (re)distribution of an order."""

    def test_assign_builds_chain_and_seeds_rows(self, stage_graph):
        order = OrderFactory.create()

        assignments = stage_graph.assign(
            order,
            _plans((1, 100, 15, DAY, None), (2, 101, 15, DAY, None), (3, None, 15, DAY, None)),
            floor_id=2,
            technologist_id=10,
        )

        assert [a.category for a in assignments] == [
            StageCategory.CUTTING,
            StageCategory.SEWING,
            StageCategory.FINISH,
        ]
        assert all(len(a.variant_rows) == 2 for a in assignments)
        assert order.status == OrderStatus.IN_WORK
        assert order.technologist_id == 10

    def test_reassign_replaces_previous_set(self, stage_graph):
        """Test that the second distribution fully replaces the first."""
        order = OrderFactory.create()
        first = stage_graph.assign(
            order, _plans((1, 100, 15, DAY, None), (2, 101, 15, DAY, None)), 2, 10
        )

        second = stage_graph.assign(order, _plans((4, 102, 15, DAY, None)), 3, 10)

        assert order.assignments == second
        assert not any(order.has_assignment(a.id) for a in first)
        assert order.floor_id == 3

    def test_failed_reassign_keeps_previous_set(self, stage_graph):
        order = OrderFactory.create()
        first = stage_graph.assign(order, _plans((1, 100, 15, DAY, None)), 2, 10)

        with pytest.raises(ValidationError):
            stage_graph.assign(
                order, _plans((1, 100, 15, DAY, None), (2, None, 15, DAY, None)), 2, 10
            )

        assert order.assignments == first

    def test_planned_quantity_must_match_matrix(self, stage_graph):
        order = OrderFactory.create()

        with pytest.raises(ValidationError) as exc_info:
            stage_graph.assign(order, _plans((1, 100, 14, DAY, None)), 2, 10)

        assert exc_info.value.error_code == "PLANNED_SUM_MISMATCH"

    def test_duplicate_operation_on_same_day_rejected(self, stage_graph):
        order = OrderFactory.create()

        with pytest.raises(ValidationError) as exc_info:
            stage_graph.assign(
                order, _plans((1, 100, 15, DAY, None), (1, 101, 15, DAY, None)), 2, 10
            )

        assert exc_info.value.error_code == "DUPLICATE_OPERATION"

    def test_worker_from_other_team_rejected(self, stage_graph):
        order = OrderFactory.create()

        with pytest.raises(BusinessRuleError):
            stage_graph.assign(order, _plans((1, 200, 15, DAY, None)), 2, 10)

    def test_empty_distribution_rejected(self, stage_graph):
        with pytest.raises(ValidationError) as exc_info:
            stage_graph.assign(OrderFactory.create(), [], 2, 10)

        assert exc_info.value.error_code == "NO_OPERATIONS"

    def test_missing_planned_date_rejected(self, stage_graph):
        with pytest.raises(ValidationError):
            stage_graph.assign(OrderFactory.create(), _plans((1, 100, 15, None, None)), 2, 10)

    def test_done_order_cannot_be_distributed(self, stage_graph):
        order = OrderFactory.create(status=OrderStatus.DONE)

        with pytest.raises(BusinessRuleError):
            stage_graph.assign(order, _plans((1, 100, 15, DAY, None)), 2, 10)

    def test_floor_resolution(self, stage_graph):
        """Test locked finish, explicit, default and distribution floors."""
        order = OrderFactory.create()

        qc, cutting, overlock, sewing, embroidery = stage_graph.assign(
            order,
            _plans(
                (3, None, 15, DAY, 4),
                (1, 100, 15, DAY, 3),
                (4, 101, 15, DAY, None),
                (2, 101, 15, DAY, None),
                (5, 102, 15, DAY, 2),
            ),
            floor_id=2,
            technologist_id=10,
        )

        assert qc.floor_id == 1
        assert cutting.floor_id == 3
        assert overlock.floor_id == 4
        assert sewing.floor_id == 2
        assert embroidery.floor_id == 3


class TestChangeFloor:
    def test_move_production_operation(self, stage_graph):
        order = OrderFactory.create()
        sewing = AssignmentFactory.create(order, StageCategory.SEWING)

        stage_graph.change_floor(order, sewing.id, 3)

        assert sewing.floor_id == 3

    def test_locked_operation_cannot_move(self, stage_graph):
        order = OrderFactory.create()
        qc = AssignmentFactory.create(
            order, StageCategory.FINISH, floor_id=1, locked_to_floor=True
        )

        with pytest.raises(FloorLockedError):
            stage_graph.change_floor(order, qc.id, 1)

    def test_finish_stays_on_finish_floor(self, stage_graph):
        order = OrderFactory.create()
        packing = AssignmentFactory.create(order, StageCategory.FINISH, floor_id=1)

        with pytest.raises(FloorLockedError):
            stage_graph.change_floor(order, packing.id, 2)

    def test_production_cannot_move_to_finish_floor(self, stage_graph):
        order = OrderFactory.create()
        sewing = AssignmentFactory.create(order, StageCategory.SEWING)

        with pytest.raises(FloorLockedError):
            stage_graph.change_floor(order, sewing.id, 1)

        assert sewing.floor_id == 2

    def test_unknown_assignment(self, stage_graph):
        with pytest.raises(EntityNotFoundError):
            stage_graph.change_floor(OrderFactory.create(), uuid4(), 2)
