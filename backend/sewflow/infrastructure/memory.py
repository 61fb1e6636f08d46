"""
In-memory repository implementations.

Every read and write goes through a deep copy, so callers never hold a
reference into the store: a call that fails halfway leaves nothing behind.
"""

import threading
from collections.abc import Iterable
from datetime import date
from uuid import UUID

from sewflow.domain.production.entities.order import Order
from sewflow.domain.production.entities.plan_day import ProductionPlanDay
from sewflow.domain.production.repositories import (
    OperationCatalog,
    OrderRepository,
    PlanDayRepository,
    WorkforceDirectory,
    WorkshopRepository,
)
from sewflow.domain.production.value_objects.capacity import PlanDayKey
from sewflow.domain.production.value_objects.reference import (
    OperationDefinition,
    Worker,
    Workshop,
)


class InMemoryOrderRepository(OrderRepository):
    def __init__(self, orders: Iterable[Order] = ()) -> None:
        self._orders: dict[UUID, Order] = {}
        self._lock = threading.Lock()
        for order in orders:
            self.save(order)

    def get_by_id(self, order_id: UUID) -> Order | None:
        with self._lock:
            order = self._orders.get(order_id)
            return order.model_copy(deep=True) if order else None

    def get_by_assignment_id(self, assignment_id: UUID) -> Order | None:
        with self._lock:
            for order in self._orders.values():
                if order.has_assignment(assignment_id):
                    return order.model_copy(deep=True)
        return None

    def save(self, order: Order) -> Order:
        stored = order.model_copy(deep=True)
        # pending events belong to the caller's instance, not the store
        stored.clear_domain_events()
        with self._lock:
            self._orders[order.id] = stored
        return order

    def __len__(self) -> int:
        return len(self._orders)


class InMemoryOperationCatalog(OperationCatalog):
    def __init__(self, operations: Iterable[OperationDefinition] = ()) -> None:
        self._operations = {operation.id: operation for operation in operations}

    def add(self, operation: OperationDefinition) -> None:
        self._operations[operation.id] = operation

    def get_by_id(self, operation_id: int) -> OperationDefinition | None:
        return self._operations.get(operation_id)


class InMemoryWorkforceDirectory(WorkforceDirectory):
    def __init__(
        self, workers: Iterable[Worker] = (), technologist_ids: Iterable[int] = ()
    ) -> None:
        self._workers = {worker.id: worker for worker in workers}
        self._technologists = set(technologist_ids)
        self._technologists.update(worker.technologist_id for worker in self._workers.values())

    def add_worker(self, worker: Worker) -> None:
        self._workers[worker.id] = worker
        self._technologists.add(worker.technologist_id)

    def add_technologist(self, technologist_id: int) -> None:
        self._technologists.add(technologist_id)

    def get_worker(self, worker_id: int) -> Worker | None:
        return self._workers.get(worker_id)

    def technologist_exists(self, technologist_id: int) -> bool:
        return technologist_id in self._technologists

    def workers_on_floor(self, floor_id: int) -> list[Worker]:
        return [worker for worker in self._workers.values() if worker.floor_id == floor_id]


class InMemoryWorkshopRepository(WorkshopRepository):
    def __init__(self, workshops: Iterable[Workshop] = ()) -> None:
        self._workshops = {workshop.id: workshop for workshop in workshops}

    def add(self, workshop: Workshop) -> None:
        self._workshops[workshop.id] = workshop

    def get_by_id(self, workshop_id: int) -> Workshop | None:
        return self._workshops.get(workshop_id)


class InMemoryPlanDayRepository(PlanDayRepository):
    def __init__(self) -> None:
        self._days: dict[PlanDayKey, ProductionPlanDay] = {}
        self._lock = threading.Lock()

    def get(self, key: PlanDayKey) -> ProductionPlanDay | None:
        with self._lock:
            plan_day = self._days.get(key)
            return plan_day.model_copy(deep=True) if plan_day else None

    def save(self, plan_day: ProductionPlanDay) -> ProductionPlanDay:
        with self._lock:
            self._days[plan_day.key] = plan_day.model_copy(deep=True)
        return plan_day

    def find_in_period(
        self,
        order_id: UUID,
        workshop_id: int,
        floor_id: int | None,
        start: date,
        end: date,
    ) -> list[ProductionPlanDay]:
        with self._lock:
            matches = [
                plan_day.model_copy(deep=True)
                for key, plan_day in self._days.items()
                if key.order_id == order_id
                and key.workshop_id == workshop_id
                and key.floor_id == floor_id
                and start <= key.day <= end
            ]
        return sorted(matches, key=lambda plan_day: plan_day.key.day)

    def __len__(self) -> int:
        return len(self._days)
