"""Shared fixtures for the production engine tests."""

from datetime import datetime

import pytest

from sewflow.application.production_service import ProductionEngine
from sewflow.core.locking import OrderLockRegistry
from sewflow.domain.production.entities.order import Order
from sewflow.domain.production.services import (
    CapacityAllocator,
    LineBalanceCalculator,
    StageGraph,
)
from sewflow.domain.production.value_objects.planning_config import PlanningConfig
from sewflow.infrastructure.memory import (
    InMemoryOperationCatalog,
    InMemoryOrderRepository,
    InMemoryPlanDayRepository,
    InMemoryWorkforceDirectory,
    InMemoryWorkshopRepository,
)

from .factories import OrderFactory, ReferenceDataFactory

FIXED_NOW = datetime(2026, 3, 10, 12, 0, 0)


@pytest.fixture
def planning_config() -> PlanningConfig:
    return PlanningConfig()


@pytest.fixture
def stage_graph(planning_config) -> StageGraph:
    return StageGraph(planning_config)


@pytest.fixture
def allocator(planning_config) -> CapacityAllocator:
    return CapacityAllocator(planning_config)


@pytest.fixture
def calculator(planning_config) -> LineBalanceCalculator:
    return LineBalanceCalculator(planning_config)


@pytest.fixture
def order() -> Order:
    """Order of 15 units: red/S 10, red/M 5, in the four-floor workshop."""
    return OrderFactory.create()


@pytest.fixture
def order_repository() -> InMemoryOrderRepository:
    return InMemoryOrderRepository()


@pytest.fixture
def plan_day_repository() -> InMemoryPlanDayRepository:
    return InMemoryPlanDayRepository()


@pytest.fixture
def catalog() -> InMemoryOperationCatalog:
    return InMemoryOperationCatalog(ReferenceDataFactory.operations())


@pytest.fixture
def workforce() -> InMemoryWorkforceDirectory:
    return InMemoryWorkforceDirectory(ReferenceDataFactory.workers())


@pytest.fixture
def workshops() -> InMemoryWorkshopRepository:
    return InMemoryWorkshopRepository(ReferenceDataFactory.workshops())


@pytest.fixture
def engine(
    order_repository,
    catalog,
    workforce,
    workshops,
    plan_day_repository,
    planning_config,
) -> ProductionEngine:
    return ProductionEngine(
        orders=order_repository,
        catalog=catalog,
        workforce=workforce,
        workshops=workshops,
        plan_days=plan_day_repository,
        config=planning_config,
        locks=OrderLockRegistry(),
        clock=lambda: FIXED_NOW,
    )


@pytest.fixture
def stored_order(order_repository, order) -> Order:
    """The default order, saved in the repository."""
    order_repository.save(order)
    return order
