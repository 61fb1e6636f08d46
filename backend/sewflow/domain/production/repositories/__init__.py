from .order_repository import OrderRepository
from .plan_day_repository import PlanDayRepository
from .reference_repository import OperationCatalog, WorkforceDirectory, WorkshopRepository

__all__ = [
    "OperationCatalog",
    "OrderRepository",
    "PlanDayRepository",
    "WorkforceDirectory",
    "WorkshopRepository",
]
