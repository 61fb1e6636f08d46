from .assignment import (
    AnyAssignment,
    CuttingAssignment,
    FinishAssignment,
    OperationAssignment,
    OperationVariantRow,
    SewingAssignment,
    VariantActual,
    build_assignment,
)
from .order import Order
from .plan_day import ProductionPlanDay

__all__ = [
    "AnyAssignment",
    "CuttingAssignment",
    "FinishAssignment",
    "OperationAssignment",
    "OperationVariantRow",
    "Order",
    "ProductionPlanDay",
    "SewingAssignment",
    "VariantActual",
    "build_assignment",
]
