from .calendar import DateRange
from .capacity import CapacityPlan, PlanDayKey, PlannedDay
from .enums import (
    FlowMode,
    OperationStatus,
    OrderStatus,
    ProductType,
    StageCategory,
)
from .flow import FlowCalculationResult, FlowParameters
from .planning_config import PlanningConfig
from .reference import OperationDefinition, Worker, Workshop
from .variant_matrix import (
    VariantCell,
    VariantKey,
    VariantMatrix,
    distribute_row_total,
    split_evenly,
    validate_matrix,
)

__all__ = [
    "CapacityPlan",
    "DateRange",
    "FlowCalculationResult",
    "FlowMode",
    "FlowParameters",
    "OperationDefinition",
    "OperationStatus",
    "OrderStatus",
    "PlanDayKey",
    "PlannedDay",
    "PlanningConfig",
    "ProductType",
    "StageCategory",
    "VariantCell",
    "VariantKey",
    "VariantMatrix",
    "Worker",
    "Workshop",
    "distribute_row_total",
    "split_evenly",
    "validate_matrix",
]
