from .capacity_allocator import CapacityAllocator
from .line_balance import LineBalanceCalculator
from .stage_graph import ChainStatus, OperationPlan, OrderCompletionSummary, StageGraph

__all__ = [
    "CapacityAllocator",
    "ChainStatus",
    "LineBalanceCalculator",
    "OperationPlan",
    "OrderCompletionSummary",
    "StageGraph",
]
