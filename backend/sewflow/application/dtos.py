"""
Data Transfer Objects for the production engine.

Command DTOs describe what the calling layer sends in; result DTOs bundle
what a multi-step engine call produced.
"""

from datetime import date

from pydantic import BaseModel, ConfigDict, Field

from sewflow.domain.production.entities.plan_day import ProductionPlanDay
from sewflow.domain.production.value_objects.capacity import CapacityPlan
from sewflow.domain.production.value_objects.flow import FlowCalculationResult


class OperationAssignmentRequest(BaseModel):
    """One operation of a distribution request."""

    operation_id: int = Field(..., description="Catalogue operation id")
    worker_id: int | None = Field(None, description="Responsible worker; optional for finish")
    planned_quantity: int = Field(..., description="Units planned for this operation")
    planned_date: date | None = Field(None, description="Day the operation is planned for")
    floor_id: int | None = Field(None, description="Explicit production floor override")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "operation_id": 12,
                "worker_id": 7,
                "planned_quantity": 120,
                "planned_date": "2026-03-02",
                "floor_id": 3,
            }
        }
    )


class CapacityApplyResult(BaseModel):
    """Plan days written by apply_capacity."""

    floor_id: int | None
    days: list[ProductionPlanDay]
    order_floor_bound: bool = False

    @property
    def planned_sum(self) -> int:
        return sum(day.planned_qty for day in self.days)


class FlowAutoApplyResult(BaseModel):
    """Outcome of planning an order from a line-balance calculation."""

    flow: FlowCalculationResult
    plan: CapacityPlan
    daily_capacity: int
    days: list[ProductionPlanDay]
