"""Production plan day: one scheduled day of an order on a workshop floor."""

from pydantic import BaseModel, ConfigDict, Field

from ..value_objects.capacity import PlanDayKey


class ProductionPlanDay(BaseModel):
    """Stored schedule row, unique per (order, workshop, date, floor)."""

    model_config = ConfigDict(validate_assignment=True)

    key: PlanDayKey
    planned_qty: int = Field(default=0, ge=0)
    actual_qty: int = Field(default=0, ge=0)
    notes: str | None = None
