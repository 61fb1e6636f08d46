"""Reference data owned by the order-management layer and read by the engine."""

from pydantic import Field

from ...shared.base import ValueObject
from .enums import StageCategory


class OperationDefinition(ValueObject):
    """Catalogue entry for a production operation (cutting, sewing, QC, ...)."""

    id: int
    name: str = Field(min_length=1, max_length=200)
    category: StageCategory
    locked_to_floor: bool = False
    default_floor_id: int | None = None
    norm_minutes: float = Field(default=0.0, ge=0)


class Worker(ValueObject):
    """A sewer or cutter on a technologist's team."""

    id: int
    technologist_id: int
    floor_id: int | None = None
    capacity_per_day: int = Field(default=0, ge=0)


class Workshop(ValueObject):
    """A production workshop; multi-floor workshops plan per floor."""

    id: int
    name: str
    floors_count: int = Field(default=1, ge=1)

    @property
    def plans_per_floor(self) -> bool:
        return self.floors_count > 1
