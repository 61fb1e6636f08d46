"""Explicit configuration consumed by the allocator and the flow calculator."""

from pydantic import Field

from ...shared.base import ValueObject
from .enums import ProductType


class PlanningConfig(ValueObject):
    """
    Capacity and line-balance constants.

    Built from EngineSettings by the application layer and passed into the
    domain services, which never read ambient settings themselves.
    """

    shift_hours: float = Field(default=8.0, gt=0)
    capacity_week_min: int = Field(default=1000, ge=0)
    capacity_week_max: int = Field(default=5000, ge=0)
    default_daily_capacity: int = Field(default=200, ge=0)
    finish_floor_id: int = 1
    units_per_workplace_per_shift: float = Field(default=20.0, gt=0)
    workers_per_workplace: dict[ProductType, float] = Field(
        default_factory=lambda: {
            ProductType.DRESS: 1.15,
            ProductType.COAT: 1.25,
            ProductType.SUIT: 1.2,
            ProductType.UNDERWEAR: 1.15,
        }
    )
    area_per_workplace: dict[ProductType, float] = Field(
        default_factory=lambda: {
            ProductType.COAT: 5.0,
            ProductType.SUIT: 4.3,
            ProductType.DRESS: 4.0,
            ProductType.UNDERWEAR: 4.0,
        }
    )

    @property
    def shift_seconds(self) -> float:
        return self.shift_hours * 3600

    def f_coefficient(self, product_type: ProductType) -> float:
        return self.workers_per_workplace.get(product_type, 1.15)

    def area_norm(self, product_type: ProductType) -> float:
        return self.area_per_workplace.get(product_type, 4.0)
