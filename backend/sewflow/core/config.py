from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing_extensions import Self

from sewflow.domain.production.value_objects.enums import ProductType
from sewflow.domain.production.value_objects.planning_config import PlanningConfig


class EngineSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="SEWFLOW_",
        env_file=".env",
        env_ignore_empty=True,
        extra="ignore",
    )
    ENVIRONMENT: Literal["local", "staging", "production"] = "local"

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: Literal["json", "console"] = "json"

    # Shift and capacity
    SHIFT_HOURS: float = Field(default=8.0, gt=0)
    CAPACITY_WEEK_MIN: int = Field(default=1000, ge=0)
    CAPACITY_WEEK_MAX: int = Field(default=5000, ge=0)
    DEFAULT_DAILY_CAPACITY: int = Field(default=200, ge=0)

    # Floor 1 hosts finishing (QC, packing); production runs on the others
    FINISH_FLOOR_ID: int = 1

    # Line balancing
    UNITS_PER_WORKPLACE_PER_SHIFT: float = Field(default=20.0, gt=0)
    WORKERS_PER_WORKPLACE: dict[ProductType, float] = {
        ProductType.DRESS: 1.15,
        ProductType.COAT: 1.25,
        ProductType.SUIT: 1.2,
        ProductType.UNDERWEAR: 1.15,
    }
    AREA_PER_WORKPLACE: dict[ProductType, float] = {
        ProductType.DRESS: 4.0,
        ProductType.COAT: 5.0,
        ProductType.SUIT: 4.3,
        ProductType.UNDERWEAR: 4.0,
    }

    @model_validator(mode="after")
    def _check_capacity_bounds(self) -> Self:
        if self.CAPACITY_WEEK_MIN > self.CAPACITY_WEEK_MAX:
            raise ValueError(
                "CAPACITY_WEEK_MIN must not exceed CAPACITY_WEEK_MAX "
                f"({self.CAPACITY_WEEK_MIN} > {self.CAPACITY_WEEK_MAX})"
            )
        return self

    def planning_config(self) -> PlanningConfig:
        """Frozen planning constants handed to the domain services."""
        return PlanningConfig(
            shift_hours=self.SHIFT_HOURS,
            capacity_week_min=self.CAPACITY_WEEK_MIN,
            capacity_week_max=self.CAPACITY_WEEK_MAX,
            default_daily_capacity=self.DEFAULT_DAILY_CAPACITY,
            finish_floor_id=self.FINISH_FLOOR_ID,
            units_per_workplace_per_shift=self.UNITS_PER_WORKPLACE_PER_SHIFT,
            workers_per_workplace=dict(self.WORKERS_PER_WORKPLACE),
            area_per_workplace=dict(self.AREA_PER_WORKPLACE),
        )


settings = EngineSettings()
