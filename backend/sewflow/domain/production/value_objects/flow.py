"""Line-balance calculator inputs and results."""

from pydantic import ConfigDict, Field

from ...shared.base import ValueObject
from .enums import FlowMode, ProductType


class FlowParameters(ValueObject):
    """
    Inputs of the line-balance calculator.

    Field aliases follow the shop-floor notation (Msm, Np, Kr, Su, T, M) so
    payloads from the planning UI can be passed straight through.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    mode: FlowMode
    shift_hours: float | None = Field(default=None, gt=0)
    product_type: ProductType = ProductType.DRESS
    shift_capacity: float | None = Field(default=None, alias="Msm")
    workers: float | None = Field(default=None, alias="Np")
    workplaces: float | None = Field(default=None, alias="Kr")
    area: float | None = Field(default=None, alias="Su")
    labor_time_sec: float | None = Field(default=None, alias="T")
    shift_output: float | None = Field(default=None, alias="M")
    operation_time_sec: float | None = None


class FlowCalculationResult(ValueObject):
    """Computed line parameters; recomputed on every request, never cached."""

    mode: FlowMode
    shift_seconds: float
    takt_sec: float | None = None
    workers: float | None = None
    workplaces: float | None = None
    shift_output: float | None = None
    f_used: float
    s_used: float
    output_norm_per_shift: float | None = None
    notes: tuple[str, ...] = ()

    period_days: int = 0
    planned_total_in_period: int = 0
    capacity_total_in_period: int = 0
    capacity_ok: bool = True
    capacity_percent: int = 0
