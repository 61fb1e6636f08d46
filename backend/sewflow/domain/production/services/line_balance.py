"""
LineBalanceCalculator Domain Service

Converts line-balancing inputs into takt time, required workforce and
per-shift output. Notation follows the shop floor:

    R    shift length in seconds
    t    takt time, seconds per unit
    T    labor time of one unit, seconds
    Np   workers on the line
    Kr   workplaces
    Su   floor area, m2
    M    output per shift (Msm when given as a capacity)
    f    workers per workplace coefficient
    S    floor area norm per workplace, m2
"""

import math

from ...shared.base import DomainService
from ...shared.exceptions import ValidationError
from ...shared.validation import BusinessRuleValidators
from ..value_objects.calendar import DateRange
from ..value_objects.enums import FlowMode
from ..value_objects.flow import FlowCalculationResult, FlowParameters
from ..value_objects.planning_config import PlanningConfig


def _round(value: float | None) -> float | None:
    return None if value is None else round(value, 2)


class LineBalanceCalculator(DomainService):
    """Domain service for flow (line-balance) calculations."""

    def __init__(self, config: PlanningConfig | None = None) -> None:
        self._config = config or PlanningConfig()

    def calculate(self, params: FlowParameters) -> FlowCalculationResult:
        """
        Compute line parameters for the selected mode.

        Raises:
            ValidationError: a required input is missing, zero, negative or not finite
        """
        shift_hours = params.shift_hours or self._config.shift_hours
        shift_seconds = BusinessRuleValidators.validate_positive_number(
            "shift_hours", shift_hours
        ) * 3600
        f = self._config.f_coefficient(params.product_type)
        s = self._config.area_norm(params.product_type)
        notes = [f"R = {shift_hours:g} h x 3600 = {shift_seconds:g} s"]

        takt = workers = workplaces = output = None

        if params.mode == FlowMode.BY_SHIFT_CAPACITY:
            output = BusinessRuleValidators.validate_positive_number("Msm", params.shift_capacity)
            takt = BusinessRuleValidators.validate_positive_number("t", shift_seconds / output)
            notes.append(f"t = R / Msm = {shift_seconds:g} / {output:g} = {takt:.2f} s")
            if params.labor_time_sec is not None:
                labor = BusinessRuleValidators.validate_positive_number("T", params.labor_time_sec)
                workers = labor / takt
                notes.append(f"Np = T / t = {labor:g} / {takt:.2f} = {workers:.2f}")

        elif params.mode == FlowMode.BY_WORKERS:
            labor = BusinessRuleValidators.validate_positive_number("T", params.labor_time_sec)
            workers = BusinessRuleValidators.validate_positive_number("Np", params.workers)
            takt = BusinessRuleValidators.validate_positive_number("t", labor / workers)
            output = BusinessRuleValidators.validate_positive_number("M", shift_seconds / takt)
            notes.append(f"t = T / Np = {labor:g} / {workers:g} = {takt:.2f} s")
            notes.append(f"M = R / t = {shift_seconds:g} / {takt:.2f} = {output:.2f}")

        elif params.mode in (FlowMode.BY_WORKPLACES, FlowMode.BY_AREA):
            if params.mode == FlowMode.BY_AREA:
                area = BusinessRuleValidators.validate_positive_number("Su", params.area)
                workplaces = area / s
                notes.append(f"Kr = Su / S = {area:g} / {s:g} = {workplaces:.2f}")
            else:
                workplaces = BusinessRuleValidators.validate_positive_number(
                    "Kr", params.workplaces
                )
            rate = self._config.units_per_workplace_per_shift
            workers = workplaces / f
            output = workplaces * rate
            takt = BusinessRuleValidators.validate_positive_number("t", shift_seconds / output)
            notes.append(f"Np = Kr / f = {workplaces:.2f} / {f:g} = {workers:.2f}")
            notes.append(f"M = Kr x {rate:g} = {output:.2f}")
            notes.append(f"t = R / M = {shift_seconds:g} / {output:.2f} = {takt:.2f} s")

        elif params.mode == FlowMode.BY_T_AND_M:
            labor = BusinessRuleValidators.validate_positive_number("T", params.labor_time_sec)
            output = BusinessRuleValidators.validate_positive_number("M", params.shift_output)
            takt = BusinessRuleValidators.validate_positive_number("t", shift_seconds / output)
            workers = labor / takt
            notes.append(f"t = R / M = {shift_seconds:g} / {output:g} = {takt:.2f} s")
            notes.append(f"Np = T / t = {labor:g} / {takt:.2f} = {workers:.2f}")

        else:
            raise ValidationError("mode", params.mode, "Unknown flow mode", "UNKNOWN_MODE")

        output_norm = None
        if params.operation_time_sec is not None:
            op_time = BusinessRuleValidators.validate_positive_number(
                "operation_time_sec", params.operation_time_sec
            )
            output_norm = shift_seconds / op_time
            notes.append(f"Nv = R / t_op = {shift_seconds:g} / {op_time:g} = {output_norm:.2f}")

        return FlowCalculationResult(
            mode=params.mode,
            shift_seconds=_round(shift_seconds),
            takt_sec=_round(takt),
            workers=_round(workers),
            workplaces=_round(workplaces),
            shift_output=_round(output),
            f_used=f,
            s_used=s,
            output_norm_per_shift=_round(output_norm),
            notes=tuple(notes),
        )

    def check_period(
        self, result: FlowCalculationResult, period: DateRange, planned_total: int
    ) -> FlowCalculationResult:
        """Compare planned output of a period with what the line can produce."""
        planned = BusinessRuleValidators.validate_non_negative_int("planned_total", planned_total)
        if not result.shift_output:
            raise ValidationError(
                "shift_output", result.shift_output, "Shift output is not known", "NOT_POSITIVE"
            )
        days = period.day_count
        capacity = round(result.shift_output * days)
        percent = round(planned / capacity * 100) if capacity > 0 else 0
        return result.model_copy(
            update={
                "period_days": days,
                "planned_total_in_period": planned,
                "capacity_total_in_period": capacity,
                "capacity_ok": planned <= capacity,
                "capacity_percent": percent,
                "notes": result.notes
                + (f"Capacity over {days} days = {capacity}, planned {planned} ({percent}%)",),
            }
        )

    def daily_capacity(self, result: FlowCalculationResult) -> int:
        """Whole units per day the line can be planned for."""
        if not result.shift_output or result.shift_output < 1:
            raise ValidationError(
                "shift_output",
                result.shift_output,
                "Shift output must be at least one unit",
                "NOT_POSITIVE",
            )
        return math.floor(result.shift_output)
