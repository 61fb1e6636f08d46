"""
Unit Tests for the LineBalanceCalculator Domain Service

Tests every input mode, the output norm and the capacity check over a
planning period.
"""

from datetime import date

import pytest

from sewflow.domain.production.value_objects.calendar import DateRange
from sewflow.domain.production.value_objects.enums import FlowMode, ProductType
from sewflow.domain.production.value_objects.flow import FlowParameters
from sewflow.domain.production.value_objects.planning_config import PlanningConfig
from sewflow.domain.production.services import LineBalanceCalculator
from sewflow.domain.shared.exceptions import ValidationError


class TestModes:
    """Test the five calculation modes for an 8 hour shift."""

    def test_by_workers(self, calculator):
        """Test that T=120 s and Np=4 give t=30 s and M=960."""
        result = calculator.calculate(FlowParameters(mode=FlowMode.BY_WORKERS, T=120, Np=4))

        assert result.shift_seconds == 28800
        assert result.takt_sec == 30
        assert result.shift_output == 960
        assert result.workers == 4

    def test_by_shift_capacity(self, calculator):
        result = calculator.calculate(
            FlowParameters(mode=FlowMode.BY_SHIFT_CAPACITY, shift_capacity=480)
        )

        assert result.takt_sec == 60
        assert result.shift_output == 480
        assert result.workers is None

    def test_by_shift_capacity_with_labor_time(self, calculator):
        result = calculator.calculate(FlowParameters(mode="BY_SHIFT_CAPACITY", Msm=480, T=600))

        assert result.workers == 10

    def test_by_t_and_m(self, calculator):
        result = calculator.calculate(FlowParameters(mode=FlowMode.BY_T_AND_M, T=900, M=320))

        assert result.takt_sec == 90
        assert result.workers == 10
        assert result.shift_output == 320

    def test_by_workplaces(self, calculator):
        """Test Np = Kr / f and M = Kr x units per workplace."""
        result = calculator.calculate(
            FlowParameters(mode=FlowMode.BY_WORKPLACES, Kr=23, product_type=ProductType.DRESS)
        )

        assert result.workers == 20
        assert result.shift_output == 460
        assert result.takt_sec == 62.61
        assert result.f_used == 1.15

    def test_by_area(self, calculator):
        """Test that floor area converts into workplaces by the area norm."""
        result = calculator.calculate(
            FlowParameters(mode=FlowMode.BY_AREA, Su=250, product_type=ProductType.COAT)
        )

        assert result.workplaces == 50
        assert result.workers == 40
        assert result.shift_output == 1000
        assert result.s_used == 5.0

    def test_custom_shift_length(self, calculator):
        result = calculator.calculate(
            FlowParameters(mode=FlowMode.BY_WORKERS, T=120, Np=4, shift_hours=10)
        )

        assert result.shift_seconds == 36000
        assert result.shift_output == 1200

    def test_configured_shift_length(self):
        calculator = LineBalanceCalculator(PlanningConfig(shift_hours=7.5))

        result = calculator.calculate(FlowParameters(mode=FlowMode.BY_SHIFT_CAPACITY, Msm=450))

        assert result.takt_sec == 60

    def test_output_norm(self, calculator):
        result = calculator.calculate(
            FlowParameters(mode=FlowMode.BY_WORKERS, T=120, Np=4, operation_time_sec=45)
        )

        assert result.output_norm_per_shift == 640

    def test_notes_describe_each_step(self, calculator):
        result = calculator.calculate(FlowParameters(mode=FlowMode.BY_WORKERS, T=120, Np=4))

        assert result.notes[0].startswith("R = 8 h")
        assert any(note.startswith("t = T / Np") for note in result.notes)
        assert any(note.startswith("M = R / t") for note in result.notes)


class TestInvalidInputs:
    @pytest.mark.parametrize(
        "params",
        [
            {"mode": "BY_WORKERS", "T": 120},
            {"mode": "BY_WORKERS", "T": 120, "Np": 0},
            {"mode": "BY_SHIFT_CAPACITY", "Msm": -5},
            {"mode": "BY_WORKPLACES"},
            {"mode": "BY_AREA", "Su": 0},
            {"mode": "BY_T_AND_M", "M": 100},
        ],
    )
    def test_missing_or_non_positive_inputs(self, calculator, params):
        """Test that denominators must be present and positive."""
        with pytest.raises(ValidationError):
            calculator.calculate(FlowParameters.model_validate(params))

    def test_non_positive_operation_time(self, calculator):
        with pytest.raises(ValidationError):
            calculator.calculate(
                FlowParameters(mode=FlowMode.BY_WORKERS, T=120, Np=4, operation_time_sec=0)
            )

    @pytest.mark.parametrize(
        "params",
        [
            {"mode": "BY_WORKERS", "T": 120, "Np": float("inf")},
            {"mode": "BY_WORKERS", "T": float("nan"), "Np": 4},
            {"mode": "BY_SHIFT_CAPACITY", "Msm": float("nan")},
            {"mode": "BY_WORKPLACES", "Kr": float("inf")},
            {"mode": "BY_T_AND_M", "T": 120, "M": float("inf")},
        ],
    )
    def test_non_finite_inputs(self, calculator, params):
        """Test that infinite or NaN inputs fail instead of producing NaN or dividing by zero."""
        with pytest.raises(ValidationError) as exc_info:
            calculator.calculate(FlowParameters.model_validate(params))

        assert exc_info.value.error_code == "NOT_FINITE"

    def test_vanishing_takt_is_rejected(self, calculator):
        """Test that a takt time rounding down to zero fails closed."""
        with pytest.raises(ValidationError) as exc_info:
            calculator.calculate(
                FlowParameters(mode=FlowMode.BY_WORKERS, T=1e-300, Np=1e300)
            )

        assert exc_info.value.field_name == "t"


class TestPeriodCheck:
    """Test comparing line capacity with a period's plan."""

    def test_plan_within_capacity(self, calculator):
        result = calculator.calculate(FlowParameters(mode=FlowMode.BY_WORKERS, T=120, Np=4))
        period = DateRange.between(date(2026, 3, 2), date(2026, 3, 6))

        checked = calculator.check_period(result, period, 3840)

        assert checked.period_days == 5
        assert checked.capacity_total_in_period == 4800
        assert checked.capacity_percent == 80
        assert checked.capacity_ok
        assert result.period_days == 0

    def test_plan_over_capacity(self, calculator):
        result = calculator.calculate(FlowParameters(mode=FlowMode.BY_SHIFT_CAPACITY, Msm=100))
        period = DateRange.between(date(2026, 3, 2), date(2026, 3, 3))

        checked = calculator.check_period(result, period, 250)

        assert not checked.capacity_ok
        assert checked.capacity_percent == 125

    def test_daily_capacity_is_whole_units(self, calculator):
        result = calculator.calculate(FlowParameters(mode=FlowMode.BY_T_AND_M, T=900, M=320.7))

        assert calculator.daily_capacity(result) == 320
