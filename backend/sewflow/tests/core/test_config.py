"""Tests for engine settings loaded from the environment."""

import pytest
from pydantic import ValidationError as PydanticValidationError

from sewflow.core.config import EngineSettings
from sewflow.domain.production.value_objects.enums import ProductType


class TestEngineSettings:
    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("SEWFLOW_SHIFT_HOURS", raising=False)

        settings = EngineSettings(_env_file=None)

        assert settings.SHIFT_HOURS == 8.0
        assert settings.LOG_FORMAT == "json"
        assert settings.FINISH_FLOOR_ID == 1

    def test_environment_overrides(self, monkeypatch):
        """Test that SEWFLOW_ prefixed variables are picked up."""
        monkeypatch.setenv("SEWFLOW_SHIFT_HOURS", "10")
        monkeypatch.setenv("SEWFLOW_CAPACITY_WEEK_MAX", "7000")
        monkeypatch.setenv("SEWFLOW_LOG_FORMAT", "console")

        settings = EngineSettings(_env_file=None)

        assert settings.SHIFT_HOURS == 10.0
        assert settings.CAPACITY_WEEK_MAX == 7000
        assert settings.LOG_FORMAT == "console"

    def test_capacity_bounds_must_be_ordered(self):
        with pytest.raises(PydanticValidationError):
            EngineSettings(_env_file=None, CAPACITY_WEEK_MIN=6000, CAPACITY_WEEK_MAX=5000)

    def test_planning_config(self):
        """Test that settings produce the frozen domain configuration."""
        settings = EngineSettings(
            _env_file=None,
            SHIFT_HOURS=7.5,
            DEFAULT_DAILY_CAPACITY=150,
            WORKERS_PER_WORKPLACE={"coat": 1.3},
        )

        config = settings.planning_config()

        assert config.shift_seconds == 27000
        assert config.default_daily_capacity == 150
        assert config.f_coefficient(ProductType.COAT) == 1.3
        assert config.f_coefficient(ProductType.DRESS) == 1.15
