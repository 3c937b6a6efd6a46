"""Unit tests for settings and scheduling configuration."""

from datetime import date

import pytest

from trainer_scheduling.domain.value_objects.scheduling_config import SchedulingConfig
from trainer_scheduling.domain.value_objects.working_hours import WorkingHours
from trainer_scheduling.presentation.api.config import Settings


class TestSettings:
    """Test cases for environment-driven settings."""

    def test_defaults(self):
        """Test default settings values."""
        settings = Settings(_env_file=None)

        assert settings.api_prefix == "/api/v1"
        assert settings.allowed_origins == ["http://localhost:3000", "http://localhost:8080"]
        assert settings.non_working_weekdays == []

    def test_comma_separated_lists(self):
        """Test that list settings accept comma-separated strings."""
        settings = Settings(
            _env_file=None,
            allowed_origins="https://a.example, https://b.example",
            allowed_methods="GET,POST",
            non_working_weekdays="5,6",
        )

        assert settings.allowed_origins == ["https://a.example", "https://b.example"]
        assert settings.allowed_methods == ["GET", "POST"]
        assert settings.non_working_weekdays == [5, 6]

    def test_environment_variables(self, monkeypatch):
        """Test reading settings from the environment."""
        monkeypatch.setenv("SCHEDULE_TIMEZONE", "Europe/Berlin")
        monkeypatch.setenv("BUFFER_MINUTES", "15")

        settings = Settings(_env_file=None)

        assert settings.schedule_timezone == "Europe/Berlin"
        assert settings.buffer_minutes == 15

    def test_to_scheduling_config(self):
        """Test conversion into the engine configuration."""
        settings = Settings(
            _env_file=None,
            schedule_timezone="America/New_York",
            working_hours_start="08:00",
            working_hours_end="18:00",
            non_working_weekdays="5,6",
            session_duration_minutes=45,
            slot_interval_minutes=15,
            max_advance_booking_days=30,
        )

        config = settings.to_scheduling_config()

        assert config.timezone == "America/New_York"
        assert config.working_hours == WorkingHours(start="08:00", end="18:00")
        assert config.hours_for(date(2030, 1, 7)) == WorkingHours(start="08:00", end="18:00")
        assert not config.hours_for(date(2030, 1, 5)).is_working_day
        assert not config.hours_for(date(2030, 1, 6)).is_working_day
        assert config.default_session_duration == 45
        assert config.slot_interval == 15
        assert config.max_advance_booking_days == 30


class TestSchedulingConfig:
    """Test cases for SchedulingConfig validation."""

    def test_defaults(self):
        """Test default engine configuration."""
        config = SchedulingConfig()

        assert config.timezone == "UTC"
        assert config.slot_interval == 60
        assert config.max_advance_booking_days == 90
        assert len(config.reminder_offsets) == 3

    def test_unknown_timezone(self):
        """Test that an unknown timezone is rejected."""
        with pytest.raises(ValueError, match="Unknown timezone"):
            SchedulingConfig(timezone="Mars/Olympus")

    @pytest.mark.parametrize("overrides", [
        {"default_session_duration": 0},
        {"default_interval": 0},
        {"buffer_minutes": -5},
        {"min_advance_booking_minutes": -1},
        {"max_advance_booking_days": -1},
        {"default_recurrence_horizon_days": 0},
        {"daily_capacity_hours": 0},
        {"weekly_hours": {7: WorkingHours.day_off()}},
    ])
    def test_invalid_values(self, overrides):
        """Test rejection of out-of-range options."""
        with pytest.raises(ValueError):
            SchedulingConfig(**overrides)
