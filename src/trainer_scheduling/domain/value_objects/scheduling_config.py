"""Explicit configuration for the scheduling engine."""

from dataclasses import dataclass, field
from datetime import date
from typing import Mapping, Optional, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .reminder import ReminderKind
from .working_hours import WorkingHours

# 24h email, 2h push, 30min push
DEFAULT_REMINDER_OFFSETS: Tuple[Tuple[ReminderKind, int], ...] = (
    (ReminderKind.EMAIL, 24 * 60),
    (ReminderKind.PUSH, 2 * 60),
    (ReminderKind.PUSH, 30),
)


@dataclass(frozen=True)
class SchedulingConfig:
    """Every recognized scheduling option with its default.

    ``weekly_hours`` overrides ``working_hours`` per weekday, keyed by
    ``date.weekday()`` (0 = Monday). Days missing from the mapping use
    ``working_hours``.
    """

    timezone: str = "UTC"
    working_hours: WorkingHours = WorkingHours()
    weekly_hours: Mapping[int, WorkingHours] = field(default_factory=dict)
    default_session_duration: int = 60
    default_interval: Optional[int] = None
    buffer_minutes: int = 0
    min_advance_booking_minutes: int = 0
    max_advance_booking_days: int = 90
    default_recurrence_horizon_days: int = 90
    daily_capacity_hours: float = 8.0
    reminder_offsets: Tuple[Tuple[ReminderKind, int], ...] = DEFAULT_REMINDER_OFFSETS

    def __post_init__(self) -> None:
        """Validate configuration."""
        try:
            ZoneInfo(self.timezone)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone: {self.timezone}") from e
        if self.default_session_duration <= 0:
            raise ValueError("Default session duration must be positive")
        if self.default_interval is not None and self.default_interval <= 0:
            raise ValueError("Default interval must be positive")
        if self.buffer_minutes < 0:
            raise ValueError("Buffer minutes cannot be negative")
        if self.min_advance_booking_minutes < 0:
            raise ValueError("Minimum advance booking cannot be negative")
        if self.max_advance_booking_days < 0:
            raise ValueError("Maximum advance booking cannot be negative")
        if self.default_recurrence_horizon_days <= 0:
            raise ValueError("Recurrence horizon must be positive")
        if self.daily_capacity_hours <= 0:
            raise ValueError("Daily capacity must be positive")
        for weekday in self.weekly_hours:
            if not 0 <= weekday <= 6:
                raise ValueError(f"Invalid weekday index: {weekday}")

    @property
    def tzinfo(self) -> ZoneInfo:
        """Get the configured timezone."""
        return ZoneInfo(self.timezone)

    @property
    def slot_interval(self) -> int:
        """Get the slot generation interval in minutes."""
        return self.default_interval or self.default_session_duration

    def hours_for(self, target_date: date) -> WorkingHours:
        """Get the working hours that apply to a calendar day."""
        return self.weekly_hours.get(target_date.weekday(), self.working_hours)
