"""Working hours value object."""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Tuple
from zoneinfo import ZoneInfo

from ..services.time_utils import at_clock, parse_clock


@dataclass(frozen=True)
class WorkingHours:
    """Immutable daily working-hours window expressed as ``HH:MM`` strings."""

    start: str = "06:00"
    end: str = "22:00"
    is_working_day: bool = True

    def __post_init__(self) -> None:
        """Validate working hours data."""
        start_minutes = parse_clock(self.start)
        end_minutes = parse_clock(self.end)
        if self.is_working_day and start_minutes >= end_minutes:
            raise ValueError("Working hours start must be before end")

    @classmethod
    def day_off(cls) -> "WorkingHours":
        """Create a non-working day."""
        return cls(is_working_day=False)

    @property
    def start_minutes(self) -> int:
        """Get start as minutes since midnight."""
        return parse_clock(self.start)

    @property
    def end_minutes(self) -> int:
        """Get end as minutes since midnight."""
        return parse_clock(self.end)

    @property
    def daily_hours(self) -> float:
        """Get the length of the window in hours."""
        if not self.is_working_day:
            return 0.0
        return (self.end_minutes - self.start_minutes) / 60

    def window(self, target_date: date, tz: ZoneInfo) -> Tuple[datetime, datetime]:
        """Get the absolute ``[start, end)`` window for a calendar day."""
        return at_clock(target_date, self.start, tz), at_clock(target_date, self.end, tz)
