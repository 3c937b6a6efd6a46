"""Time slot value object for appointment scheduling."""

from dataclasses import dataclass
from datetime import datetime

from ..services.time_utils import minutes_between


@dataclass(frozen=True)
class TimeSlot:
    """Immutable candidate interval ``[start, end)`` of a fixed duration."""

    start: datetime
    end: datetime
    duration: int

    def __post_init__(self) -> None:
        """Validate time slot data."""
        if self.start.tzinfo is None or self.end.tzinfo is None:
            raise ValueError("Time slot bounds must be timezone-aware")
        if self.start >= self.end:
            raise ValueError("Start time must be before end time")
        if minutes_between(self.start, self.end) != self.duration:
            raise ValueError("Duration must match the slot bounds")

    @property
    def start_time(self) -> str:
        """Get start time in HH:MM format."""
        return self.start.strftime("%H:%M")

    @property
    def end_time(self) -> str:
        """Get end time in HH:MM format."""
        return self.end.strftime("%H:%M")

    @property
    def time_range(self) -> str:
        """Get formatted time range string."""
        return f"{self.start_time} - {self.end_time}"

    def is_past(self, now: datetime) -> bool:
        """A slot is past once its end is at or before ``now``."""
        return self.end <= now
