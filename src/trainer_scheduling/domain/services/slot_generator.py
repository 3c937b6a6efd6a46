"""Candidate time slot generation."""

from datetime import date
from typing import List, Optional

from ..value_objects.scheduling_config import SchedulingConfig
from ..value_objects.time_slot import TimeSlot
from ..value_objects.working_hours import WorkingHours
from .time_utils import add_minutes


class TimeSlotGenerator:
    """Service for generating candidate time slots for a calendar day."""

    def __init__(self, config: Optional[SchedulingConfig] = None):
        self._config = config or SchedulingConfig()

    @property
    def config(self) -> SchedulingConfig:
        return self._config

    def generate_slots(
        self,
        target_date: date,
        working_hours: Optional[WorkingHours] = None,
        duration: Optional[int] = None,
        interval: Optional[int] = None
    ) -> List[TimeSlot]:
        """Generate every candidate slot whose start lies in ``[work_start, work_end)``.

        Slots step by ``interval`` (defaulting to ``duration``). When the
        duration exceeds the interval, trailing slots may end after
        ``work_end``; conflict filtering happens downstream.
        """
        hours = working_hours or self._config.hours_for(target_date)
        if not hours.is_working_day:
            return []

        duration = duration or self._config.default_session_duration
        interval = interval or (self._config.default_interval or duration)
        if duration <= 0 or interval <= 0:
            raise ValueError("Slot duration and interval must be positive")

        work_start, work_end = hours.window(target_date, self._config.tzinfo)

        slots = []
        current = work_start
        while current < work_end:
            slots.append(TimeSlot(start=current, end=add_minutes(current, duration), duration=duration))
            current = add_minutes(current, interval)

        return slots
