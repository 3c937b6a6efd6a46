"""Reminder scheduling and due-reminder queries."""

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional

from ..entities.appointment import Appointment, UPCOMING_STATUSES
from ..value_objects.reminder import Reminder
from ..value_objects.scheduling_config import SchedulingConfig
from .time_utils import add_minutes


@dataclass(frozen=True)
class DueReminder:
    """A reminder ready for dispatch, paired with its appointment."""
    appointment: Appointment
    reminder_index: int
    reminder: Reminder


class ReminderScheduler:
    """Service attaching default reminders and finding the ones that are due.

    This service never dispatches anything; callers send the notification and
    then mark the reminder as sent.
    """

    def __init__(self, config: Optional[SchedulingConfig] = None):
        self._config = config or SchedulingConfig()

    def default_reminders(self, start_time: datetime) -> List[Reminder]:
        """Build the default reminder set for a session starting at ``start_time``."""
        reminders = [
            Reminder(kind=kind, offset_minutes=offset, scheduled_for=add_minutes(start_time, -offset))
            for kind, offset in self._config.reminder_offsets
        ]
        return sorted(reminders, key=lambda r: r.scheduled_for)

    def due_reminders(self, appointments: Iterable[Appointment], now: datetime) -> List[DueReminder]:
        """Get every unsent reminder scheduled at or before ``now`` on upcoming appointments."""
        due = []
        for appointment in appointments:
            if appointment.status not in UPCOMING_STATUSES:
                continue
            for index, reminder in enumerate(appointment.reminders):
                if reminder.is_due(now):
                    due.append(DueReminder(appointment=appointment, reminder_index=index, reminder=reminder))

        return sorted(due, key=lambda d: d.reminder.scheduled_for)
