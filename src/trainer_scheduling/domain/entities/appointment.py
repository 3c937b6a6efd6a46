"""Appointment entity for trainer session management."""

from datetime import datetime, timezone
from enum import Enum
from typing import Dict, FrozenSet, List, Optional
from uuid import UUID, uuid4

from ..services.time_utils import add_minutes, minutes_between
from ..value_objects.reminder import Reminder


class AppointmentStatus(Enum):
    """Appointment status enumeration."""
    SCHEDULED = "scheduled"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    RESCHEDULED = "rescheduled"
    NO_SHOW = "no_show"

    @property
    def is_terminal(self) -> bool:
        """Terminal states never transition further."""
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES: FrozenSet[AppointmentStatus] = frozenset({
    AppointmentStatus.COMPLETED,
    AppointmentStatus.CANCELLED,
    AppointmentStatus.NO_SHOW,
})

# A rescheduled appointment is still a live booking.
ALLOWED_TRANSITIONS: Dict[AppointmentStatus, FrozenSet[AppointmentStatus]] = {
    AppointmentStatus.SCHEDULED: frozenset({
        AppointmentStatus.CONFIRMED,
        AppointmentStatus.IN_PROGRESS,
        AppointmentStatus.CANCELLED,
        AppointmentStatus.RESCHEDULED,
        AppointmentStatus.NO_SHOW,
    }),
    AppointmentStatus.CONFIRMED: frozenset({
        AppointmentStatus.IN_PROGRESS,
        AppointmentStatus.CANCELLED,
        AppointmentStatus.RESCHEDULED,
        AppointmentStatus.NO_SHOW,
    }),
    AppointmentStatus.RESCHEDULED: frozenset({
        AppointmentStatus.CONFIRMED,
        AppointmentStatus.IN_PROGRESS,
        AppointmentStatus.CANCELLED,
        AppointmentStatus.RESCHEDULED,
        AppointmentStatus.NO_SHOW,
    }),
    AppointmentStatus.IN_PROGRESS: frozenset({
        AppointmentStatus.COMPLETED,
        AppointmentStatus.CANCELLED,
    }),
    AppointmentStatus.COMPLETED: frozenset(),
    AppointmentStatus.CANCELLED: frozenset(),
    AppointmentStatus.NO_SHOW: frozenset(),
}

# Statuses whose session has not begun yet.
UPCOMING_STATUSES: FrozenSet[AppointmentStatus] = frozenset({
    AppointmentStatus.SCHEDULED,
    AppointmentStatus.CONFIRMED,
    AppointmentStatus.RESCHEDULED,
})


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Appointment:
    """Appointment entity representing a booked session between a trainer and a client."""

    def __init__(
        self,
        trainer_id: UUID,
        client_id: UUID,
        start_time: datetime,
        duration: int,
        appointment_type: str = "training",
        location: Optional[str] = None,
        notes: Optional[str] = None,
        appointment_id: Optional[UUID] = None,
        status: AppointmentStatus = AppointmentStatus.SCHEDULED,
        reminders: Optional[List[Reminder]] = None,
        recurrence_id: Optional[UUID] = None,
        recurrence_index: Optional[int] = None,
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None,
        cancelled_at: Optional[datetime] = None,
        cancellation_reason: Optional[str] = None,
        rescheduled_at: Optional[datetime] = None,
        previous_start_time: Optional[datetime] = None,
        actual_start: Optional[datetime] = None,
        actual_end: Optional[datetime] = None,
        no_show_at: Optional[datetime] = None,
    ):
        """Initialize appointment entity."""
        if start_time.tzinfo is None:
            raise ValueError("Start time must be timezone-aware")
        if not isinstance(duration, int) or duration <= 0:
            raise ValueError("Duration must be a positive number of minutes")
        if not isinstance(status, AppointmentStatus):
            raise ValueError("Status must be an AppointmentStatus enum")
        if (recurrence_id is None) != (recurrence_index is None):
            raise ValueError("Recurrence id and index must be set together")
        if recurrence_index is not None and recurrence_index < 0:
            raise ValueError("Recurrence index cannot be negative")

        self._id = appointment_id or uuid4()
        self._trainer_id = trainer_id
        self._client_id = client_id
        self._start_time = start_time
        self._duration = duration
        self._end_time = add_minutes(start_time, duration)
        self._type = appointment_type
        self._location = location
        self._notes = notes
        self._status = status
        self._reminders: List[Reminder] = []
        self._recurrence_id = recurrence_id
        self._recurrence_index = recurrence_index
        self._created_at = created_at or _utcnow()
        self._updated_at = updated_at or self._created_at
        self._cancelled_at = cancelled_at
        self._cancellation_reason = cancellation_reason
        self._rescheduled_at = rescheduled_at
        self._previous_start_time = previous_start_time
        self._actual_start = actual_start
        self._actual_end = actual_end
        self._no_show_at = no_show_at

        self._set_reminders(reminders or [])

    @property
    def id(self) -> UUID:
        """Get appointment ID."""
        return self._id

    @property
    def trainer_id(self) -> UUID:
        """Get trainer ID."""
        return self._trainer_id

    @property
    def client_id(self) -> UUID:
        """Get client ID."""
        return self._client_id

    @property
    def start_time(self) -> datetime:
        """Get session start."""
        return self._start_time

    @property
    def end_time(self) -> datetime:
        """Get session end (exclusive)."""
        return self._end_time

    @property
    def duration(self) -> int:
        """Get booked duration in minutes."""
        return self._duration

    @property
    def type(self) -> str:
        """Get appointment type."""
        return self._type

    @property
    def location(self) -> Optional[str]:
        """Get session location."""
        return self._location

    @property
    def notes(self) -> Optional[str]:
        """Get free-form notes."""
        return self._notes

    @property
    def status(self) -> AppointmentStatus:
        """Get appointment status."""
        return self._status

    @property
    def reminders(self) -> List[Reminder]:
        """Get reminders ordered by scheduled time."""
        return self._reminders.copy()

    @property
    def recurrence_id(self) -> Optional[UUID]:
        """Get the id shared by sibling occurrences of a series."""
        return self._recurrence_id

    @property
    def recurrence_index(self) -> Optional[int]:
        """Get the 0-based position within the series."""
        return self._recurrence_index

    @property
    def created_at(self) -> datetime:
        """Get creation timestamp."""
        return self._created_at

    @property
    def updated_at(self) -> datetime:
        """Get last update timestamp."""
        return self._updated_at

    @property
    def cancelled_at(self) -> Optional[datetime]:
        return self._cancelled_at

    @property
    def cancellation_reason(self) -> Optional[str]:
        return self._cancellation_reason

    @property
    def rescheduled_at(self) -> Optional[datetime]:
        return self._rescheduled_at

    @property
    def previous_start_time(self) -> Optional[datetime]:
        return self._previous_start_time

    @property
    def actual_start(self) -> Optional[datetime]:
        return self._actual_start

    @property
    def actual_end(self) -> Optional[datetime]:
        return self._actual_end

    @property
    def no_show_at(self) -> Optional[datetime]:
        return self._no_show_at

    @property
    def actual_duration(self) -> Optional[int]:
        """Get the measured session length in whole minutes, once completed."""
        if self._actual_start is None or self._actual_end is None:
            return None
        return round(minutes_between(self._actual_start, self._actual_end))

    @property
    def billable_minutes(self) -> int:
        """Get the minutes that count towards booked hours."""
        actual = self.actual_duration
        return actual if actual is not None else self._duration

    @property
    def blocks_time(self) -> bool:
        """Only cancelled appointments release their interval."""
        return self._status != AppointmentStatus.CANCELLED

    def can_transition_to(self, target: AppointmentStatus) -> bool:
        """Check if the state machine allows moving to ``target``."""
        return target in ALLOWED_TRANSITIONS[self._status]

    def is_no_show_candidate(self, now: datetime) -> bool:
        """Check if the session start passed without the session being started."""
        return now > self._start_time and self._status in UPCOMING_STATUSES

    def confirm(self, now: Optional[datetime] = None) -> None:
        """Confirm the appointment."""
        self._transition(AppointmentStatus.CONFIRMED, now)

    def start(self, now: datetime) -> None:
        """Start the session."""
        self._transition(AppointmentStatus.IN_PROGRESS, now)
        self._actual_start = now

    def complete(self, now: datetime) -> None:
        """Complete the session."""
        self._transition(AppointmentStatus.COMPLETED, now)
        self._actual_end = now

    def cancel(self, now: datetime, reason: str = "") -> None:
        """Cancel the appointment. Cancelling twice is a no-op."""
        if self._status == AppointmentStatus.CANCELLED:
            return
        self._transition(AppointmentStatus.CANCELLED, now)
        self._cancelled_at = now
        self._cancellation_reason = reason

    def reschedule(self, new_start: datetime, reminders: List[Reminder], now: datetime) -> None:
        """Move the appointment to a new start, keeping its duration."""
        if new_start.tzinfo is None:
            raise ValueError("Start time must be timezone-aware")
        previous_start = self._start_time
        self._transition(AppointmentStatus.RESCHEDULED, now)
        self._start_time = new_start
        self._end_time = add_minutes(new_start, self._duration)
        self._previous_start_time = previous_start
        self._rescheduled_at = now
        self._set_reminders(reminders)

    def mark_no_show(self, now: datetime) -> None:
        """Mark the client as not having shown up."""
        if not self.is_no_show_candidate(now):
            raise ValueError("Only sessions past their start without being started can be marked no-show")
        self._transition(AppointmentStatus.NO_SHOW, now)
        self._no_show_at = now

    def mark_reminder_sent(self, index: int, now: datetime) -> None:
        """Mark the reminder at ``index`` as dispatched."""
        if not 0 <= index < len(self._reminders):
            raise ValueError(f"No reminder at index {index}")
        self._reminders[index].mark_sent(now)
        self._updated_at = now

    def _transition(self, target: AppointmentStatus, now: Optional[datetime]) -> None:
        if not self.can_transition_to(target):
            raise ValueError(
                f"Cannot transition appointment from {self._status.value} to {target.value}"
            )
        self._status = target
        self._updated_at = now or _utcnow()

    def _set_reminders(self, reminders: List[Reminder]) -> None:
        ordered = sorted(reminders, key=lambda r: r.scheduled_for)
        if any(r.scheduled_for >= self._start_time for r in ordered):
            raise ValueError("Reminders must be scheduled before the appointment start")
        self._reminders = ordered

    def __eq__(self, other: object) -> bool:
        """Check equality based on appointment ID."""
        if not isinstance(other, Appointment):
            return False
        return self._id == other._id

    def __hash__(self) -> int:
        """Hash based on appointment ID."""
        return hash(self._id)

    def __str__(self) -> str:
        """String representation."""
        return f"Appointment({self._id}, {self._start_time.isoformat()}, {self._status.value})"
