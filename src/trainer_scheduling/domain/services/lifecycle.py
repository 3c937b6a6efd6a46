"""Appointment lifecycle: creation, recurrence and status transitions."""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Iterable, List, Optional, Tuple
from uuid import UUID, uuid4

from ..entities.appointment import Appointment, AppointmentStatus
from ..value_objects.recurrence_rule import RecurrenceRule
from ..value_objects.scheduling_config import SchedulingConfig
from ..value_objects.scheduling_result import SchedulingError, SchedulingErrorKind, SchedulingResult
from .availability import AvailabilityFilter
from .conflicts import find_conflicts
from .recurrence import RecurrenceExpander
from .reminders import ReminderScheduler


@dataclass(frozen=True)
class RecurringBookingOutcome:
    """Occurrences created from one recurrence request and those rejected."""
    recurrence_id: UUID
    created: List[Appointment] = field(default_factory=list)
    skipped: List[Tuple[date, SchedulingError]] = field(default_factory=list)


class AppointmentLifecycle:
    """State machine and creation rules for appointments.

    Every operation works on caller-supplied appointments and returns a
    ``SchedulingResult``; persistence is the caller's concern.
    """

    def __init__(
        self,
        config: Optional[SchedulingConfig] = None,
        availability: Optional[AvailabilityFilter] = None,
        reminder_scheduler: Optional[ReminderScheduler] = None,
        recurrence_expander: Optional[RecurrenceExpander] = None
    ):
        self._config = config or SchedulingConfig()
        self._availability = availability or AvailabilityFilter(self._config)
        self._reminders = reminder_scheduler or ReminderScheduler(self._config)
        self._expander = recurrence_expander or RecurrenceExpander(self._config)

    def create_appointment(
        self,
        trainer_id: UUID,
        client_id: UUID,
        target_date: date,
        start_time: str,
        now: datetime,
        existing_appointments: Iterable[Appointment],
        duration: Optional[int] = None,
        appointment_type: str = "training",
        location: Optional[str] = None,
        notes: Optional[str] = None,
        recurrence_id: Optional[UUID] = None,
        recurrence_index: Optional[int] = None
    ) -> SchedulingResult[Appointment]:
        """Validate the requested time, check conflicts and build a scheduled appointment."""
        duration = duration or self._config.default_session_duration
        validation = self._availability.validate_appointment_time(target_date, start_time, duration, now)
        if not validation.success:
            return SchedulingResult(success=False, error=validation.error)

        slot = validation.value
        conflict = self._conflict_result(trainer_id, slot.start, slot.end, existing_appointments)
        if conflict is not None:
            return conflict

        appointment = Appointment(
            trainer_id=trainer_id,
            client_id=client_id,
            start_time=slot.start,
            duration=duration,
            appointment_type=appointment_type,
            location=location,
            notes=notes,
            reminders=self._reminders.default_reminders(slot.start),
            recurrence_id=recurrence_id,
            recurrence_index=recurrence_index,
            created_at=now,
        )
        return SchedulingResult.ok(appointment)

    def expand_recurrence(self, start_date: date, rule: RecurrenceRule) -> SchedulingResult[List[date]]:
        """Expand a recurrence rule into occurrence dates."""
        return self._expander.expand(start_date, rule)

    def create_recurring_appointments(
        self,
        trainer_id: UUID,
        client_id: UUID,
        start_date: date,
        start_time: str,
        rule: RecurrenceRule,
        now: datetime,
        existing_appointments: Iterable[Appointment],
        duration: Optional[int] = None,
        appointment_type: str = "training",
        location: Optional[str] = None,
        notes: Optional[str] = None
    ) -> SchedulingResult[RecurringBookingOutcome]:
        """Create one appointment per occurrence, validating each independently.

        Accepted occurrences share a new ``recurrence_id`` and receive
        contiguous indices from 0; rejected dates are reported with their error.
        """
        expansion = self._expander.expand(start_date, rule)
        if not expansion.success:
            return SchedulingResult(success=False, error=expansion.error)

        booked = list(existing_appointments)
        outcome = RecurringBookingOutcome(recurrence_id=uuid4())
        for occurrence in expansion.value:
            result = self.create_appointment(
                trainer_id=trainer_id,
                client_id=client_id,
                target_date=occurrence,
                start_time=start_time,
                now=now,
                existing_appointments=booked,
                duration=duration,
                appointment_type=appointment_type,
                location=location,
                notes=notes,
                recurrence_id=outcome.recurrence_id,
                recurrence_index=len(outcome.created),
            )
            if result.success:
                outcome.created.append(result.value)
                booked.append(result.value)
            else:
                outcome.skipped.append((occurrence, result.error))

        return SchedulingResult.ok(outcome)

    def reschedule(
        self,
        appointment: Appointment,
        new_date: date,
        new_start_time: str,
        now: datetime,
        existing_appointments: Iterable[Appointment]
    ) -> SchedulingResult[Appointment]:
        """Move an appointment, revalidating the new time and regenerating reminders."""
        invalid = self._transition_error(appointment, AppointmentStatus.RESCHEDULED)
        if invalid is not None:
            return invalid

        validation = self._availability.validate_appointment_time(new_date, new_start_time, appointment.duration, now)
        if not validation.success:
            return SchedulingResult(success=False, error=validation.error)

        slot = validation.value
        conflict = self._conflict_result(
            appointment.trainer_id, slot.start, slot.end, existing_appointments, exclude_id=appointment.id
        )
        if conflict is not None:
            return conflict

        appointment.reschedule(slot.start, self._reminders.default_reminders(slot.start), now)
        return SchedulingResult.ok(appointment)

    def cancel(self, appointment: Appointment, now: datetime, reason: str = "") -> SchedulingResult[Appointment]:
        """Cancel an appointment; cancelling an already-cancelled one succeeds unchanged."""
        if appointment.status == AppointmentStatus.CANCELLED:
            return SchedulingResult.ok(appointment)
        invalid = self._transition_error(appointment, AppointmentStatus.CANCELLED)
        if invalid is not None:
            return invalid
        appointment.cancel(now, reason)
        return SchedulingResult.ok(appointment)

    def confirm(self, appointment: Appointment, now: datetime) -> SchedulingResult[Appointment]:
        """Confirm a scheduled or rescheduled appointment."""
        invalid = self._transition_error(appointment, AppointmentStatus.CONFIRMED)
        if invalid is not None:
            return invalid
        appointment.confirm(now)
        return SchedulingResult.ok(appointment)

    def start_session(self, appointment: Appointment, now: datetime) -> SchedulingResult[Appointment]:
        """Start the session, recording the actual start."""
        invalid = self._transition_error(appointment, AppointmentStatus.IN_PROGRESS)
        if invalid is not None:
            return invalid
        appointment.start(now)
        return SchedulingResult.ok(appointment)

    def complete_session(self, appointment: Appointment, now: datetime) -> SchedulingResult[Appointment]:
        """Complete an in-progress session, recording the actual end."""
        invalid = self._transition_error(appointment, AppointmentStatus.COMPLETED)
        if invalid is not None:
            return invalid
        appointment.complete(now)
        return SchedulingResult.ok(appointment)

    def mark_no_show(self, appointment: Appointment, now: datetime) -> SchedulingResult[Appointment]:
        """Mark a session whose start passed without being started."""
        invalid = self._transition_error(appointment, AppointmentStatus.NO_SHOW)
        if invalid is not None:
            return invalid
        if not appointment.is_no_show_candidate(now):
            return SchedulingResult.fail(
                SchedulingErrorKind.INVALID_STATUS_TRANSITION,
                "Session has not started yet or is not awaiting its start",
                appointment_id=str(appointment.id),
                status=appointment.status.value
            )
        appointment.mark_no_show(now)
        return SchedulingResult.ok(appointment)

    def _transition_error(
        self,
        appointment: Appointment,
        target: AppointmentStatus
    ) -> Optional[SchedulingResult[Appointment]]:
        if appointment.can_transition_to(target):
            return None
        return SchedulingResult.fail(
            SchedulingErrorKind.INVALID_STATUS_TRANSITION,
            f"Cannot transition appointment from {appointment.status.value} to {target.value}",
            appointment_id=str(appointment.id),
            status=appointment.status.value,
            target=target.value
        )

    def _conflict_result(
        self,
        trainer_id: UUID,
        start: datetime,
        end: datetime,
        existing_appointments: Iterable[Appointment],
        exclude_id: Optional[UUID] = None
    ) -> Optional[SchedulingResult[Appointment]]:
        same_trainer = [a for a in existing_appointments if a.trainer_id == trainer_id]
        conflicts = find_conflicts(start, end, same_trainer, exclude_id, self._config.buffer_minutes)
        if not conflicts:
            return None
        return SchedulingResult.fail(
            SchedulingErrorKind.SLOT_CONFLICT,
            "Requested time overlaps an existing appointment",
            conflicting_ids=[str(a.id) for a in conflicts]
        )
