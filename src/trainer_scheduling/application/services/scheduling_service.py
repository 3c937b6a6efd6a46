"""Scheduling service implementing booking use cases for trainer appointments."""

import asyncio
import weakref
from datetime import date, datetime, timedelta, timezone
from typing import Callable, List, Optional
from uuid import UUID

from dateutil.relativedelta import relativedelta

from ..ports.repositories import AppointmentRepository, SlotConflictError
from ...domain.entities.appointment import Appointment
from ...domain.services.aggregation import (
    CalendarEvent,
    ScheduleAggregator,
    ScheduleStatistics,
    WeeklySchedule,
    to_calendar_events,
)
from ...domain.services.availability import AvailabilityFilter
from ...domain.services.lifecycle import AppointmentLifecycle, RecurringBookingOutcome
from ...domain.services.recurrence import RecurrenceExpander
from ...domain.services.reminders import DueReminder, ReminderScheduler
from ...domain.services.slot_generator import TimeSlotGenerator
from ...domain.services.time_utils import add_minutes, local_midnight
from ...domain.value_objects.recurrence_rule import RecurrenceRule
from ...domain.value_objects.scheduling_config import SchedulingConfig
from ...domain.value_objects.scheduling_result import SchedulingErrorKind, SchedulingResult
from ...domain.value_objects.time_slot import TimeSlot
from ...infrastructure.logging import get_logger, log_business_rule_violation, log_scheduling_event

logger = get_logger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class TrainerLockRegistry:
    """Per-trainer asyncio locks serializing check-then-write sequences.

    Locks are held weakly: a lock lives while some coroutine holds or waits
    on it and is dropped once the trainer goes idle. The SQL store rejects
    overlaps written by other processes.
    """

    def __init__(self):
        self._locks = weakref.WeakValueDictionary()

    def __len__(self) -> int:
        return len(self._locks)

    def lock_for(self, trainer_id: UUID) -> asyncio.Lock:
        """Get the lock guarding writes for a trainer."""
        lock = self._locks.get(trainer_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[trainer_id] = lock
        return lock


class SchedulingService:
    """Application service for trainer appointment scheduling.

    Every write runs under the trainer's lock: existing appointments are
    read, the request is validated against them, the result is saved and
    committed before the lock is released.
    """

    def __init__(
        self,
        appointment_repository: AppointmentRepository,
        config: Optional[SchedulingConfig] = None,
        clock: Optional[Clock] = None,
        locks: Optional[TrainerLockRegistry] = None
    ):
        self._repository = appointment_repository
        self._config = config or SchedulingConfig()
        self._clock = clock or utc_now
        self._locks = locks or TrainerLockRegistry()

        self._slot_generator = TimeSlotGenerator(self._config)
        self._availability = AvailabilityFilter(self._config, self._slot_generator)
        self._reminders = ReminderScheduler(self._config)
        self._expander = RecurrenceExpander(self._config)
        self._lifecycle = AppointmentLifecycle(self._config, self._availability, self._reminders, self._expander)
        self._aggregator = ScheduleAggregator(self._config)

    @property
    def config(self) -> SchedulingConfig:
        return self._config

    def now(self) -> datetime:
        """Get the current instant in the configured timezone."""
        return self._clock().astimezone(self._config.tzinfo)

    # Queries

    def generate_slots(
        self,
        target_date: date,
        duration: Optional[int] = None,
        interval: Optional[int] = None
    ) -> List[TimeSlot]:
        """Generate candidate slots for a day, ignoring bookings."""
        return self._slot_generator.generate_slots(target_date, duration=duration, interval=interval)

    async def check_availability(
        self,
        trainer_id: UUID,
        target_date: date,
        duration: Optional[int] = None
    ) -> List[TimeSlot]:
        """Get the free slots of a trainer for a day."""
        existing = await self._appointments_for_days(trainer_id, target_date, target_date)
        return self._availability.check_availability(trainer_id, target_date, existing, self.now(), duration=duration)

    def validate_appointment_time(
        self,
        target_date: date,
        start_time: str,
        duration: Optional[int] = None
    ) -> SchedulingResult[TimeSlot]:
        """Validate a requested start against working hours and booking windows."""
        duration = duration or self._config.default_session_duration
        return self._availability.validate_appointment_time(target_date, start_time, duration, self.now())

    def expand_recurrence(self, start_date: date, rule: RecurrenceRule) -> SchedulingResult[List[date]]:
        """Expand a recurrence rule into occurrence dates."""
        return self._lifecycle.expand_recurrence(start_date, rule)

    async def find_next_available_slot(
        self,
        trainer_id: UUID,
        preferred_from: Optional[datetime] = None,
        duration: Optional[int] = None
    ) -> Optional[TimeSlot]:
        """Find the earliest bookable slot of a trainer."""
        now = self.now()
        horizon_end = now + timedelta(days=self._config.max_advance_booking_days + 1)
        existing = await self._repository.find_by_trainer_and_range(trainer_id, now - timedelta(days=1), horizon_end)
        return self._availability.find_next_available_slot(trainer_id, existing, now, preferred_from, duration)

    async def get_appointment(self, appointment_id: UUID) -> SchedulingResult[Appointment]:
        """Get a specific appointment by ID."""
        appointment = await self._repository.find_by_id(appointment_id)
        if appointment is None:
            return self._not_found(appointment_id)
        return SchedulingResult.ok(appointment)

    async def get_client_appointments(self, client_id: UUID) -> List[Appointment]:
        """Get all appointments of a client."""
        return await self._repository.find_by_client_id(client_id)

    async def get_series(self, recurrence_id: UUID) -> List[Appointment]:
        """Get every occurrence of a recurring series."""
        return await self._repository.find_by_recurrence_id(recurrence_id)

    async def get_schedule(self, trainer_id: UUID, start_date: date, end_date: date) -> List[Appointment]:
        """Get a trainer's appointments for a date range, sorted by start."""
        existing = await self._appointments_for_days(trainer_id, start_date, end_date)
        return self._aggregator.for_date_range(existing, start_date, end_date)

    async def get_weekly_schedule(self, trainer_id: UUID, day: date) -> WeeklySchedule:
        """Get the week containing ``day`` grouped by day."""
        week_start, week_end = self._aggregator.week_bounds(day)
        existing = await self._appointments_for_days(trainer_id, week_start, week_end)
        return self._aggregator.weekly_schedule(existing, day)

    async def get_month_schedule(self, trainer_id: UUID, year: int, month: int) -> List[Appointment]:
        """Get a trainer's appointments in a calendar month."""
        month_start = date(year, month, 1)
        month_end = month_start + relativedelta(months=1) - timedelta(days=1)
        existing = await self._appointments_for_days(trainer_id, month_start, month_end)
        return self._aggregator.for_month(existing, year, month)

    async def get_calendar_events(self, trainer_id: UUID, start_date: date, end_date: date) -> List[CalendarEvent]:
        """Get a trainer's appointments formatted for a calendar view."""
        return to_calendar_events(await self.get_schedule(trainer_id, start_date, end_date))

    async def get_statistics(self, trainer_id: UUID, range_start: date, range_end: date) -> ScheduleStatistics:
        """Compute schedule statistics for a trainer over a date range."""
        existing = await self._appointments_for_days(trainer_id, range_start, range_end)
        return self._aggregator.statistics(existing, range_start, range_end)

    async def due_reminders(self) -> List[DueReminder]:
        """Get reminders due now; the caller dispatches them and marks them sent."""
        now = self.now()
        longest_offset = max((offset for _, offset in self._config.reminder_offsets), default=0)
        upcoming = await self._repository.find_active_between(
            now - timedelta(days=1),
            add_minutes(now, longest_offset + 1)
        )
        return self._reminders.due_reminders(upcoming, now)

    # Commands

    async def create_appointment(
        self,
        trainer_id: UUID,
        client_id: UUID,
        target_date: date,
        start_time: str,
        duration: Optional[int] = None,
        appointment_type: str = "training",
        location: Optional[str] = None,
        notes: Optional[str] = None
    ) -> SchedulingResult[Appointment]:
        """Book a single session for a client with a trainer."""
        async with self._locks.lock_for(trainer_id):
            now = self.now()
            existing = await self._appointments_for_days(trainer_id, target_date, target_date)
            result = self._lifecycle.create_appointment(
                trainer_id=trainer_id,
                client_id=client_id,
                target_date=target_date,
                start_time=start_time,
                now=now,
                existing_appointments=existing,
                duration=duration,
                appointment_type=appointment_type,
                location=location,
                notes=notes,
            )
            if not result.success:
                return self._rejected("create_appointment", result, trainer_id=str(trainer_id))

            try:
                await self._repository.save(result.value)
                await self._repository.commit()
            except SlotConflictError:
                return self._store_conflict("create_appointment", trainer_id)

        self._accepted("create_appointment", result.value)
        return result

    async def create_recurring_appointments(
        self,
        trainer_id: UUID,
        client_id: UUID,
        start_date: date,
        start_time: str,
        rule: RecurrenceRule,
        duration: Optional[int] = None,
        appointment_type: str = "training",
        location: Optional[str] = None,
        notes: Optional[str] = None
    ) -> SchedulingResult[RecurringBookingOutcome]:
        """Book every occurrence of a recurrence rule that passes validation."""
        expansion = self._lifecycle.expand_recurrence(start_date, rule)
        if not expansion.success:
            return self._rejected("create_recurring_appointments", expansion, trainer_id=str(trainer_id))

        occurrences = expansion.value
        async with self._locks.lock_for(trainer_id):
            now = self.now()
            existing = []
            if occurrences:
                existing = await self._appointments_for_days(trainer_id, occurrences[0], occurrences[-1])
            result = self._lifecycle.create_recurring_appointments(
                trainer_id=trainer_id,
                client_id=client_id,
                start_date=start_date,
                start_time=start_time,
                rule=rule,
                now=now,
                existing_appointments=existing,
                duration=duration,
                appointment_type=appointment_type,
                location=location,
                notes=notes,
            )
            if not result.success:
                return self._rejected("create_recurring_appointments", result, trainer_id=str(trainer_id))

            try:
                for appointment in result.value.created:
                    await self._repository.save(appointment)
                await self._repository.commit()
            except SlotConflictError:
                return self._store_conflict("create_recurring_appointments", trainer_id)

        outcome = result.value
        logger.info(
            "Recurring appointments created",
            extra={
                "trainer_id": str(trainer_id),
                "recurrence_id": str(outcome.recurrence_id),
                "created_count": len(outcome.created),
                "skipped_count": len(outcome.skipped),
                "rule": rule.describe(),
            }
        )
        return result

    async def reschedule_appointment(
        self,
        appointment_id: UUID,
        new_date: date,
        new_start_time: str
    ) -> SchedulingResult[Appointment]:
        """Move an appointment to a new date and start time."""
        appointment = await self._repository.find_by_id(appointment_id)
        if appointment is None:
            return self._not_found(appointment_id)

        async with self._locks.lock_for(appointment.trainer_id):
            # Re-read under the lock; a concurrent write may have moved it.
            appointment = await self._repository.find_by_id(appointment_id)
            if appointment is None:
                return self._not_found(appointment_id)
            previous_start = appointment.start_time

            existing = await self._appointments_for_days(appointment.trainer_id, new_date, new_date)
            result = self._lifecycle.reschedule(appointment, new_date, new_start_time, self.now(), existing)
            if not result.success:
                return self._rejected("reschedule_appointment", result, appointment_id=str(appointment_id))

            try:
                await self._repository.save(appointment)
                await self._repository.commit()
            except SlotConflictError:
                return self._store_conflict("reschedule_appointment", appointment.trainer_id)

        logger.info(
            "Appointment rescheduled",
            extra={
                "appointment_id": str(appointment_id),
                "previous_start_time": previous_start.isoformat(),
                "start_time": appointment.start_time.isoformat(),
            }
        )
        return result

    async def cancel_appointment(self, appointment_id: UUID, reason: str = "") -> SchedulingResult[Appointment]:
        """Cancel an appointment. Cancelling twice succeeds without changes."""
        return await self._apply(
            "cancel_appointment",
            appointment_id,
            lambda appointment, now: self._lifecycle.cancel(appointment, now, reason)
        )

    async def confirm_appointment(self, appointment_id: UUID) -> SchedulingResult[Appointment]:
        """Confirm an appointment."""
        return await self._apply("confirm_appointment", appointment_id, self._lifecycle.confirm)

    async def start_session(self, appointment_id: UUID) -> SchedulingResult[Appointment]:
        """Start a session."""
        return await self._apply("start_session", appointment_id, self._lifecycle.start_session)

    async def complete_session(self, appointment_id: UUID) -> SchedulingResult[Appointment]:
        """Complete a session."""
        return await self._apply("complete_session", appointment_id, self._lifecycle.complete_session)

    async def mark_no_show(self, appointment_id: UUID) -> SchedulingResult[Appointment]:
        """Mark a client as not having shown up for a session."""
        return await self._apply("mark_no_show", appointment_id, self._lifecycle.mark_no_show)

    async def sweep_no_shows(self, lookback: timedelta = timedelta(days=1)) -> List[Appointment]:
        """Mark every appointment whose start passed without being started within ``lookback``."""
        now = self.now()
        candidates = await self._repository.find_active_between(now - lookback, now)

        marked = []
        for appointment in candidates:
            if not appointment.is_no_show_candidate(now):
                continue
            result = await self.mark_no_show(appointment.id)
            if result.success:
                marked.append(result.value)
        return marked

    async def mark_reminder_sent(self, appointment_id: UUID, reminder_index: int) -> SchedulingResult[Appointment]:
        """Record that a reminder has been dispatched."""
        appointment = await self._repository.find_by_id(appointment_id)
        if appointment is None:
            return self._not_found(appointment_id)
        if not 0 <= reminder_index < len(appointment.reminders):
            return SchedulingResult.fail(
                SchedulingErrorKind.APPOINTMENT_NOT_FOUND,
                f"Appointment has no reminder at index {reminder_index}",
                appointment_id=str(appointment_id)
            )

        appointment.mark_reminder_sent(reminder_index, self.now())
        await self._repository.save(appointment)
        await self._repository.commit()
        return SchedulingResult.ok(appointment)

    # Helpers

    async def _apply(
        self,
        operation: str,
        appointment_id: UUID,
        transition: Callable[[Appointment, datetime], SchedulingResult[Appointment]]
    ) -> SchedulingResult[Appointment]:
        appointment = await self._repository.find_by_id(appointment_id)
        if appointment is None:
            return self._not_found(appointment_id)

        async with self._locks.lock_for(appointment.trainer_id):
            appointment = await self._repository.find_by_id(appointment_id)
            if appointment is None:
                return self._not_found(appointment_id)
            previous_status = appointment.status

            result = transition(appointment, self.now())
            if not result.success:
                return self._rejected(operation, result, appointment_id=str(appointment_id))
            if appointment.status == previous_status:
                return result

            await self._repository.save(appointment)
            await self._repository.commit()

        self._accepted(operation, appointment)
        return result

    async def _appointments_for_days(self, trainer_id: UUID, start_date: date, end_date: date) -> List[Appointment]:
        # Widen by a day on both sides so cross-midnight sessions and buffers are seen.
        tz = self._config.tzinfo
        range_start = local_midnight(start_date - timedelta(days=1), tz)
        range_end = local_midnight(end_date + timedelta(days=2), tz)
        return await self._repository.find_by_trainer_and_range(trainer_id, range_start, range_end)

    def _not_found(self, appointment_id: UUID) -> SchedulingResult[Appointment]:
        logger.info("Appointment not found", extra={"appointment_id": str(appointment_id)})
        return SchedulingResult.fail(
            SchedulingErrorKind.APPOINTMENT_NOT_FOUND,
            f"Appointment not found: {appointment_id}",
            appointment_id=str(appointment_id)
        )

    def _store_conflict(self, operation: str, trainer_id: UUID) -> SchedulingResult:
        result = SchedulingResult.fail(
            SchedulingErrorKind.SLOT_CONFLICT,
            "Requested time was booked concurrently; check availability and retry",
            trainer_id=str(trainer_id),
            retryable=True
        )
        return self._rejected(operation, result, trainer_id=str(trainer_id))

    def _rejected(self, operation: str, result: SchedulingResult, **extra) -> SchedulingResult:
        log_business_rule_violation(
            logger,
            operation,
            result.error.message,
            error_kind=result.error.kind.value,
            **extra
        )
        return SchedulingResult(success=False, error=result.error)

    def _accepted(self, operation: str, appointment: Appointment) -> None:
        log_scheduling_event(
            logger,
            operation,
            str(appointment.id),
            trainer_id=str(appointment.trainer_id),
            status=appointment.status.value
        )
