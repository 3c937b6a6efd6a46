"""Availability filtering and booking-time validation."""

from datetime import date, datetime, timedelta
from typing import Iterable, List, Optional
from uuid import UUID

from ..entities.appointment import Appointment
from ..value_objects.scheduling_config import SchedulingConfig
from ..value_objects.scheduling_result import SchedulingErrorKind, SchedulingResult
from ..value_objects.time_slot import TimeSlot
from ..value_objects.working_hours import WorkingHours
from .conflicts import find_conflicts
from .slot_generator import TimeSlotGenerator
from .time_utils import add_minutes, at_clock, local_date, parse_clock


class AvailabilityFilter:
    """Service combining slot generation with existing bookings and the clock."""

    def __init__(
        self,
        config: Optional[SchedulingConfig] = None,
        slot_generator: Optional[TimeSlotGenerator] = None
    ):
        self._config = config or SchedulingConfig()
        self._slot_generator = slot_generator or TimeSlotGenerator(self._config)

    @property
    def config(self) -> SchedulingConfig:
        return self._config

    def check_availability(
        self,
        trainer_id: UUID,
        target_date: date,
        existing_appointments: Iterable[Appointment],
        now: datetime,
        working_hours: Optional[WorkingHours] = None,
        duration: Optional[int] = None
    ) -> List[TimeSlot]:
        """Get the free slots of a trainer for a calendar day.

        Past slots (ending at or before ``now``) and slots overlapping any
        non-cancelled appointment of the trainer are dropped. An empty list
        is a valid answer.
        """
        booked = [
            appointment for appointment in existing_appointments
            if appointment.trainer_id == trainer_id and appointment.blocks_time
        ]
        candidates = self._slot_generator.generate_slots(target_date, working_hours, duration)

        return [
            slot for slot in candidates
            if not slot.is_past(now)
            and not find_conflicts(slot.start, slot.end, booked, buffer_minutes=self._config.buffer_minutes)
        ]

    def validate_appointment_time(
        self,
        target_date: date,
        start_time: str,
        duration: int,
        now: datetime,
        working_hours: Optional[WorkingHours] = None
    ) -> SchedulingResult[TimeSlot]:
        """Validate a requested ``HH:MM`` start on ``target_date``.

        Checks run in order and stop at the first failure: positive duration,
        working day, start within working hours, end within working hours,
        start not in the past (nor inside the minimum advance window), and
        start within the maximum advance-booking horizon. On success the
        result carries the requested interval as a ``TimeSlot``.
        """
        if duration is None or duration <= 0:
            return SchedulingResult.fail(
                SchedulingErrorKind.INVALID_TIME_RANGE,
                "Appointment end must be after its start",
                duration=duration
            )

        try:
            parse_clock(start_time)
        except ValueError as e:
            return SchedulingResult.fail(SchedulingErrorKind.INVALID_TIME_RANGE, str(e), start_time=start_time)

        start = at_clock(target_date, start_time, self._config.tzinfo)
        return self.validate_interval(start, duration, now, working_hours)

    def validate_interval(
        self,
        start: datetime,
        duration: int,
        now: datetime,
        working_hours: Optional[WorkingHours] = None
    ) -> SchedulingResult[TimeSlot]:
        """Validate an absolute start instant with the same rules as ``validate_appointment_time``."""
        if duration is None or duration <= 0:
            return SchedulingResult.fail(
                SchedulingErrorKind.INVALID_TIME_RANGE,
                "Appointment end must be after its start",
                duration=duration
            )

        tz = self._config.tzinfo
        start = start.astimezone(tz)
        end = add_minutes(start, duration)
        target_date = local_date(start, tz)
        hours = working_hours or self._config.hours_for(target_date)

        if not hours.is_working_day:
            return SchedulingResult.fail(
                SchedulingErrorKind.OUTSIDE_WORKING_HOURS,
                "Not a working day",
                date=target_date.isoformat()
            )

        work_start, work_end = hours.window(target_date, tz)
        if start < work_start:
            return SchedulingResult.fail(
                SchedulingErrorKind.OUTSIDE_WORKING_HOURS,
                "Appointment starts before working hours",
                working_hours_start=hours.start
            )
        if end > work_end:
            return SchedulingResult.fail(
                SchedulingErrorKind.OUTSIDE_WORKING_HOURS,
                "Appointment ends after working hours",
                working_hours_end=hours.end
            )

        if start < now:
            return SchedulingResult.fail(
                SchedulingErrorKind.PAST_BOOKING,
                "Cannot book appointments in the past",
                start_time=start.isoformat()
            )
        min_advance = self._config.min_advance_booking_minutes
        if min_advance and start < add_minutes(now, min_advance):
            return SchedulingResult.fail(
                SchedulingErrorKind.PAST_BOOKING,
                f"Appointments must be booked at least {min_advance} minutes in advance",
                start_time=start.isoformat()
            )

        max_days = self._config.max_advance_booking_days
        if start > now + timedelta(days=max_days):
            return SchedulingResult.fail(
                SchedulingErrorKind.ADVANCE_BOOKING_EXCEEDED,
                f"Cannot book more than {max_days} days in advance",
                start_time=start.isoformat()
            )

        return SchedulingResult.ok(TimeSlot(start=start, end=end, duration=duration))

    def find_next_available_slot(
        self,
        trainer_id: UUID,
        existing_appointments: Iterable[Appointment],
        now: datetime,
        preferred_from: Optional[datetime] = None,
        duration: Optional[int] = None
    ) -> Optional[TimeSlot]:
        """Find the earliest bookable slot from ``preferred_from`` (or ``now``).

        The search stops at the maximum advance-booking horizon.
        """
        existing = list(existing_appointments)
        duration = duration or self._config.default_session_duration
        search_start = max(preferred_from or now, now)
        tz = self._config.tzinfo

        day = local_date(search_start, tz)
        last_day = local_date(now + timedelta(days=self._config.max_advance_booking_days), tz)
        while day <= last_day:
            for slot in self.check_availability(trainer_id, day, existing, now, duration=duration):
                if slot.start < search_start:
                    continue
                if self.validate_interval(slot.start, duration, now).success:
                    return slot
            day += timedelta(days=1)

        return None
