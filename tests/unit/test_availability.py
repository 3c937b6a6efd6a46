"""Unit tests for availability filtering and booking-time validation."""

from datetime import date, datetime, timezone
from uuid import uuid4

from trainer_scheduling.domain.entities.appointment import AppointmentStatus
from trainer_scheduling.domain.services.availability import AvailabilityFilter
from trainer_scheduling.domain.value_objects.scheduling_config import SchedulingConfig
from trainer_scheduling.domain.value_objects.scheduling_result import SchedulingErrorKind
from trainer_scheduling.domain.value_objects.working_hours import WorkingHours

from conftest import MONDAY, NOW, SUNDAY, at, make_appointment


class TestCheckAvailability:
    """Test cases for AvailabilityFilter.check_availability."""

    def test_all_slots_free(self, trainer_id):
        """Test a free future day returns every candidate slot."""
        slots = AvailabilityFilter().check_availability(trainer_id, MONDAY, [], NOW)

        assert len(slots) == 16

    def test_booked_slot_is_removed(self, trainer_id):
        """Test that an overlapping appointment removes its slot."""
        booked = make_appointment(trainer_id, at(MONDAY, 10))

        slots = AvailabilityFilter().check_availability(trainer_id, MONDAY, [booked], NOW)

        assert len(slots) == 15
        assert "10:00" not in [slot.start_time for slot in slots]
        assert "11:00" in [slot.start_time for slot in slots]

    def test_off_grid_booking_removes_both_neighbours(self, trainer_id):
        """Test that a 10:30-11:30 booking blocks the 10:00 and 11:00 slots."""
        booked = make_appointment(trainer_id, at(MONDAY, 10, 30))

        starts = [slot.start_time for slot in AvailabilityFilter().check_availability(trainer_id, MONDAY, [booked], NOW)]

        assert "10:00" not in starts
        assert "11:00" not in starts
        assert len(starts) == 14

    def test_other_trainers_and_cancelled_do_not_block(self, trainer_id):
        """Test that only the trainer's live appointments matter."""
        other = make_appointment(uuid4(), at(MONDAY, 10))
        cancelled = make_appointment(trainer_id, at(MONDAY, 11), status=AppointmentStatus.CANCELLED)

        slots = AvailabilityFilter().check_availability(trainer_id, MONDAY, [other, cancelled], NOW)

        assert len(slots) == 16

    def test_past_slots_are_dropped(self, trainer_id):
        """Test that slots ending at or before now are not offered."""
        now = at(MONDAY, 12, 30)

        slots = AvailabilityFilter().check_availability(trainer_id, MONDAY, [], now)

        assert slots[0].start_time == "12:00"
        assert len(slots) == 10

    def test_fully_booked_day_is_empty(self, trainer_id):
        """Test that an empty list is a valid answer."""
        hours = WorkingHours("09:00", "11:00")
        booked = [make_appointment(trainer_id, at(MONDAY, 9), duration=120)]

        assert AvailabilityFilter().check_availability(trainer_id, MONDAY, booked, NOW, working_hours=hours) == []


class TestValidateAppointmentTime:
    """Test cases for AvailabilityFilter.validate_appointment_time."""

    def test_valid_time(self):
        """Test that a valid request returns the requested interval."""
        result = AvailabilityFilter().validate_appointment_time(MONDAY, "10:00", 60, NOW)

        assert result.success is True
        assert result.value.start == at(MONDAY, 10)
        assert result.value.end == at(MONDAY, 11)

    def test_non_positive_duration(self):
        """Test that zero duration is an invalid time range."""
        result = AvailabilityFilter().validate_appointment_time(MONDAY, "10:00", 0, NOW)

        assert result.error_kind == SchedulingErrorKind.INVALID_TIME_RANGE

    def test_malformed_start(self):
        """Test that an unparseable start is an invalid time range."""
        result = AvailabilityFilter().validate_appointment_time(MONDAY, "10h00", 60, NOW)

        assert result.error_kind == SchedulingErrorKind.INVALID_TIME_RANGE

    def test_non_working_day(self):
        """Test that a day off is outside working hours."""
        config = SchedulingConfig(weekly_hours={0: WorkingHours.day_off()})

        result = AvailabilityFilter(config).validate_appointment_time(MONDAY, "10:00", 60, NOW)

        assert result.error_kind == SchedulingErrorKind.OUTSIDE_WORKING_HOURS
        assert result.error.message == "Not a working day"

    def test_starts_before_working_hours(self):
        """Test a start before opening."""
        result = AvailabilityFilter().validate_appointment_time(MONDAY, "05:30", 60, NOW)

        assert result.error_kind == SchedulingErrorKind.OUTSIDE_WORKING_HOURS

    def test_ends_after_working_hours(self):
        """Test an end after closing."""
        result = AvailabilityFilter().validate_appointment_time(MONDAY, "21:30", 60, NOW)

        assert result.error_kind == SchedulingErrorKind.OUTSIDE_WORKING_HOURS

    def test_session_ending_at_closing_is_valid(self):
        """Test that ending exactly at closing time is allowed."""
        result = AvailabilityFilter().validate_appointment_time(MONDAY, "21:00", 60, NOW)

        assert result.success is True

    def test_past_booking(self):
        """Test that a start in the past is rejected."""
        result = AvailabilityFilter().validate_appointment_time(SUNDAY, "09:00", 60, NOW)

        assert result.error_kind == SchedulingErrorKind.PAST_BOOKING

    def test_working_hours_checked_before_past(self):
        """Test that checks stop at the first failure in order."""
        result = AvailabilityFilter().validate_appointment_time(SUNDAY, "05:00", 60, NOW)

        assert result.error_kind == SchedulingErrorKind.OUTSIDE_WORKING_HOURS

    def test_minimum_advance_window(self):
        """Test that starts inside the minimum advance window are rejected."""
        config = SchedulingConfig(min_advance_booking_minutes=120)

        too_soon = AvailabilityFilter(config).validate_appointment_time(SUNDAY, "13:00", 60, NOW)
        in_time = AvailabilityFilter(config).validate_appointment_time(SUNDAY, "14:00", 60, NOW)

        assert too_soon.error_kind == SchedulingErrorKind.PAST_BOOKING
        assert in_time.success is True

    def test_advance_booking_exceeded(self):
        """Test that starts beyond the booking horizon are rejected."""
        result = AvailabilityFilter().validate_appointment_time(date(2030, 4, 10), "10:00", 60, NOW)

        assert result.error_kind == SchedulingErrorKind.ADVANCE_BOOKING_EXCEEDED

    def test_advance_booking_boundary(self):
        """Test that the last day of the horizon is still bookable."""
        result = AvailabilityFilter().validate_appointment_time(date(2030, 4, 6), "10:00", 60, NOW)

        assert result.success is True

    def test_validation_uses_configured_timezone(self):
        """Test that clocks are read in the configured timezone."""
        config = SchedulingConfig(timezone="Asia/Bangkok")

        result = AvailabilityFilter(config).validate_appointment_time(MONDAY, "06:00", 60, NOW)

        assert result.success is True
        assert result.value.start == datetime(2030, 1, 6, 23, 0, tzinfo=timezone.utc)


class TestFindNextAvailableSlot:
    """Test cases for AvailabilityFilter.find_next_available_slot."""

    def test_next_slot_from_now(self, trainer_id):
        """Test that the earliest future slot is returned."""
        slot = AvailabilityFilter().find_next_available_slot(trainer_id, [], NOW)

        assert slot.start == at(SUNDAY, 12)

    def test_skips_booked_slots(self, trainer_id):
        """Test that booked time is skipped."""
        booked = make_appointment(trainer_id, at(SUNDAY, 12))

        slot = AvailabilityFilter().find_next_available_slot(trainer_id, [booked], NOW)

        assert slot.start == at(SUNDAY, 13)

    def test_preferred_from(self, trainer_id):
        """Test that the search starts at the preferred instant."""
        slot = AvailabilityFilter().find_next_available_slot(trainer_id, [], NOW, preferred_from=at(MONDAY, 9, 30))

        assert slot.start == at(MONDAY, 10)

    def test_rolls_over_to_next_working_day(self, trainer_id):
        """Test that closed days are skipped."""
        config = SchedulingConfig(weekly_hours={6: WorkingHours.day_off()})

        slot = AvailabilityFilter(config).find_next_available_slot(trainer_id, [], NOW)

        assert slot.start == at(MONDAY, 6)

    def test_nothing_within_horizon(self, trainer_id):
        """Test that no slot is found when every day is closed."""
        config = SchedulingConfig(
            weekly_hours={weekday: WorkingHours.day_off() for weekday in range(7)},
            max_advance_booking_days=14
        )

        assert AvailabilityFilter(config).find_next_available_slot(trainer_id, [], NOW) is None
