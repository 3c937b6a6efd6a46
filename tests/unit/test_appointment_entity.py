"""Unit tests for the Appointment entity and its state machine."""

import pytest
from datetime import datetime, timedelta
from uuid import uuid4

from trainer_scheduling.domain.entities.appointment import (
    ALLOWED_TRANSITIONS,
    Appointment,
    AppointmentStatus,
    TERMINAL_STATUSES,
)
from trainer_scheduling.domain.value_objects.reminder import Reminder, ReminderKind

from conftest import MONDAY, NOW, at, make_appointment


class TestAppointmentCreation:
    """Test cases for Appointment construction."""

    def test_appointment_creation(self):
        """Test basic appointment creation."""
        trainer_id, client_id = uuid4(), uuid4()
        appointment = Appointment(
            trainer_id=trainer_id,
            client_id=client_id,
            start_time=at(MONDAY, 10),
            duration=60,
            location="Studio A"
        )

        assert appointment.trainer_id == trainer_id
        assert appointment.client_id == client_id
        assert appointment.end_time == at(MONDAY, 11)
        assert appointment.status == AppointmentStatus.SCHEDULED
        assert appointment.type == "training"
        assert appointment.location == "Studio A"
        assert appointment.reminders == []
        assert appointment.created_at == appointment.updated_at

    def test_naive_start_rejected(self):
        """Test that naive start times are rejected."""
        with pytest.raises(ValueError, match="timezone-aware"):
            Appointment(trainer_id=uuid4(), client_id=uuid4(), start_time=datetime(2030, 1, 7, 10), duration=60)

    @pytest.mark.parametrize("duration", [0, -15, 30.5])
    def test_invalid_duration_rejected(self, duration):
        """Test that durations must be positive whole minutes."""
        with pytest.raises(ValueError, match="Duration"):
            make_appointment(uuid4(), at(MONDAY, 10), duration=duration)

    def test_recurrence_fields_set_together(self):
        """Test that a series id requires an index."""
        with pytest.raises(ValueError, match="Recurrence"):
            make_appointment(uuid4(), at(MONDAY, 10), recurrence_id=uuid4())

    def test_reminders_must_precede_start(self):
        """Test that reminders after the start are rejected."""
        late = Reminder(ReminderKind.PUSH, 30, at(MONDAY, 10, 30))

        with pytest.raises(ValueError, match="before the appointment start"):
            make_appointment(uuid4(), at(MONDAY, 10), reminders=[late])

    def test_reminders_are_sorted(self):
        """Test that reminders are ordered by scheduled time."""
        push = Reminder(ReminderKind.PUSH, 30, at(MONDAY, 9, 30))
        email = Reminder(ReminderKind.EMAIL, 1440, at(MONDAY, 10) - timedelta(days=1))

        appointment = make_appointment(uuid4(), at(MONDAY, 10), reminders=[push, email])

        assert [r.kind for r in appointment.reminders] == [ReminderKind.EMAIL, ReminderKind.PUSH]

    def test_equality_by_id(self):
        """Test appointment equality and hashing by ID."""
        appointment_id = uuid4()
        first = make_appointment(uuid4(), at(MONDAY, 10), appointment_id=appointment_id)
        second = make_appointment(uuid4(), at(MONDAY, 12), appointment_id=appointment_id)

        assert first == second
        assert len({first, second}) == 1


class TestAppointmentTransitions:
    """Test cases for status transitions."""

    def test_terminal_states_have_no_exits(self):
        """Test that terminal states never transition."""
        for status in TERMINAL_STATUSES:
            assert ALLOWED_TRANSITIONS[status] == frozenset()
            assert status.is_terminal

    def test_happy_path(self):
        """Test scheduled -> confirmed -> in progress -> completed."""
        appointment = make_appointment(uuid4(), at(MONDAY, 10))

        appointment.confirm(NOW)
        appointment.start(at(MONDAY, 10, 5))
        appointment.complete(at(MONDAY, 10, 50))

        assert appointment.status == AppointmentStatus.COMPLETED
        assert appointment.actual_start == at(MONDAY, 10, 5)
        assert appointment.actual_end == at(MONDAY, 10, 50)

    def test_completion_keeps_booked_duration(self):
        """Test that the booked interval survives completion and actual length is separate."""
        appointment = make_appointment(uuid4(), at(MONDAY, 10))

        appointment.start(at(MONDAY, 10, 5))
        appointment.complete(at(MONDAY, 10, 50))

        assert appointment.duration == 60
        assert appointment.end_time == at(MONDAY, 11)
        assert appointment.actual_duration == 45
        assert appointment.billable_minutes == 45

    def test_invalid_transition_raises(self):
        """Test that completing a scheduled appointment raises."""
        appointment = make_appointment(uuid4(), at(MONDAY, 10))

        with pytest.raises(ValueError, match="Cannot transition"):
            appointment.complete(NOW)

    def test_cancel_records_reason_and_is_idempotent(self):
        """Test cancelling twice keeps the first cancellation."""
        appointment = make_appointment(uuid4(), at(MONDAY, 10))

        appointment.cancel(NOW, "client sick")
        appointment.cancel(NOW + timedelta(hours=1), "again")

        assert appointment.status == AppointmentStatus.CANCELLED
        assert appointment.cancelled_at == NOW
        assert appointment.cancellation_reason == "client sick"
        assert appointment.blocks_time is False

    def test_reschedule_moves_interval(self):
        """Test that rescheduling keeps duration and records the previous start."""
        appointment = make_appointment(uuid4(), at(MONDAY, 10), duration=45)

        appointment.reschedule(at(MONDAY, 14), [], NOW)

        assert appointment.status == AppointmentStatus.RESCHEDULED
        assert appointment.start_time == at(MONDAY, 14)
        assert appointment.end_time == at(MONDAY, 14, 45)
        assert appointment.previous_start_time == at(MONDAY, 10)
        assert appointment.rescheduled_at == NOW

    def test_rescheduled_is_live(self):
        """Test that a rescheduled appointment can still be confirmed."""
        appointment = make_appointment(uuid4(), at(MONDAY, 10))
        appointment.reschedule(at(MONDAY, 14), [], NOW)

        appointment.confirm(NOW)

        assert appointment.status == AppointmentStatus.CONFIRMED

    def test_no_show_requires_passed_start(self):
        """Test that no-show is only possible after the start."""
        appointment = make_appointment(uuid4(), at(MONDAY, 10))

        assert appointment.is_no_show_candidate(at(MONDAY, 9, 59)) is False
        with pytest.raises(ValueError):
            appointment.mark_no_show(at(MONDAY, 9, 59))

        appointment.mark_no_show(at(MONDAY, 10, 15))

        assert appointment.status == AppointmentStatus.NO_SHOW
        assert appointment.no_show_at == at(MONDAY, 10, 15)

    def test_mark_reminder_sent(self):
        """Test marking a reminder as dispatched."""
        reminder = Reminder(ReminderKind.PUSH, 30, at(MONDAY, 9, 30))
        appointment = make_appointment(uuid4(), at(MONDAY, 10), reminders=[reminder])

        appointment.mark_reminder_sent(0, at(MONDAY, 9, 31))

        assert appointment.reminders[0].sent is True
        assert appointment.reminders[0].sent_at == at(MONDAY, 9, 31)
        with pytest.raises(ValueError):
            appointment.mark_reminder_sent(1, NOW)
