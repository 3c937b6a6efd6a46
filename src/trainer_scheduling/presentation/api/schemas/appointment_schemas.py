"""Pydantic schemas for scheduling API requests and responses."""

from datetime import date as Date, datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from ....domain.entities.appointment import Appointment, AppointmentStatus
from ....domain.services.aggregation import CalendarEvent, ScheduleStatistics
from ....domain.services.lifecycle import RecurringBookingOutcome
from ....domain.services.reminders import DueReminder
from ....domain.services.time_utils import parse_clock
from ....domain.value_objects.recurrence_rule import RecurrenceFrequency, RecurrenceRule
from ....domain.value_objects.reminder import Reminder, ReminderKind
from ....domain.value_objects.scheduling_result import SchedulingError
from ....domain.value_objects.time_slot import TimeSlot


def _validate_clock(value: str) -> str:
    parse_clock(value)
    return value.strip()


class TimeSlotResponse(BaseModel):
    """Response model for time slot information."""
    start: datetime
    end: datetime
    start_time: str = Field(..., description="Start time in HH:MM format")
    end_time: str = Field(..., description="End time in HH:MM format")
    duration: int
    time_range: str = Field(..., description="Formatted time range")

    @classmethod
    def from_slot(cls, slot: TimeSlot) -> "TimeSlotResponse":
        """Create from domain TimeSlot."""
        return cls(
            start=slot.start,
            end=slot.end,
            start_time=slot.start_time,
            end_time=slot.end_time,
            duration=slot.duration,
            time_range=slot.time_range
        )


class AvailableSlotsResponse(BaseModel):
    """Response model for available slots."""
    trainer_id: Optional[UUID] = None
    date: Date
    available_slots: List[TimeSlotResponse]
    available_count: int


class ValidateTimeRequest(BaseModel):
    """Request model for validating a requested appointment time."""
    date: Date
    start_time: str = Field(..., description="Start time in HH:MM format")
    duration: Optional[int] = Field(None, gt=0, description="Duration in minutes")

    @field_validator("start_time")
    @classmethod
    def validate_start_time(cls, value: str) -> str:
        """Validate HH:MM format."""
        return _validate_clock(value)


class ValidateTimeResponse(BaseModel):
    """Response model for appointment time validation."""
    valid: bool
    slot: Optional[TimeSlotResponse] = None
    error: Optional[str] = None
    message: Optional[str] = None


class AppointmentCreateRequest(BaseModel):
    """Request model for creating an appointment."""
    trainer_id: UUID
    client_id: UUID
    date: Date = Field(..., description="Session date")
    start_time: str = Field(..., description="Start time in HH:MM format")
    duration: Optional[int] = Field(None, gt=0, description="Duration in minutes")
    type: str = Field("training", max_length=50)
    location: Optional[str] = Field(None, max_length=255)
    notes: Optional[str] = None

    @field_validator("start_time")
    @classmethod
    def validate_start_time(cls, value: str) -> str:
        """Validate HH:MM format."""
        return _validate_clock(value)


class RecurrenceRuleRequest(BaseModel):
    """Request model for a recurrence rule."""
    frequency: Optional[RecurrenceFrequency] = None
    interval: int = Field(1, description="Repeat every N days/weeks/months")
    weekdays: List[int] = Field(default_factory=list, description="0 = Monday ... 6 = Sunday (weekly only)")
    count: Optional[int] = Field(None, description="Maximum number of occurrences")
    end_date: Optional[Date] = Field(None, description="Last possible occurrence date (inclusive)")

    def to_rule(self) -> RecurrenceRule:
        """Convert to domain RecurrenceRule."""
        return RecurrenceRule(
            frequency=self.frequency,
            interval=self.interval,
            weekdays=frozenset(self.weekdays),
            count=self.count,
            end_date=self.end_date
        )


class RecurringAppointmentRequest(AppointmentCreateRequest):
    """Request model for creating a recurring series."""
    recurrence: RecurrenceRuleRequest


class RecurrenceExpansionRequest(BaseModel):
    """Request model for expanding a recurrence rule without booking."""
    start_date: Date
    recurrence: RecurrenceRuleRequest


class RecurrenceExpansionResponse(BaseModel):
    """Response model for recurrence expansion."""
    dates: List[Date]
    description: str


class RescheduleRequest(BaseModel):
    """Request model for rescheduling an appointment."""
    date: Date
    start_time: str = Field(..., description="New start time in HH:MM format")

    @field_validator("start_time")
    @classmethod
    def validate_start_time(cls, value: str) -> str:
        """Validate HH:MM format."""
        return _validate_clock(value)


class CancelRequest(BaseModel):
    """Request model for cancelling an appointment."""
    reason: str = ""


class ReminderResponse(BaseModel):
    """Response model for a reminder."""
    kind: ReminderKind
    offset_minutes: int
    scheduled_for: datetime
    sent: bool
    sent_at: Optional[datetime] = None

    @classmethod
    def from_reminder(cls, reminder: Reminder) -> "ReminderResponse":
        return cls(
            kind=reminder.kind,
            offset_minutes=reminder.offset_minutes,
            scheduled_for=reminder.scheduled_for,
            sent=reminder.sent,
            sent_at=reminder.sent_at
        )


class AppointmentResponse(BaseModel):
    """Response model for appointment operations."""
    id: UUID
    trainer_id: UUID
    client_id: UUID
    start_time: datetime
    end_time: datetime
    duration: int
    type: str
    location: Optional[str] = None
    notes: Optional[str] = None
    status: AppointmentStatus
    reminders: List[ReminderResponse]
    recurrence_id: Optional[UUID] = None
    recurrence_index: Optional[int] = None
    created_at: datetime
    updated_at: datetime
    cancelled_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None
    rescheduled_at: Optional[datetime] = None
    previous_start_time: Optional[datetime] = None
    actual_start: Optional[datetime] = None
    actual_end: Optional[datetime] = None
    actual_duration: Optional[int] = None

    @classmethod
    def from_entity(cls, appointment: Appointment) -> "AppointmentResponse":
        """Create from domain Appointment."""
        return cls(
            id=appointment.id,
            trainer_id=appointment.trainer_id,
            client_id=appointment.client_id,
            start_time=appointment.start_time,
            end_time=appointment.end_time,
            duration=appointment.duration,
            type=appointment.type,
            location=appointment.location,
            notes=appointment.notes,
            status=appointment.status,
            reminders=[ReminderResponse.from_reminder(r) for r in appointment.reminders],
            recurrence_id=appointment.recurrence_id,
            recurrence_index=appointment.recurrence_index,
            created_at=appointment.created_at,
            updated_at=appointment.updated_at,
            cancelled_at=appointment.cancelled_at,
            cancellation_reason=appointment.cancellation_reason,
            rescheduled_at=appointment.rescheduled_at,
            previous_start_time=appointment.previous_start_time,
            actual_start=appointment.actual_start,
            actual_end=appointment.actual_end,
            actual_duration=appointment.actual_duration
        )


class SkippedOccurrence(BaseModel):
    """An occurrence of a series that could not be booked."""
    date: Date
    error: str
    message: str


class RecurringAppointmentResponse(BaseModel):
    """Response model for a recurring series booking."""
    recurrence_id: UUID
    created: List[AppointmentResponse]
    skipped: List[SkippedOccurrence]

    @classmethod
    def from_outcome(cls, outcome: RecurringBookingOutcome) -> "RecurringAppointmentResponse":
        return cls(
            recurrence_id=outcome.recurrence_id,
            created=[AppointmentResponse.from_entity(a) for a in outcome.created],
            skipped=[
                SkippedOccurrence(date=day, error=error.kind.value, message=error.message)
                for day, error in outcome.skipped
            ]
        )


class DueReminderResponse(BaseModel):
    """Response model for a reminder awaiting dispatch."""
    appointment_id: UUID
    trainer_id: UUID
    client_id: UUID
    reminder_index: int
    kind: ReminderKind
    scheduled_for: datetime
    appointment_start: datetime

    @classmethod
    def from_due(cls, due: DueReminder) -> "DueReminderResponse":
        return cls(
            appointment_id=due.appointment.id,
            trainer_id=due.appointment.trainer_id,
            client_id=due.appointment.client_id,
            reminder_index=due.reminder_index,
            kind=due.reminder.kind,
            scheduled_for=due.reminder.scheduled_for,
            appointment_start=due.appointment.start_time
        )


class WeeklyScheduleResponse(BaseModel):
    """Response model for a week grouped by day."""
    week_start: Date
    days: Dict[Date, List[AppointmentResponse]]


class StatisticsResponse(BaseModel):
    """Response model for schedule statistics."""
    range_start: Date
    range_end: Date
    total: int
    by_status: Dict[str, int]
    total_hours: float
    by_type: Dict[str, int]
    by_weekday: Dict[str, int]
    work_days: int
    capacity_hours: float
    utilization_rate: float

    @classmethod
    def from_statistics(cls, stats: ScheduleStatistics) -> "StatisticsResponse":
        return cls(
            range_start=stats.range_start,
            range_end=stats.range_end,
            total=stats.total,
            by_status=stats.by_status,
            total_hours=round(stats.total_hours, 2),
            by_type=stats.by_type,
            by_weekday=stats.by_weekday,
            work_days=stats.work_days,
            capacity_hours=stats.capacity_hours,
            utilization_rate=round(stats.utilization_rate, 1)
        )


class CalendarEventResponse(BaseModel):
    """Response model for a calendar feed entry."""
    id: UUID
    title: str
    start: datetime
    end: datetime
    background_color: str
    border_color: str
    extended_props: Dict[str, Any]

    @classmethod
    def from_event(cls, event: CalendarEvent) -> "CalendarEventResponse":
        return cls(
            id=event.id,
            title=event.title,
            start=event.start,
            end=event.end,
            background_color=event.color,
            border_color=event.color,
            extended_props=event.extended_props
        )


class ErrorResponse(BaseModel):
    """Response model for errors."""
    type: str
    message: str
    details: Optional[Dict[str, Any]] = None

    @classmethod
    def from_error(cls, error: SchedulingError) -> "ErrorResponse":
        return cls(type=error.kind.value, message=error.message, details=error.details or None)
