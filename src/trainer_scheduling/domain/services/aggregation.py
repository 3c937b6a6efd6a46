"""Schedule grouping and utilization statistics."""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional, Tuple
from uuid import UUID

from ..entities.appointment import Appointment, AppointmentStatus
from ..value_objects.recurrence_rule import WEEKDAY_NAMES
from ..value_objects.scheduling_config import SchedulingConfig
from .time_utils import local_date

SUNDAY = 6

STATUS_COLORS: Dict[AppointmentStatus, str] = {
    AppointmentStatus.SCHEDULED: "#4CAF50",
    AppointmentStatus.CONFIRMED: "#2196F3",
    AppointmentStatus.IN_PROGRESS: "#FF9800",
    AppointmentStatus.COMPLETED: "#9E9E9E",
    AppointmentStatus.CANCELLED: "#F44336",
    AppointmentStatus.RESCHEDULED: "#9C27B0",
}
DEFAULT_STATUS_COLOR = "#757575"


@dataclass(frozen=True)
class ScheduleStatistics:
    """Descriptive statistics for the appointments of a date range."""

    range_start: date
    range_end: date
    total: int
    by_status: Dict[str, int]
    total_hours: float
    by_type: Dict[str, int]
    by_weekday: Dict[str, int]
    work_days: int
    capacity_hours: float
    utilization_rate: float

    @property
    def scheduled(self) -> int:
        return self.by_status.get(AppointmentStatus.SCHEDULED.value, 0)

    @property
    def completed(self) -> int:
        return self.by_status.get(AppointmentStatus.COMPLETED.value, 0)

    @property
    def cancelled(self) -> int:
        return self.by_status.get(AppointmentStatus.CANCELLED.value, 0)


@dataclass(frozen=True)
class WeeklySchedule:
    """Appointments of one week grouped by calendar day."""
    week_start: date
    days: Dict[date, List[Appointment]] = field(default_factory=dict)


@dataclass(frozen=True)
class CalendarEvent:
    """Calendar view entry for one appointment."""
    id: UUID
    title: str
    start: datetime
    end: datetime
    color: str
    extended_props: Dict[str, Any] = field(default_factory=dict)


def status_color(status: AppointmentStatus) -> str:
    """Get the display color of an appointment status."""
    return STATUS_COLORS.get(status, DEFAULT_STATUS_COLOR)


def to_calendar_events(appointments: Iterable[Appointment]) -> List[CalendarEvent]:
    """Format appointments for a calendar view."""
    return [
        CalendarEvent(
            id=appointment.id,
            title="Training Session" if appointment.type == "training" else appointment.type,
            start=appointment.start_time,
            end=appointment.end_time,
            color=status_color(appointment.status),
            extended_props={
                "trainer_id": str(appointment.trainer_id),
                "client_id": str(appointment.client_id),
                "status": appointment.status.value,
                "location": appointment.location,
                "notes": appointment.notes,
            },
        )
        for appointment in appointments
    ]


class ScheduleAggregator:
    """Read-only views and reports over a supplied appointment collection."""

    def __init__(self, config: Optional[SchedulingConfig] = None, first_weekday: int = SUNDAY):
        self._config = config or SchedulingConfig()
        self._first_weekday = first_weekday

    def for_date_range(self, appointments: Iterable[Appointment], start_date: date, end_date: date) -> List[Appointment]:
        """Appointments starting on any day from ``start_date`` to ``end_date`` inclusive."""
        tz = self._config.tzinfo
        selected = [a for a in appointments if start_date <= local_date(a.start_time, tz) <= end_date]
        return sorted(selected, key=lambda a: a.start_time)

    def for_day(self, appointments: Iterable[Appointment], day: date) -> List[Appointment]:
        """Appointments starting on ``day``."""
        return self.for_date_range(appointments, day, day)

    def week_bounds(self, day: date) -> Tuple[date, date]:
        """Get the first and last day of the week containing ``day``."""
        offset = (day.weekday() - self._first_weekday) % 7
        week_start = day - timedelta(days=offset)
        return week_start, week_start + timedelta(days=6)

    def for_week(self, appointments: Iterable[Appointment], day: date) -> List[Appointment]:
        """Appointments in the week containing ``day``."""
        week_start, week_end = self.week_bounds(day)
        return self.for_date_range(appointments, week_start, week_end)

    def for_month(self, appointments: Iterable[Appointment], year: int, month: int) -> List[Appointment]:
        """Appointments in a calendar month."""
        month_start = date(year, month, 1)
        next_month = date(year + 1, 1, 1) if month == 12 else date(year, month + 1, 1)
        return self.for_date_range(appointments, month_start, next_month - timedelta(days=1))

    def weekly_schedule(self, appointments: Iterable[Appointment], day: date) -> WeeklySchedule:
        """Group the week containing ``day`` into one ordered list per day."""
        week_start, _ = self.week_bounds(day)
        week = self.for_week(appointments, day)
        tz = self._config.tzinfo

        days: Dict[date, List[Appointment]] = {week_start + timedelta(days=i): [] for i in range(7)}
        for appointment in week:
            days[local_date(appointment.start_time, tz)].append(appointment)
        return WeeklySchedule(week_start=week_start, days=days)

    @staticmethod
    def calculate_total_hours(appointments: Iterable[Appointment]) -> float:
        """Sum booked hours, excluding cancelled appointments."""
        minutes = sum(a.billable_minutes for a in appointments if a.status != AppointmentStatus.CANCELLED)
        return minutes / 60

    def statistics(self, appointments: Iterable[Appointment], range_start: date, range_end: date) -> ScheduleStatistics:
        """Compute counts, booked hours and utilization over ``[range_start, range_end]``."""
        selected = self.for_date_range(appointments, range_start, range_end)
        tz = self._config.tzinfo

        by_status = {status.value: 0 for status in AppointmentStatus}
        by_type: Dict[str, int] = {}
        by_weekday: Dict[str, int] = {}
        for appointment in selected:
            by_status[appointment.status.value] += 1
            by_type[appointment.type] = by_type.get(appointment.type, 0) + 1
            weekday = WEEKDAY_NAMES[local_date(appointment.start_time, tz).weekday()]
            by_weekday[weekday] = by_weekday.get(weekday, 0) + 1

        total_hours = self.calculate_total_hours(selected)
        work_days = max((range_end - range_start).days + 1, 0)
        capacity_hours = work_days * self._config.daily_capacity_hours
        utilization_rate = (total_hours / capacity_hours) * 100 if capacity_hours else 0.0

        return ScheduleStatistics(
            range_start=range_start,
            range_end=range_end,
            total=len(selected),
            by_status=by_status,
            total_hours=total_hours,
            by_type=by_type,
            by_weekday=by_weekday,
            work_days=work_days,
            capacity_hours=capacity_hours,
            utilization_rate=utilization_rate,
        )
