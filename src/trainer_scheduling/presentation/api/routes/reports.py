"""Schedule report endpoints: statistics, schedule views and calendar feed."""

from datetime import date as Date
from typing import List
from uuid import UUID

from fastapi import APIRouter, HTTPException, Path, Query

from ..schemas.appointment_schemas import (
    AppointmentResponse,
    CalendarEventResponse,
    StatisticsResponse,
    WeeklyScheduleResponse,
)
from ....infrastructure.services import get_service_factory

router = APIRouter()


def _check_range(start_date: Date, end_date: Date) -> None:
    if end_date < start_date:
        raise HTTPException(status_code=400, detail="end_date must not be before start_date")


@router.get("/trainers/{trainer_id}/statistics")
async def get_statistics(
    trainer_id: UUID = Path(..., description="Trainer ID"),
    start_date: Date = Query(..., description="First day of the range"),
    end_date: Date = Query(..., description="Last day of the range (inclusive)")
) -> StatisticsResponse:
    """Get counts, booked hours and utilization for a date range."""
    _check_range(start_date, end_date)

    service_factory = get_service_factory()
    async with service_factory.get_scheduling_service() as scheduling_service:
        stats = await scheduling_service.get_statistics(trainer_id, start_date, end_date)

    return StatisticsResponse.from_statistics(stats)


@router.get("/trainers/{trainer_id}/schedule")
async def get_schedule(
    trainer_id: UUID = Path(..., description="Trainer ID"),
    start_date: Date = Query(..., description="First day of the range"),
    end_date: Date = Query(..., description="Last day of the range (inclusive)")
) -> List[AppointmentResponse]:
    """Get a trainer's appointments for a date range."""
    _check_range(start_date, end_date)

    service_factory = get_service_factory()
    async with service_factory.get_scheduling_service() as scheduling_service:
        appointments = await scheduling_service.get_schedule(trainer_id, start_date, end_date)

    return [AppointmentResponse.from_entity(appointment) for appointment in appointments]


@router.get("/trainers/{trainer_id}/schedule/day")
async def get_day_schedule(
    trainer_id: UUID = Path(..., description="Trainer ID"),
    day: Date = Query(..., alias="date", description="Date in YYYY-MM-DD format")
) -> List[AppointmentResponse]:
    """Get a trainer's appointments for one day."""
    service_factory = get_service_factory()
    async with service_factory.get_scheduling_service() as scheduling_service:
        appointments = await scheduling_service.get_schedule(trainer_id, day, day)

    return [AppointmentResponse.from_entity(appointment) for appointment in appointments]


@router.get("/trainers/{trainer_id}/schedule/week")
async def get_week_schedule(
    trainer_id: UUID = Path(..., description="Trainer ID"),
    day: Date = Query(..., alias="date", description="Any date in the week")
) -> WeeklyScheduleResponse:
    """Get the week containing a date, grouped by day."""
    service_factory = get_service_factory()
    async with service_factory.get_scheduling_service() as scheduling_service:
        week = await scheduling_service.get_weekly_schedule(trainer_id, day)

    return WeeklyScheduleResponse(
        week_start=week.week_start,
        days={
            weekday: [AppointmentResponse.from_entity(a) for a in appointments]
            for weekday, appointments in week.days.items()
        }
    )


@router.get("/trainers/{trainer_id}/schedule/month")
async def get_month_schedule(
    trainer_id: UUID = Path(..., description="Trainer ID"),
    year: int = Query(..., ge=1, le=9999),
    month: int = Query(..., ge=1, le=12)
) -> List[AppointmentResponse]:
    """Get a trainer's appointments for a calendar month."""
    service_factory = get_service_factory()
    async with service_factory.get_scheduling_service() as scheduling_service:
        appointments = await scheduling_service.get_month_schedule(trainer_id, year, month)

    return [AppointmentResponse.from_entity(appointment) for appointment in appointments]


@router.get("/trainers/{trainer_id}/calendar")
async def get_calendar_events(
    trainer_id: UUID = Path(..., description="Trainer ID"),
    start_date: Date = Query(..., description="First day of the range"),
    end_date: Date = Query(..., description="Last day of the range (inclusive)")
) -> List[CalendarEventResponse]:
    """Get a trainer's appointments formatted for a calendar view."""
    _check_range(start_date, end_date)

    service_factory = get_service_factory()
    async with service_factory.get_scheduling_service() as scheduling_service:
        events = await scheduling_service.get_calendar_events(trainer_id, start_date, end_date)

    return [CalendarEventResponse.from_event(event) for event in events]
