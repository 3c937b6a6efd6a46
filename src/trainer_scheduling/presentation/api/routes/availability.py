"""Availability endpoints: candidate slots, free slots and time validation."""

from datetime import date as Date, datetime
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, HTTPException, Path, Query

from ..errors import unwrap
from ..schemas.appointment_schemas import (
    AvailableSlotsResponse,
    RecurrenceExpansionRequest,
    RecurrenceExpansionResponse,
    TimeSlotResponse,
    ValidateTimeRequest,
    ValidateTimeResponse,
)
from ....infrastructure.services import get_service_factory

router = APIRouter()


@router.get("/slots")
async def get_candidate_slots(
    target_date: Date = Query(..., alias="date", description="Date in YYYY-MM-DD format"),
    duration: Optional[int] = Query(None, gt=0, description="Session length in minutes"),
    interval: Optional[int] = Query(None, gt=0, description="Step between slot starts in minutes")
) -> AvailableSlotsResponse:
    """Get every candidate slot of a day, ignoring existing bookings."""
    service_factory = get_service_factory()
    async with service_factory.get_scheduling_service() as scheduling_service:
        slots = scheduling_service.generate_slots(target_date, duration=duration, interval=interval)

    return AvailableSlotsResponse(
        date=target_date,
        available_slots=[TimeSlotResponse.from_slot(slot) for slot in slots],
        available_count=len(slots)
    )


@router.get("/trainers/{trainer_id}/slots")
async def get_available_slots(
    trainer_id: UUID = Path(..., description="Trainer ID"),
    target_date: Date = Query(..., alias="date", description="Date in YYYY-MM-DD format"),
    duration: Optional[int] = Query(None, gt=0, description="Session length in minutes")
) -> AvailableSlotsResponse:
    """Get the free slots of a trainer for a specific date."""
    service_factory = get_service_factory()
    async with service_factory.get_scheduling_service() as scheduling_service:
        slots = await scheduling_service.check_availability(trainer_id, target_date, duration=duration)

    return AvailableSlotsResponse(
        trainer_id=trainer_id,
        date=target_date,
        available_slots=[TimeSlotResponse.from_slot(slot) for slot in slots],
        available_count=len(slots)
    )


@router.get("/trainers/{trainer_id}/next-available")
async def get_next_available_slot(
    trainer_id: UUID = Path(..., description="Trainer ID"),
    preferred_from: Optional[datetime] = Query(None, description="Earliest acceptable start (ISO 8601 with offset)"),
    duration: Optional[int] = Query(None, gt=0, description="Session length in minutes")
) -> TimeSlotResponse:
    """Find the earliest bookable slot of a trainer."""
    if preferred_from is not None and preferred_from.tzinfo is None:
        raise HTTPException(status_code=400, detail="preferred_from must include a UTC offset")

    service_factory = get_service_factory()
    async with service_factory.get_scheduling_service() as scheduling_service:
        slot = await scheduling_service.find_next_available_slot(
            trainer_id,
            preferred_from=preferred_from,
            duration=duration
        )

    if slot is None:
        raise HTTPException(status_code=404, detail="No available slot within the booking horizon")
    return TimeSlotResponse.from_slot(slot)


@router.post("/validate")
async def validate_appointment_time(request: ValidateTimeRequest) -> ValidateTimeResponse:
    """Check a requested start against working hours and booking windows."""
    service_factory = get_service_factory()
    async with service_factory.get_scheduling_service() as scheduling_service:
        result = scheduling_service.validate_appointment_time(request.date, request.start_time, request.duration)

    if result.success:
        return ValidateTimeResponse(valid=True, slot=TimeSlotResponse.from_slot(result.value))
    return ValidateTimeResponse(valid=False, error=result.error.kind.value, message=result.error.message)


@router.post("/recurrence/expand")
async def expand_recurrence(request: RecurrenceExpansionRequest) -> RecurrenceExpansionResponse:
    """Preview the occurrence dates of a recurrence rule."""
    rule = request.recurrence.to_rule()

    service_factory = get_service_factory()
    async with service_factory.get_scheduling_service() as scheduling_service:
        dates = unwrap(scheduling_service.expand_recurrence(request.start_date, rule))

    return RecurrenceExpansionResponse(dates=dates, description=rule.describe())
