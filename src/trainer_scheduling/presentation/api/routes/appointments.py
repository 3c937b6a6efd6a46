"""Appointment endpoints: booking, lifecycle transitions and reminders."""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Path, status

from ..errors import unwrap
from ..schemas.appointment_schemas import (
    AppointmentCreateRequest,
    AppointmentResponse,
    CancelRequest,
    DueReminderResponse,
    RecurringAppointmentRequest,
    RecurringAppointmentResponse,
    RescheduleRequest,
)
from ....infrastructure.services import get_service_factory

router = APIRouter()


@router.post("/", status_code=status.HTTP_201_CREATED)
async def create_appointment(request: AppointmentCreateRequest) -> AppointmentResponse:
    """Book a single appointment."""
    service_factory = get_service_factory()
    async with service_factory.get_scheduling_service() as scheduling_service:
        result = await scheduling_service.create_appointment(
            trainer_id=request.trainer_id,
            client_id=request.client_id,
            target_date=request.date,
            start_time=request.start_time,
            duration=request.duration,
            appointment_type=request.type,
            location=request.location,
            notes=request.notes
        )

    return AppointmentResponse.from_entity(unwrap(result))


@router.post("/recurring", status_code=status.HTTP_201_CREATED)
async def create_recurring_appointments(request: RecurringAppointmentRequest) -> RecurringAppointmentResponse:
    """Book every valid occurrence of a recurring series; invalid dates are reported as skipped."""
    service_factory = get_service_factory()
    async with service_factory.get_scheduling_service() as scheduling_service:
        result = await scheduling_service.create_recurring_appointments(
            trainer_id=request.trainer_id,
            client_id=request.client_id,
            start_date=request.date,
            start_time=request.start_time,
            rule=request.recurrence.to_rule(),
            duration=request.duration,
            appointment_type=request.type,
            location=request.location,
            notes=request.notes
        )

    return RecurringAppointmentResponse.from_outcome(unwrap(result))


@router.get("/reminders/due")
async def get_due_reminders() -> List[DueReminderResponse]:
    """List reminders whose time has come and that were not sent yet."""
    service_factory = get_service_factory()
    async with service_factory.get_scheduling_service() as scheduling_service:
        due = await scheduling_service.due_reminders()

    return [DueReminderResponse.from_due(item) for item in due]


@router.post("/no-shows/sweep")
async def sweep_no_shows() -> List[AppointmentResponse]:
    """Mark past, unstarted appointments as no-shows."""
    service_factory = get_service_factory()
    async with service_factory.get_scheduling_service() as scheduling_service:
        marked = await scheduling_service.sweep_no_shows()

    return [AppointmentResponse.from_entity(appointment) for appointment in marked]


@router.get("/clients/{client_id}")
async def get_client_appointments(
    client_id: UUID = Path(..., description="Client ID")
) -> List[AppointmentResponse]:
    """List all appointments of a client."""
    service_factory = get_service_factory()
    async with service_factory.get_scheduling_service() as scheduling_service:
        appointments = await scheduling_service.get_client_appointments(client_id)

    return [AppointmentResponse.from_entity(appointment) for appointment in appointments]


@router.get("/series/{recurrence_id}")
async def get_series(
    recurrence_id: UUID = Path(..., description="Recurring series ID")
) -> List[AppointmentResponse]:
    """List every occurrence of a recurring series."""
    service_factory = get_service_factory()
    async with service_factory.get_scheduling_service() as scheduling_service:
        appointments = await scheduling_service.get_series(recurrence_id)

    return [AppointmentResponse.from_entity(appointment) for appointment in appointments]


@router.get("/{appointment_id}")
async def get_appointment(
    appointment_id: UUID = Path(..., description="Appointment ID")
) -> AppointmentResponse:
    """Get appointment by ID."""
    service_factory = get_service_factory()
    async with service_factory.get_scheduling_service() as scheduling_service:
        result = await scheduling_service.get_appointment(appointment_id)

    return AppointmentResponse.from_entity(unwrap(result))


@router.post("/{appointment_id}/confirm")
async def confirm_appointment(
    appointment_id: UUID = Path(..., description="Appointment ID")
) -> AppointmentResponse:
    """Confirm an appointment."""
    service_factory = get_service_factory()
    async with service_factory.get_scheduling_service() as scheduling_service:
        result = await scheduling_service.confirm_appointment(appointment_id)

    return AppointmentResponse.from_entity(unwrap(result))


@router.post("/{appointment_id}/reschedule")
async def reschedule_appointment(
    request: RescheduleRequest,
    appointment_id: UUID = Path(..., description="Appointment ID")
) -> AppointmentResponse:
    """Move an appointment to a new date and start time."""
    service_factory = get_service_factory()
    async with service_factory.get_scheduling_service() as scheduling_service:
        result = await scheduling_service.reschedule_appointment(appointment_id, request.date, request.start_time)

    return AppointmentResponse.from_entity(unwrap(result))


@router.post("/{appointment_id}/cancel")
async def cancel_appointment(
    appointment_id: UUID = Path(..., description="Appointment ID"),
    request: CancelRequest = CancelRequest()
) -> AppointmentResponse:
    """Cancel an appointment. Cancelling twice returns the cancelled appointment."""
    service_factory = get_service_factory()
    async with service_factory.get_scheduling_service() as scheduling_service:
        result = await scheduling_service.cancel_appointment(appointment_id, request.reason)

    return AppointmentResponse.from_entity(unwrap(result))


@router.post("/{appointment_id}/start")
async def start_session(
    appointment_id: UUID = Path(..., description="Appointment ID")
) -> AppointmentResponse:
    """Start the training session."""
    service_factory = get_service_factory()
    async with service_factory.get_scheduling_service() as scheduling_service:
        result = await scheduling_service.start_session(appointment_id)

    return AppointmentResponse.from_entity(unwrap(result))


@router.post("/{appointment_id}/complete")
async def complete_session(
    appointment_id: UUID = Path(..., description="Appointment ID")
) -> AppointmentResponse:
    """Complete a session that is in progress."""
    service_factory = get_service_factory()
    async with service_factory.get_scheduling_service() as scheduling_service:
        result = await scheduling_service.complete_session(appointment_id)

    return AppointmentResponse.from_entity(unwrap(result))


@router.post("/{appointment_id}/no-show")
async def mark_no_show(
    appointment_id: UUID = Path(..., description="Appointment ID")
) -> AppointmentResponse:
    """Mark the client as not having shown up."""
    service_factory = get_service_factory()
    async with service_factory.get_scheduling_service() as scheduling_service:
        result = await scheduling_service.mark_no_show(appointment_id)

    return AppointmentResponse.from_entity(unwrap(result))


@router.post("/{appointment_id}/reminders/{reminder_index}/sent")
async def mark_reminder_sent(
    appointment_id: UUID = Path(..., description="Appointment ID"),
    reminder_index: int = Path(..., ge=0, description="Position of the reminder on the appointment")
) -> AppointmentResponse:
    """Record that a reminder was dispatched."""
    service_factory = get_service_factory()
    async with service_factory.get_scheduling_service() as scheduling_service:
        result = await scheduling_service.mark_reminder_sent(appointment_id, reminder_index)

    return AppointmentResponse.from_entity(unwrap(result))
