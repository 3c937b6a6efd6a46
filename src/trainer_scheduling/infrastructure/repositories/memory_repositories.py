"""In-memory repository implementations for testing and development."""

from datetime import datetime
from typing import Dict, List, Optional
from uuid import UUID

from ...application.ports.repositories import AppointmentRepository
from ...domain.entities.appointment import Appointment


class InMemoryAppointmentRepository(AppointmentRepository):
    """In-memory implementation of appointment repository."""

    def __init__(self):
        self._appointments: Dict[UUID, Appointment] = {}

    async def save(self, appointment: Appointment) -> Appointment:
        """Save an appointment."""
        self._appointments[appointment.id] = appointment
        return appointment

    async def find_by_id(self, appointment_id: UUID) -> Optional[Appointment]:
        """Find appointment by ID."""
        return self._appointments.get(appointment_id)

    async def find_by_trainer_and_range(
        self,
        trainer_id: UUID,
        range_start: datetime,
        range_end: datetime
    ) -> List[Appointment]:
        """Find a trainer's appointments overlapping a time range."""
        return sorted(
            (appointment for appointment in self._appointments.values()
             if appointment.trainer_id == trainer_id
             and appointment.start_time < range_end
             and range_start < appointment.end_time),
            key=lambda a: a.start_time
        )

    async def find_by_recurrence_id(self, recurrence_id: UUID) -> List[Appointment]:
        """Find every occurrence of a series."""
        return sorted(
            (appointment for appointment in self._appointments.values()
             if appointment.recurrence_id == recurrence_id),
            key=lambda a: a.recurrence_index
        )

    async def find_by_client_id(self, client_id: UUID) -> List[Appointment]:
        """Find all appointments of a client."""
        return sorted(
            (appointment for appointment in self._appointments.values()
             if appointment.client_id == client_id),
            key=lambda a: a.start_time
        )

    async def find_active_between(self, range_start: datetime, range_end: datetime) -> List[Appointment]:
        """Find non-terminal appointments starting in a time range."""
        return sorted(
            (appointment for appointment in self._appointments.values()
             if not appointment.status.is_terminal
             and range_start <= appointment.start_time < range_end),
            key=lambda a: a.start_time
        )

    def all(self) -> List[Appointment]:
        """Get every stored appointment."""
        return list(self._appointments.values())
