"""SQLAlchemy repository implementations."""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy import and_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..logging import get_logger, log_database_operation
from ...application.ports.repositories import AppointmentRepository, SlotConflictError
from ...domain.entities.appointment import Appointment, TERMINAL_STATUSES
from ...domain.value_objects.reminder import Reminder
from ..database.models import AppointmentModel


class SQLAlchemyAppointmentRepository(AppointmentRepository):
    """SQLAlchemy implementation of appointment repository."""

    def __init__(self, session: AsyncSession):
        self._session = session
        self._logger = get_logger(__name__)

    async def save(self, appointment: Appointment) -> Appointment:
        """Save an appointment to the database."""
        existing = await self._session.get(AppointmentModel, appointment.id)

        if existing:
            log_database_operation(self._logger, "UPDATE", "appointments", appointment_id=str(appointment.id))
            self._copy_to_model(appointment, existing)
        else:
            log_database_operation(self._logger, "INSERT", "appointments", appointment_id=str(appointment.id))
            model = AppointmentModel(id=appointment.id)
            self._copy_to_model(appointment, model)
            self._session.add(model)

        try:
            await self._session.flush()
        except IntegrityError as e:
            await self._session.rollback()
            self._logger.warning(
                "Appointment rejected by store constraint",
                extra={"appointment_id": str(appointment.id), "trainer_id": str(appointment.trainer_id)}
            )
            raise SlotConflictError(appointment.trainer_id) from e

        return appointment

    async def commit(self) -> None:
        """Commit the current transaction."""
        try:
            await self._session.commit()
        except IntegrityError as e:
            await self._session.rollback()
            raise SlotConflictError(message="Overlapping appointment rejected on commit") from e

    async def find_by_id(self, appointment_id: UUID) -> Optional[Appointment]:
        """Find appointment by ID."""
        model = await self._session.get(AppointmentModel, appointment_id)
        if not model:
            return None
        return self._model_to_entity(model)

    async def find_by_trainer_and_range(
        self,
        trainer_id: UUID,
        range_start: datetime,
        range_end: datetime
    ) -> List[Appointment]:
        """Find a trainer's appointments overlapping a time range."""
        log_database_operation(
            self._logger,
            "SELECT",
            "appointments",
            trainer_id=str(trainer_id),
            range_start=range_start.isoformat(),
            range_end=range_end.isoformat()
        )
        stmt = select(AppointmentModel).where(
            and_(
                AppointmentModel.trainer_id == trainer_id,
                AppointmentModel.start_time < range_end,
                AppointmentModel.end_time > range_start
            )
        ).order_by(AppointmentModel.start_time)
        return await self._fetch(stmt)

    async def find_by_recurrence_id(self, recurrence_id: UUID) -> List[Appointment]:
        """Find every occurrence of a series."""
        stmt = select(AppointmentModel).where(
            AppointmentModel.recurrence_id == recurrence_id
        ).order_by(AppointmentModel.recurrence_index)
        return await self._fetch(stmt)

    async def find_by_client_id(self, client_id: UUID) -> List[Appointment]:
        """Find all appointments of a client."""
        stmt = select(AppointmentModel).where(
            AppointmentModel.client_id == client_id
        ).order_by(AppointmentModel.start_time)
        return await self._fetch(stmt)

    async def find_active_between(self, range_start: datetime, range_end: datetime) -> List[Appointment]:
        """Find non-terminal appointments starting in a time range."""
        stmt = select(AppointmentModel).where(
            and_(
                AppointmentModel.start_time >= range_start,
                AppointmentModel.start_time < range_end,
                AppointmentModel.status.not_in(list(TERMINAL_STATUSES))
            )
        ).order_by(AppointmentModel.start_time)
        return await self._fetch(stmt)

    async def _fetch(self, stmt) -> List[Appointment]:
        result = await self._session.execute(stmt)
        return [self._model_to_entity(model) for model in result.scalars().all()]

    @staticmethod
    def _copy_to_model(appointment: Appointment, model: AppointmentModel) -> None:
        """Copy entity state onto a database model."""
        model.trainer_id = appointment.trainer_id
        model.client_id = appointment.client_id
        model.start_time = appointment.start_time
        model.end_time = appointment.end_time
        model.duration = appointment.duration
        model.appointment_type = appointment.type
        model.location = appointment.location
        model.notes = appointment.notes
        model.status = appointment.status
        model.reminders = [reminder.to_dict() for reminder in appointment.reminders]
        model.recurrence_id = appointment.recurrence_id
        model.recurrence_index = appointment.recurrence_index
        model.created_at = appointment.created_at
        model.updated_at = appointment.updated_at
        model.cancelled_at = appointment.cancelled_at
        model.cancellation_reason = appointment.cancellation_reason
        model.rescheduled_at = appointment.rescheduled_at
        model.previous_start_time = appointment.previous_start_time
        model.actual_start = appointment.actual_start
        model.actual_end = appointment.actual_end
        model.no_show_at = appointment.no_show_at

    @staticmethod
    def _model_to_entity(model: AppointmentModel) -> Appointment:
        """Convert database model to domain entity."""
        return Appointment(
            appointment_id=model.id,
            trainer_id=model.trainer_id,
            client_id=model.client_id,
            start_time=model.start_time,
            duration=model.duration,
            appointment_type=model.appointment_type,
            location=model.location,
            notes=model.notes,
            status=model.status,
            reminders=[Reminder.from_dict(data) for data in (model.reminders or [])],
            recurrence_id=model.recurrence_id,
            recurrence_index=model.recurrence_index,
            created_at=model.created_at,
            updated_at=model.updated_at,
            cancelled_at=model.cancelled_at,
            cancellation_reason=model.cancellation_reason,
            rescheduled_at=model.rescheduled_at,
            previous_start_time=model.previous_start_time,
            actual_start=model.actual_start,
            actual_end=model.actual_end,
            no_show_at=model.no_show_at,
        )
