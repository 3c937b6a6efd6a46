"""SQLAlchemy database models."""

from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import Column, String, DateTime, Integer, Text, Enum as SQLEnum, JSON, Index, func, text
from sqlalchemy.dialects.postgresql import ExcludeConstraint, UUID as PostgresUUID
from sqlalchemy.orm import declarative_base

from ...domain.entities.appointment import AppointmentStatus

Base = declarative_base()

OVERLAP_CONSTRAINT_NAME = "ex_appointments_trainer_overlap"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AppointmentModel(Base):
    """SQLAlchemy model for appointments."""

    __tablename__ = "appointments"

    # Primary key
    id = Column(PostgresUUID(as_uuid=True), primary_key=True, default=uuid4)

    # Parties
    trainer_id = Column(PostgresUUID(as_uuid=True), nullable=False, index=True)
    client_id = Column(PostgresUUID(as_uuid=True), nullable=False, index=True)

    # Session time
    start_time = Column(DateTime(timezone=True), nullable=False)
    end_time = Column(DateTime(timezone=True), nullable=False)
    duration = Column(Integer, nullable=False)

    # Description
    appointment_type = Column(String(50), nullable=False, default="training")
    location = Column(String(255), nullable=True)
    notes = Column(Text, nullable=True)

    status = Column(SQLEnum(AppointmentStatus), nullable=False, default=AppointmentStatus.SCHEDULED, index=True)
    reminders = Column(JSON, nullable=False, default=list)

    # Recurrence
    recurrence_id = Column(PostgresUUID(as_uuid=True), nullable=True, index=True)
    recurrence_index = Column(Integer, nullable=True)

    # Audit
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    cancellation_reason = Column(Text, nullable=True)
    rescheduled_at = Column(DateTime(timezone=True), nullable=True)
    previous_start_time = Column(DateTime(timezone=True), nullable=True)
    actual_start = Column(DateTime(timezone=True), nullable=True)
    actual_end = Column(DateTime(timezone=True), nullable=True)
    no_show_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("ix_appointments_trainer_start", "trainer_id", "start_time"),
        # No two live appointments of a trainer may overlap, across every
        # process writing to the database. Ranges are half-open.
        ExcludeConstraint(
            (trainer_id, "="),
            (func.tstzrange(start_time, end_time), "&&"),
            name=OVERLAP_CONSTRAINT_NAME,
            using="gist",
            where=text("status <> 'CANCELLED'"),
        ),
    )

    def __repr__(self) -> str:
        return f"<AppointmentModel(id={self.id}, trainer_id={self.trainer_id}, status='{self.status}')>"
