"""Unit tests for the SQLAlchemy appointment repository without a database."""

from unittest.mock import AsyncMock, MagicMock, Mock

import pytest
from sqlalchemy.dialects import postgresql
from sqlalchemy.exc import IntegrityError
from sqlalchemy.schema import CreateTable

from trainer_scheduling.application.ports.repositories import SlotConflictError
from trainer_scheduling.domain.entities.appointment import AppointmentStatus
from trainer_scheduling.domain.services.reminders import ReminderScheduler
from trainer_scheduling.infrastructure.database.connection import DatabaseManager, to_async_url
from trainer_scheduling.infrastructure.database.models import OVERLAP_CONSTRAINT_NAME, AppointmentModel
from trainer_scheduling.infrastructure.repositories.sql_repositories import SQLAlchemyAppointmentRepository

from conftest import MONDAY, NOW, at, make_appointment


@pytest.fixture
def session():
    session = Mock()
    session.get = AsyncMock(return_value=None)
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    return session


class TestAsyncUrl:
    """Test cases for database URL conversion."""

    def test_plain_postgres_url(self):
        """Test that plain PostgreSQL URLs use the asyncpg driver."""
        assert to_async_url("postgresql://u:p@db/app") == "postgresql+asyncpg://u:p@db/app"

    def test_async_url_unchanged(self):
        """Test that URLs with a driver are left alone."""
        assert to_async_url("postgresql+asyncpg://u:p@db/app") == "postgresql+asyncpg://u:p@db/app"


class TestModelMapping:
    """Test cases for entity and model conversion."""

    def test_round_trip(self, trainer_id):
        """Test that entity state survives conversion to a model and back."""
        appointment = make_appointment(
            trainer_id,
            at(MONDAY, 10),
            reminders=ReminderScheduler().default_reminders(at(MONDAY, 10)),
            location="Studio",
        )
        appointment.mark_reminder_sent(0, NOW)
        appointment.cancel(NOW, "injury")

        model = AppointmentModel(id=appointment.id)
        SQLAlchemyAppointmentRepository._copy_to_model(appointment, model)
        restored = SQLAlchemyAppointmentRepository._model_to_entity(model)

        assert restored == appointment
        assert restored.status == AppointmentStatus.CANCELLED
        assert restored.cancellation_reason == "injury"
        assert restored.location == "Studio"
        assert [r.sent for r in restored.reminders] == [True, False, False]
        assert restored.end_time == at(MONDAY, 11)


class TestSave:
    """Test cases for saving through a mocked session."""

    @pytest.mark.asyncio
    async def test_insert(self, session, trainer_id):
        """Test that new appointments are added to the session."""
        repository = SQLAlchemyAppointmentRepository(session)
        appointment = make_appointment(trainer_id, at(MONDAY, 10))

        await repository.save(appointment)

        session.add.assert_called_once()
        assert session.add.call_args[0][0].id == appointment.id
        session.flush.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_constraint_violation(self, session, trainer_id):
        """Test that a store constraint violation becomes a slot conflict."""
        session.flush.side_effect = IntegrityError("INSERT", {}, Exception("duplicate key"))
        repository = SQLAlchemyAppointmentRepository(session)

        with pytest.raises(SlotConflictError) as exc_info:
            await repository.save(make_appointment(trainer_id, at(MONDAY, 10)))

        assert exc_info.value.trainer_id == trainer_id
        session.rollback.assert_awaited_once()


class TestSchema:
    """Test cases for the appointments table definition."""

    def test_overlap_exclusion_constraint(self):
        """Test that the table rejects overlapping live appointments per trainer."""
        ddl = str(CreateTable(AppointmentModel.__table__).compile(dialect=postgresql.dialect()))

        assert f"CONSTRAINT {OVERLAP_CONSTRAINT_NAME} EXCLUDE USING gist" in ddl
        assert "trainer_id WITH =" in ddl
        assert "tstzrange(start_time, end_time) WITH &&" in ddl
        assert "status <> 'CANCELLED'" in ddl

    @pytest.mark.asyncio
    async def test_create_tables_enables_btree_gist(self):
        """Test that table creation installs the extension the constraint needs."""
        conn = Mock()
        conn.execute = AsyncMock()
        conn.run_sync = AsyncMock()
        engine = MagicMock()
        engine.begin.return_value.__aenter__ = AsyncMock(return_value=conn)
        engine.begin.return_value.__aexit__ = AsyncMock(return_value=False)
        manager = DatabaseManager("postgresql://u:p@db/app")
        manager._engine = engine

        await manager.create_tables()

        statement = conn.execute.await_args[0][0]
        assert str(statement) == "CREATE EXTENSION IF NOT EXISTS btree_gist"
        conn.run_sync.assert_awaited_once()
