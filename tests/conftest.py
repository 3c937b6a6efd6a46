"""Shared fixtures for scheduling tests.

All scenarios run against a fixed clock: Sunday 2030-01-06 12:00 UTC, with
Monday 2030-01-07 as the usual booking day.
"""

from datetime import date, datetime, timedelta, timezone
from uuid import uuid4

import pytest

from trainer_scheduling.domain.entities.appointment import Appointment, AppointmentStatus
from trainer_scheduling.domain.value_objects.scheduling_config import SchedulingConfig

SUNDAY = date(2030, 1, 6)
MONDAY = date(2030, 1, 7)
NOW = datetime(2030, 1, 6, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    """Controllable clock returning a fixed instant."""

    def __init__(self, now: datetime = NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)

    def set(self, now: datetime) -> None:
        self.now = now


def at(day: date, hour: int, minute: int = 0) -> datetime:
    """Build a UTC instant on ``day``."""
    return datetime(day.year, day.month, day.day, hour, minute, tzinfo=timezone.utc)


def make_appointment(
    trainer_id,
    start: datetime,
    duration: int = 60,
    status: AppointmentStatus = AppointmentStatus.SCHEDULED,
    **kwargs
) -> Appointment:
    """Build an appointment with sensible defaults."""
    return Appointment(
        trainer_id=trainer_id,
        client_id=kwargs.pop("client_id", uuid4()),
        start_time=start,
        duration=duration,
        status=status,
        created_at=kwargs.pop("created_at", NOW),
        **kwargs
    )


@pytest.fixture
def config() -> SchedulingConfig:
    return SchedulingConfig()


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def trainer_id():
    return uuid4()


@pytest.fixture
def client_id():
    return uuid4()
