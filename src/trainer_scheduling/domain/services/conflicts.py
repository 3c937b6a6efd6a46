"""Interval overlap detection between appointments."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, List, Optional
from uuid import UUID

from ..entities.appointment import Appointment
from .time_utils import add_minutes


def intervals_overlap(
    a_start: datetime,
    a_end: datetime,
    b_start: datetime,
    b_end: datetime
) -> bool:
    """Half-open overlap test: ``[a_start, a_end)`` and ``[b_start, b_end)``.

    Touching intervals (``a_end == b_start``) never overlap.
    """
    return a_start < b_end and b_start < a_end


@dataclass(frozen=True)
class ConflictCheck:
    """Result of checking a requested interval against existing appointments."""
    has_conflicts: bool
    conflicts: List[Appointment] = field(default_factory=list)

    @property
    def conflict_ids(self) -> List[UUID]:
        return [appointment.id for appointment in self.conflicts]


def find_conflicts(
    start: datetime,
    end: datetime,
    appointments: Iterable[Appointment],
    exclude_id: Optional[UUID] = None,
    buffer_minutes: int = 0
) -> List[Appointment]:
    """Find non-cancelled appointments overlapping ``[start, end)``.

    ``buffer_minutes`` widens every existing appointment on both sides.
    """
    conflicts = []
    for appointment in appointments:
        if not appointment.blocks_time or appointment.id == exclude_id:
            continue

        booked_start = appointment.start_time
        booked_end = appointment.end_time
        if buffer_minutes:
            booked_start = add_minutes(booked_start, -buffer_minutes)
            booked_end = add_minutes(booked_end, buffer_minutes)

        if intervals_overlap(start, end, booked_start, booked_end):
            conflicts.append(appointment)

    return conflicts


def check_conflicts(
    start: datetime,
    end: datetime,
    appointments: Iterable[Appointment],
    exclude_id: Optional[UUID] = None,
    buffer_minutes: int = 0
) -> ConflictCheck:
    """Check a requested interval and report every conflicting appointment."""
    conflicts = find_conflicts(start, end, appointments, exclude_id, buffer_minutes)
    return ConflictCheck(has_conflicts=bool(conflicts), conflicts=conflicts)
