"""Structured outcomes for scheduling operations."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Generic, Optional, TypeVar

T = TypeVar("T")


class SchedulingErrorKind(Enum):
    """Expected, recoverable failure kinds of the scheduling engine."""
    INVALID_TIME_RANGE = "invalid_time_range"
    OUTSIDE_WORKING_HOURS = "outside_working_hours"
    PAST_BOOKING = "past_booking"
    ADVANCE_BOOKING_EXCEEDED = "advance_booking_exceeded"
    SLOT_CONFLICT = "slot_conflict"
    APPOINTMENT_NOT_FOUND = "appointment_not_found"
    INVALID_STATUS_TRANSITION = "invalid_status_transition"
    RECURRENCE_MISCONFIGURED = "recurrence_misconfigured"

    @property
    def is_retryable(self) -> bool:
        """Only conflicts may succeed after re-checking availability."""
        return self is SchedulingErrorKind.SLOT_CONFLICT


@dataclass(frozen=True)
class SchedulingError:
    """Value object describing why an operation was rejected."""
    kind: SchedulingErrorKind
    message: str
    details: Dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.message}"


@dataclass(frozen=True)
class SchedulingResult(Generic[T]):
    """Value object for a scheduling operation result."""
    success: bool
    value: Optional[T] = None
    error: Optional[SchedulingError] = None

    def __post_init__(self) -> None:
        """Validate result consistency."""
        if self.success and self.error is not None:
            raise ValueError("Successful result cannot carry an error")
        if not self.success and self.error is None:
            raise ValueError("Failed result must carry an error")

    @classmethod
    def ok(cls, value: Optional[T] = None) -> "SchedulingResult[T]":
        """Build a successful result."""
        return cls(success=True, value=value)

    @classmethod
    def fail(
        cls,
        kind: SchedulingErrorKind,
        message: str,
        **details: Any
    ) -> "SchedulingResult[T]":
        """Build a failed result."""
        return cls(success=False, error=SchedulingError(kind, message, details))

    @property
    def error_kind(self) -> Optional[SchedulingErrorKind]:
        """Get the error kind, if any."""
        return self.error.kind if self.error else None
