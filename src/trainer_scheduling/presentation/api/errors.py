"""Translation of scheduling failures into HTTP errors."""

from typing import TypeVar

from fastapi import HTTPException, status

from ...domain.value_objects.scheduling_result import SchedulingErrorKind, SchedulingResult
from .schemas.appointment_schemas import ErrorResponse

T = TypeVar("T")

ERROR_STATUS_CODES = {
    SchedulingErrorKind.INVALID_TIME_RANGE: status.HTTP_400_BAD_REQUEST,
    SchedulingErrorKind.OUTSIDE_WORKING_HOURS: status.HTTP_400_BAD_REQUEST,
    SchedulingErrorKind.PAST_BOOKING: status.HTTP_400_BAD_REQUEST,
    SchedulingErrorKind.ADVANCE_BOOKING_EXCEEDED: status.HTTP_400_BAD_REQUEST,
    SchedulingErrorKind.SLOT_CONFLICT: status.HTTP_409_CONFLICT,
    SchedulingErrorKind.APPOINTMENT_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    SchedulingErrorKind.INVALID_STATUS_TRANSITION: status.HTTP_409_CONFLICT,
    SchedulingErrorKind.RECURRENCE_MISCONFIGURED: status.HTTP_422_UNPROCESSABLE_ENTITY,
}


def unwrap(result: SchedulingResult[T]) -> T:
    """Return the value of a successful result or raise the matching HTTPException."""
    if result.success:
        return result.value

    error = result.error
    raise HTTPException(
        status_code=ERROR_STATUS_CODES.get(error.kind, status.HTTP_400_BAD_REQUEST),
        detail=ErrorResponse.from_error(error).model_dump()
    )
