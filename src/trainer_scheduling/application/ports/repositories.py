"""Port interfaces for repositories (Dependency Inversion Principle)."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional, TYPE_CHECKING
from uuid import UUID

if TYPE_CHECKING:
    from ...domain.entities.appointment import Appointment


class SlotConflictError(Exception):
    """Raised by a repository when the store itself rejects an overlapping booking."""

    def __init__(self, trainer_id: Optional[UUID] = None, message: str = "Overlapping appointment rejected by the store"):
        super().__init__(message)
        self.trainer_id = trainer_id


class AppointmentRepository(ABC):
    """Port interface for appointment repository.

    Implementations must let ``SchedulingService`` make check-then-save
    atomic per trainer, either through the service's per-trainer locks or
    a transaction / exclusion constraint that raises ``SlotConflictError``.
    """

    @abstractmethod
    async def save(self, appointment: "Appointment") -> "Appointment":
        """Save an appointment (create or update)."""
        raise NotImplementedError

    @abstractmethod
    async def find_by_id(self, appointment_id: UUID) -> Optional["Appointment"]:
        """Find appointment by ID."""
        raise NotImplementedError

    @abstractmethod
    async def find_by_trainer_and_range(
        self,
        trainer_id: UUID,
        range_start: datetime,
        range_end: datetime
    ) -> List["Appointment"]:
        """Find a trainer's appointments overlapping ``[range_start, range_end)``."""
        raise NotImplementedError

    @abstractmethod
    async def find_by_recurrence_id(self, recurrence_id: UUID) -> List["Appointment"]:
        """Find every occurrence of a recurring series ordered by index."""
        raise NotImplementedError

    @abstractmethod
    async def find_by_client_id(self, client_id: UUID) -> List["Appointment"]:
        """Find all appointments of a client."""
        raise NotImplementedError

    @abstractmethod
    async def find_active_between(self, range_start: datetime, range_end: datetime) -> List["Appointment"]:
        """Find non-terminal appointments starting in ``[range_start, range_end)``."""
        raise NotImplementedError

    async def commit(self) -> None:
        """Make saved changes visible to other writers. No-op for non-transactional stores."""
        return None
