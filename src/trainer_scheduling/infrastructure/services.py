"""Dependency injection and service factory."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from .database.connection import DatabaseManager
from .logging import get_logger
from .repositories.memory_repositories import InMemoryAppointmentRepository
from .repositories.sql_repositories import SQLAlchemyAppointmentRepository
from ..application.services.scheduling_service import Clock, SchedulingService, TrainerLockRegistry
from ..domain.value_objects.scheduling_config import SchedulingConfig

MEMORY_URL = "memory://"

logger = get_logger(__name__)


class ServiceFactory:
    """Factory for creating application services with proper dependencies.

    A ``memory://`` database URL keeps appointments in process memory, which
    is what tests and local development use.
    """

    def __init__(
        self,
        database_url: str,
        config: Optional[SchedulingConfig] = None,
        clock: Optional[Clock] = None,
        echo: bool = False
    ):
        self._config = config or SchedulingConfig()
        self._clock = clock
        self._in_memory = database_url.startswith(MEMORY_URL)
        self.database_manager = None if self._in_memory else DatabaseManager(database_url, echo=echo)
        self._connected = False
        # Shared across scopes so per-trainer locks serialize every request
        self._locks = TrainerLockRegistry()
        self._memory_repository = InMemoryAppointmentRepository()

    @property
    def config(self) -> SchedulingConfig:
        return self._config

    async def initialize(self):
        """Initialize the service factory."""
        if self._in_memory:
            logger.info("Using in-memory appointment store")
        elif not self._connected:
            await self.database_manager.connect()
            self._connected = True

    async def shutdown(self):
        """Shutdown the service factory."""
        if self._connected:
            await self.database_manager.disconnect()
            self._connected = False

    @asynccontextmanager
    async def get_scheduling_service(self) -> AsyncGenerator[SchedulingService, None]:
        """Get scheduling service bound to one unit of work."""
        if self._in_memory:
            yield self._build(self._memory_repository)
            return

        async with self.database_manager.get_session() as session:
            yield self._build(SQLAlchemyAppointmentRepository(session))

    def _build(self, repository) -> SchedulingService:
        return SchedulingService(
            appointment_repository=repository,
            config=self._config,
            clock=self._clock,
            locks=self._locks,
        )


# Global service factory instance
_service_factory: ServiceFactory | None = None


def get_service_factory() -> ServiceFactory:
    """Get the global service factory instance."""
    global _service_factory

    if _service_factory is None:
        from ..presentation.api.config import get_settings

        settings = get_settings()
        _service_factory = ServiceFactory(
            settings.database_url,
            config=settings.to_scheduling_config(),
            echo=settings.database_echo,
        )

    return _service_factory


def set_service_factory(factory: Optional[ServiceFactory]) -> None:
    """Replace the global service factory (tests and alternative wiring)."""
    global _service_factory
    _service_factory = factory


async def initialize_services():
    """Initialize application services."""
    await get_service_factory().initialize()


async def shutdown_services():
    """Shutdown application services."""
    await get_service_factory().shutdown()
