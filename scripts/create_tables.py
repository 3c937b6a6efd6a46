"""Script to initialize the appointments table and its indexes."""

import asyncio

from trainer_scheduling.infrastructure.database.connection import DatabaseManager
from trainer_scheduling.infrastructure.logging import get_logger, setup_logging_from_env
from trainer_scheduling.presentation.api.config import get_settings

logger = get_logger("scripts.create_tables")


async def create_tables():
    """Create all database tables."""
    settings = get_settings()
    setup_logging_from_env(settings.log_level)

    database = DatabaseManager(settings.database_url, echo=True)
    await database.connect()

    try:
        await database.create_tables()
        logger.info("Database tables created successfully")
    except Exception:
        logger.exception("Error creating tables")
        raise
    finally:
        await database.disconnect()


if __name__ == "__main__":
    asyncio.run(create_tables())
