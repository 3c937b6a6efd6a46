"""FastAPI main application module."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ...application.ports.repositories import SlotConflictError
from ...infrastructure.logging import get_logger, setup_logging_from_env
from ...infrastructure.services import initialize_services, shutdown_services
from .config import get_settings
from .middleware import RequestResponseLoggingMiddleware
from .routes import appointments, availability, health, reports


logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan management."""
    logger.info("Starting Trainer Scheduling API")
    await initialize_services()

    yield

    logger.info("Shutting down Trainer Scheduling API")
    await shutdown_services()


def add_exception_handlers(app: FastAPI) -> None:
    """Add custom exception handlers to the FastAPI application."""

    @app.exception_handler(SlotConflictError)
    async def slot_conflict_handler(request: Request, exc: SlotConflictError):
        """Handle overlapping bookings rejected by the store."""
        logger.warning(f"Slot conflict on {request.url}: {str(exc)}")
        return JSONResponse(
            status_code=409,
            content={
                "detail": str(exc),
                "type": "slot_conflict"
            }
        )

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError):
        """Handle validation errors from business logic."""
        logger.warning(f"Validation error on {request.url}: {str(exc)}")
        return JSONResponse(
            status_code=400,
            content={
                "detail": str(exc),
                "type": "validation_error"
            }
        )

    @app.exception_handler(RuntimeError)
    async def runtime_error_handler(request: Request, exc: RuntimeError):
        """Handle runtime errors from business logic."""
        logger.error(f"Runtime error on {request.url}: {str(exc)}")
        return JSONResponse(
            status_code=500,
            content={
                "detail": "Internal server error occurred",
                "type": "runtime_error"
            }
        )


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    settings = get_settings()
    setup_logging_from_env(settings.log_level)

    app = FastAPI(
        title="Trainer Scheduling",
        description="API for booking and managing personal trainer appointments",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        debug=settings.debug,
        lifespan=lifespan
    )

    add_exception_handlers(app)

    app.add_middleware(RequestResponseLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=settings.allowed_methods,
        allow_headers=settings.allowed_headers,
    )

    app.include_router(health.router, tags=["health"])
    app.include_router(
        availability.router,
        prefix=f"{settings.api_prefix}/availability",
        tags=["availability"]
    )
    app.include_router(
        appointments.router,
        prefix=f"{settings.api_prefix}/appointments",
        tags=["appointments"]
    )
    app.include_router(
        reports.router,
        prefix=f"{settings.api_prefix}/reports",
        tags=["reports"]
    )

    return app


# Create app instance
app = create_app()
