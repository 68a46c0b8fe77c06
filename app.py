"""
app.py - FastAPI application factory and startup lifecycle.

This is the ASGI application object imported by uvicorn.
It wires the booking store, services and routers, and runs startup
initialization.

Usage (via launcher):
    python main.py

Usage (direct uvicorn):
    uvicorn app:app --reload
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from backend.controllers.access_controller import router as access_router
from backend.controllers.booking_controller import router as booking_router
from backend.repository.booking_repository import BookingRepository
from backend.services.access_service import AccessGateService
from backend.services.auth_service import AuthService
from backend.services.availability_service import AvailabilityService
from backend.services.booking_service import BookingService
from backend.services.device_registry import DeviceStateRegistry
from backend.utils.clock import Clock, SystemClock
from backend.utils.config import Settings, get_settings
from backend.utils.logger import get_logger


logger = get_logger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    clock: Optional[Clock] = None,
) -> FastAPI:
    """
    Build and wire the FastAPI application.

    Every service receives its collaborators explicitly and is stored on
    app.state for dependency resolution. Status polls and unlocks read the
    injected clock.
    """
    settings = settings or get_settings()
    clock = clock or SystemClock(settings.timezone_name)

    # --- Repository (single writer for rooms, users, bookings) ---
    repository = BookingRepository(settings)

    # --- Services ---
    auth_service = AuthService(repository=repository, settings=settings)
    booking_service = BookingService(repository=repository, settings=settings)
    availability_service = AvailabilityService(repository=repository, settings=settings)
    access_service = AccessGateService(
        repository=repository,
        settings=settings,
        clock=clock,
        device_registry=DeviceStateRegistry(),
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Run startup initialization before accepting requests."""
        _startup(app)
        yield

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        lifespan=lifespan,
    )

    # --- Routers ---
    app.include_router(booking_router)
    app.include_router(access_router)

    app.state.repository = repository
    app.state.auth_service = auth_service
    app.state.booking_service = booking_service
    app.state.availability_service = availability_service
    app.state.access_service = access_service

    return app


def _startup(app: FastAPI) -> None:
    """
    Idempotent startup sequence. Safe to re-run on server restarts.

    Schema must exist before the default rooms and admin user are seeded.
    """
    repository: BookingRepository = app.state.repository
    auth_service: AuthService = app.state.auth_service

    logger.info("Startup: initializing database schema")
    repository.initialize_database()

    logger.info("Startup: seeding default rooms and admin user")
    repository.seed_default_data(auth_service.default_admin_password_hash())

    logger.info("Startup complete - system ready")


# Module-level app object for uvicorn
app = create_app()
