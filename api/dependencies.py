"""Dependency injection providers for the FastAPI application.

This module defines dependencies that can be injected into route handlers,
providing access to the shared AppointmentService and settings.
"""

from typing import Annotated

from fastapi import Depends

from appointments.config import Settings, get_settings
from appointments.service import AppointmentService
from appointments.store import InMemoryRecordStore


# Global state
# A single in-memory store backs the service for the lifetime of the process.
_appointment_service: AppointmentService | None = None


def get_appointment_service() -> AppointmentService:
    """Get the shared AppointmentService instance.

    Returns:
        The shared AppointmentService instance.

    Raises:
        RuntimeError: If the service hasn't been initialized yet.
    """
    if _appointment_service is None:
        raise RuntimeError(
            "AppointmentService not initialized. Call initialize_appointment_service() first."
        )

    return _appointment_service


def initialize_appointment_service() -> AppointmentService:
    """Initialize the shared AppointmentService with an empty store.

    This should be called once when the FastAPI app starts up.

    Returns:
        The newly created AppointmentService instance.
    """
    global _appointment_service

    _appointment_service = AppointmentService(InMemoryRecordStore())
    return _appointment_service


def shutdown_appointment_service() -> None:
    """Drop the shared AppointmentService when the app shuts down."""
    global _appointment_service

    _appointment_service = None


# Type aliases for dependency injection
AppointmentServiceDep = Annotated[AppointmentService, Depends(get_appointment_service)]
SettingsDep = Annotated[Settings, Depends(get_settings)]
