"""Main entry point for the appointments FastAPI application.

This module creates and configures the FastAPI app instance that serves the
REST API for appointments and recurring appointment series.

To run the development server:
    uvicorn main:app --reload

To run in production:
    uvicorn main:app --host 0.0.0.0 --port 8000
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from pydantic import ValidationError

from api.dependencies import initialize_appointment_service, shutdown_appointment_service
from api.exceptions import (
    generic_exception_handler,
    invalid_pattern_handler,
    persistence_error_handler,
    root_not_found_handler,
    validation_exception_handler,
    value_error_handler,
)
from api.routes import appointments as appointment_routes
from api.routes import recurrence as recurrence_routes
from appointments.config import get_settings
from appointments.exceptions import (
    InvalidPatternError,
    PersistenceError,
    RootNotFoundError,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifespan events.

    Configures logging and creates the shared AppointmentService at startup,
    and releases it at shutdown.

    Args:
        app: The FastAPI application instance.

    Yields:
        Control back to FastAPI to handle requests.
    """
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.info("Starting appointments API")
    initialize_appointment_service()

    yield

    logger.info("Shutting down appointments API")
    shutdown_appointment_service()


app = FastAPI(
    title="Appointments API",
    description="Appointments and recurring appointment series",
    version="0.1.0",
    lifespan=lifespan,
)

# Register exception handlers
# Order matters: specific exceptions before general ones
app.add_exception_handler(InvalidPatternError, invalid_pattern_handler)
app.add_exception_handler(RootNotFoundError, root_not_found_handler)
app.add_exception_handler(PersistenceError, persistence_error_handler)
app.add_exception_handler(ValidationError, validation_exception_handler)
app.add_exception_handler(ValueError, value_error_handler)
app.add_exception_handler(Exception, generic_exception_handler)

app.include_router(appointment_routes.router)
app.include_router(recurrence_routes.router)


@app.get("/health")
async def health_check():
    """Report that the API is up."""
    return {"status": "ok"}
