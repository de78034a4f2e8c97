"""Exception handlers for the appointments FastAPI application.

This module converts engine exceptions into consistent JSON responses.
"""

import logging

from fastapi import Request, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from appointments.exceptions import (
    InvalidPatternError,
    PersistenceError,
    RootNotFoundError,
)

logger = logging.getLogger(__name__)


async def invalid_pattern_handler(request: Request, exc: InvalidPatternError):
    """Handle InvalidPatternError exceptions.

    Returns a 400 naming the offending pattern field, if known.

    Args:
        request: The incoming request that triggered the error.
        exc: The InvalidPatternError exception.

    Returns:
        JSONResponse with 400 status.
    """
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": "Invalid Recurrence Pattern",
            "detail": str(exc),
            "field": exc.field,
        },
    )


async def root_not_found_handler(request: Request, exc: RootNotFoundError):
    """Handle RootNotFoundError exceptions.

    Args:
        request: The incoming request that triggered the error.
        exc: The RootNotFoundError exception.

    Returns:
        JSONResponse with 404 status.
    """
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={
            "error": "Appointment Not Found",
            "detail": str(exc),
            "appointment_id": exc.appointment_id,
        },
    )


async def persistence_error_handler(request: Request, exc: PersistenceError):
    """Handle PersistenceError exceptions.

    The store's message is reported verbatim.

    Args:
        request: The incoming request that triggered the error.
        exc: The PersistenceError exception.

    Returns:
        JSONResponse with 500 status.
    """
    logger.error(f"Persistence failure on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "Persistence Failure",
            "detail": str(exc),
            "operation": exc.operation,
        },
    )


async def validation_exception_handler(request: Request, exc: ValidationError):
    """Handle Pydantic validation errors raised inside route handlers.

    Args:
        request: The incoming request that triggered the error.
        exc: The ValidationError exception.

    Returns:
        JSONResponse with validation error details.
    """
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error": "Validation Error",
            "detail": "The request data failed validation",
            "validation_errors": exc.errors(
                include_url=False, include_context=False, include_input=False
            ),
        },
    )


async def value_error_handler(request: Request, exc: ValueError):
    """Handle ValueError exceptions.

    ValueErrors indicate input that passed request parsing but failed
    business validation.

    Args:
        request: The incoming request that triggered the error.
        exc: The ValueError exception.

    Returns:
        JSONResponse with error details.
    """
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": "Invalid Value",
            "detail": str(exc),
            "type": "ValueError",
        },
    )


async def generic_exception_handler(request: Request, exc: Exception):
    """Handle any unhandled exceptions.

    Logs the full traceback and returns a generic message so stack traces
    are not exposed to clients.

    Args:
        request: The incoming request that triggered the error.
        exc: The exception that was raised.

    Returns:
        JSONResponse with generic error message.
    """
    logger.exception(f"Unhandled exception on {request.url.path}: {exc}")

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "Internal Server Error",
            "detail": "An unexpected error occurred",
            "type": type(exc).__name__,
        },
    )
