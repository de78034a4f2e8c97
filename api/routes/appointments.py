"""Appointment endpoints.

Provides REST API for creating appointments (optionally as a recurring
series), reading them, and updating or deleting a single occurrence or a
whole series.
"""

import math
from typing import Annotated

from fastapi import APIRouter, Query, status

from api.dependencies import AppointmentServiceDep, SettingsDep
from api.models import (
    AppointmentDetail,
    AppointmentFilters,
    AppointmentListResponse,
    CreateAppointmentRequest,
    CreateAppointmentResponse,
    MutationResponse,
    PaginationInfo,
    UpdateAppointmentRequest,
)
from appointments.series import MutationScope
from appointments.store import AppointmentQuery

router = APIRouter(
    prefix="/appointments",
    tags=["appointments"],
)


@router.get("", response_model=AppointmentListResponse)
async def list_appointments(
    filters: Annotated[AppointmentFilters, Query()],
    service: AppointmentServiceDep,
    settings: SettingsDep,
):
    """List appointments ordered by start time.

    Args:
        filters: Query-string filters and pagination.
        service: Appointment service dependency.
        settings: Application settings dependency.

    Returns:
        One page of appointments with pagination info.
    """
    limit = min(filters.limit or settings.default_page_size, settings.max_page_size)
    query = AppointmentQuery(**filters.model_dump(exclude={"limit"}), limit=limit)
    appointments, total = service.list_appointments(query)

    return AppointmentListResponse(
        data=appointments,
        pagination=PaginationInfo(
            page=filters.page,
            limit=limit,
            total=total,
            total_pages=math.ceil(total / limit),
        ),
    )


@router.post(
    "",
    response_model=CreateAppointmentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_appointment(
    request: CreateAppointmentRequest, service: AppointmentServiceDep
):
    """Create an appointment.

    When a recurring pattern is supplied, the appointment becomes the root of
    a series and its further occurrences are created right after it. If the
    occurrences cannot be stored the root is kept and the response carries a
    warning.

    Args:
        request: Appointment fields and optional recurrence pattern.
        service: Appointment service dependency.

    Returns:
        The created root appointment and the number of occurrences stored.
    """
    result = service.create_appointment(request.to_draft(), request.recurring_pattern)

    warning = None
    if result.partially_created:
        warning = (
            f"Appointment created, but its recurring instances could not be "
            f"stored: {result.children.error}"
        )

    return CreateAppointmentResponse(
        data=result.root,
        instances_created=len(result.children.inserted),
        warning=warning,
    )


@router.get("/{appointment_id}", response_model=AppointmentDetail)
async def get_appointment(appointment_id: str, service: AppointmentServiceDep):
    """Get one appointment, with its recurring instances when it is a series root.

    Args:
        appointment_id: Appointment to fetch.
        service: Appointment service dependency.

    Returns:
        The appointment and its generated instances.
    """
    appointment = service.get_appointment(appointment_id)
    instances = []
    if appointment.is_root and appointment.is_recurring:
        instances = service.list_series(appointment.id)

    return AppointmentDetail(data=appointment, recurring_instances=instances)


@router.put("/{appointment_id}", response_model=AppointmentDetail)
async def update_appointment(
    appointment_id: str,
    request: UpdateAppointmentRequest,
    service: AppointmentServiceDep,
):
    """Update an appointment or, with update_recurring_series, its whole series.

    Args:
        appointment_id: Appointment named by the request.
        request: Field changes and scope flag.
        service: Appointment service dependency.

    Returns:
        The updated appointment.
    """
    scope = MutationScope.from_flag(request.update_recurring_series)
    appointment = service.update_appointment(appointment_id, request.to_update(), scope)

    return AppointmentDetail(data=appointment)


@router.delete("/{appointment_id}", response_model=MutationResponse)
async def delete_appointment(
    appointment_id: str,
    service: AppointmentServiceDep,
    delete_recurring_series: bool = False,
):
    """Delete an appointment or, with delete_recurring_series, its whole series.

    Args:
        appointment_id: Appointment named by the request.
        service: Appointment service dependency.
        delete_recurring_series: Delete the root and every occurrence.

    Returns:
        Number of records deleted and the scope applied.
    """
    scope = MutationScope.from_flag(delete_recurring_series)
    deleted = service.delete_appointment(appointment_id, scope)

    return MutationResponse(
        message="Appointment deleted successfully",
        affected=deleted,
        scope=scope.value,
    )
