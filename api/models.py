"""Request and response models for the appointments API."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from appointments.appointment import (
    Appointment,
    AppointmentDraft,
    AppointmentStatus,
    AppointmentType,
    AppointmentUpdate,
)


# Request Models


class CreateAppointmentRequest(BaseModel):
    """Request to create an appointment, optionally recurring.

    Args:
        title: Appointment title.
        description: Appointment description.
        location: Appointment location.
        type: Appointment type.
        client_id: Associated client.
        start_time: Start datetime.
        end_time: End datetime.
        created_by: Creator reference.
        recurring_pattern: Recurrence pattern for a recurring series.
    """

    title: str = Field(description="Appointment title")
    description: Optional[str] = Field(default=None, description="Description")
    location: Optional[str] = Field(default=None, description="Location")
    type: AppointmentType = Field(default=AppointmentType.MEETING, description="Type")
    client_id: Optional[str] = Field(default=None, description="Associated client")
    start_time: datetime = Field(description="Start datetime")
    end_time: datetime = Field(description="End datetime")
    created_by: str = Field(description="Creator reference")
    recurring_pattern: Optional[dict] = Field(
        default=None, description="Recurrence pattern (frequency, interval, ...)"
    )

    def to_draft(self) -> AppointmentDraft:
        """Build the validated appointment draft from this request.

        Raises:
            pydantic.ValidationError: If the appointment fields are invalid.
        """
        return AppointmentDraft.model_validate(
            self.model_dump(exclude={"recurring_pattern"})
        )


class UpdateAppointmentRequest(AppointmentUpdate):
    """Request to update an appointment or its whole series.

    Args:
        update_recurring_series: Apply the change to every record of the series.
    """

    update_recurring_series: bool = Field(
        default=False, description="Update the whole recurring series"
    )

    def to_update(self) -> AppointmentUpdate:
        """Return the field changes without the scope flag."""
        changes = self.model_dump(exclude_unset=True, exclude={"update_recurring_series"})
        return AppointmentUpdate.model_validate(changes)


class RecurrencePreviewRequest(BaseModel):
    """Request to preview the occurrences of a pattern.

    Args:
        start_time: Anchor start.
        end_time: Anchor end.
        pattern: Raw recurrence pattern.
    """

    start_time: datetime
    end_time: datetime
    pattern: dict


# Response Models


class PaginationInfo(BaseModel):
    """Pagination details for listing responses."""

    page: int
    limit: int
    total: int
    total_pages: int


class AppointmentListResponse(BaseModel):
    """Response model for appointment listings."""

    data: list[Appointment]
    pagination: PaginationInfo


class AppointmentDetail(BaseModel):
    """A single appointment, with its generated instances when it is a series root."""

    data: Appointment
    recurring_instances: list[Appointment] = Field(default_factory=list)


class CreateAppointmentResponse(BaseModel):
    """Response model for appointment creation.

    Args:
        data: The created root appointment.
        instances_created: Number of child occurrences stored.
        warning: Set when the root was stored but its occurrences were not.
    """

    data: Appointment
    instances_created: int = 0
    warning: Optional[str] = None


class MutationResponse(BaseModel):
    """Response model for update/delete operations."""

    message: str
    affected: int
    scope: str


class OccurrenceWindow(BaseModel):
    """One previewed occurrence window."""

    start_time: datetime
    end_time: datetime


class RecurrencePreviewResponse(BaseModel):
    """Response model for recurrence previews."""

    recurrence_rule: str
    occurrences: list[OccurrenceWindow]
    count: int


class AppointmentFilters(BaseModel):
    """Query-string filters for listing appointments."""

    created_by: Optional[str] = None
    client_id: Optional[str] = None
    type: Optional[AppointmentType] = None
    status: Optional[AppointmentStatus] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    is_recurring: Optional[bool] = None
    page: int = Field(default=1, ge=1)
    limit: Optional[int] = Field(default=None, ge=1)
