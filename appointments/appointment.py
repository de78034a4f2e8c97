"""Appointment record models."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import uuid4

from pydantic import (
    BaseModel,
    Field,
    ValidationInfo,
    field_serializer,
    field_validator,
    model_validator,
)


class AppointmentType(str, Enum):
    """Kind of appointment."""

    SHOWING = "Showing"
    MEETING = "Meeting"
    CALL = "Call"
    DEADLINE = "Deadline"


class AppointmentStatus(str, Enum):
    """Lifecycle status of an appointment.

    Every appointment starts as SCHEDULED and moves to COMPLETED or CANCELLED.
    """

    SCHEDULED = "Scheduled"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def match_awareness(value: datetime, reference: datetime) -> datetime:
    """Give ``value`` the same timezone awareness as ``reference``.

    A naive value takes the reference's timezone; an aware value compared
    with a naive reference is converted to naive UTC.
    """
    if reference.tzinfo is not None and value.tzinfo is None:
        return value.replace(tzinfo=reference.tzinfo)
    if reference.tzinfo is None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class AppointmentDraft(BaseModel):
    """Fields supplied by a caller to create a root appointment.

    Args:
        title: Appointment title.
        start_time: Start datetime.
        end_time: End datetime (must be after start_time).
        created_by: Reference to the user creating the appointment.
        description: Optional description.
        location: Optional location.
        type: Appointment type.
        client_id: Optional associated client reference.
    """

    title: str = Field(min_length=1, max_length=255, description="Appointment title")
    start_time: datetime = Field(description="Start datetime")
    end_time: datetime = Field(description="End datetime")
    created_by: str = Field(description="Creator reference")
    description: Optional[str] = Field(
        default=None, max_length=1000, description="Appointment description"
    )
    location: Optional[str] = Field(
        default=None, max_length=255, description="Appointment location"
    )
    type: AppointmentType = Field(
        default=AppointmentType.MEETING, description="Appointment type"
    )
    client_id: Optional[str] = Field(default=None, description="Associated client")

    @model_validator(mode="after")
    def check_time_range(self) -> "AppointmentDraft":
        """Ensure the appointment ends after it starts.

        Raises:
            ValueError: If end_time is not after start_time.
        """
        self.end_time = match_awareness(self.end_time, self.start_time)
        if self.end_time <= self.start_time:
            raise ValueError("End time must be after start time")
        return self


class Appointment(AppointmentDraft):
    """A persisted appointment record.

    A record whose parent_appointment_id is None is a root: either a standalone
    appointment or the first occurrence of a recurring series. A record whose
    parent_appointment_id is set is a child of that root. Children never have
    children of their own.

    Args:
        id: Unique appointment identifier (auto-generated).
        status: Lifecycle status.
        is_recurring: Whether this record belongs to a multi-occurrence series.
        recurrence_rule: Canonical recurrence descriptor shared by the series.
        recurrence_end_date: End of the recurrence range, if one was given.
        parent_appointment_id: Root of the series for child occurrences.
        created_at: When the record was created.
        updated_at: When the record was last modified.
    """

    id: str = Field(
        default_factory=lambda: str(uuid4()), description="Unique identifier"
    )
    status: AppointmentStatus = Field(
        default=AppointmentStatus.SCHEDULED, description="Lifecycle status"
    )
    is_recurring: bool = Field(default=False, description="Part of a recurring series")
    recurrence_rule: Optional[str] = Field(
        default=None, description="Canonical recurrence descriptor"
    )
    recurrence_end_date: Optional[datetime] = Field(
        default=None, description="End of the recurrence range"
    )
    parent_appointment_id: Optional[str] = Field(
        default=None, description="Root appointment of the series"
    )
    created_at: datetime = Field(default_factory=_utcnow, description="Creation time")
    updated_at: datetime = Field(default_factory=_utcnow, description="Last update time")

    @field_serializer("start_time", "end_time", "created_at", "updated_at")
    def serialize_datetime(self, dt: datetime) -> str:
        """Serialize datetime to ISO format string.

        Args:
            dt: Datetime to serialize.

        Returns:
            ISO format string.
        """
        return dt.isoformat()

    @field_serializer("recurrence_end_date")
    def serialize_optional_datetime(self, dt: Optional[datetime]) -> Optional[str]:
        """Serialize optional datetime to ISO format string."""
        return dt.isoformat() if dt else None

    @property
    def is_root(self) -> bool:
        """True when this record has no parent."""
        return self.parent_appointment_id is None

    @property
    def is_child(self) -> bool:
        """True when this record is a generated occurrence of a series."""
        return self.parent_appointment_id is not None

    @property
    def root_id(self) -> str:
        """Id of the series root (the record itself when it has no parent)."""
        return self.parent_appointment_id or self.id

    @classmethod
    def from_draft(
        cls,
        draft: AppointmentDraft,
        *,
        recurrence_rule: Optional[str] = None,
        recurrence_end_date: Optional[datetime] = None,
        is_recurring: bool = False,
    ) -> "Appointment":
        """Build a new root record from a caller-supplied draft.

        Args:
            draft: Validated creation fields.
            recurrence_rule: Canonical descriptor when a pattern was supplied.
            recurrence_end_date: Pattern end, if any.
            is_recurring: Whether the series has more than one occurrence.

        Returns:
            A new Appointment in SCHEDULED status.
        """
        return cls(
            **draft.model_dump(),
            recurrence_rule=recurrence_rule,
            recurrence_end_date=recurrence_end_date,
            is_recurring=is_recurring,
        )


class AppointmentUpdate(BaseModel):
    """Field changes accepted by update operations.

    Series linkage (id, parent, descriptor, recurring flag) is not part of this
    model and cannot be changed through an update. Only description, location
    and client_id may be cleared with an explicit null.

    Status changes are not checked against the current status: a COMPLETED or
    CANCELLED appointment can be moved back to SCHEDULED, e.g. to reopen a
    cancelled showing.

    Args:
        title: New title.
        description: New description (null clears it).
        location: New location (null clears it).
        type: New appointment type.
        status: New lifecycle status.
        client_id: New client reference (null clears it).
        start_time: New start datetime.
        end_time: New end datetime.
    """

    model_config = {"extra": "forbid"}

    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, max_length=1000)
    location: Optional[str] = Field(default=None, max_length=255)
    type: Optional[AppointmentType] = None
    status: Optional[AppointmentStatus] = None
    client_id: Optional[str] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None

    @field_validator("title", "type", "status", "start_time", "end_time")
    @classmethod
    def reject_null(cls, value: Any, info: ValidationInfo) -> Any:
        """Reject an explicit null for fields every appointment must have.

        Raises:
            ValueError: If the field was set to None.
        """
        if value is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return value

    @model_validator(mode="after")
    def check_time_range(self) -> "AppointmentUpdate":
        """Reject an update that sets both times with end before start."""
        if self.start_time is not None and self.end_time is not None:
            self.end_time = match_awareness(self.end_time, self.start_time)
            if self.end_time <= self.start_time:
                raise ValueError("End time must be after start time")
        return self

    def changes(self) -> dict:
        """Return only the fields that were explicitly set."""
        return self.model_dump(exclude_unset=True)
