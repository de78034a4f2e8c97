"""Recurring appointment engine.

This package contains the appointment record models, recurrence pattern
validation, occurrence generation, child-instance materialization and
series-scoped mutation, plus the record store contract they run against.
"""

from appointments.appointment import (
    Appointment,
    AppointmentDraft,
    AppointmentStatus,
    AppointmentType,
    AppointmentUpdate,
)
from appointments.exceptions import (
    AppointmentError,
    InvalidPatternError,
    PersistenceError,
    RootNotFoundError,
)
from appointments.materializer import ChildInsertOutcome, InstanceMaterializer
from appointments.occurrences import Occurrence, OccurrenceGenerator, generate_occurrences
from appointments.recurrence import (
    Frequency,
    RecurrencePattern,
    RecurringPatternInput,
    validate_pattern,
)
from appointments.series import MutationScope, SeriesMutationCoordinator, SeriesTarget
from appointments.service import AppointmentService, SeriesCreationResult
from appointments.store import (
    AppointmentQuery,
    IdEquals,
    InMemoryRecordStore,
    InSeries,
    RecordStore,
)

__all__ = [
    "Appointment",
    "AppointmentDraft",
    "AppointmentStatus",
    "AppointmentType",
    "AppointmentUpdate",
    "AppointmentError",
    "InvalidPatternError",
    "PersistenceError",
    "RootNotFoundError",
    "ChildInsertOutcome",
    "InstanceMaterializer",
    "Occurrence",
    "OccurrenceGenerator",
    "generate_occurrences",
    "Frequency",
    "RecurrencePattern",
    "RecurringPatternInput",
    "validate_pattern",
    "MutationScope",
    "SeriesMutationCoordinator",
    "SeriesTarget",
    "AppointmentService",
    "SeriesCreationResult",
    "AppointmentQuery",
    "IdEquals",
    "InMemoryRecordStore",
    "InSeries",
    "RecordStore",
]
