"""Appointment service: the entry point used by the request layer.

Creation runs pattern validation, root insert, occurrence generation and
child materialization in that order. Mutations go through the series
coordinator.
"""

import logging
from typing import Any, Optional, Union

from pydantic import BaseModel, Field

from appointments.appointment import Appointment, AppointmentDraft, AppointmentUpdate
from appointments.exceptions import RootNotFoundError
from appointments.materializer import ChildInsertOutcome, InstanceMaterializer
from appointments.occurrences import Occurrence, OccurrenceGenerator
from appointments.recurrence import PatternLike, RecurrencePattern, validate_pattern
from appointments.series import MutationScope, SeriesMutationCoordinator
from appointments.store import AppointmentQuery, RecordStore

logger = logging.getLogger(__name__)


class SeriesCreationResult(BaseModel):
    """Result of creating an appointment, recurring or not.

    The root is always committed once this result exists. ``children`` reports
    the separate child batch insert, which may have failed on its own.

    Args:
        root: The created root appointment.
        pattern: Canonical pattern, when one was supplied.
        children: Outcome of the child batch insert.
    """

    root: Appointment
    pattern: Optional[RecurrencePattern] = None
    children: ChildInsertOutcome = Field(default_factory=ChildInsertOutcome)

    @property
    def partially_created(self) -> bool:
        """True when the root exists but its children could not be stored."""
        return not self.children.ok


class AppointmentService:
    """Creates, reads, updates and deletes appointments and series.

    Args:
        store: Record store backing the appointments.
    """

    def __init__(self, store: RecordStore) -> None:
        self.store = store
        self.materializer = InstanceMaterializer(store)
        self.coordinator = SeriesMutationCoordinator(store)

    def create_appointment(
        self,
        draft: AppointmentDraft,
        pattern: Optional[PatternLike] = None,
    ) -> SeriesCreationResult:
        """Create an appointment and, for a recurring one, its child occurrences.

        Args:
            draft: Validated appointment fields.
            pattern: Optional raw recurrence pattern.

        Returns:
            The creation result.

        Raises:
            InvalidPatternError: If the pattern is invalid (nothing is stored).
            PersistenceError: If the root insert fails.
        """
        if pattern is None:
            root = self.store.insert(Appointment.from_draft(draft))
            logger.info(f"Created appointment {root.id}")
            return SeriesCreationResult(root=root)

        canonical = validate_pattern(pattern, anchor_start=draft.start_time)
        occurrences = self.preview_occurrences(draft, canonical)

        root = self.store.insert(
            Appointment.from_draft(
                draft,
                recurrence_rule=canonical.to_descriptor(),
                recurrence_end_date=canonical.until,
                is_recurring=bool(occurrences),
            )
        )
        logger.info(
            f"Created recurring appointment {root.id} ({root.recurrence_rule}) "
            f"with {len(occurrences)} further occurrence(s)"
        )

        children = self.materializer.materialize(root, occurrences)
        if not children.ok:
            logger.warning(
                f"Recurring appointment {root.id} was created without its instances"
            )
        return SeriesCreationResult(root=root, pattern=canonical, children=children)

    @staticmethod
    def preview_occurrences(
        draft: AppointmentDraft, pattern: RecurrencePattern
    ) -> list[Occurrence]:
        """Compute the child occurrence windows for a draft without storing anything."""
        return list(OccurrenceGenerator(draft.start_time, draft.end_time, pattern))

    def get_appointment(self, appointment_id: str) -> Appointment:
        """Fetch one appointment.

        Raises:
            RootNotFoundError: If the appointment does not exist.
        """
        record = self.store.get(appointment_id)
        if record is None:
            raise RootNotFoundError(appointment_id)
        return record

    def list_series(self, root_id: str) -> list[Appointment]:
        """Return the child occurrences of a series root, ordered by start."""
        children, _ = self.store.find(AppointmentQuery(parent_appointment_id=root_id))
        return children

    def list_appointments(self, query: AppointmentQuery) -> tuple[list[Appointment], int]:
        """Return one page of appointments matching ``query`` and the total count."""
        return self.store.find(query)

    def update_appointment(
        self,
        appointment_id: str,
        changes: Union[AppointmentUpdate, dict[str, Any]],
        scope: MutationScope = MutationScope.SINGLE,
    ) -> Appointment:
        """Update one appointment or its whole series and return the target.

        Raises:
            RootNotFoundError: If the appointment does not exist.
            PersistenceError: If the store update fails.
        """
        self.coordinator.update(appointment_id, changes, scope)
        return self.get_appointment(appointment_id)

    def delete_appointment(
        self, appointment_id: str, scope: MutationScope = MutationScope.SINGLE
    ) -> int:
        """Delete one appointment or its whole series.

        Returns:
            Number of records deleted.
        """
        return self.coordinator.delete(appointment_id, scope)
