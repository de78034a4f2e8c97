"""Turn generated occurrence windows into persisted child appointments."""

import logging
from typing import Iterable, Optional

from pydantic import BaseModel, Field

from appointments.appointment import Appointment, AppointmentStatus
from appointments.exceptions import PersistenceError
from appointments.occurrences import Occurrence
from appointments.store import RecordStore

logger = logging.getLogger(__name__)


class ChildInsertOutcome(BaseModel):
    """Result of the child batch insert for one series.

    A failed batch insert does not undo the already-committed root, so a
    series can end up partially created. This outcome makes that visible.

    Args:
        attempted: Number of child records the batch contained.
        inserted: Child records the store accepted.
        error: The store failure, if the batch insert failed.
    """

    model_config = {"arbitrary_types_allowed": True}

    attempted: int = 0
    inserted: list[Appointment] = Field(default_factory=list)
    error: Optional[PersistenceError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class InstanceMaterializer:
    """Builds and persists child records for a recurring series.

    Args:
        store: Record store receiving the batch insert.
    """

    def __init__(self, store: RecordStore) -> None:
        self.store = store

    @staticmethod
    def build_drafts(
        root: Appointment, occurrences: Iterable[Occurrence]
    ) -> list[Appointment]:
        """Build one child record per occurrence window.

        Non-temporal fields are copied from the root; every child points back
        at the root and carries the root's recurrence descriptor.

        Args:
            root: The persisted series root.
            occurrences: Child occurrence windows.

        Returns:
            Unsaved child records in occurrence order.
        """
        return [
            Appointment(
                title=root.title,
                description=root.description,
                location=root.location,
                type=root.type,
                client_id=root.client_id,
                created_by=root.created_by,
                start_time=occurrence.start,
                end_time=occurrence.end,
                status=AppointmentStatus.SCHEDULED,
                is_recurring=True,
                recurrence_rule=root.recurrence_rule,
                recurrence_end_date=root.recurrence_end_date,
                parent_appointment_id=root.id,
            )
            for occurrence in occurrences
        ]

    def materialize(
        self, root: Appointment, occurrences: Iterable[Occurrence]
    ) -> ChildInsertOutcome:
        """Persist the children of ``root`` with a single batch insert.

        A store failure is logged and returned in the outcome rather than
        raised; the root stays in place.

        Args:
            root: The persisted series root.
            occurrences: Child occurrence windows.

        Returns:
            Outcome of the batch insert.
        """
        drafts = self.build_drafts(root, occurrences)
        if not drafts:
            return ChildInsertOutcome()

        try:
            inserted = self.store.insert_many(drafts)
        except PersistenceError as exc:
            logger.error(
                f"Failed to create {len(drafts)} recurring instances for {root.id}: {exc}"
            )
            return ChildInsertOutcome(attempted=len(drafts), error=exc)

        logger.info(f"Created {len(inserted)} recurring instances for {root.id}")
        return ChildInsertOutcome(attempted=len(drafts), inserted=inserted)
