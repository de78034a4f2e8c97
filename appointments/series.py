"""Scope resolution for updates and deletes on recurring series.

A mutation names one appointment and a scope. SINGLE touches exactly that
record. SERIES touches the series root and all of its children, wherever in
the series the named record sits. SERIES on an appointment that is not
recurring degrades to SINGLE.

The coordinator is request-scoped: it reads the target once, picks a
predicate, and issues exactly one store call.
"""

import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Union

from pydantic import BaseModel

from appointments.appointment import AppointmentUpdate
from appointments.exceptions import RootNotFoundError
from appointments.store import IdEquals, InSeries, Predicate, RecordStore

logger = logging.getLogger(__name__)


class MutationScope(str, Enum):
    """Which records a mutation applies to."""

    SINGLE = "single"
    SERIES = "series"

    @classmethod
    def from_flag(cls, whole_series: bool) -> "MutationScope":
        """Map a boolean "whole series" request flag onto a scope."""
        return cls.SERIES if whole_series else cls.SINGLE


class SeriesShape(str, Enum):
    """Position of a record inside its series."""

    IS_ROOT = "is_root"
    IS_CHILD = "is_child"


class SeriesTarget(BaseModel):
    """Resolved target of a mutation.

    Args:
        appointment_id: The record named by the request.
        root_id: Root of its series (the record itself for a root).
        shape: Whether the record is a root or a child.
        is_recurring: Recurring flag of the record.
    """

    model_config = {"frozen": True}

    appointment_id: str
    root_id: str
    shape: SeriesShape
    is_recurring: bool


class SeriesMutationCoordinator:
    """Applies updates and deletes with SINGLE or SERIES scope.

    Args:
        store: Record store the mutation is issued against.
    """

    def __init__(self, store: RecordStore) -> None:
        self.store = store

    def resolve(self, appointment_id: str) -> SeriesTarget:
        """Look up the target and work out the root of its series.

        Args:
            appointment_id: Id named by the request.

        Returns:
            The resolved target.

        Raises:
            RootNotFoundError: If no record has this id.
        """
        record = self.store.get(appointment_id)
        if record is None:
            raise RootNotFoundError(appointment_id)

        shape = SeriesShape.IS_ROOT if record.is_root else SeriesShape.IS_CHILD
        return SeriesTarget(
            appointment_id=record.id,
            root_id=record.root_id,
            shape=shape,
            is_recurring=record.is_recurring,
        )

    @staticmethod
    def target_predicate(target: SeriesTarget, scope: MutationScope) -> Predicate:
        """Translate a resolved target and scope into a store predicate.

        Args:
            target: Resolved mutation target.
            scope: Requested scope.

        Returns:
            IdEquals for single-record mutations, InSeries for series ones.
        """
        if scope == MutationScope.SERIES:
            if target.is_recurring:
                return InSeries(root_id=target.root_id)
            logger.warning(
                f"Series scope requested for non-recurring appointment "
                f"{target.appointment_id}; applying to that appointment only"
            )
        return IdEquals(appointment_id=target.appointment_id)

    def update(
        self,
        appointment_id: str,
        changes: Union[AppointmentUpdate, dict[str, Any]],
        scope: MutationScope = MutationScope.SINGLE,
    ) -> int:
        """Apply field changes to one record or to a whole series.

        Args:
            appointment_id: Id named by the request.
            changes: Field changes (validated through AppointmentUpdate).
            scope: SINGLE or SERIES.

        Returns:
            Number of records updated.

        Raises:
            RootNotFoundError: If the target does not exist.
            PersistenceError: If the store update fails.
            pydantic.ValidationError: If the changes are not valid fields.
        """
        if not isinstance(changes, AppointmentUpdate):
            changes = AppointmentUpdate.model_validate(changes)

        target = self.resolve(appointment_id)
        predicate = self.target_predicate(target, scope)
        fields = changes.changes()
        fields["updated_at"] = datetime.now(timezone.utc)

        count = self.store.update_where(predicate, fields)
        logger.info(
            f"Updated {count} appointment(s) for {appointment_id} with scope {scope.value}"
        )
        return count

    def delete(
        self, appointment_id: str, scope: MutationScope = MutationScope.SINGLE
    ) -> int:
        """Delete one record or a whole series.

        Args:
            appointment_id: Id named by the request.
            scope: SINGLE or SERIES.

        Returns:
            Number of records deleted.

        Raises:
            RootNotFoundError: If the target does not exist.
            PersistenceError: If the store delete fails.
        """
        target = self.resolve(appointment_id)
        predicate = self.target_predicate(target, scope)

        count = self.store.delete_where(predicate)
        logger.info(
            f"Deleted {count} appointment(s) for {appointment_id} with scope {scope.value}"
        )
        return count
