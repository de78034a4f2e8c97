"""Record store contract and in-memory implementation.

The engine talks to persistence only through ``RecordStore``. Series
targeting is expressed with two predicates, ``IdEquals`` and ``InSeries``; a
real backend translates them into its own query language, the in-memory store
evaluates them directly against its records.
"""

import threading
from datetime import datetime, timezone
from typing import Any, Iterable, Optional, Protocol, Union

from pydantic import BaseModel, ValidationError

from appointments.appointment import (
    Appointment,
    AppointmentStatus,
    AppointmentType,
    match_awareness,
)
from appointments.exceptions import PersistenceError

_UTC_REFERENCE = datetime(1970, 1, 1, tzinfo=timezone.utc)


class IdEquals(BaseModel):
    """Matches the single record with the given id."""

    model_config = {"frozen": True}

    appointment_id: str

    def matches(self, record: Appointment) -> bool:
        return record.id == self.appointment_id


class InSeries(BaseModel):
    """Matches a series root and every child that points at it."""

    model_config = {"frozen": True}

    root_id: str

    def matches(self, record: Appointment) -> bool:
        return record.id == self.root_id or record.parent_appointment_id == self.root_id


Predicate = Union[IdEquals, InSeries]


class AppointmentQuery(BaseModel):
    """Filters for listing appointments.

    Args:
        created_by: Only appointments created by this user.
        client_id: Only appointments for this client.
        type: Only appointments of this type.
        status: Only appointments in this status.
        start_date: Earliest start_time (inclusive).
        end_date: Latest start_time (inclusive).
        is_recurring: Filter by recurring flag.
        parent_appointment_id: Only children of this root.
        page: 1-based page number.
        limit: Page size.
    """

    created_by: Optional[str] = None
    client_id: Optional[str] = None
    type: Optional[AppointmentType] = None
    status: Optional[AppointmentStatus] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    is_recurring: Optional[bool] = None
    parent_appointment_id: Optional[str] = None
    page: int = 1
    limit: Optional[int] = None

    def matches(self, record: Appointment) -> bool:
        """Check whether a record passes every set filter."""
        if self.created_by is not None and record.created_by != self.created_by:
            return False
        if self.client_id is not None and record.client_id != self.client_id:
            return False
        if self.type is not None and record.type != self.type:
            return False
        if self.status is not None and record.status != self.status:
            return False
        start = record.start_time
        if self.start_date is not None and start < match_awareness(self.start_date, start):
            return False
        if self.end_date is not None and start > match_awareness(self.end_date, start):
            return False
        if self.is_recurring is not None and record.is_recurring != self.is_recurring:
            return False
        if (
            self.parent_appointment_id is not None
            and record.parent_appointment_id != self.parent_appointment_id
        ):
            return False
        return True


class RecordStore(Protocol):
    """Persistence collaborator used by the engine.

    Every operation raises ``PersistenceError`` on failure.
    """

    def insert(self, record: Appointment) -> Appointment: ...

    def get(self, appointment_id: str) -> Optional[Appointment]: ...

    def insert_many(self, records: list[Appointment]) -> list[Appointment]: ...

    def update_where(self, predicate: Predicate, fields: dict[str, Any]) -> int: ...

    def delete_where(self, predicate: Predicate) -> int: ...

    def find(self, query: AppointmentQuery) -> tuple[list[Appointment], int]: ...


class InMemoryRecordStore:
    """Record store backed by a flat dict of appointments keyed by id.

    Each operation is atomic on its own: a batch insert that fails leaves no
    partial batch behind, and an update that would break a record's time range
    changes nothing. There are no transactions spanning several calls.

    ``fail_next`` arms a one-shot failure for an operation, which lets callers
    exercise partial-success paths without a real backend.
    """

    def __init__(self, records: Optional[Iterable[Appointment]] = None) -> None:
        self._records: dict[str, Appointment] = {}
        self._lock = threading.Lock()
        self._failures: dict[str, str] = {}
        for record in records or ():
            self._records[record.id] = record.model_copy(deep=True)

    def fail_next(self, operation: str, message: str = "simulated failure") -> None:
        """Make the next call to ``operation`` raise PersistenceError.

        Args:
            operation: Store method name (e.g. "insert_many").
            message: Error message to raise with.
        """
        self._failures[operation] = message

    def _check_failure(self, operation: str) -> None:
        message = self._failures.pop(operation, None)
        if message is not None:
            raise PersistenceError(operation, message)

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, appointment_id: object) -> bool:
        return appointment_id in self._records

    def insert(self, record: Appointment) -> Appointment:
        with self._lock:
            self._check_failure("insert")
            if record.id in self._records:
                raise PersistenceError("insert", f"duplicate id {record.id}")
            self._records[record.id] = record.model_copy(deep=True)
            return record.model_copy(deep=True)

    def get(self, appointment_id: str) -> Optional[Appointment]:
        with self._lock:
            self._check_failure("get")
            record = self._records.get(appointment_id)
            return record.model_copy(deep=True) if record else None

    def insert_many(self, records: list[Appointment]) -> list[Appointment]:
        with self._lock:
            self._check_failure("insert_many")
            ids = [record.id for record in records]
            if len(set(ids)) != len(ids) or any(i in self._records for i in ids):
                raise PersistenceError("insert_many", "duplicate id in batch")
            for record in records:
                self._records[record.id] = record.model_copy(deep=True)
            return [record.model_copy(deep=True) for record in records]

    def update_where(self, predicate: Predicate, fields: dict[str, Any]) -> int:
        with self._lock:
            self._check_failure("update_where")
            updated = {}
            for record_id, record in self._records.items():
                if not predicate.matches(record):
                    continue
                changes = dict(fields)
                for name in ("start_time", "end_time"):
                    if changes.get(name) is not None:
                        changes[name] = match_awareness(changes[name], record.start_time)
                try:
                    candidate = Appointment.model_validate(
                        {**record.model_dump(), **changes}
                    )
                except ValidationError as exc:
                    reason = exc.errors()[0]["msg"]
                    raise PersistenceError(
                        "update_where", f"invalid update for {record_id}: {reason}"
                    ) from exc
                updated[record_id] = candidate
            self._records.update(updated)
            return len(updated)

    def delete_where(self, predicate: Predicate) -> int:
        with self._lock:
            self._check_failure("delete_where")
            doomed = [rid for rid, rec in self._records.items() if predicate.matches(rec)]
            for record_id in doomed:
                del self._records[record_id]
            return len(doomed)

    def find(self, query: AppointmentQuery) -> tuple[list[Appointment], int]:
        """Return one page of matching records ordered by start_time.

        Returns:
            Tuple of (page of records, total matching count).
        """
        with self._lock:
            self._check_failure("find")
            matching = [r for r in self._records.values() if query.matches(r)]
        # Naive start times sort as UTC
        matching.sort(key=lambda r: match_awareness(r.start_time, _UTC_REFERENCE))
        total = len(matching)
        if query.limit:
            offset = (query.page - 1) * query.limit
            matching = matching[offset:offset + query.limit]
        return [r.model_copy(deep=True) for r in matching], total
