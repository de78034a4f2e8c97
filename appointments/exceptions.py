"""Exceptions raised by the recurring-appointment engine."""


class AppointmentError(Exception):
    """Base class for appointment engine errors."""


class InvalidPatternError(AppointmentError, ValueError):
    """Raised when a recurrence pattern is structurally or semantically invalid.

    Raised before anything is persisted, so the caller can fix the input and
    retry.

    Args:
        reason: Human-readable description of the problem.
        field: Name of the offending pattern field, if known.
    """

    def __init__(self, reason: str, field: str | None = None):
        self.reason = reason
        self.field = field
        message = f"Invalid recurrence pattern: {reason}"
        if field:
            message = f"Invalid recurrence pattern ({field}): {reason}"
        super().__init__(message)


class PersistenceError(AppointmentError):
    """Raised by a record store when an operation fails.

    Args:
        operation: Store operation that failed (e.g. "insert_many").
        message: Description of the failure.
    """

    def __init__(self, operation: str, message: str):
        self.operation = operation
        self.message = message
        super().__init__(f"{operation} failed: {message}")


class RootNotFoundError(AppointmentError, LookupError):
    """Raised when a mutation targets an appointment that does not exist.

    Args:
        appointment_id: The id that did not resolve to a record.
    """

    def __init__(self, appointment_id: str):
        self.appointment_id = appointment_id
        super().__init__(f"Appointment {appointment_id} not found")
