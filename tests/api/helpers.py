"""Helper functions for building appointment API requests."""

from datetime import datetime, timedelta
from typing import Any

ANCHOR = datetime.fromisoformat("2024-01-01T10:00:00+00:00")


def appointment_payload(
    start_time: datetime = ANCHOR,
    duration: timedelta = timedelta(hours=1),
    recurring_pattern: dict | None = None,
    **fields: Any,
) -> dict:
    """Build a JSON body for POST /appointments.

    Args:
        start_time: Appointment start.
        duration: Appointment length.
        recurring_pattern: Optional recurrence pattern.
        **fields: Additional or overriding appointment fields.

    Returns:
        Dictionary suitable for the json= argument of TestClient.post.
    """
    payload = {
        "title": "Property Showing",
        "start_time": start_time.isoformat(),
        "end_time": (start_time + duration).isoformat(),
        "created_by": "agent-1",
        "type": "Showing",
    }
    if recurring_pattern is not None:
        payload["recurring_pattern"] = recurring_pattern
    payload.update(fields)
    return payload


def create_series(client, count: int = 5, **fields: Any) -> dict:
    """Create a weekly series through the API and return the response body."""
    response = client.post(
        "/appointments",
        json=appointment_payload(
            recurring_pattern={"frequency": "WEEKLY", "count": count}, **fields
        ),
    )
    assert response.status_code == 201
    return response.json()
