"""Recurrence endpoints.

Lets callers check a recurrence pattern against an anchor window before
creating a series: the canonical descriptor and the occurrence windows are
returned, nothing is stored.
"""

from fastapi import APIRouter

from api.models import (
    OccurrenceWindow,
    RecurrencePreviewRequest,
    RecurrencePreviewResponse,
)
from appointments.occurrences import OccurrenceGenerator
from appointments.recurrence import validate_pattern

router = APIRouter(
    prefix="/recurrence",
    tags=["recurrence"],
)


@router.post("/preview", response_model=RecurrencePreviewResponse)
async def preview_recurrence(request: RecurrencePreviewRequest):
    """Preview the occurrences a pattern would generate.

    Args:
        request: Anchor window and raw pattern.

    Returns:
        Canonical descriptor and the child occurrence windows.
    """
    pattern = validate_pattern(request.pattern, anchor_start=request.start_time)
    generator = OccurrenceGenerator(request.start_time, request.end_time, pattern)
    occurrences = [
        OccurrenceWindow(start_time=o.start, end_time=o.end) for o in generator
    ]

    return RecurrencePreviewResponse(
        recurrence_rule=pattern.to_descriptor(),
        occurrences=occurrences,
        count=len(occurrences),
    )
