"""Occurrence generation for recurring appointments.

Given the template (anchor) appointment window and a validated
``RecurrencePattern``, ``OccurrenceGenerator`` lazily yields the windows of the
*child* occurrences of the series. The anchor itself is the series root and is
never yielded.

Generation always terminates. It stops on the first of:

- the series reaching ``count`` occurrences (the anchor counts as the first),
- a candidate starting after ``until``,
- ``SAFETY_CAP`` loop iterations.

The safety cap exists for filter combinations that never line up with the
stepped cadence (monthly steps on the 30th filtered by ``bymonthday=[31]``).
Reaching it truncates silently; whatever was accepted so far is the result.
"""

import logging
from datetime import datetime, timedelta
from typing import Iterator

from dateutil.relativedelta import relativedelta
from pydantic import BaseModel

from appointments.recurrence import Frequency, RecurrencePattern, align_until

logger = logging.getLogger(__name__)

SAFETY_CAP = 365
DEFAULT_COUNT = 52
DEFAULT_HORIZON = timedelta(days=365)


class Occurrence(BaseModel):
    """A concrete time window of one generated occurrence.

    Args:
        start: Occurrence start.
        end: Occurrence end.
    """

    model_config = {"frozen": True}

    start: datetime
    end: datetime

    @property
    def duration(self) -> timedelta:
        return self.end - self.start


class OccurrenceGenerator:
    """Restartable, finite iterable of child occurrence windows.

    Each call to ``iter()`` starts a fresh pass from the anchor, so the same
    generator can be consumed more than once with identical results.

    Month and year steps are measured from the anchor (anchor + k steps) rather
    than from the previous occurrence. A day that does not exist in the target
    month clamps to that month's last day: Jan 31 stepped by one month gives
    Feb 29 (or 28), then Mar 31, Apr 30, and so on.

    Args:
        anchor_start: Start of the template appointment.
        anchor_end: End of the template appointment.
        pattern: Validated recurrence pattern.

    Raises:
        ValueError: If anchor_end is not after anchor_start.
    """

    def __init__(
        self,
        anchor_start: datetime,
        anchor_end: datetime,
        pattern: RecurrencePattern,
    ) -> None:
        if anchor_end <= anchor_start:
            raise ValueError("Anchor end must be after anchor start")
        self.anchor_start = anchor_start
        self.anchor_end = anchor_end
        self.pattern = pattern

    @property
    def duration(self) -> timedelta:
        """Duration shared by every occurrence of the series."""
        return self.anchor_end - self.anchor_start

    @property
    def max_children(self) -> int:
        """Maximum number of child occurrences (series count minus the anchor)."""
        count = self.pattern.count if self.pattern.count is not None else DEFAULT_COUNT
        return max(count - 1, 0)

    @property
    def until(self) -> datetime:
        """Inclusive upper bound on occurrence starts."""
        if self.pattern.until is None:
            return self.anchor_start + DEFAULT_HORIZON
        return align_until(self.pattern.until, self.anchor_start)

    def candidate(self, step: int) -> datetime:
        """Return the cursor position after ``step`` steps from the anchor.

        Args:
            step: Number of steps (1 for the first candidate after the anchor).

        Returns:
            Candidate start datetime.
        """
        amount = self.pattern.interval * step
        frequency = self.pattern.frequency
        if frequency == Frequency.DAILY:
            return self.anchor_start + timedelta(days=amount)
        elif frequency == Frequency.WEEKLY:
            return self.anchor_start + timedelta(weeks=amount)
        elif frequency == Frequency.MONTHLY:
            return self.anchor_start + relativedelta(months=amount)
        elif frequency == Frequency.YEARLY:
            return self.anchor_start + relativedelta(years=amount)
        raise ValueError(f"Unsupported frequency: {frequency}")

    def __iter__(self) -> Iterator[Occurrence]:
        limit = self.max_children
        until = self.until
        duration = self.duration
        accepted = 0

        for step in range(1, SAFETY_CAP + 1):
            if accepted >= limit:
                return
            start = self.candidate(step)
            if start > until:
                return
            if self.pattern.matches(start):
                yield Occurrence(start=start, end=start + duration)
                accepted += 1

        if accepted < limit:
            logger.debug(
                f"Occurrence generation stopped at the {SAFETY_CAP}-iteration cap "
                f"with {accepted} of {limit} occurrences for {self.pattern.to_descriptor()}"
            )


def generate_occurrences(
    anchor_start: datetime, anchor_end: datetime, pattern: RecurrencePattern
) -> list[Occurrence]:
    """Generate every child occurrence window of a series.

    Args:
        anchor_start: Start of the template appointment.
        anchor_end: End of the template appointment.
        pattern: Validated recurrence pattern.

    Returns:
        Ordered list of occurrence windows, possibly empty.
    """
    return list(OccurrenceGenerator(anchor_start, anchor_end, pattern))
