"""Recurrence pattern validation and canonical encoding.

A raw pattern arrives as a loosely typed payload (``RecurringPatternInput``
or a plain dict). ``validate_pattern`` turns it into a ``RecurrencePattern``:
an immutable model whose filter sets are sorted and de-duplicated, so that two
logically equal patterns always encode to the same descriptor string, e.g.
``FREQ=WEEKLY;INTERVAL=1;BYDAY=MO``. The descriptor is what gets persisted on
every record of a series.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, Field, ValidationError, field_validator

from appointments.appointment import match_awareness
from appointments.exceptions import InvalidPatternError

# Weekday indices follow the 0 = Sunday convention used by stored descriptors.
WEEKDAY_CODES = ("SU", "MO", "TU", "WE", "TH", "FR", "SA")
WEEKDAY_NAMES = (
    "sunday", "monday", "tuesday", "wednesday", "thursday", "friday", "saturday"
)

MAX_INTERVAL = 365
MAX_COUNT = 365

UNTIL_FORMAT = "%Y%m%dT%H%M%S"


class Frequency(str, Enum):
    """Step unit of a recurrence pattern."""

    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"
    YEARLY = "YEARLY"


def _weekday_index(value: Any) -> Any:
    """Map a weekday code or name to its 0 = Sunday index.

    Integers and unrecognised values are returned unchanged so that range
    validation reports them.
    """
    if isinstance(value, str):
        key = value.strip().lower()
        if key.upper() in WEEKDAY_CODES:
            return WEEKDAY_CODES.index(key.upper())
        if key in WEEKDAY_NAMES:
            return WEEKDAY_NAMES.index(key)
    return value


def _check_range(values: Optional[list[int]], low: int, high: int, label: str):
    if not values:
        return values
    for value in values:
        if value < low or value > high:
            raise ValueError(f"{label} value {value} is outside {low}-{high}")
    return values


class RecurringPatternInput(BaseModel):
    """Raw recurrence pattern as supplied by a caller.

    Args:
        frequency: DAILY, WEEKLY, MONTHLY or YEARLY (case-insensitive).
        interval: Step multiplier, 1-365 (default: 1).
        byweekday: Weekdays to keep (0 = Sunday ... 6 = Saturday, or codes
            such as "MO" / names such as "monday").
        bymonthday: Days of month to keep (1-31).
        bymonth: Months to keep (1-12).
        count: Total number of occurrences in the series, anchor included.
        until: Last instant an occurrence may start at.
    """

    frequency: Frequency = Field(description="Recurrence frequency")
    interval: int = Field(
        default=1, ge=1, le=MAX_INTERVAL, description="Repeat every N periods"
    )
    byweekday: Optional[list[int]] = Field(
        default=None, description="Weekday filter (0 = Sunday)"
    )
    bymonthday: Optional[list[int]] = Field(
        default=None, description="Day-of-month filter"
    )
    bymonth: Optional[list[int]] = Field(default=None, description="Month filter")
    count: Optional[int] = Field(
        default=None, ge=1, le=MAX_COUNT, description="Total occurrences"
    )
    until: Optional[datetime] = Field(default=None, description="End of range")

    @field_validator("frequency", mode="before")
    @classmethod
    def normalize_frequency(cls, value: Any) -> Any:
        """Accept frequency names in any case."""
        if isinstance(value, str):
            return value.strip().upper()
        return value

    @field_validator("byweekday", mode="before")
    @classmethod
    def normalize_weekdays(cls, value: Any) -> Any:
        """Translate weekday codes and names into indices."""
        if isinstance(value, (list, tuple, set)):
            return [_weekday_index(day) for day in value]
        return value

    @field_validator("byweekday")
    @classmethod
    def validate_weekdays(cls, days: Optional[list[int]]) -> Optional[list[int]]:
        """Ensure every weekday index is within 0-6.

        Raises:
            ValueError: If a weekday is out of range.
        """
        return _check_range(days, 0, 6, "weekday")

    @field_validator("bymonthday")
    @classmethod
    def validate_monthdays(cls, days: Optional[list[int]]) -> Optional[list[int]]:
        """Ensure every day of month is within 1-31."""
        return _check_range(days, 1, 31, "day of month")

    @field_validator("bymonth")
    @classmethod
    def validate_months(cls, months: Optional[list[int]]) -> Optional[list[int]]:
        """Ensure every month is within 1-12."""
        return _check_range(months, 1, 12, "month")


class RecurrencePattern(BaseModel):
    """Canonical, immutable recurrence pattern.

    Only ``validate_pattern`` and ``from_descriptor`` should build these; filter
    tuples are always sorted and free of duplicates.

    Args:
        frequency: Step unit.
        interval: Step multiplier.
        byweekday: Sorted weekday filter (0 = Sunday).
        bymonthday: Sorted day-of-month filter.
        bymonth: Sorted month filter.
        count: Total occurrences in the series, anchor included.
        until: Last instant an occurrence may start at.
    """

    model_config = {"frozen": True}

    frequency: Frequency
    interval: int = 1
    byweekday: tuple[int, ...] = ()
    bymonthday: tuple[int, ...] = ()
    bymonth: tuple[int, ...] = ()
    count: Optional[int] = None
    until: Optional[datetime] = None

    def matches(self, candidate: datetime) -> bool:
        """Check a candidate start against the filters.

        Filters combine with AND; values inside one filter combine with OR.
        An empty filter imposes no constraint.

        Args:
            candidate: Candidate occurrence start.

        Returns:
            True if the candidate passes every non-empty filter.
        """
        if self.byweekday and candidate.isoweekday() % 7 not in self.byweekday:
            return False
        if self.bymonthday and candidate.day not in self.bymonthday:
            return False
        if self.bymonth and candidate.month not in self.bymonth:
            return False
        return True

    def to_descriptor(self) -> str:
        """Encode this pattern as its canonical descriptor string.

        Returns:
            Descriptor such as ``FREQ=WEEKLY;INTERVAL=2;BYDAY=MO,WE;COUNT=10``.
        """
        parts = [f"FREQ={self.frequency.value}", f"INTERVAL={self.interval}"]
        if self.byweekday:
            parts.append("BYDAY=" + ",".join(WEEKDAY_CODES[d] for d in self.byweekday))
        if self.bymonthday:
            parts.append("BYMONTHDAY=" + ",".join(str(d) for d in self.bymonthday))
        if self.bymonth:
            parts.append("BYMONTH=" + ",".join(str(m) for m in self.bymonth))
        if self.count is not None:
            parts.append(f"COUNT={self.count}")
        if self.until is not None:
            parts.append(f"UNTIL={_format_until(self.until)}")
        return ";".join(parts)

    @classmethod
    def from_descriptor(cls, descriptor: str) -> "RecurrencePattern":
        """Parse a stored descriptor back into a pattern.

        Args:
            descriptor: Descriptor produced by ``to_descriptor``.

        Returns:
            The equivalent canonical pattern.

        Raises:
            InvalidPatternError: If the descriptor is malformed.
        """
        raw: dict[str, Any] = {}
        for part in descriptor.strip().split(";"):
            if not part:
                continue
            key, sep, value = part.partition("=")
            if not sep or not value:
                raise InvalidPatternError(f"malformed component '{part}'")
            key = key.strip().upper()
            try:
                if key == "FREQ":
                    raw["frequency"] = value
                elif key == "INTERVAL":
                    raw["interval"] = int(value)
                elif key == "BYDAY":
                    raw["byweekday"] = value.split(",")
                elif key == "BYMONTHDAY":
                    raw["bymonthday"] = [int(v) for v in value.split(",")]
                elif key == "BYMONTH":
                    raw["bymonth"] = [int(v) for v in value.split(",")]
                elif key == "COUNT":
                    raw["count"] = int(value)
                elif key == "UNTIL":
                    raw["until"] = _parse_until(value)
                else:
                    raise InvalidPatternError(f"unknown component '{key}'")
            except InvalidPatternError:
                raise
            except ValueError as exc:
                raise InvalidPatternError(str(exc), field=key) from exc
        return validate_pattern(raw)


def _format_until(until: datetime) -> str:
    if until.tzinfo is None:
        return until.strftime(UNTIL_FORMAT)
    return until.astimezone(timezone.utc).strftime(UNTIL_FORMAT) + "Z"


def _parse_until(value: str) -> datetime:
    value = value.strip()
    if value.endswith("Z"):
        return datetime.strptime(value[:-1], UNTIL_FORMAT).replace(tzinfo=timezone.utc)
    return datetime.strptime(value, UNTIL_FORMAT)


def align_until(until: datetime, anchor_start: datetime) -> datetime:
    """Give ``until`` the same awareness as the anchor so they compare."""
    return match_awareness(until, anchor_start)


def _canonical(values: Optional[list[int]]) -> tuple[int, ...]:
    return tuple(sorted(set(values or ())))


PatternLike = Union[RecurringPatternInput, RecurrencePattern, dict]


def validate_pattern(
    raw: PatternLike, anchor_start: Optional[datetime] = None
) -> RecurrencePattern:
    """Validate a raw recurrence pattern into its canonical form.

    Args:
        raw: Raw pattern (model or dict).
        anchor_start: Start of the template appointment. When given, ``until``
            is aligned to its timezone awareness and must not precede it.

    Returns:
        The canonical RecurrencePattern.

    Raises:
        InvalidPatternError: If the pattern is malformed or inconsistent.
    """
    if isinstance(raw, RecurrencePattern):
        raw = raw.model_dump()
    if not isinstance(raw, RecurringPatternInput):
        try:
            raw = RecurringPatternInput.model_validate(raw)
        except ValidationError as exc:
            first = exc.errors()[0]
            field = ".".join(str(loc) for loc in first.get("loc", ())) or None
            raise InvalidPatternError(first.get("msg", str(exc)), field=field) from exc

    until = raw.until
    if until is not None and anchor_start is not None:
        until = align_until(until, anchor_start)
        if until < anchor_start:
            raise InvalidPatternError(
                "until must not precede the appointment start", field="until"
            )

    return RecurrencePattern(
        frequency=raw.frequency,
        interval=raw.interval,
        byweekday=_canonical(raw.byweekday),
        bymonthday=_canonical(raw.bymonthday),
        bymonth=_canonical(raw.bymonth),
        count=raw.count,
        until=until,
    )
