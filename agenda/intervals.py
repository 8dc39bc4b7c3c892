"""
Interval Model - the single shape every agenda entry is normalized into.

Two raw record shapes come back from the store:
- personal_tasks rows (self-declared busy/available blocks, optionally weekly)
- bookings rows joined with tasks(title, description, department, priority, status)

Both become an Interval immediately after fetch. Nothing downstream
(resolver, conflict detector, layout, drag session) sees raw rows.

All dates are whole days; ranges are inclusive of both endpoints.
Weekday numbering is Monday=1 .. Sunday=7.
"""

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field, replace
from datetime import date, datetime, timedelta
from enum import StrEnum
from typing import Any

from agenda.errors import ValidationError

logger = logging.getLogger(__name__)


ONE_DAY = timedelta(days=1)


class IntervalKind(StrEnum):
    PERSONAL_TASK = "personal"
    BOOKING = "project_task"


# =============================================================================
# DATE HELPERS
# =============================================================================


def parse_day(value: Any, field_name: str = "date") -> date:
    """
    Coerce a store value to a calendar day.

    Accepts date, datetime, 'YYYY-MM-DD' or a full ISO timestamp
    ('2024-03-01T00:00:00.000Z'); time of day is dropped.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and len(value) >= 10:
        try:
            return date.fromisoformat(value[:10])
        except ValueError:
            pass
    raise ValidationError(f"Invalid {field_name}: {value!r}")


def weekday_number(day: date) -> int:
    """Monday=1 .. Sunday=7."""
    return day.isoweekday()


def iter_days(start: date, end: date):
    """Yield every day in [start, end]."""
    day = start
    while day <= end:
        yield day
        day += ONE_DAY


# =============================================================================
# INTERVAL
# =============================================================================


@dataclass(frozen=True)
class Interval:
    """A time-bounded, ownable activity: a personal task or a booking."""

    id: str
    owner_id: str | None
    kind: IntervalKind
    start: date
    end: date
    title: str = ""
    description: str | None = None
    status: str = "active"
    is_recurring: bool = False
    recurring_days: frozenset[int] = field(default_factory=frozenset)
    can_support: bool = False
    is_full_day: bool = True

    # Booking metadata (from the tasks join)
    task_id: str | None = None
    priority: int | None = None
    department: str | None = None
    task_status: str | None = None
    is_active: bool = True

    def __post_init__(self):
        if not isinstance(self.recurring_days, frozenset):
            object.__setattr__(self, "recurring_days", frozenset(self.recurring_days or ()))

        if self.kind == IntervalKind.BOOKING:
            if self.can_support:
                raise ValidationError(f"Booking {self.id} cannot be marked can_support")
            if self.is_recurring:
                raise ValidationError(f"Booking {self.id} cannot be recurring")

        if not self.is_recurring and self.end < self.start:
            raise ValidationError(
                f"Interval {self.id}: end {self.end.isoformat()} is before start {self.start.isoformat()}"
            )

        if self.is_recurring:
            bad = [d for d in self.recurring_days if not isinstance(d, int) or not 1 <= d <= 7]
            if bad:
                raise ValidationError(f"Interval {self.id}: recurring days out of range 1..7: {sorted(bad)}")

    @property
    def is_personal(self) -> bool:
        return self.kind == IntervalKind.PERSONAL_TASK

    @property
    def duration_days(self) -> int:
        return (self.end - self.start).days + 1

    def occurs_on(self, day: date) -> bool:
        """True if this interval covers the given day (pattern-aware for recurring)."""
        if not self.start <= day <= self.end:
            return False
        if self.is_recurring:
            return weekday_number(day) in self.recurring_days
        return True

    def with_dates(self, start: date, end: date) -> "Interval":
        return replace(self, start=start, end=end)


# =============================================================================
# OCCURRENCE
# =============================================================================


@dataclass(frozen=True)
class Occurrence:
    """
    A concrete materialization of an Interval inside a display window.

    `start`/`end` are the display dates (clipped, or the single recurring day).
    The source interval keeps the true record dates for mutation.
    """

    id: str
    interval: Interval
    start: date
    end: date

    @property
    def original_id(self) -> str:
        return self.interval.id

    @property
    def actual_start(self) -> date:
        return self.interval.start

    @property
    def actual_end(self) -> date:
        return self.interval.end

    @property
    def kind(self) -> IntervalKind:
        return self.interval.kind

    @property
    def title(self) -> str:
        return self.interval.title

    @property
    def can_support(self) -> bool:
        return self.interval.can_support

    @property
    def duration_days(self) -> int:
        return (self.end - self.start).days + 1

    @property
    def is_editable(self) -> bool:
        """Only fixed-range personal tasks can be dragged or resized."""
        return self.interval.is_personal and not self.interval.is_recurring


def expand_occurrences(interval: Interval, window_start: date, window_end: date) -> list[Occurrence]:
    """
    Materialize an interval inside [window_start, window_end].

    Non-recurring: at most one occurrence, clipped to the window.
    Recurring: one single-day occurrence per matching weekday, limited to
    days that also fall inside the interval's own [start, end] validity window.

    Never raises; returns [] when nothing applies.
    """
    if window_end < window_start:
        return []

    if not interval.is_recurring:
        if interval.start > window_end or interval.end < window_start:
            return []
        return [
            Occurrence(
                id=interval.id,
                interval=interval,
                start=max(interval.start, window_start),
                end=min(interval.end, window_end),
            )
        ]

    if not interval.recurring_days:
        return []

    lo = max(window_start, interval.start)
    hi = min(window_end, interval.end)
    return [
        Occurrence(id=f"{interval.id}-{day.isoformat()}", interval=interval, start=day, end=day)
        for day in iter_days(lo, hi)
        if weekday_number(day) in interval.recurring_days
    ]


# =============================================================================
# BOUNDARY NORMALIZATION
# =============================================================================


def _as_bool(value: Any, default: bool = False) -> bool:
    if value is None:
        return default
    return bool(value)


def interval_from_personal_task(record: dict) -> Interval:
    """Normalize a personal_tasks row."""
    is_recurring = _as_bool(record.get("is_recurring"))
    return Interval(
        id=str(record["id"]),
        owner_id=record.get("user_id"),
        kind=IntervalKind.PERSONAL_TASK,
        start=parse_day(record.get("start_date"), "start_date"),
        end=parse_day(record.get("end_date"), "end_date"),
        title=record.get("title") or "",
        description=record.get("description"),
        status="active",
        is_recurring=is_recurring,
        recurring_days=frozenset(record.get("recurring_days") or ()) if is_recurring else frozenset(),
        can_support=_as_bool(record.get("can_support")),
        is_full_day=_as_bool(record.get("is_full_day"), default=True),
    )


def interval_from_booking(record: dict, owner_id: str | None = None) -> Interval:
    """
    Normalize a bookings row joined with its task.

    The join comes back as `tasks` (object, or a one-element list depending
    on the relationship cardinality the backend infers).
    """
    task = record.get("tasks") or record.get("task") or {}
    if isinstance(task, list):
        task = task[0] if task else {}

    priority = task.get("priority")
    return Interval(
        id=str(record["id"]),
        owner_id=record.get("worker_id") or owner_id,
        kind=IntervalKind.BOOKING,
        start=parse_day(record.get("start_date"), "start_date"),
        end=parse_day(record.get("end_date"), "end_date"),
        title=task.get("title") or "",
        description=task.get("description"),
        status="booked",
        can_support=False,
        is_full_day=True,
        task_id=record.get("task_id"),
        priority=int(priority) if priority is not None else None,
        department=task.get("department"),
        task_status=task.get("status"),
        is_active=_as_bool(record.get("is_active"), default=True),
    )


def normalize_rows(rows: Iterable[dict], normalize: Callable[[dict], Interval], table: str) -> list[Interval]:
    """
    Normalize store rows, skipping the ones that cannot form an Interval.

    A malformed row (missing id, unparseable or inverted dates, weekdays out
    of range) is logged and dropped; the rest of the fetch is still usable.
    """
    intervals = []
    for row in rows:
        try:
            intervals.append(normalize(row))
        except (ValueError, KeyError, TypeError) as e:
            logger.warning(
                "Skipping malformed %s row %s: %s",
                table,
                row.get("id") if isinstance(row, dict) else row,
                e,
                extra={"table": table},
            )
    return intervals
