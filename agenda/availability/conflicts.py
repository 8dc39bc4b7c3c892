"""
Conflict Detector - is a worker already committed elsewhere?

Two rulesets live here:

1. Overlap predicate (closed intervals, whole days). Used by the layout
   engine, the drag session and the eligibility check. Two ranges overlap
   iff they share at least one calendar day.

2. Eligibility ("can support now") for the request builder. Only active
   bookings and fixed-range, non-support personal tasks block a worker.
   Recurring personal tasks are deliberately NOT treated as blocking.

ConflictDetector.check_assignment() builds the fuller report a manager sees
before assigning a worker: overlapping bookings, blocking personal tasks,
overload warnings and the escalation flag.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date

from agenda import config
from agenda.errors import ValidationError
from agenda.intervals import (
    ONE_DAY,
    Interval,
    interval_from_booking,
    interval_from_personal_task,
    normalize_rows,
)
from agenda.observability import RequestContext

logger = logging.getLogger(__name__)


# =============================================================================
# OVERLAP PREDICATE
# =============================================================================


def ranges_overlap(a_start: date, a_end: date, b_start: date, b_end: date) -> bool:
    """Closed-interval overlap: same day overlaps, [1,5] and [6,10] do not."""
    return a_start <= b_end and a_end >= b_start


def ranges_collide(a_start: date, a_end: date, b_start: date, b_end: date) -> bool:
    """
    Same test phrased with a one-day grace on the upper bound.

    Each end is opened by one day, so touching-but-disjoint ranges stay
    apart and same-day ranges collide. Equivalent to ranges_overlap().
    """
    return a_start < b_end + ONE_DAY and a_end + ONE_DAY > b_start


def overlaps(a, b) -> bool:
    """Overlap test for anything carrying .start/.end dates (Interval, Occurrence)."""
    return ranges_overlap(a.start, a.end, b.start, b.end)


def validate_query_range(q_start: date, q_end: date) -> None:
    if q_end < q_start:
        raise ValidationError(
            f"Query range end {q_end.isoformat()} is before start {q_start.isoformat()}"
        )


# =============================================================================
# ELIGIBILITY
# =============================================================================


@dataclass
class Eligibility:
    """Result of the "can support now" evaluation for one worker."""

    worker_id: str | None
    can_support_now: bool
    has_explicit_support: bool
    blocking_ids: list[str] = field(default_factory=list)


def _blocks(interval: Interval, q_start: date, q_end: date) -> bool:
    if interval.is_personal:
        if interval.can_support or interval.is_recurring:
            return False
    elif not interval.is_active:
        return False
    return ranges_overlap(interval.start, interval.end, q_start, q_end)


def evaluate_eligibility(
    bookings: Iterable[Interval],
    personal_tasks: Iterable[Interval],
    q_start: date,
    q_end: date,
    worker_id: str | None = None,
) -> Eligibility:
    """
    Decide whether a worker can take support work in [q_start, q_end].

    has_explicit_support is informational: the worker declared a support
    slot that is recurring or overlaps the query.
    """
    validate_query_range(q_start, q_end)

    personal = list(personal_tasks)
    blocking = [iv.id for iv in bookings if _blocks(iv, q_start, q_end)]
    blocking += [iv.id for iv in personal if _blocks(iv, q_start, q_end)]

    has_support = any(
        iv.can_support
        and (iv.is_recurring or ranges_overlap(iv.start, iv.end, q_start, q_end))
        for iv in personal
    )

    return Eligibility(
        worker_id=worker_id,
        can_support_now=not blocking,
        has_explicit_support=has_support,
        blocking_ids=blocking,
    )


def can_support_now(
    bookings: Iterable[Interval],
    personal_tasks: Iterable[Interval],
    q_start: date,
    q_end: date,
) -> bool:
    return evaluate_eligibility(bookings, personal_tasks, q_start, q_end).can_support_now


# =============================================================================
# ASSIGNMENT CONFLICT REPORT
# =============================================================================


@dataclass
class AssignmentConflict:
    type: str  # date_overlap | personal_block | overload
    message: str
    interval_id: str | None = None
    task_id: str | None = None
    title: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    priority: int | None = None
    needs_escalation: bool = False


@dataclass
class ConflictReport:
    worker_id: str
    start_date: date
    end_date: date
    conflicts: list[AssignmentConflict] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    needs_escalation: bool = False
    active_task_count: int = 0

    @property
    def has_conflicts(self) -> bool:
        return bool(self.conflicts)


class ConflictDetector:
    """
    Store-backed conflict checks for assigning a worker to a date range.

    Reads go through the persistence collaborator; FetchError propagates.
    """

    def __init__(
        self,
        store,
        overload_warning: int | None = None,
        escalation_threshold: int | None = None,
        escalation_priority: int | None = None,
    ):
        self.store = store
        self.overload_warning = (
            overload_warning if overload_warning is not None else config.OVERLOAD_WARNING_THRESHOLD
        )
        self.escalation_threshold = (
            escalation_threshold if escalation_threshold is not None else config.ESCALATION_THRESHOLD
        )
        self.escalation_priority = (
            escalation_priority if escalation_priority is not None else config.ESCALATION_PRIORITY
        )

    def eligibility(self, worker_id: str, q_start: date, q_end: date) -> Eligibility:
        """Eligibility for one worker, fetched fresh from the store."""
        validate_query_range(q_start, q_end)
        with RequestContext(worker_id=worker_id):
            profile = self.store.fetch_support_profile(worker_id)
            bookings = normalize_rows(
                profile.get("bookings", []), lambda r: interval_from_booking(r, owner_id=worker_id), "bookings"
            )
            personal = normalize_rows(
                profile.get("personal_tasks", []), interval_from_personal_task, "personal_tasks"
            )
        return evaluate_eligibility(bookings, personal, q_start, q_end, worker_id=worker_id)

    def check_assignment(
        self,
        worker_id: str,
        start: date,
        end: date,
        exclude_task_id: str | None = None,
    ) -> ConflictReport:
        """
        Report everything that stands against assigning worker_id to [start, end].

        Raises:
            ValidationError: if end < start
            FetchError: if the store read fails
        """
        validate_query_range(start, end)

        with RequestContext(worker_id=worker_id):
            bookings = normalize_rows(
                self.store.fetch_active_bookings(worker_id),
                lambda r: interval_from_booking(r, owner_id=worker_id),
                "bookings",
            )
            personal = normalize_rows(
                self.store.fetch_personal_tasks(worker_id, start, end),
                interval_from_personal_task,
                "personal_tasks",
            )

        report = ConflictReport(worker_id=worker_id, start_date=start, end_date=end)

        active = [b for b in bookings if b.is_active]
        report.active_task_count = len(active)

        for booking in active:
            if exclude_task_id and booking.task_id == exclude_task_id:
                continue
            if not ranges_overlap(booking.start, booking.end, start, end):
                continue
            report.conflicts.append(
                AssignmentConflict(
                    type="date_overlap",
                    message=(
                        f'Date overlap with "{booking.title}" '
                        f"({booking.start.isoformat()} - {booking.end.isoformat()})"
                    ),
                    interval_id=booking.id,
                    task_id=booking.task_id,
                    title=booking.title,
                    start_date=booking.start,
                    end_date=booking.end,
                    priority=booking.priority,
                )
            )

        for task in personal:
            if task.can_support or task.is_recurring:
                continue
            if not ranges_overlap(task.start, task.end, start, end):
                continue
            report.conflicts.append(
                AssignmentConflict(
                    type="personal_block",
                    message=f'Worker is busy with "{task.title}"',
                    interval_id=task.id,
                    title=task.title,
                    start_date=task.start,
                    end_date=task.end,
                )
            )

        if report.active_task_count >= self.overload_warning:
            report.warnings.append(
                f"Worker already has {report.active_task_count} active bookings"
            )
        if report.active_task_count >= self.escalation_threshold:
            report.conflicts.append(
                AssignmentConflict(
                    type="overload",
                    message=f"Worker has {report.active_task_count} active bookings; escalation may be needed",
                    needs_escalation=True,
                )
            )

        report.needs_escalation = any(c.needs_escalation for c in report.conflicts) or any(
            c.type == "date_overlap"
            and c.priority is not None
            and c.priority <= self.escalation_priority
            for c in report.conflicts
        )

        logger.debug(
            "Conflict check for %s: %d conflicts, %d warnings",
            worker_id,
            len(report.conflicts),
            len(report.warnings),
        )
        return report
