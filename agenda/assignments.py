"""
Booking assignment - (re)book a set of workers onto one task.

Every worker starts on the task's start date and stays for the number of
days requested, clamped to the task span. Saving replaces the task's
bookings wholesale: the old set is deleted, the new one inserted.
"""

import logging
from dataclasses import dataclass
from datetime import date, timedelta

from agenda.errors import ValidationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WorkerAssignment:
    worker_id: str
    days: int


def task_span_days(start: date, end: date) -> int:
    if end < start:
        raise ValidationError(f"Task end {end.isoformat()} is before start {start.isoformat()}")
    return (end - start).days + 1


def build_bookings(
    task_id: str,
    owner_id: str | None,
    start: date,
    end: date,
    assignments: list[WorkerAssignment],
) -> list[dict]:
    """Booking rows for assignments, one per worker, days clamped to [1, span]."""
    span = task_span_days(start, end)

    seen: set[str] = set()
    rows = []
    for assignment in assignments:
        if assignment.worker_id in seen:
            raise ValidationError(f"Worker {assignment.worker_id} assigned twice to task {task_id}")
        seen.add(assignment.worker_id)

        days = min(max(assignment.days, 1), span)
        rows.append(
            {
                "task_id": task_id,
                "worker_id": assignment.worker_id,
                "owner_id": owner_id,
                "start_date": start.isoformat(),
                "end_date": (start + timedelta(days=days - 1)).isoformat(),
                "is_active": True,
            }
        )
    return rows


def replace_task_bookings(
    store,
    task_id: str,
    owner_id: str | None,
    start: date,
    end: date,
    assignments: list[WorkerAssignment],
) -> list[dict]:
    """
    Replace every booking on task_id with the given assignments.

    Validation happens before anything is deleted. Raises CommitError if
    either the delete or the insert fails.
    """
    rows = build_bookings(task_id, owner_id, start, end, assignments)

    store.delete_task_bookings(task_id)
    created = store.insert_bookings(rows) if rows else []
    logger.info(
        "Booked %d workers on task %s",
        len(rows),
        task_id,
        extra={"task_id": task_id},
    )
    return created
