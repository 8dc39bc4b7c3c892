"""
Availability Resolver - everything on one worker's agenda for a window.

Merges the worker's personal tasks and bookings, normalizes both into
Intervals and expands them into per-window Occurrences. The two sources are
NOT deduplicated: a personal task and a booking on the same days are both
surfaced. Whether that is a problem is the Conflict Detector's call.

Fetch failures propagate as FetchError; malformed rows are logged and
skipped. No retry here; the caller decides what to show (the timeline keeps
its last good layout).
"""

import logging
from datetime import date, timedelta

from agenda import config
from agenda.errors import FetchError, ValidationError
from agenda.intervals import (
    Interval,
    Occurrence,
    expand_occurrences,
    interval_from_booking,
    interval_from_personal_task,
    normalize_rows,
)
from agenda.observability import RequestContext

logger = logging.getLogger(__name__)


def window_bounds(window_start: date, window_length_days: int) -> tuple[date, date]:
    """[start, start + N - 1]. N must be >= 1."""
    if not isinstance(window_length_days, int) or window_length_days < 1:
        raise ValidationError(f"Window length must be a positive number of days, got {window_length_days!r}")
    try:
        return window_start, window_start + timedelta(days=window_length_days - 1)
    except OverflowError as e:
        raise ValidationError(f"Window of {window_length_days} days from {window_start} is out of range") from e


class AvailabilityResolver:
    """
    Resolve a worker's agenda from the persistence collaborator.

    The store must provide:
        fetch_personal_tasks(worker_id, start, end) -> list[dict]
            (date-range overlap OR recurring)
        fetch_bookings(worker_id, start, end) -> list[dict]
            (date-range overlap, joined with tasks)
    """

    def __init__(self, store):
        self.store = store

    def fetch_intervals(self, worker_id: str, window_start: date, window_end: date) -> list[Interval]:
        """Fetch and normalize both sources. Personal tasks first, then bookings."""
        try:
            personal_rows = self.store.fetch_personal_tasks(worker_id, window_start, window_end)
            booking_rows = self.store.fetch_bookings(worker_id, window_start, window_end)
        except FetchError as e:
            logger.error(
                "Agenda fetch failed for %s: %s",
                worker_id,
                e,
                extra={"table": e.table},
            )
            raise

        intervals = normalize_rows(personal_rows, interval_from_personal_task, "personal_tasks")
        intervals += normalize_rows(
            booking_rows, lambda r: interval_from_booking(r, owner_id=worker_id), "bookings"
        )
        return intervals

    def resolve(
        self,
        worker_id: str,
        window_start: date,
        window_length_days: int | None = None,
    ) -> list[Occurrence]:
        """
        All occurrences on worker_id's agenda in the window, ordered by start.

        Ties keep source order (personal tasks before bookings).

        Raises:
            ValidationError: window length < 1
            FetchError: store read failed
        """
        if window_length_days is None:
            window_length_days = config.WINDOW_DAYS
        start, end = window_bounds(window_start, window_length_days)

        occurrences: list[Occurrence] = []
        with RequestContext(worker_id=worker_id):
            for interval in self.fetch_intervals(worker_id, start, end):
                occurrences.extend(expand_occurrences(interval, start, end))

            occurrences.sort(key=lambda occ: occ.start)
            logger.debug(
                "Resolved %d occurrences for %s in %s..%s",
                len(occurrences),
                worker_id,
                start.isoformat(),
                end.isoformat(),
            )
        return occurrences
