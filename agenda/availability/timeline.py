"""
Agenda timeline - one worker's two-week view, as a UI component would own it.

Ties the pieces together for a single timeline instance:
- load() resolves occurrences and lays them out
- begin_drag()/drag_to()/release() drive the DragSession
- a successful commit or delete triggers a fresh load()

Every load() takes a generation ticket. A response that comes back after a
newer load() started is dropped, so rapid window navigation never paints a
stale agenda. A failed fetch keeps the previous layout and records the error.
"""

import logging
import threading
from dataclasses import dataclass
from datetime import date

from agenda import config
from agenda.availability.drag import CommitOutcome, DragPreview, DragSession, GestureType
from agenda.availability.layout import TimelineLayout, bar_geometry, layout_occurrences
from agenda.availability.resolver import AvailabilityResolver
from agenda.errors import CommitError, FetchError
from agenda.intervals import IntervalKind, Occurrence

logger = logging.getLogger(__name__)


class FetchTracker:
    """Monotonic generation counter; only the newest ticket is current."""

    def __init__(self):
        self._lock = threading.Lock()
        self._latest = 0

    def start(self) -> int:
        with self._lock:
            self._latest += 1
            return self._latest

    def is_current(self, ticket: int) -> bool:
        with self._lock:
            return ticket == self._latest


@dataclass(frozen=True)
class BarView:
    """Everything the presentation layer needs to draw one bar."""

    id: str
    original_id: str
    title: str
    kind: IntervalKind
    track: int
    left_pct: float
    width_pct: float
    has_overlap: bool
    overlap_titles: tuple[str, ...]
    current_start: date
    current_end: date
    is_dragging: bool
    editable: bool
    can_support: bool


class AgendaTimeline:
    def __init__(
        self,
        store,
        resolver: AvailabilityResolver | None = None,
        window_days: int | None = None,
        width_px: float | None = None,
    ):
        self.store = store
        self.resolver = resolver or AvailabilityResolver(store)
        self.window_days = window_days or config.WINDOW_DAYS
        width = width_px or config.TIMELINE_WIDTH_PX
        self.session = DragSession(self._commit_dates, pixels_per_day=width / self.window_days)

        self.worker_id: str | None = None
        self.window_start: date | None = None
        self.occurrences: list[Occurrence] = []
        self.layout: TimelineLayout | None = None
        self.error: str | None = None
        self.loading = False

        self._tracker = FetchTracker()
        self._apply_lock = threading.Lock()

    # -------------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------------

    def load(self, worker_id: str, window_start: date) -> TimelineLayout | None:
        """
        Fetch and lay out worker_id's agenda from window_start.

        Returns the layout now on screen (the previous one on failure or
        when this response turned out to be stale).
        """
        ticket = self._tracker.start()
        self.loading = True
        try:
            try:
                occurrences = self.resolver.resolve(worker_id, window_start, self.window_days)
            except FetchError as e:
                if self._tracker.is_current(ticket):
                    self.error = str(e)
                return self.layout

            layout = layout_occurrences(occurrences, window_start, self.window_days)

            with self._apply_lock:
                if not self._tracker.is_current(ticket):
                    logger.debug("Dropping stale agenda response for %s (ticket %d)", worker_id, ticket)
                    return self.layout
                self.worker_id = worker_id
                self.window_start = window_start
                self.occurrences = occurrences
                self.layout = layout
                self.error = None
            return layout
        finally:
            if self._tracker.is_current(ticket):
                self.loading = False

    def reload(self) -> TimelineLayout | None:
        if self.worker_id is None or self.window_start is None:
            return self.layout
        return self.load(self.worker_id, self.window_start)

    # -------------------------------------------------------------------------
    # Rendering
    # -------------------------------------------------------------------------

    def find(self, occurrence_id: str) -> Occurrence | None:
        for occ in self.occurrences:
            if occ.id == occurrence_id:
                return occ
        return None

    def bars(self) -> list[BarView]:
        """Bars in layout order, with the live drag candidate applied."""
        if self.layout is None:
            return []

        views = []
        for item in self.layout.items:
            occ = item.occurrence
            preview: DragPreview = self.session.preview_for(occ)
            if preview.is_dragging:
                left, width = bar_geometry(
                    preview.current_start, preview.current_end, self.layout.window_start, self.window_days
                )
            else:
                left, width = item.left_pct, item.width_pct
            views.append(
                BarView(
                    id=occ.id,
                    original_id=occ.original_id,
                    title=occ.title,
                    kind=occ.kind,
                    track=item.track,
                    left_pct=left,
                    width_pct=width,
                    has_overlap=item.has_overlap,
                    overlap_titles=item.overlap_titles,
                    current_start=preview.current_start,
                    current_end=preview.current_end,
                    is_dragging=preview.is_dragging,
                    editable=occ.is_editable and not self.session.is_pending(occ.original_id),
                    can_support=occ.can_support,
                )
            )
        return views

    # -------------------------------------------------------------------------
    # Gestures
    # -------------------------------------------------------------------------

    def begin_drag(self, occurrence_id: str, gesture: GestureType | str, pointer_x: float) -> bool:
        occ = self.find(occurrence_id)
        if occ is None:
            return False
        return self.session.begin(occ, gesture, pointer_x)

    def drag_to(self, pointer_x: float) -> DragPreview | None:
        return self.session.update(pointer_x)

    def cancel_drag(self) -> None:
        self.session.cancel()

    def release(self) -> CommitOutcome | None:
        outcome = self.session.release()
        if outcome is not None and outcome.committed:
            self.reload()
        return outcome

    def delete(self, occurrence_id: str) -> bool:
        """Delete the personal task behind an occurrence. Bookings are read-only here."""
        occ = self.find(occurrence_id)
        if occ is None or occ.kind != IntervalKind.PERSONAL_TASK:
            return False
        try:
            self.store.delete_personal_task(occ.original_id)
        except CommitError as e:
            logger.warning(
                "Delete of %s failed: %s", occ.original_id, e, extra={"occurrence_id": occ.original_id}
            )
            self.error = str(e)
            return False
        self.reload()
        return True

    def _commit_dates(self, original_id: str, start: date, end: date) -> None:
        self.store.update_personal_task(
            original_id,
            {"start_date": start.isoformat(), "end_date": end.isoformat()},
        )
