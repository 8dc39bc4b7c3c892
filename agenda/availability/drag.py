"""
Drag/Resize Session - optimistic date editing on the agenda timeline.

State machine:

    IDLE --begin()--> DRAGGING --release()--> COMMITTING --> IDLE
                          |
                          +------cancel()----------------> IDLE

Gestures:
- move:          both endpoints shift by the pointer offset
- resize-start:  left edge moves; may not pass the original end
- resize-end:    right edge moves; may not precede the original start

Only fixed-range personal tasks are draggable. Bookings and recurring
entries are read-only. One gesture at a time per session; a new gesture
cannot start until the previous commit has returned, and a record whose
commit is in flight reports itself as pending.

On release the candidate range is normalized to whole days and committed
once through on_commit(original_id, start, end). An unchanged range makes no
call. A CommitError discards the preview; the last server state stays
authoritative until the next fetch.
"""

import logging
import math
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from enum import StrEnum

from agenda.errors import CommitError, ValidationError
from agenda.intervals import Occurrence

logger = logging.getLogger(__name__)


class GestureType(StrEnum):
    MOVE = "move"
    RESIZE_START = "resize-start"
    RESIZE_END = "resize-end"


class DragPhase(StrEnum):
    IDLE = "idle"
    DRAGGING = "dragging"
    COMMITTING = "committing"


@dataclass
class DragState:
    gesture: GestureType
    original_id: str
    occurrence_id: str
    initial_x: float
    initial_start: date
    initial_end: date
    current_start: date
    current_end: date


@dataclass(frozen=True)
class DragPreview:
    """Live dates the presentation layer should draw for one occurrence."""

    current_start: date
    current_end: date
    is_dragging: bool


@dataclass
class CommitOutcome:
    original_id: str
    start: date
    end: date
    changed: bool
    committed: bool
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _as_day(value) -> date:
    return value.date() if isinstance(value, datetime) else value


def days_offset(delta_px: float, pixels_per_day: float) -> int:
    """Pointer delta to whole days; halves round up, as browsers' Math.round does."""
    return math.floor(delta_px / pixels_per_day + 0.5)


class DragSession:
    """
    One timeline's drag/resize gesture handler.

    Args:
        on_commit: callable(original_id, start, end). Raises CommitError on failure.
        pixels_per_day: width of one day column in pointer units.
    """

    def __init__(self, on_commit: Callable[[str, date, date], None], pixels_per_day: float):
        if pixels_per_day <= 0:
            raise ValidationError(f"pixels_per_day must be positive, got {pixels_per_day!r}")
        self.on_commit = on_commit
        self.pixels_per_day = pixels_per_day
        self.phase = DragPhase.IDLE
        self.state: DragState | None = None
        # Ids whose on_commit call is in flight. Only observable from inside
        # that call (a re-entrant render) or from another thread; begin() is
        # already refused by the COMMITTING phase meanwhile.
        self._pending: set[str] = set()

    @property
    def is_dragging(self) -> bool:
        return self.phase == DragPhase.DRAGGING

    def is_pending(self, original_id: str) -> bool:
        return original_id in self._pending

    def begin(self, occurrence: Occurrence, gesture: GestureType | str, pointer_x: float) -> bool:
        """
        Start a gesture on an occurrence. Returns False when the gesture is
        refused (read-only item, another gesture active, commit pending).
        """
        gesture = GestureType(gesture)
        if self.phase != DragPhase.IDLE:
            return False
        if not occurrence.is_editable:
            return False

        self.state = DragState(
            gesture=gesture,
            original_id=occurrence.original_id,
            occurrence_id=occurrence.id,
            initial_x=pointer_x,
            initial_start=occurrence.actual_start,
            initial_end=occurrence.actual_end,
            current_start=occurrence.actual_start,
            current_end=occurrence.actual_end,
        )
        self.phase = DragPhase.DRAGGING
        return True

    def update(self, pointer_x: float) -> DragPreview | None:
        """Track the pointer. Rejected resize steps keep the last valid edge."""
        if self.phase != DragPhase.DRAGGING or self.state is None:
            return None

        st = self.state
        shift = timedelta(days=days_offset(pointer_x - st.initial_x, self.pixels_per_day))

        if st.gesture == GestureType.MOVE:
            st.current_start = st.initial_start + shift
            st.current_end = st.initial_end + shift
        elif st.gesture == GestureType.RESIZE_START:
            new_start = st.initial_start + shift
            if new_start <= st.initial_end:
                st.current_start = new_start
        elif st.gesture == GestureType.RESIZE_END:
            new_end = st.initial_end + shift
            if new_end >= st.initial_start:
                st.current_end = new_end

        return DragPreview(st.current_start, st.current_end, True)

    def cancel(self) -> None:
        """Abandon the gesture without committing."""
        if self.state is not None:
            self.state.current_start = self.state.initial_start
            self.state.current_end = self.state.initial_end
        self._reset()

    def release(self) -> CommitOutcome | None:
        """End the gesture and commit the new range if it changed."""
        if self.phase != DragPhase.DRAGGING or self.state is None:
            return None

        st = self.state
        self.phase = DragPhase.COMMITTING

        start = _as_day(st.current_start)
        end = _as_day(st.current_end)
        if end < start:
            end = start

        if start == _as_day(st.initial_start) and end == _as_day(st.initial_end):
            self._reset()
            return CommitOutcome(st.original_id, start, end, changed=False, committed=False)

        self._pending.add(st.original_id)
        try:
            self.on_commit(st.original_id, start, end)
        except CommitError as e:
            logger.warning(
                "Commit of %s failed, keeping %s..%s: %s",
                st.original_id,
                st.initial_start.isoformat(),
                st.initial_end.isoformat(),
                e,
                extra={"occurrence_id": st.original_id},
            )
            outcome = CommitOutcome(st.original_id, start, end, changed=True, committed=False, error=str(e))
        else:
            outcome = CommitOutcome(st.original_id, start, end, changed=True, committed=True)
        finally:
            self._pending.discard(st.original_id)
            self._reset()

        return outcome

    def preview_for(self, occurrence: Occurrence) -> DragPreview:
        """Dates to draw for an occurrence: live candidate if it is being dragged."""
        st = self.state
        if self.is_dragging and st is not None and st.original_id == occurrence.original_id:
            return DragPreview(st.current_start, st.current_end, True)
        return DragPreview(occurrence.start, occurrence.end, False)

    def _reset(self) -> None:
        self.state = None
        self.phase = DragPhase.IDLE
