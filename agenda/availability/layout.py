"""
Track Layout Engine - stack overlapping agenda items into lanes.

Given every occurrence shown on one timeline, assign each a track (vertical
lane) so that no two items on the same track share a day, using the fewest
tracks possible:

    1. sort by start, ties by longer duration first
    2. place each item on the first track it does not collide with,
       opening a new track when none admits it

This is greedy interval-graph colouring; the track count equals the maximum
number of items covering any single day.

Independently of tracks, every item also gets the full set of other items it
overlaps, for the "conflicting requests" badge.

Pure function of its inputs, so callers may memoize it freely.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date

from agenda import config
from agenda.availability.conflicts import ranges_collide
from agenda.intervals import Occurrence

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlacedOccurrence:
    """Rendering-facing view of one occurrence."""

    occurrence: Occurrence
    track: int
    left_pct: float
    width_pct: float
    overlap_ids: tuple[str, ...] = ()
    overlap_titles: tuple[str, ...] = ()

    @property
    def id(self) -> str:
        return self.occurrence.id

    @property
    def has_overlap(self) -> bool:
        return bool(self.overlap_ids)


@dataclass
class TimelineLayout:
    window_start: date
    window_days: int
    items: list[PlacedOccurrence] = field(default_factory=list)
    track_count: int = 0

    def by_id(self) -> dict[str, PlacedOccurrence]:
        return {item.id: item for item in self.items}

    def canvas_height(
        self,
        row_height: int = config.ROW_HEIGHT_PX,
        padding: int = config.CANVAS_PADDING_PX,
    ) -> int:
        """Pixel height needed to show every track (at least one row)."""
        return max(self.track_count, 1) * row_height + padding


def bar_geometry(start: date, end: date, window_start: date, window_days: int) -> tuple[float, float]:
    """(left %, width %) of a bar on a window_days-column grid."""
    column = 100.0 / window_days
    offset = (start - window_start).days
    duration = (end - start).days + 1
    return offset * column, duration * column


def _sort_key(occ: Occurrence):
    return (occ.start, -(occ.end - occ.start).days)


def assign_tracks(occurrences: Iterable[Occurrence]) -> tuple[list[tuple[Occurrence, int]], int]:
    """
    Greedy track assignment.

    Returns ([(occurrence, track), ...] in placement order, track count).
    """
    ordered = sorted(occurrences, key=_sort_key)
    tracks: list[list[Occurrence]] = []
    placed: list[tuple[Occurrence, int]] = []

    for occ in ordered:
        for index, lane in enumerate(tracks):
            if not any(ranges_collide(occ.start, occ.end, other.start, other.end) for other in lane):
                lane.append(occ)
                placed.append((occ, index))
                break
        else:
            tracks.append([occ])
            placed.append((occ, len(tracks) - 1))

    return placed, len(tracks)


def overlap_sets(occurrences: list[Occurrence]) -> list[list[Occurrence]]:
    """For each occurrence (same order), every *other* occurrence it overlaps."""
    result = []
    for i, occ in enumerate(occurrences):
        result.append(
            [
                other
                for j, other in enumerate(occurrences)
                if i != j and ranges_collide(occ.start, occ.end, other.start, other.end)
            ]
        )
    return result


def layout_occurrences(
    occurrences: Iterable[Occurrence],
    window_start: date,
    window_days: int | None = None,
) -> TimelineLayout:
    """
    Lay out occurrences for a window_days-wide timeline starting at window_start.

    Items come back in placement order (start, then longest first).
    """
    if window_days is None:
        window_days = config.WINDOW_DAYS

    placed, track_count = assign_tracks(occurrences)
    ordered = [occ for occ, _ in placed]
    conflicts = overlap_sets(ordered)

    items = []
    for (occ, track), others in zip(placed, conflicts, strict=True):
        left, width = bar_geometry(occ.start, occ.end, window_start, window_days)
        items.append(
            PlacedOccurrence(
                occurrence=occ,
                track=track,
                left_pct=left,
                width_pct=width,
                overlap_ids=tuple(o.id for o in others),
                overlap_titles=tuple(o.title for o in others),
            )
        )

    logger.debug("Laid out %d occurrences on %d tracks", len(items), track_count)
    return TimelineLayout(
        window_start=window_start,
        window_days=window_days,
        items=items,
        track_count=track_count,
    )
