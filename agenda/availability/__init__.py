"""
Availability module - who is free, and how their agenda is drawn.

Objects:
- AvailabilityResolver (worker + window -> occurrences)
- ConflictDetector / evaluate_eligibility (is the worker committed elsewhere?)
- layout_occurrences (occurrences -> non-colliding tracks)
- DragSession (optimistic move/resize with a single commit)
- AgendaTimeline (one worker's view: load, drag, delete)
- OccupancyCalculator (monthly heatmap)

Invariants:
- Two ranges overlap iff they share a calendar day
- Items on the same track never overlap
- Bookings and recurring entries are never draggable
- A commit happens at most once per gesture, and never for an unchanged range
"""

from .conflicts import (
    AssignmentConflict,
    ConflictDetector,
    ConflictReport,
    Eligibility,
    can_support_now,
    evaluate_eligibility,
    overlaps,
    ranges_collide,
    ranges_overlap,
)
from .drag import CommitOutcome, DragPhase, DragPreview, DragSession, GestureType
from .layout import PlacedOccurrence, TimelineLayout, assign_tracks, layout_occurrences
from .occupancy import HeatmapDay, Occupancy, OccupancyCalculator
from .resolver import AvailabilityResolver, window_bounds
from .timeline import AgendaTimeline, BarView, FetchTracker

__all__ = [
    "AvailabilityResolver",
    "window_bounds",
    "ConflictDetector",
    "ConflictReport",
    "AssignmentConflict",
    "Eligibility",
    "can_support_now",
    "evaluate_eligibility",
    "overlaps",
    "ranges_overlap",
    "ranges_collide",
    "layout_occurrences",
    "assign_tracks",
    "PlacedOccurrence",
    "TimelineLayout",
    "DragSession",
    "DragPhase",
    "DragPreview",
    "GestureType",
    "CommitOutcome",
    "AgendaTimeline",
    "BarView",
    "FetchTracker",
    "OccupancyCalculator",
    "Occupancy",
    "HeatmapDay",
]
