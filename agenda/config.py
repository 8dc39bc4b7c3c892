"""
Centralized configuration for the agenda core.

All values that vary by deployment belong here.
Override via environment variables where marked.
"""

import os

# ============================================================
# Backing store (PostgREST-compatible REST endpoint)
# ============================================================

REST_URL: str = os.environ.get("AGENDA_REST_URL", "http://localhost:54321")
"""Base URL of the hosted backend. Tables live under /rest/v1/."""

REST_KEY: str = os.environ.get("AGENDA_REST_KEY", "")
"""API key sent as both `apikey` and bearer token."""

HTTP_TIMEOUT: float = float(os.environ.get("AGENDA_HTTP_TIMEOUT", "15"))
"""Seconds before a store request is abandoned (surfaced as Fetch/CommitError)."""

# ============================================================
# Agenda window
# ============================================================

WINDOW_DAYS: int = int(os.environ.get("AGENDA_WINDOW_DAYS", "14"))
"""Default number of days shown on the agenda timeline."""

MAX_WINDOW_DAYS: int = int(os.environ.get("AGENDA_MAX_WINDOW_DAYS", "366"))
"""Longest window the API will lay out in one request."""

TIMELINE_WIDTH_PX: float = float(os.environ.get("AGENDA_TIMELINE_WIDTH_PX", "1400"))
"""Default pixel width of the timeline canvas, used to derive pixels-per-day."""

ROW_HEIGHT_PX: int = 90
CANVAS_PADDING_PX: int = 100

# ============================================================
# Conflict check thresholds
# ============================================================

OVERLOAD_WARNING_THRESHOLD: int = int(os.environ.get("AGENDA_OVERLOAD_WARNING", "3"))
"""Active booking count at which a worker is flagged as busy."""

ESCALATION_THRESHOLD: int = int(os.environ.get("AGENDA_ESCALATION_THRESHOLD", "5"))
"""Active booking count at which an assignment needs escalation."""

ESCALATION_PRIORITY: int = int(os.environ.get("AGENDA_ESCALATION_PRIORITY", "2"))
"""Overlapping a task at this priority or more urgent (lower number) escalates."""

# ============================================================
# Logging
# ============================================================

LOG_LEVEL: str = os.environ.get("AGENDA_LOG_LEVEL", "INFO")
