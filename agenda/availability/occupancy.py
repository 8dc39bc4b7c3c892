"""
Occupancy - how full a worker's day is, for the monthly availability heatmap.

Scoring per day (defaults, overridable in agenda/agenda.yaml):
- each active booking whose task is in a busy status: +25
- each busy (non-support) personal task occurring that day:
  +100 if full day, +50 otherwise
- capped at 100

`reason` is the title of the first contributor, bookings before personal
tasks. Support slots (can_support) never add occupancy.
"""

import calendar
import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, timedelta
from pathlib import Path

import yaml

from agenda import paths
from agenda.intervals import Interval, iter_days

logger = logging.getLogger(__name__)

# =============================================================================
# DEFAULTS
# =============================================================================

_DEFAULT_TASK_WEIGHT = 25
_DEFAULT_FULL_DAY_WEIGHT = 100
_DEFAULT_PARTIAL_DAY_WEIGHT = 50
_DEFAULT_CAP = 100
_DEFAULT_BUSY_STATUSES = ["active", "in_progress", "requested", "review"]
_DEFAULT_BUCKETS = [30, 60, 90]


@dataclass(frozen=True)
class Occupancy:
    percentage: int
    reason: str | None


@dataclass(frozen=True)
class HeatmapDay:
    day: date
    in_month: bool
    percentage: int
    reason: str | None
    level: int  # 0 (free) .. 4 (fully booked)


class OccupancyCalculator:
    """
    Day occupancy scoring.

    Loads weights from agenda/agenda.yaml; falls back to the hardcoded
    defaults if the file or a key is missing.
    """

    def __init__(self, config_path: Path | None = None):
        if config_path is None:
            config_path = paths.config_file()

        cfg = self._load_config(config_path).get("occupancy", {}) or {}
        self.task_weight: int = cfg.get("task_weight", _DEFAULT_TASK_WEIGHT)
        self.full_day_weight: int = cfg.get("full_day_weight", _DEFAULT_FULL_DAY_WEIGHT)
        self.partial_day_weight: int = cfg.get("partial_day_weight", _DEFAULT_PARTIAL_DAY_WEIGHT)
        self.cap: int = cfg.get("cap", _DEFAULT_CAP)
        self.busy_statuses: frozenset[str] = frozenset(cfg.get("busy_statuses", _DEFAULT_BUSY_STATUSES))
        self.buckets: list[int] = sorted(cfg.get("buckets", _DEFAULT_BUCKETS))

    @staticmethod
    def _load_config(config_path: Path) -> dict:
        try:
            with open(config_path) as f:
                data = yaml.safe_load(f)
        except FileNotFoundError:
            logger.warning("Agenda config not found at %s, using defaults", config_path)
            return {}
        except yaml.YAMLError as e:
            logger.error("Invalid agenda config %s: %s; using defaults", config_path, e)
            return {}
        return data if isinstance(data, dict) else {}

    def _booking_is_busy(self, booking: Interval) -> bool:
        if not booking.is_active:
            return False
        return booking.task_status is None or booking.task_status in self.busy_statuses

    def for_date(
        self,
        day: date,
        bookings: Iterable[Interval],
        personal_tasks: Iterable[Interval],
    ) -> Occupancy:
        total = 0
        reasons: list[str] = []

        for booking in bookings:
            if self._booking_is_busy(booking) and booking.occurs_on(day):
                total += self.task_weight
                reasons.append(booking.title)

        for task in personal_tasks:
            if task.can_support or not task.occurs_on(day):
                continue
            total += self.full_day_weight if task.is_full_day else self.partial_day_weight
            reasons.append(task.title)

        return Occupancy(percentage=min(self.cap, total), reason=reasons[0] if reasons else None)

    def level(self, percentage: int) -> int:
        if percentage <= 0:
            return 0
        for index, bound in enumerate(self.buckets, start=1):
            if percentage < bound:
                return index
        return len(self.buckets) + 1

    def month_heatmap(
        self,
        month: date,
        bookings: Iterable[Interval],
        personal_tasks: Iterable[Interval],
    ) -> list[HeatmapDay]:
        """
        Occupancy for the Monday-first calendar grid around month.

        The grid starts on the Monday on/before the 1st and ends on the
        Sunday on/after the last day, so it is always whole weeks.
        """
        bookings = list(bookings)
        personal_tasks = list(personal_tasks)
        first, last = month_grid(month)
        month_start = month.replace(day=1)

        days = []
        for day in iter_days(first, last):
            occ = self.for_date(day, bookings, personal_tasks)
            days.append(
                HeatmapDay(
                    day=day,
                    in_month=(day.year, day.month) == (month_start.year, month_start.month),
                    percentage=occ.percentage,
                    reason=occ.reason,
                    level=self.level(occ.percentage),
                )
            )
        return days


def month_grid(month: date) -> tuple[date, date]:
    """(first Monday, last Sunday) of the whole-week grid covering month."""
    month_start = month.replace(day=1)
    month_end = month_start.replace(day=calendar.monthrange(month_start.year, month_start.month)[1])
    first = month_start - timedelta(days=month_start.isoweekday() - 1)
    last = month_end + timedelta(days=7 - month_end.isoweekday())
    return first, last
