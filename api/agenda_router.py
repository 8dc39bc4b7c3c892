"""
Agenda API Router - REST endpoints over the agenda core.

Endpoints:
- GET /api/agenda/{worker_id} - laid-out timeline for a window
- GET /api/availability/{worker_id}/eligibility - can the worker support now?
- GET /api/availability/{worker_id}/heatmap - monthly occupancy grid
- POST /api/tasks/conflict-check - conflicts before assigning a worker
- PUT /api/tasks/{task_id}/bookings - replace a task's bookings
- POST /api/personal-tasks - create a personal task
- PATCH /api/personal-tasks/{task_id} - edit any field of a personal task
- PATCH /api/personal-tasks/{task_id}/dates - move/resize a personal task
- DELETE /api/personal-tasks/{task_id} - delete a personal task

Domain errors are not caught here; the app's exception handlers map
ValidationError to 422 and store failures to 502.
"""

import logging
from datetime import date
from functools import lru_cache

from fastapi import APIRouter, Depends, HTTPException, Query

from agenda import config
from agenda.assignments import WorkerAssignment, replace_task_bookings
from agenda.availability import (
    AvailabilityResolver,
    ConflictDetector,
    OccupancyCalculator,
    layout_occurrences,
)
from agenda.availability.occupancy import month_grid
from agenda.errors import ValidationError
from agenda.intervals import interval_from_booking, interval_from_personal_task, normalize_rows
from agenda.store import RestStore
from api.response_models import (
    AgendaItem,
    AgendaResponse,
    ConflictCheckRequest,
    ConflictCheckResponse,
    ConflictItem,
    EligibilityResponse,
    HeatmapDayResponse,
    HeatmapResponse,
    MutationResponse,
    PersonalTaskCreate,
    PersonalTaskDates,
    PersonalTaskUpdate,
    TaskBookingsRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["agenda"])

# Global store instance
_store: RestStore | None = None


def get_store():
    """Get or create the global store instance."""
    global _store
    if _store is None:
        _store = RestStore()
    return _store


@lru_cache(maxsize=1)
def get_occupancy_calculator() -> OccupancyCalculator:
    return OccupancyCalculator()


def _parse_month(value: str) -> date:
    try:
        year, month = value.split("-")
        return date(int(year), int(month), 1)
    except ValueError as e:
        raise ValidationError(f"Invalid month {value!r}, expected YYYY-MM") from e


# ==== Agenda ====


@router.get("/agenda/{worker_id}", response_model=AgendaResponse)
def get_agenda(
    worker_id: str,
    start: date | None = Query(None, description="First day of the window (default: today)"),
    days: int | None = Query(None, ge=1, le=config.MAX_WINDOW_DAYS, description="Window length in days"),
    store=Depends(get_store),
):
    window_start = start or date.today()
    window_days = days if days is not None else config.WINDOW_DAYS

    occurrences = AvailabilityResolver(store).resolve(worker_id, window_start, window_days)
    layout = layout_occurrences(occurrences, window_start, window_days)

    items = [
        AgendaItem(
            id=item.id,
            original_id=item.occurrence.original_id,
            kind=str(item.occurrence.kind),
            title=item.occurrence.title,
            start_date=item.occurrence.start,
            end_date=item.occurrence.end,
            actual_start=item.occurrence.actual_start,
            actual_end=item.occurrence.actual_end,
            track=item.track,
            left_pct=item.left_pct,
            width_pct=item.width_pct,
            can_support=item.occurrence.can_support,
            editable=item.occurrence.is_editable,
            overlap_ids=list(item.overlap_ids),
            overlap_titles=list(item.overlap_titles),
        )
        for item in layout.items
    ]
    return AgendaResponse(
        worker_id=worker_id,
        window_start=window_start,
        window_days=window_days,
        track_count=layout.track_count,
        canvas_height=layout.canvas_height(),
        items=items,
    )


# ==== Availability ====


@router.get("/availability/{worker_id}/eligibility", response_model=EligibilityResponse)
def get_eligibility(
    worker_id: str,
    start: date = Query(..., description="Query start"),
    end: date = Query(..., description="Query end"),
    store=Depends(get_store),
):
    result = ConflictDetector(store).eligibility(worker_id, start, end)
    return EligibilityResponse(
        worker_id=worker_id,
        start_date=start,
        end_date=end,
        can_support_now=result.can_support_now,
        has_explicit_support=result.has_explicit_support,
        blocking_ids=result.blocking_ids,
    )


@router.get("/availability/{worker_id}/heatmap", response_model=HeatmapResponse)
def get_heatmap(
    worker_id: str,
    month: str | None = Query(None, description="YYYY-MM (default: current month)"),
    store=Depends(get_store),
    calculator: OccupancyCalculator = Depends(get_occupancy_calculator),
):
    month_start = _parse_month(month) if month else date.today().replace(day=1)
    first, last = month_grid(month_start)

    bookings = normalize_rows(
        store.fetch_bookings(worker_id, first, last), lambda r: interval_from_booking(r, owner_id=worker_id), "bookings"
    )
    personal = normalize_rows(
        store.fetch_personal_tasks(worker_id, first, last), interval_from_personal_task, "personal_tasks"
    )

    days = [
        HeatmapDayResponse(
            day=d.day,
            in_month=d.in_month,
            percentage=d.percentage,
            reason=d.reason,
            level=d.level,
        )
        for d in calculator.month_heatmap(month_start, bookings, personal)
    ]
    return HeatmapResponse(worker_id=worker_id, month=month_start.strftime("%Y-%m"), days=days)


# ==== Tasks ====


@router.post("/tasks/conflict-check", response_model=ConflictCheckResponse)
def conflict_check(body: ConflictCheckRequest, store=Depends(get_store)):
    report = ConflictDetector(store).check_assignment(
        body.worker_id, body.start_date, body.end_date, exclude_task_id=body.task_id
    )
    return ConflictCheckResponse(
        has_conflicts=report.has_conflicts,
        conflicts=[
            ConflictItem(
                type=c.type,
                message=c.message,
                interval_id=c.interval_id,
                task_id=c.task_id,
                title=c.title,
                start_date=c.start_date,
                end_date=c.end_date,
                priority=c.priority,
                needs_escalation=c.needs_escalation,
            )
            for c in report.conflicts
        ],
        warnings=report.warnings,
        needs_escalation=report.needs_escalation,
        active_task_count=report.active_task_count,
    )


@router.put("/tasks/{task_id}/bookings", response_model=MutationResponse)
def put_task_bookings(task_id: str, body: TaskBookingsRequest, store=Depends(get_store)):
    created = replace_task_bookings(
        store,
        task_id,
        body.owner_id,
        body.start_date,
        body.end_date,
        [WorkerAssignment(worker_id=a.worker_id, days=a.days) for a in body.assignments],
    )
    return MutationResponse(success=True, task_id=task_id, bookings=created)


# ==== Personal Tasks ====


@router.post("/personal-tasks", response_model=MutationResponse, status_code=201)
def create_personal_task(body: PersonalTaskCreate, store=Depends(get_store)):
    record = body.model_dump(mode="json")
    if not body.is_recurring:
        record["recurring_days"] = []

    # Same normalization the agenda applies on load.
    interval_from_personal_task({"id": "new", **record})

    created = store.insert_personal_task(record)
    logger.info("Created personal task for %s", body.user_id, extra={"worker_id": body.user_id})
    return MutationResponse(success=True, personal_task=created)


@router.patch("/personal-tasks/{task_id}/dates", response_model=MutationResponse)
def update_personal_task_dates(task_id: str, body: PersonalTaskDates, store=Depends(get_store)):
    updated = store.update_personal_task(
        task_id,
        {
            "start_date": body.start_date.isoformat(),
            "end_date": body.end_date.isoformat(),
        },
    )
    return MutationResponse(success=True, personal_task=updated)


@router.patch("/personal-tasks/{task_id}", response_model=MutationResponse)
def update_personal_task(task_id: str, body: PersonalTaskUpdate, store=Depends(get_store)):
    current = store.fetch_personal_task(task_id)
    if current is None:
        raise HTTPException(status_code=404, detail=f"Personal task {task_id} not found")

    fields = {
        key: value
        for key, value in body.model_dump(mode="json", exclude_unset=True).items()
        if value is not None or key == "description"
    }
    merged = {**current, **fields}
    if not merged.get("is_recurring"):
        if merged.get("recurring_days"):
            fields["recurring_days"] = merged["recurring_days"] = []
    elif not merged.get("recurring_days"):
        raise ValidationError("recurring tasks need at least one weekday")

    interval = interval_from_personal_task(merged)
    if interval.end < interval.start:
        raise ValidationError("end_date must not be before start_date")

    updated = store.update_personal_task(task_id, fields)
    logger.info("Updated personal task %s: %s", task_id, sorted(fields), extra={"worker_id": current.get("user_id")})
    return MutationResponse(success=True, personal_task=updated)


@router.delete("/personal-tasks/{task_id}", response_model=MutationResponse)
def delete_personal_task(task_id: str, store=Depends(get_store)):
    store.delete_personal_task(task_id)
    return MutationResponse(success=True, id=task_id)
