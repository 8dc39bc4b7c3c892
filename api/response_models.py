"""
Pydantic request/response models for the agenda API.

These models give FastAPI the type information it needs to generate
accurate OpenAPI schemas, and validate incoming bodies before anything
reaches the agenda core.
"""

from datetime import date

from pydantic import BaseModel, Field, field_validator, model_validator

# ==== Agenda Timeline ====


class AgendaItem(BaseModel):
    """One bar on the agenda timeline."""

    id: str = Field(description="Occurrence id (recurring: '<task id>-<YYYY-MM-DD>')")
    original_id: str = Field(description="Id of the underlying personal task or booking")
    kind: str = Field(description="personal or project_task")
    title: str
    start_date: date = Field(description="Display start (clipped to the window)")
    end_date: date = Field(description="Display end (clipped to the window)")
    actual_start: date
    actual_end: date
    track: int = Field(ge=0)
    left_pct: float
    width_pct: float
    can_support: bool = False
    editable: bool = False
    overlap_ids: list[str] = Field(default_factory=list)
    overlap_titles: list[str] = Field(default_factory=list)


class AgendaResponse(BaseModel):
    worker_id: str
    window_start: date
    window_days: int
    track_count: int
    canvas_height: int
    items: list[AgendaItem] = Field(default_factory=list)


# ==== Conflict Check ====


class ConflictCheckRequest(BaseModel):
    worker_id: str = Field(min_length=1)
    start_date: date
    end_date: date
    task_id: str | None = Field(default=None, description="Task being edited; its own bookings are ignored")

    @model_validator(mode="after")
    def check_range(self):
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class ConflictItem(BaseModel):
    type: str = Field(description="date_overlap | personal_block | overload")
    message: str
    interval_id: str | None = None
    task_id: str | None = None
    title: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    priority: int | None = None
    needs_escalation: bool = False


class ConflictCheckResponse(BaseModel):
    has_conflicts: bool
    conflicts: list[ConflictItem] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    needs_escalation: bool = False
    active_task_count: int = 0


class EligibilityResponse(BaseModel):
    worker_id: str
    start_date: date
    end_date: date
    can_support_now: bool
    has_explicit_support: bool
    blocking_ids: list[str] = Field(default_factory=list)


# ==== Heatmap ====


class HeatmapDayResponse(BaseModel):
    day: date
    in_month: bool
    percentage: int = Field(ge=0, le=100)
    reason: str | None = None
    level: int = Field(ge=0)


class HeatmapResponse(BaseModel):
    worker_id: str
    month: str = Field(description="YYYY-MM")
    days: list[HeatmapDayResponse] = Field(default_factory=list)


# ==== Personal Tasks ====


def _check_weekdays(value: list[int]) -> list[int]:
    bad = [d for d in value if not 1 <= d <= 7]
    if bad:
        raise ValueError(f"recurring_days out of range 1..7: {bad}")
    return sorted(set(value))


class PersonalTaskCreate(BaseModel):
    user_id: str = Field(min_length=1)
    title: str = Field(min_length=1)
    description: str | None = None
    start_date: date
    end_date: date
    is_full_day: bool = True
    can_support: bool = False
    is_recurring: bool = False
    recurring_days: list[int] = Field(default_factory=list, description="Weekdays, Monday=1 .. Sunday=7")

    @field_validator("recurring_days")
    @classmethod
    def check_days(cls, value: list[int]) -> list[int]:
        return _check_weekdays(value)

    @model_validator(mode="after")
    def check_range(self):
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        if self.is_recurring and not self.recurring_days:
            raise ValueError("recurring tasks need at least one weekday")
        return self


class PersonalTaskDates(BaseModel):
    start_date: date
    end_date: date

    @model_validator(mode="after")
    def check_range(self):
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class PersonalTaskUpdate(BaseModel):
    """Partial update of a personal task. Omitted fields keep their stored value."""

    title: str | None = Field(None, min_length=1)
    description: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    is_full_day: bool | None = None
    can_support: bool | None = None
    is_recurring: bool | None = None
    recurring_days: list[int] | None = Field(None, description="Weekdays, Monday=1 .. Sunday=7")

    @field_validator("recurring_days")
    @classmethod
    def check_days(cls, value: list[int] | None) -> list[int] | None:
        return None if value is None else _check_weekdays(value)

    @model_validator(mode="after")
    def check_range(self):
        if not self.model_fields_set:
            raise ValueError("no fields to update")
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


# ==== Bookings ====


class WorkerAssignmentIn(BaseModel):
    worker_id: str = Field(min_length=1)
    days: int = Field(ge=1, description="Requested days; clamped to the task span")


class TaskBookingsRequest(BaseModel):
    owner_id: str | None = None
    start_date: date
    end_date: date
    assignments: list[WorkerAssignmentIn] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_range(self):
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


# ==== Mutation Result ====


class MutationResponse(BaseModel):
    """Standard mutation result."""

    success: bool = Field(description="Whether the operation succeeded")

    model_config = {"extra": "allow"}
