"""Task schemas."""

from datetime import datetime
from typing import Annotated

from pydantic import AliasChoices, Field, StringConstraints, field_validator, model_validator

from taskboard.models import TaskPriority, TaskStatus
from taskboard.models.base import as_utc, utcnow
from taskboard.schemas.base import BaseSchema, TimestampMixin
from taskboard.schemas.category import CategorySummary

Tag = Annotated[str, StringConstraints(strip_whitespace=True, max_length=30)]

# Fields a partial update may omit but never set to null
_NON_NULLABLE_UPDATE_FIELDS = ("title", "priority", "tags", "actual_hours")


def _future_due_date(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    value = as_utc(value)
    if value <= utcnow():
        raise ValueError("Due date must be in the future")
    return value


class TaskCreate(BaseSchema):
    """Schema for creating a task."""

    title: str = Field(..., min_length=1, max_length=200)
    description: str | None = Field(None, max_length=1000)
    priority: TaskPriority = TaskPriority.MEDIUM
    due_date: datetime | None = None
    category_id: str | None = None
    tags: list[Tag] = Field(default_factory=list)
    estimated_hours: float | None = Field(None, ge=0, le=1000)

    @field_validator("title", "description", mode="before")
    @classmethod
    def strip_text(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator("due_date")
    @classmethod
    def due_date_in_future(cls, value):
        return _future_due_date(value)


class TaskUpdate(BaseSchema):
    """Schema for updating a task.

    Only fields present in the payload are applied. ``category_id: null``
    clears the category.
    """

    title: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = Field(None, max_length=1000)
    priority: TaskPriority | None = None
    due_date: datetime | None = None
    category_id: str | None = None
    tags: list[Tag] | None = None
    estimated_hours: float | None = Field(None, ge=0, le=1000)
    actual_hours: float | None = Field(None, ge=0)

    @field_validator("title", "description", mode="before")
    @classmethod
    def strip_text(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator("due_date")
    @classmethod
    def due_date_in_future(cls, value):
        return _future_due_date(value)

    @model_validator(mode="after")
    def reject_null_required_fields(self):
        for name in _NON_NULLABLE_UPDATE_FIELDS:
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self


class TaskStatusUpdate(BaseSchema):
    status: TaskStatus


class TaskPriorityUpdate(BaseSchema):
    priority: TaskPriority


class TaskResponse(TimestampMixin, BaseSchema):
    """Schema for task responses."""

    id: str
    title: str
    description: str | None
    status: TaskStatus
    priority: TaskPriority
    due_date: datetime | None
    category_id: str | None
    category: CategorySummary | None = None
    tags: list[str] = Field(default_factory=list)
    estimated_hours: float | None
    actual_hours: float
    completed_at: datetime | None


class Pagination(BaseSchema):
    total: int
    page: int
    limit: int
    pages: int


class StatusBreakdown(BaseSchema):
    """Per-status counts over all of the user's tasks."""

    todo: int = 0
    in_progress: int = Field(
        0,
        validation_alias=AliasChoices("in_progress", "in-progress"),
        serialization_alias="in-progress",
    )
    completed: int = 0
    archived: int = 0


class TaskListResponse(BaseSchema):
    """Schema for paginated task list responses."""

    tasks: list[TaskResponse]
    pagination: Pagination
    stats: StatusBreakdown
