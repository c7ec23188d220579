"""Pydantic schemas for Taskboard API."""

from taskboard.schemas.base import ApiResponse, ErrorResponse
from taskboard.schemas.category import (
    CategoryCreate,
    CategoryListResponse,
    CategoryResponse,
    RecountResponse,
)
from taskboard.schemas.task import (
    TaskCreate,
    TaskListResponse,
    TaskPriorityUpdate,
    TaskResponse,
    TaskStatusUpdate,
    TaskUpdate,
)

__all__ = [
    "ApiResponse",
    "ErrorResponse",
    "CategoryCreate",
    "CategoryListResponse",
    "CategoryResponse",
    "RecountResponse",
    "TaskCreate",
    "TaskListResponse",
    "TaskPriorityUpdate",
    "TaskResponse",
    "TaskStatusUpdate",
    "TaskUpdate",
]
