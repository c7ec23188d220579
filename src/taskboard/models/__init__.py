"""SQLAlchemy models for Taskboard."""

from taskboard.models.base import Base
from taskboard.models.category import Category
from taskboard.models.task import Task, TaskPriority, TaskStatus

__all__ = [
    "Base",
    "Category",
    "Task",
    "TaskPriority",
    "TaskStatus",
]
