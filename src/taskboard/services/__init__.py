"""Business logic services for Taskboard."""

from taskboard.services.category_ledger import CategoryLedger, CountCorrection
from taskboard.services.task_query import TaskFilters
from taskboard.services.task_store import TaskPage, TaskStore

__all__ = ["CategoryLedger", "CountCorrection", "TaskFilters", "TaskPage", "TaskStore"]
