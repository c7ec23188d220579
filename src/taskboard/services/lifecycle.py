"""Task status state machine."""

from taskboard.errors import InvalidStatusTransitionError
from taskboard.models import TaskStatus

# Allowed transitions; anything not listed, including staying put, is rejected
ALLOWED_TRANSITIONS: dict[TaskStatus, frozenset[TaskStatus]] = {
    TaskStatus.TODO: frozenset({TaskStatus.IN_PROGRESS, TaskStatus.ARCHIVED}),
    TaskStatus.IN_PROGRESS: frozenset({TaskStatus.TODO, TaskStatus.COMPLETED, TaskStatus.ARCHIVED}),
    TaskStatus.COMPLETED: frozenset({TaskStatus.IN_PROGRESS, TaskStatus.ARCHIVED}),
    TaskStatus.ARCHIVED: frozenset(),
}


def can_transition(current: TaskStatus, new: TaskStatus) -> bool:
    """Check whether a task in ``current`` may move to ``new``."""
    return TaskStatus(new) in ALLOWED_TRANSITIONS[TaskStatus(current)]


def ensure_transition(current: TaskStatus, new: TaskStatus) -> None:
    """Raise InvalidStatusTransitionError unless the move is allowed."""
    if not can_transition(current, new):
        raise InvalidStatusTransitionError(TaskStatus(current).value, TaskStatus(new).value)
