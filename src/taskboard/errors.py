"""Domain error taxonomy.

Every error carries a stable machine-readable ``code`` and the HTTP status
the API layer maps it to. Services raise these; ``taskboard.api.errors``
turns them into the response envelope and the CLI prints ``message``.
"""

from typing import Any


class ErrorCode:
    """Machine-readable error codes."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    RATE_LIMIT = "RATE_LIMIT"
    INVALID_CATEGORY = "INVALID_CATEGORY"
    INVALID_STATUS_TRANSITION = "INVALID_STATUS_TRANSITION"
    INTERNAL_ERROR = "INTERNAL_ERROR"
    DATABASE_ERROR = "DATABASE_ERROR"
    COUNTER_ADJUSTMENT_FAILED = "COUNTER_ADJUSTMENT_FAILED"


class TaskboardError(Exception):
    """Base class for errors reported to API and CLI callers."""

    code: str = ErrorCode.INTERNAL_ERROR
    status_code: int = 500

    def __init__(self, message: str, details: Any = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def __str__(self) -> str:
        return self.message


class ValidationError(TaskboardError):
    """Malformed or out-of-range input."""

    code = ErrorCode.VALIDATION_ERROR
    status_code = 400


class InvalidCategoryError(TaskboardError):
    """A task references a category the caller does not own."""

    code = ErrorCode.INVALID_CATEGORY
    status_code = 400

    def __init__(self, category_id: str):
        super().__init__("Invalid category")
        self.category_id = category_id


class InvalidStatusTransitionError(TaskboardError):
    """The task's current status does not allow the requested one."""

    code = ErrorCode.INVALID_STATUS_TRANSITION
    status_code = 400

    def __init__(self, current: str, requested: str):
        super().__init__(f"Cannot transition from {current} to {requested}")
        self.current = current
        self.requested = requested


class UnauthorizedError(TaskboardError):
    code = ErrorCode.UNAUTHORIZED
    status_code = 401

    def __init__(self, message: str = "Unauthorized access"):
        super().__init__(message)


class ForbiddenError(TaskboardError):
    code = ErrorCode.FORBIDDEN
    status_code = 403

    def __init__(self, message: str = "Access forbidden"):
        super().__init__(message)


class NotFoundError(TaskboardError):
    """Resource is absent or owned by someone else."""

    code = ErrorCode.NOT_FOUND
    status_code = 404

    def __init__(self, resource: str = "Resource"):
        super().__init__(f"{resource} not found")
        self.resource = resource


class ConflictError(TaskboardError):
    code = ErrorCode.CONFLICT
    status_code = 409


class InternalError(TaskboardError):
    code = ErrorCode.INTERNAL_ERROR
    status_code = 500

    def __init__(self, message: str = "Internal server error", details: Any = None):
        super().__init__(message, details)


class CounterAdjustmentError(InternalError):
    """A category counter update failed after its task write succeeded."""

    code = ErrorCode.COUNTER_ADJUSTMENT_FAILED

    def __init__(self, category_id: str, delta: int):
        super().__init__("Internal server error")
        self.category_id = category_id
        self.delta = delta
