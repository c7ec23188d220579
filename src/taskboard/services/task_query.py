"""Filter, sort and pagination construction for task listings."""

from dataclasses import dataclass, field
from datetime import datetime

from sqlalchemy import Select, case, or_, select

from taskboard.errors import ValidationError
from taskboard.models import Task, TaskPriority, TaskStatus
from taskboard.models.base import as_utc

PRIORITY_RANK = {
    TaskPriority.LOW: 1,
    TaskPriority.MEDIUM: 2,
    TaskPriority.HIGH: 3,
}

# Public sort names (query-string and snake_case forms) to sortable columns
SORT_FIELDS = {
    "createdAt": Task.created_at,
    "created_at": Task.created_at,
    "updatedAt": Task.updated_at,
    "updated_at": Task.updated_at,
    "dueDate": Task.due_date,
    "due_date": Task.due_date,
    "title": Task.title,
    "status": Task.status,
    "priority": case(
        *((Task.priority == priority, rank) for priority, rank in PRIORITY_RANK.items()),
        else_=0,
    ),
}


@dataclass
class TaskFilters:
    """Listing filters. OR within a set, AND across fields."""

    statuses: set[TaskStatus] = field(default_factory=set)
    priorities: set[TaskPriority] = field(default_factory=set)
    category_id: str | None = None
    search: str | None = None
    due_gte: datetime | None = None
    due_lte: datetime | None = None

    @classmethod
    def from_query(
        cls,
        *,
        status: str | None = None,
        priority: str | None = None,
        category: str | None = None,
        search: str | None = None,
        due_gte: datetime | None = None,
        due_lte: datetime | None = None,
    ) -> "TaskFilters":
        """Build filters from comma-separated query-string values."""
        return cls(
            statuses=_parse_csv(status, TaskStatus, "status"),
            priorities=_parse_csv(priority, TaskPriority, "priority"),
            category_id=category or None,
            search=search.strip() if search and search.strip() else None,
            due_gte=due_gte,
            due_lte=due_lte,
        )


def _parse_csv(raw: str | None, enum_cls, name: str) -> set:
    if not raw:
        return set()
    values = set()
    for item in raw.split(","):
        item = item.strip()
        if not item:
            continue
        try:
            values.add(enum_cls(item))
        except ValueError:
            allowed = ", ".join(member.value for member in enum_cls)
            raise ValidationError(
                f"Invalid {name} filter",
                details=[{"field": name, "message": f"{item!r} is not one of: {allowed}"}],
            ) from None
    return values


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def build_task_query(user_id: str, filters: TaskFilters) -> Select:
    """Select the user's tasks matching every supplied filter."""
    query = select(Task).where(Task.user_id == user_id)

    if filters.statuses:
        query = query.where(Task.status.in_(list(filters.statuses)))
    if filters.priorities:
        query = query.where(Task.priority.in_(list(filters.priorities)))
    if filters.category_id:
        query = query.where(Task.category_id == filters.category_id)
    if filters.search:
        pattern = f"%{_escape_like(filters.search)}%"
        query = query.where(
            or_(
                Task.title.ilike(pattern, escape="\\"),
                Task.description.ilike(pattern, escape="\\"),
            )
        )
    if filters.due_gte is not None:
        query = query.where(Task.due_date >= as_utc(filters.due_gte))
    if filters.due_lte is not None:
        query = query.where(Task.due_date <= as_utc(filters.due_lte))

    return query


def apply_sort(query: Select, sort_by: str = "createdAt", sort_order: str = "desc") -> Select:
    """Order by a public sort field; the id breaks ties for stable paging."""
    column = SORT_FIELDS.get(sort_by)
    if column is None:
        raise ValidationError(
            "Invalid sort field",
            details=[{"field": "sortBy", "message": f"Must be one of: {', '.join(SORT_FIELDS)}"}],
        )
    if sort_order not in ("asc", "desc"):
        raise ValidationError(
            "Invalid sort order",
            details=[{"field": "sortOrder", "message": "Must be asc or desc"}],
        )

    if sort_order == "asc":
        return query.order_by(column.asc(), Task.id.asc())
    return query.order_by(column.desc(), Task.id.desc())


def paginate(query: Select, page: int, limit: int) -> Select:
    return query.offset((page - 1) * limit).limit(limit)
