"""Task API endpoints."""

from datetime import datetime

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.api.auth import AuthenticatedUser
from taskboard.api.rate_limit import default_rate_limit, limiter, write_rate_limit
from taskboard.config import get_settings
from taskboard.database import get_db
from taskboard.models import Task, TaskStatus
from taskboard.schemas.base import ApiResponse
from taskboard.schemas.task import (
    Pagination,
    StatusBreakdown,
    TaskCreate,
    TaskListResponse,
    TaskPriorityUpdate,
    TaskResponse,
    TaskStatusUpdate,
    TaskUpdate,
)
from taskboard.services.task_query import TaskFilters
from taskboard.services.task_store import TaskStore

router = APIRouter(prefix="/tasks", tags=["tasks"])


def _task_response(task: Task) -> TaskResponse:
    return TaskResponse.model_validate(task)


@router.post("", response_model=ApiResponse[TaskResponse], status_code=status.HTTP_201_CREATED)
@limiter.limit(write_rate_limit)
async def create_task(
    request: Request,
    data: TaskCreate,
    user: AuthenticatedUser,
    db: AsyncSession = Depends(get_db),
):
    """Create a new task."""
    store = TaskStore(db)
    task = await store.create_task(user.id, data)
    return ApiResponse(message="Task created successfully", data=_task_response(task))


@router.get("", response_model=ApiResponse[TaskListResponse])
@limiter.limit(default_rate_limit)
async def list_tasks(
    request: Request,
    user: AuthenticatedUser,
    status_filter: str | None = Query(None, alias="status", description="Comma-separated statuses"),
    priority: str | None = Query(None, description="Comma-separated priorities"),
    category: str | None = None,
    search: str | None = Query(None, max_length=200),
    due_gte: datetime | None = None,
    due_lte: datetime | None = None,
    page: int = Query(1, ge=1),
    limit: int | None = Query(None, ge=1),
    sort_by: str = Query("createdAt", alias="sortBy"),
    sort_order: str = Query("desc", alias="sortOrder"),
    db: AsyncSession = Depends(get_db),
):
    """List tasks with filtering, sorting and pagination.

    ``stats`` counts all of the caller's tasks per status, not just the
    filtered ones.
    """
    settings = get_settings()
    limit = min(limit or settings.default_page_size, settings.max_page_size)
    filters = TaskFilters.from_query(
        status=status_filter,
        priority=priority,
        category=category,
        search=search,
        due_gte=due_gte,
        due_lte=due_lte,
    )

    store = TaskStore(db)
    result = await store.list_tasks(
        user.id,
        filters,
        page=page,
        limit=limit,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    return ApiResponse(
        data=TaskListResponse(
            tasks=[_task_response(t) for t in result.tasks],
            pagination=Pagination(
                total=result.total,
                page=result.page,
                limit=result.limit,
                pages=result.pages,
            ),
            stats=StatusBreakdown(
                todo=result.stats[TaskStatus.TODO],
                in_progress=result.stats[TaskStatus.IN_PROGRESS],
                completed=result.stats[TaskStatus.COMPLETED],
                archived=result.stats[TaskStatus.ARCHIVED],
            ),
        )
    )


@router.get("/{task_id}", response_model=ApiResponse[TaskResponse])
@limiter.limit(default_rate_limit)
async def get_task(
    request: Request,
    task_id: str,
    user: AuthenticatedUser,
    db: AsyncSession = Depends(get_db),
):
    """Get a single task by ID."""
    task = await TaskStore(db).get_task(user.id, task_id)
    return ApiResponse(data=_task_response(task))


async def _update_task_impl(
    task_id: str,
    data: TaskUpdate,
    user_id: str,
    db: AsyncSession,
) -> ApiResponse[TaskResponse]:
    """Shared implementation for PUT and PATCH task updates."""
    task = await TaskStore(db).update_task(user_id, task_id, data)
    return ApiResponse(message="Task updated successfully", data=_task_response(task))


@router.put("/{task_id}", response_model=ApiResponse[TaskResponse])
@limiter.limit(write_rate_limit)
async def update_task(
    request: Request,
    task_id: str,
    data: TaskUpdate,
    user: AuthenticatedUser,
    db: AsyncSession = Depends(get_db),
):
    """Update a task. Only fields present in the body are changed."""
    return await _update_task_impl(task_id, data, user.id, db)


@router.patch("/{task_id}", response_model=ApiResponse[TaskResponse])
@limiter.limit(write_rate_limit)
async def patch_task(
    request: Request,
    task_id: str,
    data: TaskUpdate,
    user: AuthenticatedUser,
    db: AsyncSession = Depends(get_db),
):
    """Partially update a task (alias of PUT)."""
    return await _update_task_impl(task_id, data, user.id, db)


@router.delete("/{task_id}", response_model=ApiResponse[None])
@limiter.limit(write_rate_limit)
async def delete_task(
    request: Request,
    task_id: str,
    user: AuthenticatedUser,
    db: AsyncSession = Depends(get_db),
):
    """Delete a task."""
    await TaskStore(db).delete_task(user.id, task_id)
    return ApiResponse(message="Task deleted successfully")


@router.put("/{task_id}/status", response_model=ApiResponse[TaskResponse])
@limiter.limit(write_rate_limit)
async def update_task_status(
    request: Request,
    task_id: str,
    data: TaskStatusUpdate,
    user: AuthenticatedUser,
    db: AsyncSession = Depends(get_db),
):
    """Move a task through its lifecycle."""
    task = await TaskStore(db).transition_status(user.id, task_id, data.status)
    return ApiResponse(message="Task status updated", data=_task_response(task))


@router.put("/{task_id}/priority", response_model=ApiResponse[TaskResponse])
@limiter.limit(write_rate_limit)
async def update_task_priority(
    request: Request,
    task_id: str,
    data: TaskPriorityUpdate,
    user: AuthenticatedUser,
    db: AsyncSession = Depends(get_db),
):
    """Change a task's priority."""
    task = await TaskStore(db).update_priority(user.id, task_id, data.priority)
    return ApiResponse(message="Task priority updated", data=_task_response(task))
