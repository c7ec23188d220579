"""Business logic for task operations."""

import logging
import math
from dataclasses import dataclass

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.errors import InvalidCategoryError, NotFoundError, ValidationError
from taskboard.models import Category, Task, TaskPriority, TaskStatus
from taskboard.schemas.task import TaskCreate, TaskUpdate
from taskboard.services.category_ledger import CategoryLedger
from taskboard.services.lifecycle import ensure_transition
from taskboard.services.task_query import TaskFilters, apply_sort, build_task_query, paginate

logger = logging.getLogger(__name__)


@dataclass
class TaskPage:
    """One page of a task listing plus the user's status breakdown."""

    tasks: list[Task]
    total: int
    page: int
    limit: int
    stats: dict[TaskStatus, int]

    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0


class TaskStore:
    """Service for task CRUD and lifecycle operations.

    Category counters are adjusted through ``CategoryLedger`` after the
    task itself has been flushed.
    """

    def __init__(self, db: AsyncSession):
        self.db = db
        self.categories = CategoryLedger(db)

    async def _find(self, user_id: str, task_id: str) -> Task | None:
        result = await self.db.execute(
            select(Task)
            .where(Task.id == task_id, Task.user_id == user_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def _resolve_category(self, user_id: str, category_id: str) -> Category:
        category = await self.categories.find_owned(user_id, category_id)
        if category is None:
            raise InvalidCategoryError(category_id)
        return category

    async def get_task(self, user_id: str, task_id: str) -> Task:
        """Get one of the user's tasks or raise NotFoundError."""
        task = await self._find(user_id, task_id)
        if task is None:
            raise NotFoundError("Task")
        return task

    async def find_by_id_prefix(self, user_id: str, prefix: str, *, limit: int = 2) -> list[Task]:
        """Get up to ``limit`` of the user's tasks whose ID starts with ``prefix``."""
        if not prefix:
            return []
        result = await self.db.execute(
            select(Task)
            .where(Task.user_id == user_id, Task.id.startswith(prefix, autoescape=True))
            .order_by(Task.id)
            .limit(limit)
        )
        return list(result.scalars())

    async def create_task(self, user_id: str, data: TaskCreate) -> Task:
        """Create a task in the todo state."""
        category = None
        if data.category_id:
            category = await self._resolve_category(user_id, data.category_id)

        task = Task(
            title=data.title,
            description=data.description,
            priority=data.priority,
            due_date=data.due_date,
            tags=list(data.tags),
            estimated_hours=data.estimated_hours,
            user_id=user_id,
            category=category,
            status=TaskStatus.TODO,
            completed_at=None,
        )
        self.db.add(task)
        await self.db.flush()

        if category is not None:
            await self.categories.increment_task_count(category.id, task_id=task.id)

        logger.info("Created task %s for user %s", task.id, user_id)
        return await self.get_task(user_id, task.id)

    async def list_tasks(
        self,
        user_id: str,
        filters: TaskFilters | None = None,
        *,
        page: int = 1,
        limit: int = 10,
        sort_by: str = "createdAt",
        sort_order: str = "desc",
    ) -> TaskPage:
        """Get a filtered, sorted page of the user's tasks."""
        if page < 1 or limit < 1:
            raise ValidationError(
                "Invalid pagination",
                details=[{"field": "page/limit", "message": "Must be positive integers"}],
            )
        query = build_task_query(user_id, filters or TaskFilters())

        count_query = select(func.count()).select_from(query.subquery())
        total = (await self.db.execute(count_query)).scalar() or 0

        result = await self.db.execute(paginate(apply_sort(query, sort_by, sort_order), page, limit))
        tasks = list(result.scalars())

        return TaskPage(
            tasks=tasks,
            total=total,
            page=page,
            limit=limit,
            stats=await self.status_breakdown(user_id),
        )

    async def status_breakdown(self, user_id: str) -> dict[TaskStatus, int]:
        """Count all of the user's tasks per status, ignoring any filters."""
        result = await self.db.execute(
            select(Task.status, func.count())
            .where(Task.user_id == user_id)
            .group_by(Task.status)
        )
        stats = dict.fromkeys(TaskStatus, 0)
        for status, count in result.all():
            stats[TaskStatus(status)] = count
        return stats

    async def update_task(self, user_id: str, task_id: str, data: TaskUpdate) -> Task:
        """Apply the fields present in ``data``.

        Status is not updatable here; use ``transition_status``.
        """
        task = await self.get_task(user_id, task_id)
        update_data = data.model_dump(exclude_unset=True)

        old_category_id = task.category_id
        new_category_id = old_category_id
        if "category_id" in update_data:
            new_category_id = update_data.pop("category_id")
            new_category = None
            if new_category_id is not None:
                new_category = await self._resolve_category(user_id, new_category_id)
            if new_category_id != old_category_id:
                task.category = new_category

        for key, value in update_data.items():
            setattr(task, key, value)

        await self.db.flush()

        if new_category_id != old_category_id:
            if old_category_id is not None:
                await self.categories.decrement_task_count(old_category_id, task_id=task.id)
            if new_category_id is not None:
                await self.categories.increment_task_count(new_category_id, task_id=task.id)
            logger.info(
                "Moved task %s from category %s to %s",
                task.id,
                old_category_id,
                new_category_id,
            )

        return await self.get_task(user_id, task_id)

    async def delete_task(self, user_id: str, task_id: str) -> None:
        task = await self.get_task(user_id, task_id)
        category_id = task.category_id

        await self.db.delete(task)
        await self.db.flush()

        if category_id is not None:
            await self.categories.decrement_task_count(category_id, task_id=task_id)
        logger.info("Deleted task %s for user %s", task_id, user_id)

    async def transition_status(self, user_id: str, task_id: str, new_status: TaskStatus) -> Task:
        """Move a task to ``new_status`` if the lifecycle allows it."""
        task = await self.get_task(user_id, task_id)
        previous = task.status
        ensure_transition(previous, new_status)

        task.apply_status(TaskStatus(new_status))
        await self.db.flush()

        logger.info("Task %s status %s -> %s", task.id, previous.value, task.status.value)
        return await self.get_task(user_id, task_id)

    async def update_priority(self, user_id: str, task_id: str, new_priority: TaskPriority) -> Task:
        task = await self.get_task(user_id, task_id)
        task.priority = TaskPriority(new_priority)
        await self.db.flush()
        return await self.get_task(user_id, task_id)
