"""Category records and their denormalized task counters.

``CategoryLedger`` is the only code that writes ``Category.task_count``.
Task operations call ``increment_task_count``/``decrement_task_count``
explicitly after their own write; there are no ORM hooks doing it behind
their back.
"""

import logging
from dataclasses import dataclass

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.errors import ConflictError, CounterAdjustmentError, NotFoundError
from taskboard.models import Category, Task

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CountCorrection:
    """A counter rewritten by ``recount_task_counts``."""

    category_id: str
    previous: int
    actual: int


class CategoryLedger:
    """Service for category operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_categories(self, user_id: str) -> list[Category]:
        """Get all of a user's categories, sorted by name."""
        result = await self.db.execute(
            select(Category)
            .where(Category.user_id == user_id)
            .order_by(Category.name)
        )
        return list(result.scalars())

    async def find_owned(self, user_id: str, category_id: str) -> Category | None:
        """Get a category if it exists and belongs to ``user_id``."""
        result = await self.db.execute(
            select(Category)
            .where(
                Category.id == category_id,
                Category.user_id == user_id,
            )
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_category(self, user_id: str, category_id: str) -> Category:
        category = await self.find_owned(user_id, category_id)
        if category is None:
            raise NotFoundError("Category")
        return category

    async def create_category(self, user_id: str, name: str, color: str) -> Category:
        """Create a category; names are unique per user after trimming."""
        name = name.strip()
        existing = await self.db.execute(
            select(Category.id).where(
                Category.user_id == user_id,
                Category.name == name,
            )
        )
        if existing.first() is not None:
            raise ConflictError("Category with this name already exists")

        category = Category(name=name, color=color, user_id=user_id, task_count=0)
        self.db.add(category)
        try:
            await self.db.flush()
        except IntegrityError as e:
            # Lost a race with a concurrent create of the same name
            raise ConflictError("Category with this name already exists") from e

        logger.info("Created category %s (%r) for user %s", category.id, name, user_id)
        return category

    async def delete_category(self, user_id: str, category_id: str) -> int:
        """Delete a category and detach it from every task that used it.

        Returns the number of tasks that lost their category. The counter
        is not adjusted per task since the row goes away with it.
        """
        category = await self.get_category(user_id, category_id)

        result = await self.db.execute(
            update(Task)
            .where(Task.user_id == user_id, Task.category_id == category.id)
            .values(category_id=None)
        )
        await self.db.delete(category)
        await self.db.flush()

        detached = result.rowcount or 0
        logger.info(
            "Deleted category %s for user %s; cleared it from %d task(s)",
            category.id,
            user_id,
            detached,
        )
        return detached

    async def increment_task_count(self, category_id: str, *, task_id: str | None = None) -> None:
        await self._adjust(category_id, 1, task_id)

    async def decrement_task_count(self, category_id: str, *, task_id: str | None = None) -> None:
        """Decrement the counter, never below zero."""
        await self._adjust(category_id, -1, task_id)

    async def _adjust(self, category_id: str, delta: int, task_id: str | None) -> None:
        stmt = update(Category).where(Category.id == category_id)
        if delta < 0:
            stmt = stmt.where(Category.task_count > 0)
        stmt = stmt.values(task_count=Category.task_count + delta)

        try:
            result = await self.db.execute(stmt)
        except SQLAlchemyError as e:
            logger.error(
                "Category counter drift: adjusting task_count of %s by %+d failed after task %s was written",
                category_id,
                delta,
                task_id,
                exc_info=True,
            )
            raise CounterAdjustmentError(category_id, delta) from e

        if not result.rowcount:
            if delta < 0:
                logger.warning(
                    "Category %s missing or already at zero; decrement for task %s skipped",
                    category_id,
                    task_id,
                )
            else:
                logger.warning(
                    "Category %s missing; increment for task %s skipped",
                    category_id,
                    task_id,
                )

    async def recount_task_counts(self, user_id: str | None = None) -> list[CountCorrection]:
        """Recompute counters from the tasks table and fix any that drifted.

        Limited to one user's categories when ``user_id`` is given.
        """
        counts_query = (
            select(Task.category_id, func.count())
            .where(Task.category_id.is_not(None))
            .group_by(Task.category_id)
        )
        categories_query = (
            select(Category)
            .order_by(Category.id)
            .execution_options(populate_existing=True)
        )
        if user_id is not None:
            counts_query = counts_query.where(Task.user_id == user_id)
            categories_query = categories_query.where(Category.user_id == user_id)

        actual_counts = dict((await self.db.execute(counts_query)).all())
        categories = list((await self.db.execute(categories_query)).scalars())

        corrections = []
        for category in categories:
            actual = actual_counts.get(category.id, 0)
            if category.task_count != actual:
                corrections.append(CountCorrection(category.id, category.task_count, actual))
                logger.warning(
                    "Category %s task_count drifted: stored %d, actual %d; repaired",
                    category.id,
                    category.task_count,
                    actual,
                )
                category.task_count = actual

        await self.db.flush()
        return corrections
