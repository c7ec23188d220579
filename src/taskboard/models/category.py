"""Category model for grouping tasks."""

from sqlalchemy import CheckConstraint, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from taskboard.models.base import Base, IdMixin, TimestampMixin


class Category(IdMixin, TimestampMixin, Base):
    """A user's category with a denormalized count of referencing tasks.

    ``task_count`` is only written by ``CategoryLedger``.
    """

    __tablename__ = "categories"
    __table_args__ = (
        UniqueConstraint("user_id", "name", name="uq_categories_user_name"),
        CheckConstraint("task_count >= 0", name="ck_categories_task_count"),
    )

    name: Mapped[str] = mapped_column(String(50), nullable=False)
    color: Mapped[str] = mapped_column(String(7), nullable=False)  # #RGB or #RRGGBB
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    task_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    def __repr__(self) -> str:
        return f"<Category(name={self.name!r}, task_count={self.task_count})>"
