"""Task model - the core entity of Taskboard."""

import enum
from datetime import datetime

from sqlalchemy import JSON, Enum, Float, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from taskboard.models.base import Base, IdMixin, TimestampMixin, UTCDateTime, utcnow


class TaskStatus(str, enum.Enum):
    TODO = "todo"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    ARCHIVED = "archived"


class TaskPriority(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


def _enum_values(enum_cls: type[enum.Enum]) -> list[str]:
    return [member.value for member in enum_cls]


class Task(IdMixin, TimestampMixin, Base):
    """A user's task with lifecycle status and optional category."""

    __tablename__ = "tasks"
    __table_args__ = (
        Index("ix_tasks_user_status", "user_id", "status"),
        Index("ix_tasks_user_priority", "user_id", "priority"),
        Index("ix_tasks_user_due_date", "user_id", "due_date"),
        Index("ix_tasks_user_category", "user_id", "category_id"),
    )

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    status: Mapped[TaskStatus] = mapped_column(
        Enum(TaskStatus, name="task_status", native_enum=False, length=20, values_callable=_enum_values),
        nullable=False,
        default=TaskStatus.TODO,
    )
    priority: Mapped[TaskPriority] = mapped_column(
        Enum(TaskPriority, name="task_priority", native_enum=False, length=10, values_callable=_enum_values),
        nullable=False,
        default=TaskPriority.MEDIUM,
    )
    due_date: Mapped[datetime | None] = mapped_column(UTCDateTime)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    category_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("categories.id", ondelete="SET NULL"),
    )
    tags: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    estimated_hours: Mapped[float | None] = mapped_column(Float)
    actual_hours: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    completed_at: Mapped[datetime | None] = mapped_column(UTCDateTime)

    # Relationships
    category: Mapped["Category | None"] = relationship(lazy="selectin")  # noqa: F821

    def apply_status(self, new_status: TaskStatus) -> None:
        """Set the status and keep ``completed_at`` in step with it.

        Entering completed stamps the time once; any other status clears it.
        Callers check the transition table first.
        """
        self.status = new_status
        if new_status == TaskStatus.COMPLETED:
            if self.completed_at is None:
                self.completed_at = utcnow()
        else:
            self.completed_at = None

    def __repr__(self) -> str:
        return f"<Task(title={self.title!r}, status={self.status.value})>"
