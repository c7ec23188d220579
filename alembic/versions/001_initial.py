"""Initial migration - create categories and tasks.

Revision ID: 001
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Categories table
    op.create_table(
        "categories",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(50), nullable=False),
        sa.Column("color", sa.String(7), nullable=False),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("task_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("user_id", "name", name="uq_categories_user_name"),
        sa.CheckConstraint("task_count >= 0", name="ck_categories_task_count"),
    )
    op.create_index("ix_categories_user_id", "categories", ["user_id"])

    # Tasks table
    op.create_table(
        "tasks",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.Text),
        sa.Column("status", sa.String(20), nullable=False, server_default="todo"),
        sa.Column("priority", sa.String(10), nullable=False, server_default="medium"),
        sa.Column("due_date", sa.DateTime(timezone=True)),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("category_id", sa.String(36), sa.ForeignKey("categories.id", ondelete="SET NULL")),
        sa.Column("tags", sa.JSON, nullable=False),
        sa.Column("estimated_hours", sa.Float),
        sa.Column("actual_hours", sa.Float, nullable=False, server_default="0"),
        sa.Column("completed_at", sa.DateTime(timezone=True)),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )

    # Indexes for the per-user listing filters
    op.create_index("ix_tasks_user_status", "tasks", ["user_id", "status"])
    op.create_index("ix_tasks_user_priority", "tasks", ["user_id", "priority"])
    op.create_index("ix_tasks_user_due_date", "tasks", ["user_id", "due_date"])
    op.create_index("ix_tasks_user_category", "tasks", ["user_id", "category_id"])


def downgrade() -> None:
    op.drop_index("ix_tasks_user_category")
    op.drop_index("ix_tasks_user_due_date")
    op.drop_index("ix_tasks_user_priority")
    op.drop_index("ix_tasks_user_status")
    op.drop_table("tasks")
    op.drop_index("ix_categories_user_id")
    op.drop_table("categories")
