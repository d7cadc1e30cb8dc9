"""Task ORM model: a dated unit of production work.

Production tasks are created in bulk when an order item is scheduled and
are only mutated by status transitions afterwards.  ``order_item_id`` is
nullable so general farm chores can share the table.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import TYPE_CHECKING

from sqlalchemy import Date, DateTime, Enum, Float, ForeignKey, Index, Integer, String, Text, text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from microfarm.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from microfarm.models.enums import TaskPriorityEnum, TaskStatusEnum, TaskTypeEnum

if TYPE_CHECKING:
    from microfarm.models.orders import OrderItem


class Task(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """A production step (soak / seed / move to light / harvest) for one order item."""

    __tablename__ = "tasks"
    __table_args__ = (
        Index("ix_tasks_farm_due_date", "farm_id", "due_date"),
        Index("ix_tasks_order_item_type", "order_item_id", "task_type"),
        Index("ix_tasks_farm_assigned_to", "farm_id", "assigned_to"),
    )

    farm_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    order_item_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("order_items.id", ondelete="CASCADE"),
        nullable=True,
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    task_type: Mapped[TaskTypeEnum] = mapped_column(
        Enum(
            TaskTypeEnum,
            name="task_type",
            create_constraint=False,
            native_enum=True,
        ),
        nullable=False,
    )
    due_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[TaskStatusEnum] = mapped_column(
        Enum(
            TaskStatusEnum,
            name="task_status",
            create_constraint=False,
            native_enum=True,
        ),
        nullable=False,
        default=TaskStatusEnum.todo,
        server_default=text("'todo'"),
    )
    priority: Mapped[TaskPriorityEnum] = mapped_column(
        Enum(
            TaskPriorityEnum,
            name="task_priority",
            create_constraint=False,
            native_enum=True,
        ),
        nullable=False,
        default=TaskPriorityEnum.medium,
        server_default=text("'medium'"),
    )
    assigned_to: Mapped[str | None] = mapped_column(String(100), nullable=True)

    # ── Completion log ───────────────────────────────────────────────────
    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    completed_by: Mapped[str | None] = mapped_column(String(100), nullable=True)
    completion_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    actual_trays: Mapped[int | None] = mapped_column(Integer, nullable=True)
    actual_yield_quantity: Mapped[float | None] = mapped_column(Float, nullable=True)
    seed_lot: Mapped[str | None] = mapped_column(String(100), nullable=True)

    # ── Relationships ────────────────────────────────────────────────────
    order_item: Mapped[OrderItem | None] = relationship(back_populates="tasks")

    def __repr__(self) -> str:
        return (
            f"<Task id={self.id} type={self.task_type} "
            f"due={self.due_date} status={self.status}>"
        )
