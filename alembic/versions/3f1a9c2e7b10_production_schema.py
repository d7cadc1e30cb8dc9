"""production_schema

Revision ID: 3f1a9c2e7b10
Revises:
Create Date: 2026-10-17 00:00:00.000000

Creates the crop profile, order, order item and task tables plus their
five PostgreSQL enum types.  Requires the uuid-ossp extension for the
``uuid_generate_v4()`` server defaults.
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "3f1a9c2e7b10"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

# ── Enum type names (PostgreSQL CREATE TYPE) ────────────────────────────────
ENUM_ORDER_STATUS = postgresql.ENUM(
    "pending",
    "in_progress",
    "ready",
    "delivered",
    "cancelled",
    name="order_status",
    create_type=False,
)
ENUM_ORDER_ITEM_STATUS = postgresql.ENUM(
    "pending",
    "soaking",
    "germinating",
    "growing",
    "harvested",
    "cancelled",
    name="order_item_status",
    create_type=False,
)
ENUM_TASK_TYPE = postgresql.ENUM(
    "soak", "seed", "move_to_light", "harvest", name="task_type", create_type=False
)
ENUM_TASK_STATUS = postgresql.ENUM(
    "todo", "in_progress", "completed", "cancelled", name="task_status", create_type=False
)
ENUM_TASK_PRIORITY = postgresql.ENUM(
    "low", "medium", "high", "urgent", name="task_priority", create_type=False
)


def _uuid_pk() -> sa.Column:
    return sa.Column(
        "id",
        postgresql.UUID(as_uuid=True),
        server_default=sa.text("uuid_generate_v4()"),
        nullable=False,
    )


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    op.execute('CREATE EXTENSION IF NOT EXISTS "uuid-ossp"')

    # ── 1. Enum types ───────────────────────────────────────────────────
    ENUM_ORDER_STATUS.create(op.get_bind(), checkfirst=True)
    ENUM_ORDER_ITEM_STATUS.create(op.get_bind(), checkfirst=True)
    ENUM_TASK_TYPE.create(op.get_bind(), checkfirst=True)
    ENUM_TASK_STATUS.create(op.get_bind(), checkfirst=True)
    ENUM_TASK_PRIORITY.create(op.get_bind(), checkfirst=True)

    # ── 2. Reference data ───────────────────────────────────────────────
    op.create_table(
        "crop_profiles",
        _uuid_pk(),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("average_yield_per_tray", sa.Float(), nullable=True),
        sa.Column("soak_days", sa.Integer(), nullable=True),
        sa.Column("germination_days", sa.Integer(), nullable=True),
        sa.Column("light_days", sa.Integer(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
    )

    # ── 3. Orders ───────────────────────────────────────────────────────
    op.create_table(
        "orders",
        _uuid_pk(),
        sa.Column("farm_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("order_number", sa.String(50), nullable=False),
        sa.Column("customer_name", sa.String(100), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column(
            "status",
            ENUM_ORDER_STATUS,
            server_default=sa.text("'pending'"),
            nullable=False,
        ),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("farm_id", "order_number", name="uq_orders_farm_number"),
    )
    op.create_index("ix_orders_farm_status", "orders", ["farm_id", "status"])

    op.create_table(
        "order_items",
        _uuid_pk(),
        sa.Column("order_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("crop_profile_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("requested_quantity", sa.Float(), nullable=False),
        sa.Column(
            "overage_percent",
            sa.Float(),
            server_default=sa.text("10"),
            nullable=False,
        ),
        sa.Column("harvest_date", sa.Date(), nullable=False),
        sa.Column("soak_date", sa.Date(), nullable=False),
        sa.Column("seed_date", sa.Date(), nullable=False),
        sa.Column("move_to_light_date", sa.Date(), nullable=False),
        sa.Column("trays_needed", sa.Integer(), nullable=False),
        sa.Column(
            "status",
            ENUM_ORDER_ITEM_STATUS,
            server_default=sa.text("'pending'"),
            nullable=False,
        ),
        sa.Column("actual_yield_quantity", sa.Float(), nullable=True),
        sa.Column("actual_trays", sa.Integer(), nullable=True),
        sa.Column("seed_lot", sa.String(100), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["order_id"], ["orders.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(
            ["crop_profile_id"], ["crop_profiles.id"], ondelete="RESTRICT"
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("trays_needed >= 1", name="ck_order_items_trays_positive"),
        sa.CheckConstraint(
            "overage_percent >= 0 AND overage_percent <= 100",
            name="ck_order_items_overage_range",
        ),
    )
    op.create_index("ix_order_items_order_id", "order_items", ["order_id"])
    op.create_index("ix_order_items_crop_profile_id", "order_items", ["crop_profile_id"])

    # ── 4. Tasks ────────────────────────────────────────────────────────
    op.create_table(
        "tasks",
        _uuid_pk(),
        sa.Column("farm_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("order_item_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("task_type", ENUM_TASK_TYPE, nullable=False),
        sa.Column("due_date", sa.Date(), nullable=False),
        sa.Column(
            "status",
            ENUM_TASK_STATUS,
            server_default=sa.text("'todo'"),
            nullable=False,
        ),
        sa.Column(
            "priority",
            ENUM_TASK_PRIORITY,
            server_default=sa.text("'medium'"),
            nullable=False,
        ),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_by", sa.String(100), nullable=True),
        sa.Column("completion_notes", sa.Text(), nullable=True),
        sa.Column("actual_trays", sa.Integer(), nullable=True),
        sa.Column("actual_yield_quantity", sa.Float(), nullable=True),
        sa.Column("seed_lot", sa.String(100), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["order_item_id"], ["order_items.id"], ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_tasks_farm_due_date", "tasks", ["farm_id", "due_date"])
    op.create_index("ix_tasks_order_item_type", "tasks", ["order_item_id", "task_type"])


def downgrade() -> None:
    # ── Drop tables in reverse dependency order ─────────────────────────
    op.drop_index("ix_tasks_order_item_type", table_name="tasks")
    op.drop_index("ix_tasks_farm_due_date", table_name="tasks")
    op.drop_table("tasks")
    op.drop_index("ix_order_items_crop_profile_id", table_name="order_items")
    op.drop_index("ix_order_items_order_id", table_name="order_items")
    op.drop_table("order_items")
    op.drop_index("ix_orders_farm_status", table_name="orders")
    op.drop_table("orders")
    op.drop_table("crop_profiles")

    # ── Drop enum types ─────────────────────────────────────────────────
    ENUM_TASK_PRIORITY.drop(op.get_bind(), checkfirst=True)
    ENUM_TASK_STATUS.drop(op.get_bind(), checkfirst=True)
    ENUM_TASK_TYPE.drop(op.get_bind(), checkfirst=True)
    ENUM_ORDER_ITEM_STATUS.drop(op.get_bind(), checkfirst=True)
    ENUM_ORDER_STATUS.drop(op.get_bind(), checkfirst=True)
