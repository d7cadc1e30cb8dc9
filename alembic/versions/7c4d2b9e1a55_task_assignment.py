"""task_assignment

Revision ID: 7c4d2b9e1a55
Revises: 3f1a9c2e7b10
Create Date: 2026-10-17 12:00:00.000000

Adds the worker a task is assigned to.
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "7c4d2b9e1a55"
down_revision: str | None = "3f1a9c2e7b10"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.add_column("tasks", sa.Column("assigned_to", sa.String(100), nullable=True))
    op.create_index("ix_tasks_farm_assigned_to", "tasks", ["farm_id", "assigned_to"])


def downgrade() -> None:
    op.drop_index("ix_tasks_farm_assigned_to", table_name="tasks")
    op.drop_column("tasks", "assigned_to")
