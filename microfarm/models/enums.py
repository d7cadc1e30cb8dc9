"""PostgreSQL-backed enum types for all ORM models.

Each StrEnum maps 1:1 to a PostgreSQL CREATE TYPE ... AS ENUM.
These are separate from the Pydantic StrEnum in microfarm/config.py:
config enums validate settings, ORM enums type database columns.
"""

from enum import StrEnum

# ── Order enums ─────────────────────────────────────────────────────────────


class OrderStatusEnum(StrEnum):
    """Lifecycle of a customer order."""

    pending = "pending"
    in_progress = "in_progress"
    ready = "ready"
    delivered = "delivered"
    cancelled = "cancelled"


class OrderItemStatusEnum(StrEnum):
    """Growing stage of a single order line."""

    pending = "pending"
    soaking = "soaking"
    germinating = "germinating"
    growing = "growing"
    harvested = "harvested"
    cancelled = "cancelled"


# ── Task enums ──────────────────────────────────────────────────────────────


class TaskTypeEnum(StrEnum):
    """Production step a task represents."""

    soak = "soak"
    seed = "seed"
    move_to_light = "move_to_light"
    harvest = "harvest"


class TaskStatusEnum(StrEnum):
    """Work state of a task."""

    todo = "todo"
    in_progress = "in_progress"
    completed = "completed"
    cancelled = "cancelled"


class TaskPriorityEnum(StrEnum):
    low = "low"
    medium = "medium"
    high = "high"
    urgent = "urgent"
