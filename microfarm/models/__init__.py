"""ORM model registry: importing this module registers every table on Base.metadata.

Alembic ``env.py`` imports ``Base`` from here (not from ``base.py``) so that
autogenerate sees all tables.  Application code can also do::

    from microfarm.models import CropProfile, Order, OrderItem, Task
"""

# ── Base & Mixins ───────────────────────────────────────────────────────────
from microfarm.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin

# ── Crop reference ──────────────────────────────────────────────────────────
from microfarm.models.crops import CropProfile

# ── Enums ───────────────────────────────────────────────────────────────────
from microfarm.models.enums import (
    OrderItemStatusEnum,
    OrderStatusEnum,
    TaskPriorityEnum,
    TaskStatusEnum,
    TaskTypeEnum,
)

# ── Production models ───────────────────────────────────────────────────────
from microfarm.models.orders import Order, OrderItem
from microfarm.models.tasks import Task

__all__ = [
    # Base & mixins
    "Base",
    # Crop reference
    "CropProfile",
    # Production
    "Order",
    "OrderItem",
    # Enums
    "OrderItemStatusEnum",
    "OrderStatusEnum",
    "Task",
    "TaskPriorityEnum",
    "TaskStatusEnum",
    "TaskTypeEnum",
    "TimestampMixin",
    "UUIDPrimaryKeyMixin",
]
