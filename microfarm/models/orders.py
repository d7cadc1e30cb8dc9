"""Order and OrderItem ORM models.

An Order exclusively owns its OrderItems, and each OrderItem exclusively
owns the production Tasks generated for it, and both relationships cascade
on delete.  The date and tray columns on OrderItem are derived by the
schedule calculator and are rewritten whenever quantity, overage or the
target harvest date changes.
"""

from __future__ import annotations

import uuid
from datetime import date
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, Date, Enum, Float, ForeignKey, Index, Integer, String, Text, UniqueConstraint, text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from microfarm.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from microfarm.models.enums import OrderItemStatusEnum, OrderStatusEnum

if TYPE_CHECKING:
    from microfarm.models.crops import CropProfile
    from microfarm.models.tasks import Task

# ═══════════════════════════════════════════════════════════════════════════
# Order
# ═══════════════════════════════════════════════════════════════════════════


class Order(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """A customer order: one or more crops due on target harvest dates."""

    __tablename__ = "orders"
    __table_args__ = (
        UniqueConstraint("farm_id", "order_number", name="uq_orders_farm_number"),
        Index("ix_orders_farm_status", "farm_id", "status"),
    )

    farm_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    order_number: Mapped[str] = mapped_column(String(50), nullable=False)
    customer_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[OrderStatusEnum] = mapped_column(
        Enum(
            OrderStatusEnum,
            name="order_status",
            create_constraint=False,
            native_enum=True,
        ),
        nullable=False,
        default=OrderStatusEnum.pending,
        server_default=text("'pending'"),
    )

    # ── Relationships ────────────────────────────────────────────────────
    items: Mapped[list[OrderItem]] = relationship(
        back_populates="order",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<Order id={self.id} number={self.order_number!r} status={self.status}>"


# ═══════════════════════════════════════════════════════════════════════════
# OrderItem
# ═══════════════════════════════════════════════════════════════════════════


class OrderItem(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """One crop line of an order, with its computed production schedule."""

    __tablename__ = "order_items"
    __table_args__ = (
        Index("ix_order_items_order_id", "order_id"),
        Index("ix_order_items_crop_profile_id", "crop_profile_id"),
        CheckConstraint("trays_needed >= 1", name="ck_order_items_trays_positive"),
        CheckConstraint(
            "overage_percent >= 0 AND overage_percent <= 100",
            name="ck_order_items_overage_range",
        ),
    )

    order_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
    )
    crop_profile_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("crop_profiles.id", ondelete="RESTRICT"),
        nullable=False,
    )

    # ── Request ──────────────────────────────────────────────────────────
    requested_quantity: Mapped[float] = mapped_column(Float, nullable=False)
    overage_percent: Mapped[float] = mapped_column(
        Float,
        nullable=False,
        default=10.0,
        server_default=text("10"),
    )
    harvest_date: Mapped[date] = mapped_column(Date, nullable=False)

    # ── Computed schedule ────────────────────────────────────────────────
    soak_date: Mapped[date] = mapped_column(Date, nullable=False)
    seed_date: Mapped[date] = mapped_column(Date, nullable=False)
    move_to_light_date: Mapped[date] = mapped_column(Date, nullable=False)
    trays_needed: Mapped[int] = mapped_column(Integer, nullable=False)

    # ── Lifecycle & actuals ──────────────────────────────────────────────
    status: Mapped[OrderItemStatusEnum] = mapped_column(
        Enum(
            OrderItemStatusEnum,
            name="order_item_status",
            create_constraint=False,
            native_enum=True,
        ),
        nullable=False,
        default=OrderItemStatusEnum.pending,
        server_default=text("'pending'"),
    )
    actual_yield_quantity: Mapped[float | None] = mapped_column(Float, nullable=True)
    actual_trays: Mapped[int | None] = mapped_column(Integer, nullable=True)
    seed_lot: Mapped[str | None] = mapped_column(String(100), nullable=True)

    # ── Relationships ────────────────────────────────────────────────────
    order: Mapped[Order] = relationship(back_populates="items")
    crop_profile: Mapped[CropProfile] = relationship(lazy="selectin")
    tasks: Mapped[list[Task]] = relationship(
        back_populates="order_item",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return (
            f"<OrderItem id={self.id} order={self.order_id} "
            f"trays={self.trays_needed} status={self.status}>"
        )
