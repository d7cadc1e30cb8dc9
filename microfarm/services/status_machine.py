"""Order-item and order status transitions driven by task completion.

Completing a task moves its order item to the stage that task starts.
The move is unconditional: a harvest logged before seeding still marks
the item harvested.  Soaking is simply never entered for varieties that
have no soak task.

    pending ─soak─▶ soaking ─seed─▶ germinating ─move_to_light─▶ growing ─harvest─▶ harvested
       └──────────────seed──────────────┘
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import assert_never

from microfarm.models.enums import OrderItemStatusEnum, OrderStatusEnum, TaskStatusEnum, TaskTypeEnum

_READY_FROM: frozenset[OrderStatusEnum] = frozenset(
	{OrderStatusEnum.pending, OrderStatusEnum.in_progress}
)


def next_item_status(task_type: TaskTypeEnum) -> OrderItemStatusEnum:
	"""Order item status after a task of ``task_type`` completes."""
	match task_type:
		case TaskTypeEnum.soak:
			return OrderItemStatusEnum.soaking
		case TaskTypeEnum.seed:
			return OrderItemStatusEnum.germinating
		case TaskTypeEnum.move_to_light:
			return OrderItemStatusEnum.growing
		case TaskTypeEnum.harvest:
			return OrderItemStatusEnum.harvested
		case _:
			assert_never(task_type)


def order_is_ready(item_statuses: Iterable[OrderItemStatusEnum]) -> bool:
	statuses = list(item_statuses)
	return bool(statuses) and all(status == OrderItemStatusEnum.harvested for status in statuses)


def aggregate_order_status(
	current: OrderStatusEnum,
	item_statuses: Iterable[OrderItemStatusEnum],
) -> OrderStatusEnum:
	"""Re-evaluate an order from the full set of its item statuses.

	Only moves forward to ``ready``; an order that is already ready,
	delivered or cancelled keeps its status.  Safe to call repeatedly and
	in any completion order.
	"""
	if current in _READY_FROM and order_is_ready(item_statuses):
		return OrderStatusEnum.ready
	return current


# Order statuses a caller may set directly; ``ready`` is only ever derived.
_MANUAL_ORDER_TRANSITIONS: dict[OrderStatusEnum, frozenset[OrderStatusEnum]] = {
	OrderStatusEnum.pending: frozenset({OrderStatusEnum.in_progress, OrderStatusEnum.cancelled}),
	OrderStatusEnum.in_progress: frozenset({OrderStatusEnum.cancelled}),
	OrderStatusEnum.ready: frozenset({OrderStatusEnum.delivered, OrderStatusEnum.cancelled}),
	OrderStatusEnum.delivered: frozenset(),
	OrderStatusEnum.cancelled: frozenset(),
}


def can_set_order_status(current: OrderStatusEnum, target: OrderStatusEnum) -> bool:
	"""Whether an operator may move an order from ``current`` to ``target``.

	Setting the status an order already has is always allowed.
	"""
	return target == current or target in _MANUAL_ORDER_TRANSITIONS[current]


def can_set_task_status(current: TaskStatusEnum, target: TaskStatusEnum) -> bool:
	"""Manual task status changes; completion has its own path.

	A completed task is final.  A cancelled one may be reopened.
	"""
	if target == TaskStatusEnum.completed:
		return False
	return current != TaskStatusEnum.completed
