"""Order production orchestration: scheduling, task lifecycle, status propagation.

Composes the pure components (schedule calculator, task generator, status
machine, yield estimator) with persistence.  Every public method validates
first and writes second; the writes land in the caller's session and are
committed or rolled back as one unit by ``get_db``.
"""

from __future__ import annotations

import json
import uuid
from dataclasses import dataclass
from datetime import UTC, date, datetime
from typing import Any

import structlog
from redis.asyncio import Redis
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from microfarm.config import Settings, get_settings
from microfarm.models.crops import CropProfile
from microfarm.models.enums import (
	OrderItemStatusEnum,
	OrderStatusEnum,
	TaskStatusEnum,
	TaskTypeEnum,
)
from microfarm.models.orders import Order, OrderItem
from microfarm.models.tasks import Task
from microfarm.schemas.production import (
	OrderCreate,
	OrderFilters,
	OrderItemCreate,
	OrderItemRead,
	OrderItemScheduleReceipt,
	OrderItemUpdate,
	OrderRead,
	OrderScheduleReceipt,
	OrderUpdate,
	ScheduleWarning,
	SchedulePreviewRead,
	SchedulePreviewRequest,
	TaskCompletion,
	TaskCompletionReceipt,
	TaskFilters,
	TaskRead,
	TaskUpdate,
)
from microfarm.services.errors import (
	CropProfileNotFound,
	IncompleteCompletionRequest,
	MissingProductionData,
	OrderItemNotFound,
	OrderNotFound,
	OrderNumberConflict,
	OrderStateConflict,
	PastSeedDateError,
	TaskAlreadyCompleted,
	TaskNotFound,
	TaskStateConflict,
)
from microfarm.services.schedule_calculator import (
	ProductionSchedule,
	compute_schedule,
	missing_production_fields,
	seed_date_in_past,
)
from microfarm.services.status_machine import (
	aggregate_order_status,
	can_set_order_status,
	can_set_task_status,
	next_item_status,
)
from microfarm.services.task_generator import due_date_for, generate_tasks
from microfarm.services.yield_estimator import (
	observed_yield_per_tray,
	should_update_yield,
	smoothed_average_expression,
)

logger = structlog.get_logger("microfarm.production")


@dataclass(slots=True)
class _PlannedItem:
	payload: OrderItemCreate
	crop: CropProfile
	overage_percent: float
	schedule: ProductionSchedule


class ProductionService:
	"""Service for order scheduling, task completion and yield learning."""

	def __init__(
		self,
		db: AsyncSession,
		redis_client: Redis | None = None,
		settings: Settings | None = None,
	):
		self.db = db
		self.redis_client = redis_client
		self.settings = settings or get_settings()

	# ── Order creation ───────────────────────────────────────────────────

	async def create_order(
		self,
		farm_id: uuid.UUID,
		payload: OrderCreate,
		today: date | None = None,
	) -> OrderScheduleReceipt:
		today = today or date.today()
		planned: list[_PlannedItem] = []
		warnings: list[ScheduleWarning] = []
		crops: dict[uuid.UUID, CropProfile] = {}

		for index, item in enumerate(payload.items):
			crop = crops.get(item.crop_profile_id)
			if crop is None:
				crop = await self._require_crop_profile(item.crop_profile_id)
				crops[item.crop_profile_id] = crop
			overage = self._resolve_overage(item.overage_percent)
			schedule = self._schedule_for(crop, item.requested_quantity, overage, item.harvest_date)
			warning = self._check_seed_date(schedule, today, index)
			if warning is not None:
				warnings.append(warning)
			planned.append(
				_PlannedItem(
					payload=item,
					crop=crop,
					overage_percent=overage,
					schedule=schedule,
				)
			)

		order_number = payload.order_number or await self._next_order_number(farm_id, today.year)
		order = Order(
			id=uuid.uuid4(),
			farm_id=farm_id,
			order_number=order_number,
			customer_name=payload.customer_name,
			notes=payload.notes,
			status=OrderStatusEnum.pending,
		)
		for plan in planned:
			order.items.append(self._build_order_item(order, plan))

		self.db.add(order)
		try:
			await self.db.flush()
		except IntegrityError as exc:
			if "uq_orders_farm_number" in str(exc.orig):
				raise OrderNumberConflict(order_number) from exc
			raise

		task_count = sum(len(item.tasks) for item in order.items)
		logger.info(
			"order_scheduled",
			order_id=str(order.id),
			order_number=order.order_number,
			farm_id=str(farm_id),
			items=len(order.items),
			tasks=task_count,
			warnings=len(warnings),
		)
		await self._publish_event(
			farm_id,
			"order_scheduled",
			order_id=str(order.id),
			order_number=order.order_number,
			task_count=task_count,
		)
		return OrderScheduleReceipt(order=OrderRead.model_validate(order), warnings=warnings)

	# ── Order item edit ──────────────────────────────────────────────────

	async def update_order_item(
		self,
		item_id: uuid.UUID,
		payload: OrderItemUpdate,
		today: date | None = None,
	) -> OrderItemScheduleReceipt:
		today = today or date.today()
		item = await self._require_order_item(item_id, for_update=True)

		quantity = item.requested_quantity if payload.requested_quantity is None else payload.requested_quantity
		overage = item.overage_percent if payload.overage_percent is None else payload.overage_percent
		harvest_date = item.harvest_date if payload.harvest_date is None else payload.harvest_date

		if (quantity, overage, harvest_date) == (item.requested_quantity, item.overage_percent, item.harvest_date):
			return OrderItemScheduleReceipt(item=OrderItemRead.model_validate(item), rescheduled=False)

		crop = await self._require_crop_profile(item.crop_profile_id)
		schedule = self._schedule_for(crop, quantity, overage, harvest_date)
		warnings: list[ScheduleWarning] = []
		warning = self._check_seed_date(schedule, today, None)
		if warning is not None:
			warnings.append(warning)

		item.requested_quantity = quantity
		item.overage_percent = overage
		self._apply_schedule(item, schedule)
		for task in item.tasks:
			task.due_date = due_date_for(schedule, task.task_type)

		await self.db.flush()
		logger.info(
			"order_item_rescheduled",
			order_item_id=str(item.id),
			trays_needed=item.trays_needed,
			seed_date=item.seed_date.isoformat(),
			harvest_date=item.harvest_date.isoformat(),
			tasks_updated=len(item.tasks),
		)
		return OrderItemScheduleReceipt(
			item=OrderItemRead.model_validate(item),
			rescheduled=True,
			warnings=warnings,
		)

	# ── Task completion ──────────────────────────────────────────────────

	async def complete_task(self, task_id: uuid.UUID, payload: TaskCompletion) -> TaskCompletionReceipt:
		completed_by = (payload.completed_by or "").strip()
		if not completed_by:
			raise IncompleteCompletionRequest("completed_by is required to complete a task")

		# Lock order is item then task, matching update_order_item.
		task = await self._require_task(task_id)
		item: OrderItem | None = None
		if task.order_item_id is not None:
			item = await self._require_order_item(task.order_item_id, for_update=True)
		task = await self._require_task(task_id, for_update=True, refresh=True)
		if task.status == TaskStatusEnum.completed:
			raise TaskAlreadyCompleted(task.id)
		if task.status == TaskStatusEnum.cancelled:
			raise TaskStateConflict(f"Task {task.id} is cancelled and cannot be completed")

		task.status = TaskStatusEnum.completed
		task.completed_at = payload.completed_at or datetime.now(UTC)
		task.completed_by = completed_by
		task.completion_notes = _clean(payload.notes)
		task.actual_trays = payload.actual_trays
		task.actual_yield_quantity = payload.actual_yield_quantity
		task.seed_lot = _clean(payload.seed_lot)

		if item is None:
			await self.db.flush()
			logger.info("task_completed", task_id=str(task.id), task_type=task.task_type.value)
			return TaskCompletionReceipt(task=TaskRead.model_validate(task))

		item.status = next_item_status(task.task_type)
		if task.task_type == TaskTypeEnum.seed and task.seed_lot is not None:
			item.seed_lot = task.seed_lot

		average: float | None = None
		if task.task_type == TaskTypeEnum.harvest:
			if payload.actual_yield_quantity is not None:
				item.actual_yield_quantity = payload.actual_yield_quantity
			if payload.actual_trays is not None:
				item.actual_trays = payload.actual_trays
			if should_update_yield(payload.actual_yield_quantity, payload.actual_trays):
				observed = observed_yield_per_tray(payload.actual_yield_quantity, payload.actual_trays)  # type: ignore[arg-type]
				average = await self._apply_yield_observation(item.crop_profile_id, observed)
				logger.info(
					"crop_yield_updated",
					crop_profile_id=str(item.crop_profile_id),
					observed_yield_per_tray=observed,
					average_yield_per_tray=average,
				)
				await self._publish_event(
					task.farm_id,
					"crop_yield_updated",
					crop_profile_id=str(item.crop_profile_id),
					average_yield_per_tray=average,
				)

		await self.db.flush()

		order_status: OrderStatusEnum | None = None
		if item.status == OrderItemStatusEnum.harvested:
			order = await self._refresh_order_status(item.order_id)
			order_status = order.status

		logger.info(
			"task_completed",
			task_id=str(task.id),
			task_type=task.task_type.value,
			order_item_id=str(item.id),
			order_item_status=item.status.value,
			completed_by=completed_by,
		)
		await self._publish_event(
			task.farm_id,
			"task_completed",
			task_id=str(task.id),
			task_type=task.task_type.value,
			order_item_id=str(item.id),
			order_item_status=item.status.value,
		)
		return TaskCompletionReceipt(
			task=TaskRead.model_validate(task),
			order_item_id=item.id,
			order_item_status=item.status,
			order_id=item.order_id,
			order_status=order_status,
			average_yield_per_tray=average,
		)

	# ── Order and task management ────────────────────────────────────────

	async def update_order(self, farm_id: uuid.UUID, order_id: uuid.UUID, payload: OrderUpdate) -> Order:
		"""Edit customer details or set a manual status.

		Cancelling an order cancels every item that is not yet harvested and
		every task still open on the order.
		"""
		order = await self._lock_order_graph(farm_id, order_id)
		changes = payload.model_dump(exclude_unset=True)
		target = changes.pop("status", None)
		if target is not None and not can_set_order_status(order.status, target):
			raise OrderStateConflict(order.id, order.status.value, target.value)

		for field, value in changes.items():
			setattr(order, field, value)

		previous = order.status
		cancelled_tasks = 0
		if target is not None and target != previous:
			order.status = target
			if target == OrderStatusEnum.cancelled:
				cancelled_tasks = _cancel_open_work(order)

		await self.db.flush()
		logger.info(
			"order_updated",
			order_id=str(order.id),
			previous_status=previous.value,
			status=order.status.value,
			cancelled_tasks=cancelled_tasks,
		)
		await self._publish_event(
			farm_id,
			"order_updated",
			order_id=str(order.id),
			order_number=order.order_number,
			status=order.status.value,
		)
		return order

	async def delete_order(self, farm_id: uuid.UUID, order_id: uuid.UUID) -> None:
		order = await self._lock_order_graph(farm_id, order_id)
		order_number = order.order_number
		await self.db.delete(order)
		await self.db.flush()
		logger.info("order_deleted", order_id=str(order_id), order_number=order_number)
		await self._publish_event(
			farm_id,
			"order_deleted",
			order_id=str(order_id),
			order_number=order_number,
		)

	async def update_task(self, farm_id: uuid.UUID, task_id: uuid.UUID, payload: TaskUpdate) -> Task:
		task = await self._require_task(task_id, for_update=True)
		if task.farm_id != farm_id:
			raise TaskNotFound(task_id)
		if task.status == TaskStatusEnum.completed:
			raise TaskAlreadyCompleted(task.id)

		changes = payload.model_dump(exclude_unset=True)
		target = changes.pop("status", None)
		if target is not None and not can_set_task_status(task.status, target):
			raise TaskStateConflict(f"Task {task.id} cannot move from {task.status.value} to {target.value}")

		for field, value in changes.items():
			if value is None and field not in _CLEARABLE_TASK_FIELDS:
				continue
			if field == "assigned_to":
				value = _clean(value)
			setattr(task, field, value)
		previous = task.status
		if target is not None:
			task.status = target

		await self.db.flush()
		logger.info(
			"task_updated",
			task_id=str(task.id),
			previous_status=previous.value,
			status=task.status.value,
			assigned_to=task.assigned_to,
		)
		await self._publish_event(
			farm_id,
			"task_updated",
			task_id=str(task.id),
			status=task.status.value,
			assigned_to=task.assigned_to,
		)
		return task

	# ── Reads ────────────────────────────────────────────────────────────

	async def list_orders(self, farm_id: uuid.UUID, filters: OrderFilters) -> list[Order]:
		stmt = select(Order).where(Order.farm_id == farm_id)
		if filters.status is not None:
			stmt = stmt.where(Order.status == filters.status)
		if filters.customer:
			stmt = stmt.where(Order.customer_name.ilike(f"%{filters.customer}%"))
		rows = await self.db.execute(stmt.order_by(Order.created_at.desc()))
		return list(rows.scalars().all())

	async def get_order(self, order_id: uuid.UUID) -> Order:
		row = await self.db.execute(select(Order).where(Order.id == order_id))
		order = row.scalar_one_or_none()
		if order is None:
			raise OrderNotFound(order_id)
		return order

	async def list_tasks(self, farm_id: uuid.UUID, filters: TaskFilters) -> list[Task]:
		stmt = select(Task).where(Task.farm_id == farm_id)
		if filters.status is not None:
			stmt = stmt.where(Task.status == filters.status)
		if filters.task_type is not None:
			stmt = stmt.where(Task.task_type == filters.task_type)
		if filters.order_item_id is not None:
			stmt = stmt.where(Task.order_item_id == filters.order_item_id)
		if filters.assigned_to is not None:
			stmt = stmt.where(Task.assigned_to == filters.assigned_to)
		if filters.due_from is not None:
			stmt = stmt.where(Task.due_date >= filters.due_from)
		if filters.due_to is not None:
			stmt = stmt.where(Task.due_date <= filters.due_to)
		rows = await self.db.execute(stmt.order_by(Task.due_date.asc(), Task.created_at.asc()))
		return list(rows.scalars().all())

	async def preview_schedule(
		self,
		payload: SchedulePreviewRequest,
		today: date | None = None,
	) -> SchedulePreviewRead:
		today = today or date.today()
		crop = await self._require_crop_profile(payload.crop_profile_id)
		overage = self._resolve_overage(payload.overage_percent)
		schedule = self._schedule_for(crop, payload.requested_quantity, overage, payload.harvest_date)

		warnings: list[ScheduleWarning] = []
		if seed_date_in_past(schedule, today):
			warnings.append(self._past_seed_date_warning(schedule, today, None))

		specs = generate_tasks(schedule, crop.name, schedule.trays_needed, payload.requested_quantity)
		return SchedulePreviewRead(
			crop_profile_id=crop.id,
			trays_needed=schedule.trays_needed,
			total_quantity=float(schedule.total_quantity),
			requires_soaking=schedule.requires_soaking,
			soak_date=schedule.soak_date,
			seed_date=schedule.seed_date,
			move_to_light_date=schedule.move_to_light_date,
			harvest_date=schedule.harvest_date,
			total_growth_days=schedule.total_growth_days,
			task_types=[spec.task_type for spec in specs],
			warnings=warnings,
		)

	# ── Internals ────────────────────────────────────────────────────────

	def _resolve_overage(self, requested: float | None) -> float:
		if requested is None:
			return self.settings.default_overage_percent
		return requested

	@staticmethod
	def _schedule_for(
		crop: CropProfile,
		quantity: float,
		overage_percent: float,
		harvest_date: date,
	) -> ProductionSchedule:
		missing = missing_production_fields(crop)
		if missing:
			raise MissingProductionData(crop.name, missing)
		return compute_schedule(
			quantity,
			crop.average_yield_per_tray,  # type: ignore[arg-type]
			overage_percent,
			harvest_date,
			crop.soak_days,
			crop.germination_days,  # type: ignore[arg-type]
			crop.light_days,  # type: ignore[arg-type]
		)

	def _check_seed_date(
		self,
		schedule: ProductionSchedule,
		today: date,
		index: int | None,
	) -> ScheduleWarning | None:
		if not seed_date_in_past(schedule, today):
			return None
		if self.settings.reject_past_seed_dates:
			raise PastSeedDateError(schedule.seed_date, today)
		return self._past_seed_date_warning(schedule, today, index)

	@staticmethod
	def _past_seed_date_warning(
		schedule: ProductionSchedule,
		today: date,
		index: int | None,
	) -> ScheduleWarning:
		return ScheduleWarning(
			code="past_seed_date",
			message=(
				f"seed date {schedule.seed_date.isoformat()} is before today "
				f"({today.isoformat()}); harvest on {schedule.harvest_date.isoformat()} is at risk"
			),
			item_index=index,
		)

	@staticmethod
	def _apply_schedule(item: OrderItem, schedule: ProductionSchedule) -> None:
		item.harvest_date = schedule.harvest_date
		item.soak_date = schedule.soak_date
		item.seed_date = schedule.seed_date
		item.move_to_light_date = schedule.move_to_light_date
		item.trays_needed = schedule.trays_needed

	def _build_order_item(self, order: Order, plan: _PlannedItem) -> OrderItem:
		item = OrderItem(
			id=uuid.uuid4(),
			order_id=order.id,
			crop_profile_id=plan.crop.id,
			requested_quantity=plan.payload.requested_quantity,
			overage_percent=plan.overage_percent,
			status=OrderItemStatusEnum.pending,
		)
		self._apply_schedule(item, plan.schedule)

		specs = generate_tasks(
			plan.schedule,
			plan.crop.name,
			plan.schedule.trays_needed,
			plan.payload.requested_quantity,
		)
		for spec in specs:
			item.tasks.append(
				Task(
					id=uuid.uuid4(),
					farm_id=order.farm_id,
					order_item_id=item.id,
					title=spec.title,
					description=spec.description,
					task_type=spec.task_type,
					due_date=spec.due_date,
					status=spec.status,
					priority=spec.priority,
				)
			)
		return item

	async def _next_order_number(self, farm_id: uuid.UUID, year: int) -> str:
		"""One past the highest numeric suffix in use for the farm and year.

		Hand-entered numbers under the same prefix count toward the maximum;
		suffixes that are not plain digits are ignored.
		"""
		prefix = f"{self.settings.order_number_prefix}-{year}-"
		rows = await self.db.execute(
			select(Order.order_number).where(
				Order.farm_id == farm_id,
				Order.order_number.like(f"{prefix}%"),
			)
		)
		highest = 0
		for number in rows.scalars().all():
			suffix = number[len(prefix):]
			if suffix.isdigit():
				highest = max(highest, int(suffix))
		return f"{prefix}{highest + 1:03d}"

	async def _require_crop_profile(self, crop_profile_id: uuid.UUID) -> CropProfile:
		row = await self.db.execute(select(CropProfile).where(CropProfile.id == crop_profile_id))
		crop = row.scalar_one_or_none()
		if crop is None:
			raise CropProfileNotFound(crop_profile_id)
		return crop

	async def _require_order_item(self, item_id: uuid.UUID, for_update: bool = False) -> OrderItem:
		stmt = select(OrderItem).where(OrderItem.id == item_id)
		if for_update:
			stmt = stmt.with_for_update()
		row = await self.db.execute(stmt)
		item = row.scalar_one_or_none()
		if item is None:
			raise OrderItemNotFound(item_id)
		return item

	async def _require_task(
		self,
		task_id: uuid.UUID,
		for_update: bool = False,
		refresh: bool = False,
	) -> Task:
		stmt = select(Task).where(Task.id == task_id)
		if for_update:
			stmt = stmt.with_for_update()
		if refresh:
			stmt = stmt.execution_options(populate_existing=True)
		row = await self.db.execute(stmt)
		task = row.scalar_one_or_none()
		if task is None:
			raise TaskNotFound(task_id)
		return task

	async def _apply_yield_observation(self, crop_profile_id: uuid.UUID, observed: float) -> float | None:
		stmt = (
			update(CropProfile)
			.where(CropProfile.id == crop_profile_id)
			.values(
				average_yield_per_tray=smoothed_average_expression(
					CropProfile.average_yield_per_tray,
					observed,
				)
			)
			.returning(CropProfile.average_yield_per_tray)
			.execution_options(synchronize_session="fetch")
		)
		row = await self.db.execute(stmt)
		return row.scalar_one_or_none()

	async def _lock_order_graph(self, farm_id: uuid.UUID, order_id: uuid.UUID) -> Order:
		# Items, then their tasks, then the order: the same order the
		# completion path takes its locks in.
		item_rows = await self.db.execute(
			select(OrderItem.id)
			.where(OrderItem.order_id == order_id)
			.order_by(OrderItem.id)
			.with_for_update()
		)
		item_ids = list(item_rows.scalars().all())
		if item_ids:
			await self.db.execute(
				select(Task.id)
				.where(Task.order_item_id.in_(item_ids))
				.order_by(Task.id)
				.with_for_update()
			)
		row = await self.db.execute(
			select(Order)
			.where(Order.id == order_id)
			.with_for_update()
			.execution_options(populate_existing=True)
		)
		order = row.scalar_one_or_none()
		if order is None or order.farm_id != farm_id:
			raise OrderNotFound(order_id)
		return order

	async def _refresh_order_status(self, order_id: uuid.UUID) -> Order:
		# The order row lock serializes sibling harvests; the scan below then
		# always sees every other item's committed status.
		row = await self.db.execute(select(Order).where(Order.id == order_id).with_for_update())
		order = row.scalar_one_or_none()
		if order is None:
			raise OrderNotFound(order_id)

		status_rows = await self.db.execute(select(OrderItem.status).where(OrderItem.order_id == order_id))
		item_statuses = list(status_rows.scalars().all())
		new_status = aggregate_order_status(order.status, item_statuses)
		if new_status != order.status:
			order.status = new_status
			await self.db.flush()
			logger.info("order_ready", order_id=str(order.id), items=len(item_statuses))
			await self._publish_event(
				order.farm_id,
				"order_ready",
				order_id=str(order.id),
				order_number=order.order_number,
			)
		return order

	async def _publish_event(self, farm_id: uuid.UUID, event_type: str, **fields: Any) -> None:
		if self.redis_client is None or not self.settings.publish_production_events:
			return
		channel = f"farm:{farm_id}:production"
		payload = {
			"event_type": event_type,
			"farm_id": str(farm_id),
			"emitted_at": datetime.now(UTC).isoformat(),
			**fields,
		}
		await self.redis_client.publish(channel, json.dumps(payload))


_CLEARABLE_TASK_FIELDS = frozenset({"description", "assigned_to"})

_OPEN_TASK_STATUSES = frozenset({TaskStatusEnum.todo, TaskStatusEnum.in_progress})


def _cancel_open_work(order: Order) -> int:
	"""Cancel unharvested items and open tasks; returns the number of tasks cancelled."""
	cancelled = 0
	for item in order.items:
		if item.status != OrderItemStatusEnum.harvested:
			item.status = OrderItemStatusEnum.cancelled
		for task in item.tasks:
			if task.status in _OPEN_TASK_STATUSES:
				task.status = TaskStatusEnum.cancelled
				cancelled += 1
	return cancelled


def _clean(value: str | None) -> str | None:
	if value is None:
		return None
	stripped = value.strip()
	return stripped or None
