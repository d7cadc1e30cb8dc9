"""Pydantic request/response schemas for orders, order items and tasks."""

from __future__ import annotations

import uuid
from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from microfarm.models.enums import (
	OrderItemStatusEnum,
	OrderStatusEnum,
	TaskPriorityEnum,
	TaskStatusEnum,
	TaskTypeEnum,
)

# ── Requests ────────────────────────────────────────────────────────────────


class OrderItemCreate(BaseModel):
	crop_profile_id: uuid.UUID
	requested_quantity: float = Field(gt=0)
	harvest_date: date
	overage_percent: float | None = Field(default=None, ge=0, le=100)


class OrderCreate(BaseModel):
	order_number: str | None = Field(default=None, min_length=1, max_length=50)
	customer_name: str | None = Field(default=None, max_length=100)
	notes: str | None = None
	items: list[OrderItemCreate] = Field(min_length=1)


class OrderItemUpdate(BaseModel):
	requested_quantity: float | None = Field(default=None, gt=0)
	harvest_date: date | None = None
	overage_percent: float | None = Field(default=None, ge=0, le=100)


class TaskCompletion(BaseModel):
	completed_by: str | None = Field(default=None, max_length=100)
	completed_at: datetime | None = None
	notes: str | None = None
	actual_trays: int | None = Field(default=None, gt=0)
	actual_yield_quantity: float | None = Field(default=None, gt=0)
	seed_lot: str | None = Field(default=None, max_length=100)


class OrderUpdate(BaseModel):
	customer_name: str | None = Field(default=None, max_length=100)
	notes: str | None = None
	status: OrderStatusEnum | None = None


class OrderFilters(BaseModel):
	status: OrderStatusEnum | None = None
	customer: str | None = None


class TaskUpdate(BaseModel):
	title: str | None = Field(default=None, min_length=1, max_length=200)
	description: str | None = None
	status: TaskStatusEnum | None = None
	priority: TaskPriorityEnum | None = None
	assigned_to: str | None = Field(default=None, max_length=100)

	@field_validator("status")
	@classmethod
	def _not_completed(cls, value: TaskStatusEnum | None) -> TaskStatusEnum | None:
		if value == TaskStatusEnum.completed:
			raise ValueError("tasks are completed through POST /tasks/{task_id}/complete")
		return value


class SchedulePreviewRequest(BaseModel):
	crop_profile_id: uuid.UUID
	requested_quantity: float = Field(gt=0)
	harvest_date: date
	overage_percent: float | None = Field(default=None, ge=0, le=100)


class TaskFilters(BaseModel):
	status: TaskStatusEnum | None = None
	task_type: TaskTypeEnum | None = None
	order_item_id: uuid.UUID | None = None
	due_from: date | None = None
	assigned_to: str | None = None
	due_to: date | None = None


# ── Reads ───────────────────────────────────────────────────────────────────


class ScheduleWarning(BaseModel):
	code: str
	message: str
	item_index: int | None = None


class TaskRead(BaseModel):
	model_config = ConfigDict(from_attributes=True)

	id: uuid.UUID
	farm_id: uuid.UUID
	order_item_id: uuid.UUID | None
	title: str
	description: str | None = None
	task_type: TaskTypeEnum
	due_date: date
	status: TaskStatusEnum
	priority: TaskPriorityEnum
	assigned_to: str | None = None
	completed_at: datetime | None = None
	completed_by: str | None = None
	completion_notes: str | None = None
	actual_trays: int | None = None
	actual_yield_quantity: float | None = None
	seed_lot: str | None = None


class OrderItemRead(BaseModel):
	model_config = ConfigDict(from_attributes=True)

	id: uuid.UUID
	order_id: uuid.UUID
	crop_profile_id: uuid.UUID
	requested_quantity: float
	overage_percent: float
	harvest_date: date
	soak_date: date
	seed_date: date
	move_to_light_date: date
	trays_needed: int
	status: OrderItemStatusEnum
	actual_yield_quantity: float | None = None
	actual_trays: int | None = None
	seed_lot: str | None = None
	tasks: list[TaskRead] = Field(default_factory=list)


class OrderRead(BaseModel):
	model_config = ConfigDict(from_attributes=True)

	id: uuid.UUID
	farm_id: uuid.UUID
	order_number: str
	customer_name: str | None = None
	notes: str | None = None
	status: OrderStatusEnum
	items: list[OrderItemRead] = Field(default_factory=list)


class OrderScheduleReceipt(BaseModel):
	order: OrderRead
	warnings: list[ScheduleWarning] = Field(default_factory=list)


class OrderItemScheduleReceipt(BaseModel):
	item: OrderItemRead
	rescheduled: bool
	warnings: list[ScheduleWarning] = Field(default_factory=list)


class SchedulePreviewRead(BaseModel):
	crop_profile_id: uuid.UUID
	trays_needed: int
	total_quantity: float
	requires_soaking: bool
	soak_date: date
	seed_date: date
	move_to_light_date: date
	harvest_date: date
	total_growth_days: int
	task_types: list[TaskTypeEnum]
	warnings: list[ScheduleWarning] = Field(default_factory=list)


class TaskCompletionReceipt(BaseModel):
	task: TaskRead
	order_item_id: uuid.UUID | None = None
	order_item_status: OrderItemStatusEnum | None = None
	order_id: uuid.UUID | None = None
	order_status: OrderStatusEnum | None = None
	average_yield_per_tray: float | None = None


class TaskListRead(BaseModel):
	items: list[TaskRead]


class OrderListRead(BaseModel):
	items: list[OrderRead]
