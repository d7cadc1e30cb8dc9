"""Production task listing and completion routes."""

from __future__ import annotations

import uuid
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from microfarm.database import get_db
from microfarm.models.enums import TaskStatusEnum, TaskTypeEnum
from microfarm.schemas.production import (
	TaskCompletion,
	TaskCompletionReceipt,
	TaskFilters,
	TaskListRead,
	TaskRead,
	TaskUpdate,
)
from microfarm.services.errors import ConflictError
from microfarm.services.production_service import ProductionService

router = APIRouter(tags=["tasks"])


def _map_error(exc: Exception) -> HTTPException:
	if isinstance(exc, ConflictError):
		return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
	if isinstance(exc, LookupError):
		return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
	if isinstance(exc, ValueError):
		return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
	return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="task failure")


@router.get("/farms/{farm_id}/tasks", response_model=TaskListRead)
async def list_tasks(
	farm_id: uuid.UUID,
	task_status: TaskStatusEnum | None = Query(default=None, alias="status"),
	task_type: TaskTypeEnum | None = None,
	order_item_id: uuid.UUID | None = None,
	assigned_to: str | None = Query(default=None, max_length=100),
	due_from: date | None = None,
	due_to: date | None = None,
	db: AsyncSession = Depends(get_db),
) -> TaskListRead:
	if due_from is not None and due_to is not None and due_from > due_to:
		raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="due_from must not be after due_to")

	filters = TaskFilters(
		status=task_status,
		task_type=task_type,
		order_item_id=order_item_id,
		assigned_to=assigned_to,
		due_from=due_from,
		due_to=due_to,
	)
	service = ProductionService(db)
	try:
		tasks = await service.list_tasks(farm_id, filters)
	except Exception as exc:
		raise _map_error(exc) from exc
	return TaskListRead(items=[TaskRead.model_validate(task) for task in tasks])


@router.post("/tasks/{task_id}/complete", response_model=TaskCompletionReceipt)
async def complete_task(
	task_id: uuid.UUID,
	payload: TaskCompletion,
	request: Request,
	db: AsyncSession = Depends(get_db),
) -> TaskCompletionReceipt:
	service = ProductionService(db, getattr(request.app.state, "redis", None))
	try:
		return await service.complete_task(task_id, payload)
	except Exception as exc:
		raise _map_error(exc) from exc


@router.patch("/farms/{farm_id}/tasks/{task_id}", response_model=TaskRead)
async def update_task(
	farm_id: uuid.UUID,
	task_id: uuid.UUID,
	payload: TaskUpdate,
	request: Request,
	db: AsyncSession = Depends(get_db),
) -> TaskRead:
	service = ProductionService(db, getattr(request.app.state, "redis", None))
	try:
		task = await service.update_task(farm_id, task_id, payload)
	except Exception as exc:
		raise _map_error(exc) from exc
	return TaskRead.model_validate(task)
