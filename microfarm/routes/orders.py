"""Order scheduling routes."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from microfarm.database import get_db
from microfarm.models.enums import OrderStatusEnum
from microfarm.schemas.production import (
	OrderCreate,
	OrderFilters,
	OrderItemScheduleReceipt,
	OrderItemUpdate,
	OrderListRead,
	OrderRead,
	OrderScheduleReceipt,
	OrderUpdate,
	SchedulePreviewRead,
	SchedulePreviewRequest,
)
from microfarm.services.errors import ConflictError
from microfarm.services.production_service import ProductionService

router = APIRouter(tags=["orders"])


def _map_error(exc: Exception) -> HTTPException:
	if isinstance(exc, ConflictError):
		return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
	if isinstance(exc, LookupError):
		return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
	if isinstance(exc, ValueError):
		return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
	return HTTPException(
		status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
		detail="Unexpected production scheduling failure",
	)


@router.post(
	"/farms/{farm_id}/orders",
	response_model=OrderScheduleReceipt,
	status_code=status.HTTP_201_CREATED,
)
async def create_order(
	farm_id: uuid.UUID,
	payload: OrderCreate,
	request: Request,
	db: AsyncSession = Depends(get_db),
) -> OrderScheduleReceipt:
	service = ProductionService(db, getattr(request.app.state, "redis", None))
	try:
		return await service.create_order(farm_id, payload)
	except Exception as exc:
		raise _map_error(exc) from exc


@router.get("/farms/{farm_id}/orders", response_model=OrderListRead)
async def list_orders(
	farm_id: uuid.UUID,
	order_status: OrderStatusEnum | None = Query(default=None, alias="status"),
	customer: str | None = Query(default=None, max_length=100),
	db: AsyncSession = Depends(get_db),
) -> OrderListRead:
	service = ProductionService(db)
	try:
		orders = await service.list_orders(farm_id, OrderFilters(status=order_status, customer=customer))
	except Exception as exc:
		raise _map_error(exc) from exc
	return OrderListRead(items=[OrderRead.model_validate(order) for order in orders])


@router.get("/orders/{order_id}", response_model=OrderRead)
async def get_order(
	order_id: uuid.UUID,
	db: AsyncSession = Depends(get_db),
) -> OrderRead:
	service = ProductionService(db)
	try:
		order = await service.get_order(order_id)
	except Exception as exc:
		raise _map_error(exc) from exc
	return OrderRead.model_validate(order)


@router.patch("/farms/{farm_id}/orders/{order_id}", response_model=OrderRead)
async def update_order(
	farm_id: uuid.UUID,
	order_id: uuid.UUID,
	payload: OrderUpdate,
	request: Request,
	db: AsyncSession = Depends(get_db),
) -> OrderRead:
	service = ProductionService(db, getattr(request.app.state, "redis", None))
	try:
		order = await service.update_order(farm_id, order_id, payload)
	except Exception as exc:
		raise _map_error(exc) from exc
	return OrderRead.model_validate(order)


@router.delete("/farms/{farm_id}/orders/{order_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_order(
	farm_id: uuid.UUID,
	order_id: uuid.UUID,
	request: Request,
	db: AsyncSession = Depends(get_db),
) -> Response:
	service = ProductionService(db, getattr(request.app.state, "redis", None))
	try:
		await service.delete_order(farm_id, order_id)
	except Exception as exc:
		raise _map_error(exc) from exc
	return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.patch("/order-items/{item_id}", response_model=OrderItemScheduleReceipt)
async def update_order_item(
	item_id: uuid.UUID,
	payload: OrderItemUpdate,
	db: AsyncSession = Depends(get_db),
) -> OrderItemScheduleReceipt:
	service = ProductionService(db)
	try:
		return await service.update_order_item(item_id, payload)
	except Exception as exc:
		raise _map_error(exc) from exc


@router.post("/production/schedule-preview", response_model=SchedulePreviewRead)
async def preview_schedule(
	payload: SchedulePreviewRequest,
	db: AsyncSession = Depends(get_db),
) -> SchedulePreviewRead:
	service = ProductionService(db)
	try:
		return await service.preview_schedule(payload)
	except Exception as exc:
		raise _map_error(exc) from exc
