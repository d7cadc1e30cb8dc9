"""Crop profile reference routes."""

from __future__ import annotations

import uuid
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from microfarm.database import get_db
from microfarm.schemas.crops import CropProfileCreate, CropProfileListRead, CropProfileRead, CropProfileUpdate
from microfarm.services.crop_service import CropService
from microfarm.services.schedule_calculator import missing_production_fields

router = APIRouter(prefix="/crops", tags=["crops"])


def _map_error(exc: Exception) -> HTTPException:
	if isinstance(exc, LookupError):
		return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
	if isinstance(exc, ValueError):
		return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
	return HTTPException(
		status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
		detail="Unexpected crop service failure",
	)


def _to_crop_read(crop: Any) -> CropProfileRead:
	return CropProfileRead(
		id=crop.id,
		name=crop.name,
		average_yield_per_tray=crop.average_yield_per_tray,
		soak_days=crop.soak_days,
		germination_days=crop.germination_days,
		light_days=crop.light_days,
		schedulable=not missing_production_fields(crop),
		created_at=crop.created_at,
		updated_at=crop.updated_at,
	)


@router.post("", response_model=CropProfileRead, status_code=status.HTTP_201_CREATED)
async def create_crop_profile(
	payload: CropProfileCreate,
	db: AsyncSession = Depends(get_db),
) -> CropProfileRead:
	service = CropService(db)
	try:
		crop = await service.create_crop_profile(payload)
	except Exception as exc:
		raise _map_error(exc) from exc
	return _to_crop_read(crop)


@router.get("", response_model=CropProfileListRead)
async def list_crop_profiles(db: AsyncSession = Depends(get_db)) -> CropProfileListRead:
	service = CropService(db)
	try:
		crops = await service.list_crop_profiles()
	except Exception as exc:
		raise _map_error(exc) from exc
	return CropProfileListRead(items=[_to_crop_read(crop) for crop in crops])


@router.get("/{crop_id}", response_model=CropProfileRead)
async def get_crop_profile(
	crop_id: uuid.UUID,
	db: AsyncSession = Depends(get_db),
) -> CropProfileRead:
	service = CropService(db)
	try:
		crop = await service.get_crop_profile(crop_id)
	except Exception as exc:
		raise _map_error(exc) from exc
	return _to_crop_read(crop)


@router.patch("/{crop_id}", response_model=CropProfileRead)
async def update_crop_profile(
	crop_id: uuid.UUID,
	payload: CropProfileUpdate,
	db: AsyncSession = Depends(get_db),
) -> CropProfileRead:
	service = CropService(db)
	try:
		crop = await service.update_crop_profile(crop_id, payload)
	except Exception as exc:
		raise _map_error(exc) from exc
	return _to_crop_read(crop)
