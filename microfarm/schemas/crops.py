"""Pydantic schemas for crop profile reference data."""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class CropProfileCreate(BaseModel):
	name: str = Field(min_length=1, max_length=100)
	average_yield_per_tray: float | None = Field(default=None, gt=0)
	soak_days: int | None = Field(default=None, ge=0)
	germination_days: int | None = Field(default=None, ge=0)
	light_days: int | None = Field(default=None, ge=0)


class CropProfileUpdate(BaseModel):
	name: str | None = Field(default=None, min_length=1, max_length=100)
	average_yield_per_tray: float | None = Field(default=None, gt=0)
	soak_days: int | None = Field(default=None, ge=0)
	germination_days: int | None = Field(default=None, ge=0)
	light_days: int | None = Field(default=None, ge=0)


class CropProfileRead(BaseModel):
	model_config = ConfigDict(from_attributes=True)

	id: uuid.UUID
	name: str
	average_yield_per_tray: float | None = None
	soak_days: int | None = None
	germination_days: int | None = None
	light_days: int | None = None
	schedulable: bool
	created_at: datetime
	updated_at: datetime


class CropProfileListRead(BaseModel):
	items: list[CropProfileRead]
