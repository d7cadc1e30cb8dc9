"""Crop profile reference data access."""

from __future__ import annotations

import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from microfarm.models.crops import CropProfile
from microfarm.schemas.crops import CropProfileCreate, CropProfileUpdate
from microfarm.services.errors import CropProfileNotFound


class CropService:
	def __init__(self, db: AsyncSession):
		self.db = db

	async def create_crop_profile(self, payload: CropProfileCreate) -> CropProfile:
		existing = await self.db.execute(select(CropProfile.id).where(CropProfile.name == payload.name))
		if existing.scalar_one_or_none() is not None:
			raise ValueError(f'Crop profile "{payload.name}" already exists')

		crop = CropProfile(
			name=payload.name,
			average_yield_per_tray=payload.average_yield_per_tray,
			soak_days=payload.soak_days,
			germination_days=payload.germination_days,
			light_days=payload.light_days,
		)
		self.db.add(crop)
		await self.db.flush()
		await self.db.refresh(crop)
		return crop

	async def list_crop_profiles(self) -> list[CropProfile]:
		rows = await self.db.execute(select(CropProfile).order_by(CropProfile.name.asc()))
		return list(rows.scalars().all())

	async def get_crop_profile(self, crop_id: uuid.UUID) -> CropProfile:
		row = await self.db.execute(select(CropProfile).where(CropProfile.id == crop_id))
		crop = row.scalar_one_or_none()
		if crop is None:
			raise CropProfileNotFound(crop_id)
		return crop

	async def update_crop_profile(self, crop_id: uuid.UUID, payload: CropProfileUpdate) -> CropProfile:
		"""Apply the fields present in ``payload``; an explicit null clears a production field.

		Existing orders keep their schedules.  Only new orders and later
		item edits pick up changed day counts or yields.
		"""
		crop = await self.get_crop_profile(crop_id)
		changes = payload.model_dump(exclude_unset=True)
		if changes.get("name") is None:
			changes.pop("name", None)
		elif changes["name"] != crop.name:
			existing = await self.db.execute(
				select(CropProfile.id).where(CropProfile.name == changes["name"], CropProfile.id != crop_id)
			)
			if existing.scalar_one_or_none() is not None:
				raise ValueError(f'Crop profile "{changes["name"]}" already exists')

		for field, value in changes.items():
			setattr(crop, field, value)
		await self.db.flush()
		await self.db.refresh(crop)
		return crop
