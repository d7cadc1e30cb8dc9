"""Backward production scheduling from a target harvest date.

Pure functions only: no clock, no I/O, no hidden state.  Identical
arguments always produce an identical ``ProductionSchedule``, which is
what makes recomputing a schedule after an edit safe.

Timeline, walking back from harvest (day 0)::

    soak ──soak_days──▶ seed ──germination_days──▶ move to light ──light_days──▶ harvest
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from typing import Any

from microfarm.services.errors import InvalidScheduleInput

Number = int | float | Decimal

_REQUIRED_PROFILE_FIELDS: tuple[tuple[str, str], ...] = (
	("average_yield_per_tray", "average yield per tray"),
	("germination_days", "germination days"),
	("light_days", "light days"),
)


@dataclass(frozen=True, slots=True)
class ProductionSchedule:
	trays_needed: int
	total_quantity: Decimal
	requires_soaking: bool
	soak_date: date
	seed_date: date
	move_to_light_date: date
	harvest_date: date
	total_growth_days: int


def _to_decimal(value: Number, field: str) -> Decimal:
	result = value if isinstance(value, Decimal) else Decimal(str(value))
	if not result.is_finite():
		raise InvalidScheduleInput(f"{field} must be a finite number")
	return result


def validate_schedule_inputs(
	quantity: Number,
	average_yield_per_tray: Number,
	overage_percent: Number,
	soak_days: int | None,
	germination_days: int,
	light_days: int,
) -> None:
	"""Raise ``InvalidScheduleInput`` for any argument outside its domain."""
	if _to_decimal(quantity, "quantity") <= 0:
		raise InvalidScheduleInput("quantity must be greater than 0")
	if _to_decimal(average_yield_per_tray, "average_yield_per_tray") <= 0:
		raise InvalidScheduleInput("average yield per tray must be greater than 0")
	overage = _to_decimal(overage_percent, "overage_percent")
	if overage < 0 or overage > 100:
		raise InvalidScheduleInput("overage percent must be between 0 and 100")
	if soak_days is not None and soak_days < 0:
		raise InvalidScheduleInput("soak days cannot be negative")
	if germination_days < 0:
		raise InvalidScheduleInput("germination days cannot be negative")
	if light_days < 0:
		raise InvalidScheduleInput("light days cannot be negative")


def calculate_trays_needed(
	quantity: Number,
	average_yield_per_tray: Number,
	overage_percent: Number,
) -> int:
	"""Trays required to cover ``quantity`` plus overage, always rounded up."""
	total = total_quantity_with_overage(quantity, overage_percent)
	trays = math.ceil(total / _to_decimal(average_yield_per_tray, "average_yield_per_tray"))
	return max(1, trays)


def total_quantity_with_overage(quantity: Number, overage_percent: Number) -> Decimal:
	factor = 1 + _to_decimal(overage_percent, "overage_percent") / 100
	return _to_decimal(quantity, "quantity") * factor


def requires_soaking(soak_days: int | None) -> bool:
	return soak_days is not None and soak_days > 0


def compute_schedule(
	quantity: Number,
	average_yield_per_tray: Number,
	overage_percent: Number,
	harvest_date: date,
	soak_days: int | None,
	germination_days: int,
	light_days: int,
) -> ProductionSchedule:
	"""Compute tray count and stage dates by working back from ``harvest_date``.

	``soak_date`` equals ``seed_date`` when the variety needs no soaking;
	in that case no soak task is generated from it.  A seed date in the
	past is still a valid result; deciding whether to accept it is the
	caller's job (see ``seed_date_in_past``).
	"""
	validate_schedule_inputs(
		quantity,
		average_yield_per_tray,
		overage_percent,
		soak_days,
		germination_days,
		light_days,
	)

	soaking = requires_soaking(soak_days)
	effective_soak_days = soak_days if soaking and soak_days is not None else 0

	move_to_light_date = harvest_date - timedelta(days=light_days)
	seed_date = move_to_light_date - timedelta(days=germination_days)
	soak_date = seed_date - timedelta(days=effective_soak_days)

	return ProductionSchedule(
		trays_needed=calculate_trays_needed(quantity, average_yield_per_tray, overage_percent),
		total_quantity=total_quantity_with_overage(quantity, overage_percent),
		requires_soaking=soaking,
		soak_date=soak_date,
		seed_date=seed_date,
		move_to_light_date=move_to_light_date,
		harvest_date=harvest_date,
		total_growth_days=effective_soak_days + germination_days + light_days,
	)


def missing_production_fields(profile: Any) -> list[str]:
	"""Labels of the required growth parameters ``profile`` does not have."""
	return [label for attr, label in _REQUIRED_PROFILE_FIELDS if getattr(profile, attr, None) is None]


def seed_date_in_past(schedule: ProductionSchedule, today: date) -> bool:
	return schedule.seed_date < today
