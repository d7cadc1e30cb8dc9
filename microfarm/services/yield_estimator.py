"""Adaptive yield-per-tray estimate (exponential moving average)."""

from __future__ import annotations

from typing import Any

from sqlalchemy import case, literal

YIELD_SMOOTHING_ALPHA = 0.3


def should_update_yield(actual_yield_quantity: float | None, actual_trays: int | None) -> bool:
	return actual_yield_quantity is not None and actual_trays is not None and actual_trays > 0


def observed_yield_per_tray(actual_yield_quantity: float, actual_trays: int) -> float:
	if actual_trays <= 0:
		raise ValueError("actual_trays must be greater than 0")
	return actual_yield_quantity / actual_trays


def update_yield(
	previous_average: float | None,
	actual_yield_quantity: float,
	actual_trays: int,
) -> float:
	"""Blend one harvest observation into the running average.

	The first observation replaces a missing estimate outright.
	"""
	observed = observed_yield_per_tray(actual_yield_quantity, actual_trays)
	if previous_average is None:
		return observed
	return YIELD_SMOOTHING_ALPHA * observed + (1 - YIELD_SMOOTHING_ALPHA) * previous_average


def smoothed_average_expression(column: Any, observed: float) -> Any:
	"""SQL form of ``update_yield`` for a single atomic UPDATE ... SET.

	Evaluated by the database against the row's current value, so two
	harvests of the same crop committing concurrently cannot lose an update.
	"""
	observed_value = literal(observed)
	return case(
		(column.is_(None), observed_value),
		else_=YIELD_SMOOTHING_ALPHA * observed_value + (1 - YIELD_SMOOTHING_ALPHA) * column,
	)
