"""Production-domain errors.

Not-found conditions subclass ``LookupError`` and rejected requests
subclass ``ValueError`` so the routes' ``_map_error`` turns them into
404 / 400 responses without knowing every concrete type.  ``ConflictError``
subclasses are checked first and surface as 409.
"""

from __future__ import annotations

import uuid
from collections.abc import Sequence
from datetime import date


class MissingProductionData(ValueError):
	"""Crop profile lacks a field the schedule calculator needs."""

	def __init__(self, crop_name: str, missing: Sequence[str]):
		self.crop_name = crop_name
		self.missing = list(missing)
		super().__init__(
			f'Crop "{crop_name}" is missing required production data: {", ".join(self.missing)}'
		)


class InvalidScheduleInput(ValueError):
	"""Quantity, overage or a day count is outside its allowed range."""


class PastSeedDateError(ValueError):
	"""Computed seed date is already behind us and the farm rejects such orders."""

	def __init__(self, seed_date: date, today: date):
		self.seed_date = seed_date
		self.today = today
		super().__init__(f"seed date {seed_date.isoformat()} is before today ({today.isoformat()})")


class IncompleteCompletionRequest(ValueError):
	"""Completion request is missing who did the work."""


class ConflictError(ValueError):
	"""Request clashes with the current state of a stored row (HTTP 409)."""


class TaskStateConflict(ConflictError):
	"""Task is not in a state that accepts the requested change."""


class TaskAlreadyCompleted(TaskStateConflict):
	def __init__(self, task_id: uuid.UUID):
		self.task_id = task_id
		super().__init__(f"Task {task_id} is already completed")


class OrderStateConflict(ConflictError):
	def __init__(self, order_id: uuid.UUID, current: str, target: str):
		self.current = current
		self.target = target
		super().__init__(f"Order {order_id} cannot move from {current} to {target}")


class OrderNumberConflict(ConflictError):
	def __init__(self, order_number: str):
		self.order_number = order_number
		super().__init__(f"Order number {order_number} is already in use for this farm")


class CropProfileNotFound(LookupError):
	def __init__(self, crop_profile_id: uuid.UUID):
		super().__init__(f"Crop profile {crop_profile_id} not found")


class OrderNotFound(LookupError):
	def __init__(self, order_id: uuid.UUID):
		super().__init__(f"Order {order_id} not found")


class OrderItemNotFound(LookupError):
	def __init__(self, item_id: uuid.UUID):
		super().__init__(f"Order item {item_id} not found")


class TaskNotFound(LookupError):
	def __init__(self, task_id: uuid.UUID):
		super().__init__(f"Task {task_id} not found")
