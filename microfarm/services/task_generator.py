"""Turn a production schedule into the dated tasks that carry it out."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import assert_never

from microfarm.models.enums import TaskPriorityEnum, TaskStatusEnum, TaskTypeEnum
from microfarm.services.schedule_calculator import ProductionSchedule


@dataclass(frozen=True, slots=True)
class TaskSpec:
	task_type: TaskTypeEnum
	title: str
	description: str
	due_date: date
	status: TaskStatusEnum = TaskStatusEnum.todo
	priority: TaskPriorityEnum = TaskPriorityEnum.medium


def _format_quantity(quantity: int | float | Decimal) -> str:
	return f"{float(quantity):g}"


def due_date_for(schedule: ProductionSchedule, task_type: TaskTypeEnum) -> date:
	"""Schedule date a task of ``task_type`` is due on."""
	match task_type:
		case TaskTypeEnum.soak:
			return schedule.soak_date
		case TaskTypeEnum.seed:
			return schedule.seed_date
		case TaskTypeEnum.move_to_light:
			return schedule.move_to_light_date
		case TaskTypeEnum.harvest:
			return schedule.harvest_date
		case _:
			assert_never(task_type)


def generate_tasks(
	schedule: ProductionSchedule,
	crop_name: str,
	trays_needed: int,
	requested_quantity: int | float | Decimal,
) -> list[TaskSpec]:
	"""Build the task list for one order item, in chronological order.

	A soak task is only produced when the schedule requires soaking, so an
	item gets either four tasks (soak, seed, move to light, harvest) or three.
	"""
	specs: list[TaskSpec] = []

	if schedule.requires_soaking:
		specs.append(
			TaskSpec(
				task_type=TaskTypeEnum.soak,
				title=f"SOAK: {crop_name}",
				description=f"Soak {trays_needed} trays of {crop_name} seeds",
				due_date=due_date_for(schedule, TaskTypeEnum.soak),
			)
		)

	specs.extend(
		[
			TaskSpec(
				task_type=TaskTypeEnum.seed,
				title=f"SEED: {crop_name}",
				description=f"Plant {trays_needed} trays of {crop_name}",
				due_date=due_date_for(schedule, TaskTypeEnum.seed),
			),
			TaskSpec(
				task_type=TaskTypeEnum.move_to_light,
				title=f"MOVE TO LIGHT: {crop_name}",
				description=f"Move {trays_needed} trays of {crop_name} to grow lights",
				due_date=due_date_for(schedule, TaskTypeEnum.move_to_light),
			),
			TaskSpec(
				task_type=TaskTypeEnum.harvest,
				title=f"HARVEST: {crop_name}",
				description=(
					f"Harvest {_format_quantity(requested_quantity)} of {crop_name} "
					f"({trays_needed} trays)"
				),
				due_date=due_date_for(schedule, TaskTypeEnum.harvest),
			),
		]
	)
	return specs
