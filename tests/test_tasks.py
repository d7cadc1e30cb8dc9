from __future__ import annotations

from typing import Any
from uuid import UUID, uuid4

import pytest
from factories import make_crop, make_order, make_order_item, make_task
from httpx import AsyncClient

from microfarm.models.enums import OrderItemStatusEnum, TaskStatusEnum, TaskTypeEnum
from microfarm.schemas.production import TaskCompletion, TaskCompletionReceipt, TaskFilters, TaskRead, TaskUpdate
from microfarm.services.errors import TaskAlreadyCompleted, TaskNotFound
from microfarm.services.production_service import ProductionService


@pytest.mark.asyncio
async def test_list_tasks_passes_filters(client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
    farm_id = uuid4()
    tasks = [make_task(TaskTypeEnum.seed, farm_id=farm_id), make_task(TaskTypeEnum.harvest, farm_id=farm_id)]
    captured: dict[str, Any] = {}

    async def fake_list(self: ProductionService, requested_farm: UUID, filters: TaskFilters) -> list[Any]:
        captured["farm_id"] = requested_farm
        captured["filters"] = filters
        return tasks

    monkeypatch.setattr(ProductionService, "list_tasks", fake_list)

    response = await client.get(
        f"/api/v1/farms/{farm_id}/tasks",
        params={"status": "todo", "task_type": "seed", "due_from": "2024-03-01", "due_to": "2024-03-31"},
    )

    assert response.status_code == 200
    assert [task["task_type"] for task in response.json()["items"]] == ["seed", "harvest"]
    assert captured["farm_id"] == farm_id
    assert captured["filters"].status == TaskStatusEnum.todo
    assert captured["filters"].task_type == TaskTypeEnum.seed


@pytest.mark.asyncio
async def test_list_tasks_rejects_inverted_range(client: AsyncClient) -> None:
    response = await client.get(
        f"/api/v1/farms/{uuid4()}/tasks",
        params={"due_from": "2024-03-31", "due_to": "2024-03-01"},
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_complete_task(client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
    crop = make_crop()
    order = make_order()
    item = make_order_item(order, crop, status=OrderItemStatusEnum.germinating)
    task = make_task(TaskTypeEnum.seed, item, farm_id=order.farm_id, status=TaskStatusEnum.completed)

    async def fake_complete(self: ProductionService, task_id: UUID, payload: TaskCompletion) -> Any:
        assert payload.completed_by == "sam"
        return TaskCompletionReceipt(
            task=TaskRead.model_validate(task),
            order_item_id=item.id,
            order_item_status=item.status,
            order_id=order.id,
        )

    monkeypatch.setattr(ProductionService, "complete_task", fake_complete)

    response = await client.post(
        f"/api/v1/tasks/{task.id}/complete",
        json={"completed_by": "sam", "seed_lot": "LOT-1"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["task"]["status"] == "completed"
    assert body["order_item_status"] == "germinating"


@pytest.mark.asyncio
async def test_complete_task_twice_returns_409(client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
    async def fake_complete(self: ProductionService, task_id: UUID, payload: TaskCompletion) -> Any:
        raise TaskAlreadyCompleted(task_id)

    monkeypatch.setattr(ProductionService, "complete_task", fake_complete)

    response = await client.post(f"/api/v1/tasks/{uuid4()}/complete", json={"completed_by": "sam"})

    assert response.status_code == 409
    assert "already completed" in response.json()["detail"]


@pytest.mark.asyncio
async def test_complete_missing_task_returns_404(client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
    async def fake_complete(self: ProductionService, task_id: UUID, payload: TaskCompletion) -> Any:
        raise TaskNotFound(task_id)

    monkeypatch.setattr(ProductionService, "complete_task", fake_complete)

    response = await client.post(f"/api/v1/tasks/{uuid4()}/complete", json={"completed_by": "sam"})

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_complete_task_without_completed_by_returns_400(client: AsyncClient, fake_db_session: Any) -> None:
    response = await client.post(f"/api/v1/tasks/{uuid4()}/complete", json={})

    assert response.status_code == 400
    fake_db_session.execute.assert_not_awaited()


@pytest.mark.asyncio
async def test_complete_task_rejects_non_positive_actuals(client: AsyncClient) -> None:
    response = await client.post(
        f"/api/v1/tasks/{uuid4()}/complete",
        json={"completed_by": "sam", "actual_trays": 0},
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_assign_and_start_task(client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
    task = make_task(TaskTypeEnum.seed)
    captured: dict[str, Any] = {}

    async def fake_update(self: ProductionService, farm_id: UUID, task_id: UUID, payload: TaskUpdate) -> Any:
        captured["farm_id"] = farm_id
        captured["payload"] = payload
        task.status = payload.status
        task.assigned_to = payload.assigned_to
        return task

    monkeypatch.setattr(ProductionService, "update_task", fake_update)

    response = await client.patch(
        f"/api/v1/farms/{task.farm_id}/tasks/{task.id}",
        json={"status": "in_progress", "assigned_to": "ana"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "in_progress"
    assert body["assigned_to"] == "ana"
    assert captured["farm_id"] == task.farm_id


@pytest.mark.asyncio
async def test_cancel_task(client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
    task = make_task(TaskTypeEnum.harvest)

    async def fake_update(self: ProductionService, farm_id: UUID, task_id: UUID, payload: TaskUpdate) -> Any:
        task.status = payload.status
        return task

    monkeypatch.setattr(ProductionService, "update_task", fake_update)

    response = await client.patch(f"/api/v1/farms/{task.farm_id}/tasks/{task.id}", json={"status": "cancelled"})

    assert response.status_code == 200
    assert response.json()["status"] == "cancelled"


@pytest.mark.asyncio
async def test_update_task_cannot_complete(client: AsyncClient) -> None:
    response = await client.patch(f"/api/v1/farms/{uuid4()}/tasks/{uuid4()}", json={"status": "completed"})
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_update_completed_task_returns_409(client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
    async def fake_update(self: ProductionService, farm_id: UUID, task_id: UUID, payload: TaskUpdate) -> Any:
        raise TaskAlreadyCompleted(task_id)

    monkeypatch.setattr(ProductionService, "update_task", fake_update)

    response = await client.patch(f"/api/v1/farms/{uuid4()}/tasks/{uuid4()}", json={"status": "cancelled"})

    assert response.status_code == 409


@pytest.mark.asyncio
async def test_list_tasks_filters_by_assignee(client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
    captured: dict[str, Any] = {}

    async def fake_list(self: ProductionService, requested_farm: UUID, filters: TaskFilters) -> list[Any]:
        captured["filters"] = filters
        return []

    monkeypatch.setattr(ProductionService, "list_tasks", fake_list)

    response = await client.get(f"/api/v1/farms/{uuid4()}/tasks", params={"assigned_to": "ana"})

    assert response.status_code == 200
    assert captured["filters"].assigned_to == "ana"
