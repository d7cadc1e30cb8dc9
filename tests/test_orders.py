from __future__ import annotations

from datetime import date, timedelta
from typing import Any
from uuid import UUID, uuid4

import pytest
from factories import make_crop, make_order, make_order_item, make_task, scalar_result
from httpx import AsyncClient

from microfarm.models.enums import OrderStatusEnum, TaskTypeEnum
from microfarm.schemas.production import (
    OrderCreate,
    OrderFilters,
    OrderItemRead,
    OrderItemScheduleReceipt,
    OrderItemUpdate,
    OrderUpdate,
)
from microfarm.services.errors import OrderItemNotFound, OrderNotFound, OrderNumberConflict, OrderStateConflict
from microfarm.services.production_service import ProductionService


def _future(days: int = 30) -> str:
    return (date.today() + timedelta(days=days)).isoformat()


@pytest.mark.asyncio
async def test_create_order_schedules_items(client: AsyncClient, fake_db_session: Any) -> None:
    crop = make_crop(name="Pea Shoots", average_yield_per_tray=8.0, soak_days=1, germination_days=3, light_days=5)
    fake_db_session.execute.return_value = scalar_result(crop)
    farm_id = uuid4()

    response = await client.post(
        f"/api/v1/farms/{farm_id}/orders",
        json={
            "order_number": "ORD-2030-001",
            "customer_name": "Green Bistro",
            "items": [
                {"crop_profile_id": str(crop.id), "requested_quantity": 15, "harvest_date": _future()},
            ],
        },
    )

    assert response.status_code == 201
    body = response.json()
    assert body["warnings"] == []
    order = body["order"]
    assert order["farm_id"] == str(farm_id)
    assert order["status"] == "pending"
    item = order["items"][0]
    assert item["trays_needed"] == 3
    assert item["overage_percent"] == 10.0
    assert [task["task_type"] for task in item["tasks"]] == ["soak", "seed", "move_to_light", "harvest"]
    fake_db_session.add.assert_called_once()


@pytest.mark.asyncio
async def test_create_order_with_incomplete_crop_returns_400(client: AsyncClient, fake_db_session: Any) -> None:
    crop = make_crop(name="Basil", average_yield_per_tray=None)
    fake_db_session.execute.return_value = scalar_result(crop)

    response = await client.post(
        f"/api/v1/farms/{uuid4()}/orders",
        json={
            "order_number": "ORD-2030-002",
            "items": [{"crop_profile_id": str(crop.id), "requested_quantity": 10, "harvest_date": _future()}],
        },
    )

    assert response.status_code == 400
    assert "average yield per tray" in response.json()["detail"]
    fake_db_session.add.assert_not_called()


@pytest.mark.asyncio
async def test_create_order_with_unknown_crop_returns_404(client: AsyncClient, fake_db_session: Any) -> None:
    fake_db_session.execute.return_value = scalar_result(None)

    response = await client.post(
        f"/api/v1/farms/{uuid4()}/orders",
        json={
            "order_number": "ORD-2030-003",
            "items": [{"crop_profile_id": str(uuid4()), "requested_quantity": 10, "harvest_date": _future()}],
        },
    )

    assert response.status_code == 404


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload",
    [
        {"items": []},
        {"items": [{"crop_profile_id": str(uuid4()), "requested_quantity": 0, "harvest_date": "2030-01-01"}]},
        {
            "items": [
                {
                    "crop_profile_id": str(uuid4()),
                    "requested_quantity": 5,
                    "harvest_date": "2030-01-01",
                    "overage_percent": 150,
                }
            ]
        },
    ],
)
async def test_create_order_rejects_invalid_payload(client: AsyncClient, payload: dict) -> None:
    response = await client.post(f"/api/v1/farms/{uuid4()}/orders", json=payload)
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_get_order(client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
    crop = make_crop()
    order = make_order()
    item = make_order_item(order, crop)
    make_task(TaskTypeEnum.seed, item, farm_id=order.farm_id)

    async def fake_get(self: ProductionService, order_id: UUID) -> Any:
        return order

    monkeypatch.setattr(ProductionService, "get_order", fake_get)

    response = await client.get(f"/api/v1/orders/{order.id}")

    assert response.status_code == 200
    body = response.json()
    assert body["order_number"] == "ORD-2024-001"
    assert body["items"][0]["tasks"][0]["task_type"] == "seed"


@pytest.mark.asyncio
async def test_get_order_not_found(client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
    async def fake_get(self: ProductionService, order_id: UUID) -> Any:
        raise OrderNotFound(order_id)

    monkeypatch.setattr(ProductionService, "get_order", fake_get)

    response = await client.get(f"/api/v1/orders/{uuid4()}")

    assert response.status_code == 404
    assert "not found" in response.json()["detail"]


@pytest.mark.asyncio
async def test_update_order_item(client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
    crop = make_crop()
    order = make_order()
    item = make_order_item(order, crop)
    captured: dict[str, Any] = {}

    async def fake_update(self: ProductionService, item_id: UUID, payload: OrderItemUpdate) -> Any:
        captured["payload"] = payload
        return OrderItemScheduleReceipt(item=OrderItemRead.model_validate(item), rescheduled=True)

    monkeypatch.setattr(ProductionService, "update_order_item", fake_update)

    response = await client.patch(f"/api/v1/order-items/{item.id}", json={"requested_quantity": 40})

    assert response.status_code == 200
    assert response.json()["rescheduled"] is True
    assert captured["payload"].requested_quantity == 40
    assert captured["payload"].harvest_date is None


@pytest.mark.asyncio
async def test_update_missing_order_item_returns_404(client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
    async def fake_update(self: ProductionService, item_id: UUID, payload: OrderItemUpdate) -> Any:
        raise OrderItemNotFound(item_id)

    monkeypatch.setattr(ProductionService, "update_order_item", fake_update)

    response = await client.patch(f"/api/v1/order-items/{uuid4()}", json={"requested_quantity": 40})

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_schedule_preview(client: AsyncClient, fake_db_session: Any) -> None:
    crop = make_crop(average_yield_per_tray=8.0, soak_days=None, germination_days=3, light_days=5)
    fake_db_session.execute.return_value = scalar_result(crop)
    harvest = date.today() + timedelta(days=30)

    response = await client.post(
        "/api/v1/production/schedule-preview",
        json={"crop_profile_id": str(crop.id), "requested_quantity": 15, "harvest_date": harvest.isoformat()},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["trays_needed"] == 3
    assert body["requires_soaking"] is False
    assert body["seed_date"] == (harvest - timedelta(days=8)).isoformat()
    assert body["task_types"] == ["seed", "move_to_light", "harvest"]
    fake_db_session.add.assert_not_called()


@pytest.mark.asyncio
async def test_create_order_with_taken_number_returns_409(client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
    async def fake_create(self: ProductionService, farm_id: UUID, payload: OrderCreate) -> Any:
        raise OrderNumberConflict(payload.order_number)

    monkeypatch.setattr(ProductionService, "create_order", fake_create)

    response = await client.post(
        f"/api/v1/farms/{uuid4()}/orders",
        json={
            "order_number": "ORD-2030-002",
            "items": [{"crop_profile_id": str(uuid4()), "requested_quantity": 10, "harvest_date": _future()}],
        },
    )

    assert response.status_code == 409
    assert "ORD-2030-002" in response.json()["detail"]


@pytest.mark.asyncio
async def test_list_orders_passes_filters(client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
    farm_id = uuid4()
    orders = [make_order(farm_id=farm_id), make_order(farm_id=farm_id, status=OrderStatusEnum.ready)]
    captured: dict[str, Any] = {}

    async def fake_list(self: ProductionService, requested_farm: UUID, filters: OrderFilters) -> list[Any]:
        captured["farm_id"] = requested_farm
        captured["filters"] = filters
        return orders

    monkeypatch.setattr(ProductionService, "list_orders", fake_list)

    response = await client.get(f"/api/v1/farms/{farm_id}/orders", params={"status": "ready", "customer": "bistro"})

    assert response.status_code == 200
    assert [order["status"] for order in response.json()["items"]] == ["pending", "ready"]
    assert captured["farm_id"] == farm_id
    assert captured["filters"].status == OrderStatusEnum.ready
    assert captured["filters"].customer == "bistro"


@pytest.mark.asyncio
async def test_mark_order_delivered(client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
    order = make_order(status=OrderStatusEnum.ready)
    captured: dict[str, Any] = {}

    async def fake_update(self: ProductionService, farm_id: UUID, order_id: UUID, payload: OrderUpdate) -> Any:
        captured["payload"] = payload
        order.status = payload.status
        return order

    monkeypatch.setattr(ProductionService, "update_order", fake_update)

    response = await client.patch(f"/api/v1/farms/{order.farm_id}/orders/{order.id}", json={"status": "delivered"})

    assert response.status_code == 200
    assert response.json()["status"] == "delivered"
    assert captured["payload"].model_dump(exclude_unset=True) == {"status": OrderStatusEnum.delivered}


@pytest.mark.asyncio
async def test_disallowed_order_status_change_returns_409(client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
    async def fake_update(self: ProductionService, farm_id: UUID, order_id: UUID, payload: OrderUpdate) -> Any:
        raise OrderStateConflict(order_id, "pending", "delivered")

    monkeypatch.setattr(ProductionService, "update_order", fake_update)

    response = await client.patch(f"/api/v1/farms/{uuid4()}/orders/{uuid4()}", json={"status": "delivered"})

    assert response.status_code == 409


@pytest.mark.asyncio
async def test_delete_order(client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
    deleted: list[UUID] = []

    async def fake_delete(self: ProductionService, farm_id: UUID, order_id: UUID) -> None:
        deleted.append(order_id)

    monkeypatch.setattr(ProductionService, "delete_order", fake_delete)
    order_id = uuid4()

    response = await client.delete(f"/api/v1/farms/{uuid4()}/orders/{order_id}")

    assert response.status_code == 204
    assert response.content == b""
    assert deleted == [order_id]


@pytest.mark.asyncio
async def test_delete_missing_order_returns_404(client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
    async def fake_delete(self: ProductionService, farm_id: UUID, order_id: UUID) -> None:
        raise OrderNotFound(order_id)

    monkeypatch.setattr(ProductionService, "delete_order", fake_delete)

    response = await client.delete(f"/api/v1/farms/{uuid4()}/orders/{uuid4()}")

    assert response.status_code == 404
