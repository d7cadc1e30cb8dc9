"""WebSocket relay for a farm's production events.

Clients connect to ``/ws/{farm_id}/production`` and receive every event
``ProductionService`` publishes for that farm (``order_scheduled``,
``order_updated``, ``order_deleted``, ``task_completed``, ``task_updated``,
``crop_yield_updated``, ``order_ready``).  An optional
``events`` query parameter narrows the feed, e.g. ``?events=order_ready``.
"""

from __future__ import annotations

import asyncio
import json
import uuid
from typing import Any

import structlog
from fastapi import APIRouter, WebSocket, WebSocketDisconnect

router = APIRouter(tags=["websocket"])
logger = structlog.get_logger("microfarm.ws")

POLL_INTERVAL_SECONDS = 0.05


def production_channel(farm_id: uuid.UUID) -> str:
	return f"farm:{farm_id}:production"


def _parse_event_filter(raw: str | None) -> frozenset[str] | None:
	if raw is None:
		return None
	names = frozenset(name.strip() for name in raw.split(",") if name.strip())
	return names or None


def _decode(message: dict[str, Any] | None) -> dict[str, Any] | str | None:
	"""Pub/sub message body as a JSON object, raw text, or ``None`` to skip."""
	if message is None or message.get("type") != "message":
		return None
	data = message.get("data")
	if isinstance(data, bytes):
		data = data.decode("utf-8")
	if not isinstance(data, str):
		return None
	try:
		decoded = json.loads(data)
	except json.JSONDecodeError:
		return data
	return decoded if isinstance(decoded, dict) else data


@router.websocket("/ws/{farm_id}/production")
async def ws_production_feed(websocket: WebSocket, farm_id: str) -> None:
	await websocket.accept()
	try:
		farm_uuid = uuid.UUID(farm_id)
	except ValueError:
		await websocket.send_json({"error": "invalid_farm_id"})
		await websocket.close(code=1008)
		return

	redis_client = getattr(websocket.app.state, "redis", None)
	if redis_client is None:
		await websocket.send_json({"error": "redis_unavailable"})
		await websocket.close(code=1011)
		return

	wanted = _parse_event_filter(websocket.query_params.get("events"))
	channel = production_channel(farm_uuid)
	pubsub = redis_client.pubsub()
	await pubsub.subscribe(channel)
	logger.info("production_feed_opened", farm_id=str(farm_uuid), events=sorted(wanted) if wanted else None)

	try:
		while True:
			body = _decode(await pubsub.get_message(ignore_subscribe_messages=True, timeout=1.0))
			if isinstance(body, dict):
				if wanted is None or body.get("event_type") in wanted:
					await websocket.send_json(body)
			elif body is not None and wanted is None:
				await websocket.send_text(body)
			await asyncio.sleep(POLL_INTERVAL_SECONDS)
	except WebSocketDisconnect:
		return
	finally:
		await pubsub.unsubscribe(channel)
		await pubsub.close()
		logger.info("production_feed_closed", farm_id=str(farm_uuid))
