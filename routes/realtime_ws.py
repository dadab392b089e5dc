"""WebSocket endpoint streaming camera frames in and session snapshots out."""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging

from fastapi import APIRouter, Depends, HTTPException, WebSocket
from starlette.websockets import WebSocketDisconnect

from services.realtime.session_store import SessionStore
from services.realtime.ws_session import RealtimeSessionHandler

router = APIRouter()


def _require_session_store(websocket: WebSocket) -> SessionStore:
	store = getattr(websocket.app.state, "session_store", None)
	if store is None:
		raise HTTPException(status_code=500, detail="Session store unavailable")
	return store


@router.websocket("/ws/{session_id}")
async def realtime_socket(websocket: WebSocket, session_id: str, store: SessionStore = Depends(_require_session_store)):
	"""Accept frames and commands for one session and push a snapshot after every change."""
	await websocket.accept()
	try:
		session = store.get(session_id)
	except KeyError:
		await websocket.send_text(json.dumps({"type": "error", "detail": "Session not found"}))
		await websocket.close()
		return

	handler = RealtimeSessionHandler(session)
	queue = session.subscribe()

	async def sender():
		while True:
			snapshot = await queue.get()
			await handler.send(websocket, {"type": "session.snapshot", **snapshot})

	sender_task = asyncio.create_task(sender())
	try:
		while True:
			message = await websocket.receive()
			if message.get("type") == "websocket.disconnect":
				break
			if message.get("bytes") is not None:
				await handler.handle_frame(websocket, message["bytes"])
				continue
			try:
				payload = json.loads(message.get("text") or "")
			except json.JSONDecodeError:
				await websocket.send_text(json.dumps({"type": "error", "detail": "Payload must be JSON"}))
				continue
			if not isinstance(payload, dict):
				await websocket.send_text(json.dumps({"type": "error", "detail": "Payload must be a JSON object"}))
				continue
			await handler.handle(websocket, payload)
	except (WebSocketDisconnect, RuntimeError) as exc:
		logging.info("WS session %s ended: %s", session_id, type(exc).__name__)
	finally:
		session.unsubscribe(queue)
		sender_task.cancel()
		with contextlib.suppress(asyncio.CancelledError, WebSocketDisconnect, RuntimeError):
			await sender_task
	with contextlib.suppress(RuntimeError):
		await websocket.close()
