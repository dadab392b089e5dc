"""Dispatch realtime websocket events to the brushing session."""
from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional

from fastapi import WebSocket

from services.realtime.brushing_session import BrushingSession


class RealtimeSessionHandler:
	"""Route websocket messages for a single brushing session."""

	def __init__(self, session: BrushingSession) -> None:
		self.session = session

	async def handle_frame(self, websocket: WebSocket, data: bytes) -> None:
		"""Store a binary JPEG frame pushed by the client."""
		try:
			await self.session.push_frame(data)
		except ValueError as exc:
			logging.debug("Rejected frame for %s: %s", self.session.session_id, exc)
			await self._send_error(websocket, None, str(exc))

	async def handle(self, websocket: WebSocket, payload: Dict[str, Any]) -> None:
		"""Process a single inbound JSON command."""
		request_id = payload.get("request_id")
		message_type = payload.get("type")
		try:
			if message_type == "session.reset":
				self.session.reset()
			elif message_type == "camera.retry":
				self.session.retry_acquisition()
			elif message_type == "camera.error":
				self.session.report_camera_failure(payload.get("reason") or "")
			elif message_type == "reward.set":
				self.session.set_reward(payload.get("content") or "")
			elif message_type == "frame":
				await self.session.push_frame_base64(payload.get("image_b64") or "")
			else:
				raise ValueError("Unsupported message type.")
		except (ValueError, RuntimeError) as exc:
			await self._send_error(websocket, request_id, str(exc))

	async def _send_error(self, websocket: WebSocket, request_id: Optional[Any], detail: str) -> None:
		await self.send(websocket, {"type": "error", "request_id": request_id, "detail": detail})

	async def send(self, websocket: WebSocket, payload: Dict[str, Any]) -> None:
		await websocket.send_text(json.dumps(payload))
