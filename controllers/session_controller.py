"""Session lifecycle helpers for brushing workflows."""

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import HTTPException, Request, UploadFile
from fastapi.responses import Response

from models.session_models import SessionState
from services.realtime.brushing_session import BrushingSession
from services.realtime.session_store import SessionStore
from services.reward_code import RewardCodeGenerator
from utils.media_validation import is_base64_text, read_image_bytes


def _store(request: Request) -> SessionStore:
	store = getattr(request.app.state, "session_store", None)
	if store is None:
		raise HTTPException(status_code=500, detail="Session store unavailable")
	return store


def _session(request: Request, session_id: str) -> BrushingSession:
	try:
		return _store(request).get(session_id)
	except KeyError as exc:
		raise HTTPException(status_code=404, detail=str(exc)) from exc


async def start_session(request: Request, reward: Optional[str]) -> Dict[str, Any]:
	"""Create a new brushing session and return its first snapshot."""
	try:
		session = await _store(request).create(reward=reward)
	except ValueError as exc:
		raise HTTPException(status_code=400, detail=str(exc)) from exc
	return session.snapshot()


async def get_session(request: Request, session_id: str) -> Dict[str, Any]:
	return _session(request, session_id).snapshot()


async def reset_session(request: Request, session_id: str) -> Dict[str, Any]:
	"""Restart the attempt from IDLE."""
	session = _session(request, session_id)
	session.reset()
	return session.snapshot()


async def retry_camera(request: Request, session_id: str) -> Dict[str, Any]:
	"""Re-acquire the camera after an error."""
	session = _session(request, session_id)
	session.retry_acquisition()
	return session.snapshot()


async def report_camera_error(request: Request, session_id: str, reason: str) -> Dict[str, Any]:
	"""Record that the client could not acquire its camera."""
	session = _session(request, session_id)
	session.report_camera_failure(reason)
	return session.snapshot()


async def upload_frame(request: Request, session_id: str, file: UploadFile) -> Dict[str, Any]:
	"""Store an uploaded frame as the session's latest camera still.

	Accepts either binary image bytes or base64 text (optionally a data URL).
	"""
	session = _session(request, session_id)
	raw = await read_image_bytes(file)
	try:
		if is_base64_text(raw):
			accepted = await session.push_frame_base64(raw)
		else:
			accepted = await session.push_frame(raw)
	except ValueError as exc:
		raise HTTPException(status_code=400, detail=str(exc)) from exc
	return {"session_id": session_id, "accepted": accepted, "state": session.state.value}


async def set_reward(request: Request, session_id: str, content: str) -> Dict[str, Any]:
	session = _session(request, session_id)
	try:
		session.set_reward(content)
	except ValueError as exc:
		raise HTTPException(status_code=400, detail=str(exc)) from exc
	return session.snapshot()


async def get_reward_code(request: Request, session_id: str) -> Response:
	"""Return the reward QR code as PNG once the attempt is finished.

	Raises:
		HTTPException(409) while the session has not reached FINISHED.
	"""
	session = _session(request, session_id)
	if session.state != SessionState.FINISHED:
		raise HTTPException(status_code=409, detail="Reward is available once brushing is finished")
	try:
		png = RewardCodeGenerator().render_png(session.reward)
	except ValueError as exc:
		raise HTTPException(status_code=400, detail=str(exc)) from exc
	return Response(content=png, media_type="image/png")


async def close_session(request: Request, session_id: str) -> Dict[str, Any]:
	try:
		await _store(request).close(session_id)
	except KeyError as exc:
		raise HTTPException(status_code=404, detail=str(exc)) from exc
	return {"session_id": session_id, "closed": True}
