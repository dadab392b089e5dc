"""FastAPI routes for brushing sessions and the reward code."""

from typing import Optional

from fastapi import APIRouter, File, HTTPException, Request, UploadFile
from pydantic import BaseModel

from controllers.session_controller import (
	close_session,
	get_reward_code,
	get_session,
	report_camera_error,
	reset_session,
	retry_camera,
	set_reward,
	start_session,
	upload_frame,
)

router = APIRouter(prefix="/sessions")


class StartPayload(BaseModel):
	reward: Optional[str] = None


class CameraErrorPayload(BaseModel):
	reason: str = "Could not access camera. Please ensure permissions are granted."


class RewardPayload(BaseModel):
	content: str


@router.post("")
async def start_session_route(request: Request, payload: StartPayload):
	try:
		return await start_session(request, payload.reward)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.get("/{session_id}")
async def get_session_route(request: Request, session_id: str):
	try:
		return await get_session(request, session_id)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.post("/{session_id}/reset")
async def reset_session_route(request: Request, session_id: str):
	try:
		return await reset_session(request, session_id)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.post("/{session_id}/camera/retry")
async def retry_camera_route(request: Request, session_id: str):
	try:
		return await retry_camera(request, session_id)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.post("/{session_id}/camera/error")
async def camera_error_route(request: Request, session_id: str, payload: CameraErrorPayload):
	try:
		return await report_camera_error(request, session_id, payload.reason)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.post("/{session_id}/frames")
async def upload_frame_route(request: Request, session_id: str, file: UploadFile = File(...)):
	"""Upload the latest camera still (binary image or base64 text)."""
	try:
		return await upload_frame(request, session_id, file)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.put("/{session_id}/reward")
async def set_reward_route(request: Request, session_id: str, payload: RewardPayload):
	try:
		return await set_reward(request, session_id, payload.content)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.get("/{session_id}/reward.png")
async def reward_code_route(request: Request, session_id: str):
	"""Return the reward QR code PNG for a finished session."""
	try:
		return await get_reward_code(request, session_id)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.delete("/{session_id}")
async def close_session_route(request: Request, session_id: str):
	try:
		return await close_session(request, session_id)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))
