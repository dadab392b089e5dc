"""Map classifier detections onto session state transitions."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Optional

from config import BRUSHING_REQUIRED_SECONDS, CONFIDENCE_THRESHOLD
from models.session_models import DetectionResult, SessionState, Transition
from services.realtime.status_messages import (
	brushing_detected_message,
	brushing_paused_message,
	brushing_resumed_message,
	toothpaste_detected_message,
)


class BrushingLossPolicy(str, Enum):
	"""What a confident "brush out of mouth" reading does while brushing.

	STICKY ignores it; PAUSE holds the countdown until brushing is seen again.
	Neither policy ever moves the session out of BRUSHING.
	"""

	STICKY = "sticky"
	PAUSE = "pause"

	@classmethod
	def parse(cls, value: str) -> "BrushingLossPolicy":
		try:
			return cls((value or "").strip().lower())
		except ValueError as exc:
			raise ValueError(f"Unknown brushing loss policy: '{value}'") from exc


def interpret(
	result: DetectionResult,
	current_state: SessionState,
	*,
	required_seconds: int = BRUSHING_REQUIRED_SECONDS,
	policy: BrushingLossPolicy = BrushingLossPolicy.STICKY,
	countdown_paused: bool = False,
	threshold: float = CONFIDENCE_THRESHOLD,
) -> Optional[Transition]:
	"""Return the transition implied by a detection, or None when the state holds.

	Forward-only: IDLE -> APPLYING_TOOTHPASTE -> BRUSHING. Only the countdown
	can leave BRUSHING, and terminal states never transition from here.
	"""
	if result.confidence < threshold:
		logging.debug("Discarding low-confidence detection (%.2f): %s", result.confidence, result.reasoning)
		return None

	if current_state == SessionState.IDLE:
		if result.is_applying_toothpaste:
			return Transition(SessionState.APPLYING_TOOTHPASTE, toothpaste_detected_message())
		return None

	if current_state == SessionState.APPLYING_TOOTHPASTE:
		if result.is_brush_in_mouth:
			return Transition(SessionState.BRUSHING, brushing_detected_message(required_seconds))
		return None

	if current_state == SessionState.BRUSHING and policy == BrushingLossPolicy.PAUSE:
		lost = not result.is_brushing and not result.is_brush_in_mouth
		if lost and not countdown_paused:
			return Transition(SessionState.BRUSHING, brushing_paused_message(), countdown_paused=True)
		if not lost and countdown_paused:
			return Transition(SessionState.BRUSHING, brushing_resumed_message(), countdown_paused=False)

	return None
