"""Session domain models for the brushing workflow."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Dict, Optional

READY_MESSAGE = "Ready to start"


class SessionState(str, Enum):
	IDLE = "IDLE"
	APPLYING_TOOTHPASTE = "APPLYING_TOOTHPASTE"
	BRUSHING = "BRUSHING"
	FINISHED = "FINISHED"
	ERROR = "ERROR"

	@property
	def is_terminal(self) -> bool:
		return self in TERMINAL_STATES


TERMINAL_STATES = frozenset({SessionState.FINISHED, SessionState.ERROR})


@dataclass(frozen=True)
class DetectionResult:
	"""Structured answer returned by the vision classifier for one frame."""

	is_applying_toothpaste: bool
	is_brush_in_mouth: bool
	is_brushing: bool
	confidence: float
	reasoning: str = ""
	latency: float = 0.0
	input_tokens: Optional[int] = None
	output_tokens: Optional[int] = None


@dataclass(frozen=True)
class Transition:
	"""A state change proposed by the detection interpreter."""

	next_state: SessionState
	status_message: str
	countdown_paused: Optional[bool] = None


@dataclass
class Session:
	"""The single mutable aggregate for one brushing attempt."""

	state: SessionState = SessionState.IDLE
	elapsed_brush_seconds: int = 0
	status_message: str = READY_MESSAGE
	last_error: Optional[str] = None
	countdown_paused: bool = False


@dataclass
class AnalysisStats:
	"""Running counters for classifier traffic within a session."""

	requests: int = 0
	detections: int = 0
	failures: int = 0
	low_confidence: int = 0
	stale: int = 0
	input_tokens: int = 0
	output_tokens: int = 0
	total_cost: float = 0.0

	def to_dict(self) -> Dict[str, Any]:
		data = asdict(self)
		data["total_cost"] = round(self.total_cost, 8)
		return data
