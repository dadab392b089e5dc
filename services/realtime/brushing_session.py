"""One brushing attempt: state machine, cadences, camera, and reward wired together."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional

from config import (
	ANALYSIS_INTERVAL_MS,
	BRUSHING_REQUIRED_SECONDS,
	COUNTDOWN_INTERVAL_MS,
	DEFAULT_REWARD,
	OPENAI_MODEL,
	REWARD_MAX_LENGTH,
)
from models.session_models import AnalysisStats, DetectionResult, Session, SessionState
from services.openai.cost_generator import CostGenerator
from services.realtime.countdown_timer import CountdownTimer
from services.realtime.detection_interpreter import BrushingLossPolicy
from services.realtime.frame_source import FrameSourceError, PushedFrameSource
from services.realtime.polling_scheduler import Classifier, PollingScheduler
from services.realtime.state_machine import SessionStateMachine


def normalize_reward(content: str) -> str:
	"""Return a stripped reward payload or raise ValueError when unusable."""
	text = (content or "").strip()
	if not text:
		raise ValueError("Reward content is required.")
	if len(text) > REWARD_MAX_LENGTH:
		raise ValueError(f"Reward content must be at most {REWARD_MAX_LENGTH} characters.")
	return text


class BrushingSession:
	"""Own every resource of a single attempt and keep the cadences in step with its state."""

	def __init__(
		self,
		session_id: str,
		classifier: Classifier,
		*,
		frame_source: Optional[PushedFrameSource] = None,
		reward: str = DEFAULT_REWARD,
		required_seconds: int = BRUSHING_REQUIRED_SECONDS,
		analysis_interval: float = ANALYSIS_INTERVAL_MS / 1000,
		countdown_interval: float = COUNTDOWN_INTERVAL_MS / 1000,
		policy: BrushingLossPolicy = BrushingLossPolicy.STICKY,
		model: Optional[str] = None,
		cost_generator: Optional[CostGenerator] = None,
	) -> None:
		self.session_id = session_id
		self.reward = normalize_reward(reward)
		self.model = model or getattr(classifier, "model", OPENAI_MODEL)
		self.cost_generator = cost_generator or CostGenerator()
		self.frame_source = frame_source or PushedFrameSource()
		self.stats = AnalysisStats()
		self.machine = SessionStateMachine(required_seconds)
		self.scheduler = PollingScheduler(
			self.machine,
			self.frame_source,
			classifier,
			interval=analysis_interval,
			policy=policy,
			stats=self.stats,
			on_result=self._record_usage,
			on_activity=self._on_activity,
		)
		self.timer = CountdownTimer(self._on_countdown_tick, interval=countdown_interval)
		self.closed = False
		self._started = False
		self._subscribers: List[asyncio.Queue] = []
		self.machine.register_listener(self._on_change)

	@property
	def state(self) -> SessionState:
		return self.machine.state

	@property
	def session(self) -> Session:
		return self.machine.session

	def start(self) -> None:
		"""Begin polling; must be called from within a running event loop."""
		self._ensure_open()
		self._started = True
		self._sync_cadences()

	def reset(self) -> None:
		"""Restart the attempt, recreating both cadences and dropping in-flight work."""
		self._ensure_open()
		self.scheduler.stop()
		self.timer.stop()
		self.machine.reset()

	def retry_acquisition(self) -> None:
		"""Re-establish the camera after an error; no-op in any other state."""
		self._ensure_open()
		if self.state != SessionState.ERROR:
			logging.info("Ignoring camera retry for session %s in state %s", self.session_id, self.state.value)
			return
		try:
			self.frame_source.acquire()
		except FrameSourceError as exc:
			self.machine.fail(str(exc))
			return
		self.reset()

	def report_camera_failure(self, reason: str) -> None:
		self._ensure_open()
		reason = (reason or "").strip() or "Could not access camera."
		self.frame_source.report_failure(reason)
		self.machine.fail(reason)

	def set_reward(self, content: str) -> None:
		self.reward = normalize_reward(content)
		self._publish()

	async def push_frame(self, raw: bytes) -> bool:
		self._ensure_open()
		return await self.frame_source.push(raw)

	async def push_frame_base64(self, data: str | bytes) -> bool:
		self._ensure_open()
		return await self.frame_source.push_base64(data)

	def subscribe(self) -> asyncio.Queue:
		"""Return a queue that receives a snapshot after every change."""
		queue: asyncio.Queue = asyncio.Queue()
		queue.put_nowait(self.snapshot())
		self._subscribers.append(queue)
		return queue

	def unsubscribe(self, queue: asyncio.Queue) -> None:
		if queue in self._subscribers:
			self._subscribers.remove(queue)

	def snapshot(self) -> Dict[str, Any]:
		data: Dict[str, Any] = {"session_id": self.session_id}
		data.update(self.machine.snapshot())
		data["analyzing"] = self.scheduler.outstanding
		data["reward"] = self.reward if self.state == SessionState.FINISHED else None
		data["stats"] = self.stats.to_dict()
		return data

	async def close(self) -> None:
		if self.closed:
			return
		self.closed = True
		await self.scheduler.aclose()
		await self.timer.aclose()
		self.frame_source.release()
		self._subscribers.clear()
		logging.info("Session %s closed", self.session_id)

	def _on_change(self, previous: SessionState, session: Session) -> None:
		self._sync_cadences()
		self._publish()

	def _on_countdown_tick(self) -> bool:
		self.machine.tick()
		return self.state == SessionState.BRUSHING

	def _on_activity(self, analyzing: bool) -> None:
		self._publish()

	def _sync_cadences(self) -> None:
		state = self.state
		if state == SessionState.BRUSHING:
			self.timer.start()
		else:
			self.timer.stop()
		if state.is_terminal:
			self.scheduler.stop()
		elif self._started:
			self.scheduler.start()

	def _record_usage(self, result: DetectionResult) -> None:
		logging.info(
			"Detection for %s: paste=%s mouth=%s brushing=%s confidence=%.2f latency=%.2fs",
			self.session_id,
			result.is_applying_toothpaste,
			result.is_brush_in_mouth,
			result.is_brushing,
			result.confidence,
			result.latency,
		)
		try:
			cost = self.cost_generator.estimate(
				input_tokens=result.input_tokens or 0,
				output_tokens=result.output_tokens or 0,
				model=self.model,
			)
		except ValueError:
			cost = 0.0
		self.stats.total_cost += cost

	def _publish(self) -> None:
		if not self._subscribers:
			return
		snapshot = self.snapshot()
		for queue in self._subscribers:
			queue.put_nowait(snapshot)

	def _ensure_open(self) -> None:
		if self.closed:
			raise RuntimeError("Session is closed; start a new session.")
