"""Interval-driven sampling of camera frames for classification."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Callable, Optional, Protocol

from config import ANALYSIS_INTERVAL_MS, CONFIDENCE_THRESHOLD
from models.session_models import AnalysisStats, DetectionResult, SessionState
from services.openai.response_parser import ClassificationError
from services.realtime.detection_interpreter import BrushingLossPolicy, interpret
from services.realtime.frame_source import FrameSource, FrameSourceError
from services.realtime.state_machine import SessionStateMachine


class Classifier(Protocol):
	async def classify(self, image_b64: bytes, current_state: SessionState) -> DetectionResult: ...


class PollingScheduler:
	"""Sample a frame every `interval` seconds and feed classifications into the machine.

	Holds at most one loop task and one outstanding classification. Each request
	is stamped with the machine epoch and state it was issued under; a result whose
	stamp no longer matches on settlement is dropped.
	"""

	def __init__(
		self,
		machine: SessionStateMachine,
		frame_source: FrameSource,
		classifier: Classifier,
		*,
		interval: float = ANALYSIS_INTERVAL_MS / 1000,
		policy: BrushingLossPolicy = BrushingLossPolicy.STICKY,
		stats: Optional[AnalysisStats] = None,
		on_result: Optional[Callable[[DetectionResult], None]] = None,
		on_activity: Optional[Callable[[bool], None]] = None,
	) -> None:
		if interval <= 0:
			raise ValueError("interval must be positive.")
		self.machine = machine
		self.frame_source = frame_source
		self.classifier = classifier
		self.interval = interval
		self.policy = policy
		self.stats = stats or AnalysisStats()
		self.on_result = on_result
		self.on_activity = on_activity
		self._task: Optional[asyncio.Task] = None
		self._pending: Optional[asyncio.Task] = None

	@property
	def running(self) -> bool:
		return self._task is not None

	@property
	def outstanding(self) -> bool:
		return self._pending is not None

	def start(self) -> None:
		if self._task is not None or self.machine.state.is_terminal:
			return
		self._task = asyncio.create_task(self._run())

	def stop(self) -> None:
		"""Release the loop slot and cancel any outstanding classification."""
		task, self._task = self._task, None
		if task is not None and task is not asyncio.current_task():
			task.cancel()
		self._cancel_pending()

	async def aclose(self) -> None:
		tasks = [t for t in (self._task, self._pending) if t is not None and t is not asyncio.current_task()]
		self.stop()
		for task in tasks:
			with contextlib.suppress(asyncio.CancelledError):
				await task

	def poll(self) -> Optional[asyncio.Task]:
		"""Run one scheduler tick; returns the classification task if one was started."""
		state = self.machine.state
		if state.is_terminal:
			return None
		if self._pending is not None:
			logging.debug("Skipping poll: classification still outstanding")
			return None

		try:
			image = self.frame_source.capture()
		except FrameSourceError as exc:
			self.machine.fail(str(exc))
			return None
		if image is None:
			logging.debug("Skipping poll: no live frame")
			return None

		self.stats.requests += 1
		self._pending = asyncio.create_task(self._classify(image, self.machine.epoch, state))
		self._set_activity(True)
		return self._pending

	async def _run(self) -> None:
		loop = asyncio.get_running_loop()
		next_at = loop.time() + self.interval
		try:
			while True:
				await asyncio.sleep(max(0.0, next_at - loop.time()))
				next_at += self.interval
				if self._task is not asyncio.current_task() or self.machine.state.is_terminal:
					break
				self.poll()
		finally:
			if self._task is asyncio.current_task():
				self._task = None

	async def _classify(self, image: bytes, epoch: int, state: SessionState) -> None:
		try:
			result = await self.classifier.classify(image, state)
		except ClassificationError as exc:
			self.stats.failures += 1
			logging.warning("Classification failed while %s; tick forfeited: %s", state.value, exc)
			return
		except Exception as exc:
			self.stats.failures += 1
			logging.error("Unexpected classifier error while %s; tick forfeited: %s", state.value, exc)
			return
		finally:
			if self._pending is asyncio.current_task():
				self._pending = None
				self._set_activity(False)
		self._settle(result, epoch, state)

	def _settle(self, result: DetectionResult, epoch: int, state: SessionState) -> None:
		# stale requests were still billed
		self.stats.input_tokens += result.input_tokens or 0
		self.stats.output_tokens += result.output_tokens or 0
		if self.on_result is not None:
			self.on_result(result)

		if self.machine.epoch != epoch or self.machine.state != state:
			self.stats.stale += 1
			logging.debug("Discarding stale detection requested under %s (epoch %d)", state.value, epoch)
			return

		self.stats.detections += 1
		if result.confidence < CONFIDENCE_THRESHOLD:
			self.stats.low_confidence += 1

		transition = interpret(
			result,
			state,
			required_seconds=self.machine.required_seconds,
			policy=self.policy,
			countdown_paused=self.machine.session.countdown_paused,
		)
		self.machine.apply_transition(transition)

	def _cancel_pending(self) -> None:
		pending, self._pending = self._pending, None
		if pending is None:
			return
		if pending is not asyncio.current_task():
			pending.cancel()
		self._set_activity(False)

	def _set_activity(self, analyzing: bool) -> None:
		if self.on_activity is not None:
			self.on_activity(analyzing)
