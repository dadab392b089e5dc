"""The session state machine: sole mutator of a brushing attempt."""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional

from config import BRUSHING_REQUIRED_SECONDS
from models.session_models import READY_MESSAGE, Session, SessionState, Transition
from services.realtime.status_messages import camera_unavailable_message, finished_message

Listener = Callable[[SessionState, Session], None]


class SessionStateMachine:
	"""Own the canonical session and apply every mutation as one synchronous step.

	`epoch` increases on each state change and on each reset, so async work can
	stamp the generation it was started under and detect staleness on return.
	"""

	def __init__(self, required_seconds: int = BRUSHING_REQUIRED_SECONDS) -> None:
		if required_seconds < 1:
			raise ValueError("required_seconds must be at least 1.")
		self.required_seconds = required_seconds
		self.session = Session()
		self.epoch = 0
		self._listeners: List[Listener] = []

	@property
	def state(self) -> SessionState:
		return self.session.state

	def register_listener(self, listener: Listener) -> None:
		"""Call `listener(previous_state, session)` after every mutation."""
		self._listeners.append(listener)

	def apply_transition(self, transition: Optional[Transition]) -> bool:
		"""Apply an interpreter transition; returns False when nothing changed."""
		if transition is None:
			return False
		previous = self.session.state
		if previous.is_terminal:
			logging.debug("Ignoring transition to %s while %s", transition.next_state.value, previous.value)
			return False

		if transition.next_state != previous:
			self._enter(transition.next_state)
		self.session.status_message = transition.status_message
		if transition.countdown_paused is not None:
			self.session.countdown_paused = transition.countdown_paused
		self._notify(previous)
		return True

	def tick(self) -> bool:
		"""Advance the brushing countdown by one second."""
		if self.session.state != SessionState.BRUSHING:
			logging.debug("Countdown tick ignored in state %s", self.session.state.value)
			return False
		if self.session.countdown_paused:
			return False

		self.session.elapsed_brush_seconds += 1
		if self.session.elapsed_brush_seconds >= self.required_seconds:
			self._enter(SessionState.FINISHED)
			self.session.status_message = finished_message()
		self._notify(SessionState.BRUSHING)
		return True

	def fail(self, reason: str) -> None:
		"""Move to ERROR after an unrecoverable camera or setup fault."""
		previous = self.session.state
		logging.error("Session failed from %s: %s", previous.value, reason)
		self._enter(SessionState.ERROR)
		self.session.last_error = reason
		self.session.status_message = camera_unavailable_message()
		self._notify(previous)

	def reset(self) -> None:
		"""Return unconditionally to a fresh IDLE attempt."""
		previous = self.session.state
		self.session.state = SessionState.IDLE
		self.session.elapsed_brush_seconds = 0
		self.session.last_error = None
		self.session.countdown_paused = False
		self.session.status_message = READY_MESSAGE
		self.epoch += 1
		self._notify(previous)

	def snapshot(self) -> Dict[str, Any]:
		session = self.session
		return {
			"state": session.state.value,
			"status_message": session.status_message,
			"elapsed_brush_seconds": session.elapsed_brush_seconds,
			"required_seconds": self.required_seconds,
			"remaining_seconds": self.required_seconds - session.elapsed_brush_seconds,
			"countdown_paused": session.countdown_paused,
			"last_error": session.last_error,
		}

	def _enter(self, state: SessionState) -> None:
		logging.info("Session state %s -> %s", self.session.state.value, state.value)
		self.session.state = state
		self.session.countdown_paused = False
		if state == SessionState.FINISHED:
			self.session.elapsed_brush_seconds = self.required_seconds
		elif state != SessionState.BRUSHING:
			self.session.elapsed_brush_seconds = 0
		self.epoch += 1

	def _notify(self, previous: SessionState) -> None:
		for listener in list(self._listeners):
			listener(previous, self.session)
