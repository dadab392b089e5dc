"""Simple in-memory store for brushing sessions."""

from __future__ import annotations

import logging
from typing import Dict, Optional
from uuid import uuid4

from config import BRUSHING_LOSS_POLICY, DEFAULT_REWARD
from services.realtime.brushing_session import BrushingSession
from services.realtime.detection_interpreter import BrushingLossPolicy
from services.realtime.polling_scheduler import Classifier


class SessionStore:
	"""Manage the active brushing session.

	The device is single-occupant: creating a session closes any previous one.
	"""

	def __init__(self, classifier: Classifier, *, policy: Optional[BrushingLossPolicy] = None, **session_options) -> None:
		if classifier is None:
			raise ValueError("A classifier is required.")
		self.classifier = classifier
		self.policy = policy or BrushingLossPolicy.parse(BRUSHING_LOSS_POLICY)
		self.session_options = session_options
		self._sessions: Dict[str, BrushingSession] = {}

	async def create(self, reward: Optional[str] = None) -> BrushingSession:
		"""Create and start a new session, closing any existing ones."""
		await self.close_all()
		session_id = uuid4().hex
		session = BrushingSession(
			session_id,
			self.classifier,
			reward=reward or DEFAULT_REWARD,
			policy=self.policy,
			**self.session_options,
		)
		self._sessions[session_id] = session
		session.start()
		logging.info("Session %s started", session_id)
		return session

	def get(self, session_id: str) -> BrushingSession:
		"""Return a session or raise KeyError if missing."""
		session = self._sessions.get(session_id)
		if session is None:
			raise KeyError(f"Session {session_id} not found")
		return session

	async def close(self, session_id: str) -> None:
		"""Tear down a session and forget it."""
		session = self._sessions.pop(session_id, None)
		if session is None:
			raise KeyError(f"Session {session_id} not found")
		await session.close()

	async def close_all(self) -> None:
		sessions = list(self._sessions.values())
		self._sessions.clear()
		for session in sessions:
			await session.close()
