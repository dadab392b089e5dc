"""Frame sources that expose the latest camera still on demand."""

from __future__ import annotations

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from typing import Optional

from config import FRAME_MAX_AGE_SECONDS
from services.frame_encoder import FrameEncoder


class FrameSourceError(RuntimeError):
	"""Raised when the camera cannot be acquired or has been lost."""


class FrameSource(ABC):
	"""Capture-on-demand access to the current camera frame."""

	@abstractmethod
	def capture(self) -> Optional[bytes]:
		"""Return the current frame as base64 JPEG bytes, or None when no live frame exists."""

	@abstractmethod
	def acquire(self) -> None:
		"""(Re-)establish the camera; raise FrameSourceError when that is impossible."""

	@abstractmethod
	def release(self) -> None:
		"""Tear down the camera handle and drop any held frame."""


class PushedFrameSource(FrameSource):
	"""Hold the latest frame pushed by a browser client.

	The client owns the actual camera; this side only keeps the most recent
	frame and considers it live for `max_age` seconds.
	"""

	def __init__(self, encoder: Optional[FrameEncoder] = None, max_age: float = FRAME_MAX_AGE_SECONDS) -> None:
		self.encoder = encoder or FrameEncoder()
		self.max_age = max_age
		self._latest: Optional[bytes] = None
		self._received_at = 0.0
		self._failure: Optional[str] = None
		self._closed = False

	@property
	def failure(self) -> Optional[str]:
		return self._failure

	async def push(self, raw: bytes) -> bool:
		"""Store a raw image frame; returns False when the source is not accepting frames."""
		if not self._accepting():
			return False
		# decode + resize is blocking -> run in thread
		frame_b64 = await asyncio.to_thread(self.encoder.encode, raw)
		return self._store(frame_b64)

	async def push_base64(self, data: str | bytes) -> bool:
		"""Store a base64-encoded frame; returns False when the source is not accepting frames."""
		if not self._accepting():
			return False
		frame_b64 = await asyncio.to_thread(self.encoder.encode_base64, data)
		return self._store(frame_b64)

	def capture(self) -> Optional[bytes]:
		if self._failure is not None:
			raise FrameSourceError(self._failure)
		if self._latest is None:
			return None
		if time.monotonic() - self._received_at > self.max_age:
			return None
		return self._latest

	def acquire(self) -> None:
		if self._closed:
			raise FrameSourceError("Frame source has been released.")
		self._failure = None

	def report_failure(self, reason: str) -> None:
		logging.error("Camera failure reported: %s", reason)
		self._failure = reason
		self._latest = None

	def release(self) -> None:
		self._closed = True
		self._latest = None

	def _accepting(self) -> bool:
		return not self._closed and self._failure is None

	def _store(self, frame_b64: bytes) -> bool:
		# the source may have failed or been released while the frame was encoding
		if not self._accepting():
			return False
		self._latest = frame_b64
		self._received_at = time.monotonic()
		return True
