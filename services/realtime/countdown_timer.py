"""Fixed-cadence countdown that drives the brushing timer."""

from __future__ import annotations

import asyncio
import contextlib
from typing import Callable, Optional

from config import COUNTDOWN_INTERVAL_MS


class CountdownTimer:
	"""Call `on_tick` once per interval until it returns False or the timer is stopped.

	At most one cadence task exists at a time; `start` on a running timer is a no-op.
	"""

	def __init__(self, on_tick: Callable[[], bool], interval: float = COUNTDOWN_INTERVAL_MS / 1000) -> None:
		if interval <= 0:
			raise ValueError("interval must be positive.")
		self.on_tick = on_tick
		self.interval = interval
		self._task: Optional[asyncio.Task] = None

	@property
	def running(self) -> bool:
		return self._task is not None

	def start(self) -> None:
		if self._task is not None:
			return
		self._task = asyncio.create_task(self._run())

	def stop(self) -> None:
		"""Release the cadence slot; safe to call from inside `on_tick`."""
		task, self._task = self._task, None
		if task is not None and task is not asyncio.current_task():
			task.cancel()

	async def aclose(self) -> None:
		task, self._task = self._task, None
		if task is None or task is asyncio.current_task():
			return
		task.cancel()
		with contextlib.suppress(asyncio.CancelledError):
			await task

	async def _run(self) -> None:
		loop = asyncio.get_running_loop()
		next_at = loop.time() + self.interval
		try:
			while True:
				await asyncio.sleep(max(0.0, next_at - loop.time()))
				next_at += self.interval
				if self._task is not asyncio.current_task():
					break
				if not self.on_tick():
					break
		finally:
			if self._task is asyncio.current_task():
				self._task = None
