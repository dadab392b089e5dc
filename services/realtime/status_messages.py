"""User-facing status text for each step of a brushing attempt."""

from __future__ import annotations


def toothpaste_detected_message() -> str:
	return "Toothpaste detected! Now put the brush in your mouth."


def brushing_detected_message(required_seconds: int) -> str:
	return f"Brushing detected! Keep going for {required_seconds} seconds."


def brushing_paused_message() -> str:
	return "Brush out of mouth. Timer paused until you start brushing again."


def brushing_resumed_message() -> str:
	return "Brushing resumed! Keep going."


def finished_message() -> str:
	return "Great job! Here is your reward."


def camera_unavailable_message() -> str:
	"""Return the persistent notice shown while the session is in the error state."""
	return "Camera unavailable. Check permissions and retry."
