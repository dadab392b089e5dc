"""Helpers to parse Responses API outputs into detection results."""

import json
from typing import Any, Dict, Optional

from models.session_models import DetectionResult


class ClassificationError(RuntimeError):
    """Raised when a frame could not be classified (transport, timeout, or bad output)."""


def extract_arguments(response: Any, *, tool_name: str) -> Dict[str, Any]:
    """Return the JSON arguments of the named function call, or JSON output text as a fallback."""
    for item in getattr(response, "output", None) or []:
        if getattr(item, "type", None) == "function_call" and getattr(item, "name", None) == tool_name:
            return _loads(getattr(item, "arguments", None))

    text = getattr(response, "output_text", None)
    if text:
        return _loads(text)
    raise ClassificationError(f"No function_call output for '{tool_name}' found in Responses API output.")


def parse_detection(arguments: Dict[str, Any]) -> DetectionResult:
    """Validate the five detection fields; anything missing or mistyped is a failure."""
    flags = {}
    for key in ("isApplyingToothpaste", "isBrushInMouth", "isBrushing"):
        value = arguments.get(key)
        if not isinstance(value, bool):
            raise ClassificationError(f"Detection field '{key}' must be a boolean, got {value!r}.")
        flags[key] = value

    confidence = arguments.get("confidence")
    if isinstance(confidence, bool) or not isinstance(confidence, (int, float)):
        raise ClassificationError(f"Detection field 'confidence' must be a number, got {confidence!r}.")
    if not 0.0 <= confidence <= 1.0:
        raise ClassificationError(f"Detection confidence {confidence!r} is outside [0, 1].")

    reasoning = arguments.get("reasoning")
    if not isinstance(reasoning, str):
        raise ClassificationError("Detection field 'reasoning' must be a string.")

    return DetectionResult(
        is_applying_toothpaste=flags["isApplyingToothpaste"],
        is_brush_in_mouth=flags["isBrushInMouth"],
        is_brushing=flags["isBrushing"],
        confidence=float(confidence),
        reasoning=reasoning,
    )


def extract_usage(response: Any) -> Dict[str, Optional[int]]:
    """Return token usage information from the response, if present."""
    usage = getattr(response, "usage", None)
    return {
        "input_tokens": getattr(usage, "input_tokens", None) if usage else None,
        "output_tokens": getattr(usage, "output_tokens", None) if usage else None,
    }


def _loads(raw: Optional[str]) -> Dict[str, Any]:
    if not raw:
        raise ClassificationError("Detection output is empty.")
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ClassificationError("Detection output is not valid JSON.") from exc
    if not isinstance(data, dict):
        raise ClassificationError("Detection output must be a JSON object.")
    return data
