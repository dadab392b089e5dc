"""Description: Toothbrushing detection service using OpenAI's Responses API."""

import asyncio
import dataclasses
import logging
import time
from typing import Any, Dict, List

from openai import AsyncOpenAI

from config import BRUSH_COLORS, CLASSIFIER_TIMEOUT_SECONDS, OPENAI_MODEL, TOOTHPASTE_COLORS
from models.session_models import DetectionResult, SessionState
from services.openai.detection_prompts import build_system_prompt, build_user_prompt
from services.openai.detection_schema import FUNCTION_DEFINITION, FUNCTION_NAME
from services.openai.media_inputs import build_inputs
from services.openai.response_parser import (
    ClassificationError,
    extract_arguments,
    extract_usage,
    parse_detection,
)

__all__ = ["ClassificationError", "DetectionClassifier"]


class DetectionClassifier:
    """Classify a camera frame against the brushing steps, given the current session state."""

    def __init__(
        self,
        client: AsyncOpenAI,
        *,
        model: str = OPENAI_MODEL,
        timeout: float = CLASSIFIER_TIMEOUT_SECONDS,
        brush_colors: str = BRUSH_COLORS,
        toothpaste_colors: str = TOOTHPASTE_COLORS,
    ) -> None:
        """Initialize the DetectionClassifier with an OpenAI async client."""
        if client is None:
            raise ValueError("OpenAI client must be provided.")
        self.client = client
        self.model = model
        self.timeout = timeout
        self.brush_colors = brush_colors
        self.toothpaste_colors = toothpaste_colors
        self.system_prompt = build_system_prompt(brush_colors, toothpaste_colors)

    async def classify(self, image_b64: bytes, current_state: SessionState) -> DetectionResult:
        """Classify one base64 JPEG frame.

        Raises:
            ClassificationError: On transport failure, timeout, or malformed output.
        """
        start_time = time.time()
        user_prompt = build_user_prompt(current_state, self.brush_colors, self.toothpaste_colors)
        try:
            inputs = build_inputs(self.system_prompt, user_prompt, image_b64=image_b64)
        except ValueError as exc:
            raise ClassificationError(str(exc)) from exc

        response = await self._create_response(inputs)
        result = self._parse_response(response)
        usage = extract_usage(response)
        return dataclasses.replace(
            result,
            latency=time.time() - start_time,
            input_tokens=usage["input_tokens"],
            output_tokens=usage["output_tokens"],
        )

    async def _create_response(self, inputs: List[Dict[str, Any]]) -> Any:
        """Send the multimodal request to the OpenAI Responses API."""
        try:
            return await asyncio.wait_for(
                self.client.responses.create(
                    model=self.model,
                    input=inputs,
                    tools=[FUNCTION_DEFINITION],
                    tool_choice={"type": "function", "name": FUNCTION_NAME},
                ),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as exc:
            logging.warning("OpenAI Responses API call timed out after %.1fs", self.timeout)
            raise ClassificationError("Classification request timed out.") from exc
        except Exception as exc:
            logging.error("Error during OpenAI Responses API call: %s", exc)
            raise ClassificationError(f"Classification request failed: {exc}") from exc

    def _parse_response(self, response: Any) -> DetectionResult:
        """Parse the detection output from the model."""
        try:
            return parse_detection(extract_arguments(response, tool_name=FUNCTION_NAME))
        except ClassificationError as exc:
            logging.error("Error parsing OpenAI response: %s", exc)
            logging.debug("Full response object: %r", response)
            raise

# end of DetectionClassifier
