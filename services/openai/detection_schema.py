"""Schema definitions for the brushing detection tool."""

from typing import Any, Dict

FUNCTION_NAME = "report_brushing_detection"

DETECTION_FIELDS = ("isApplyingToothpaste", "isBrushInMouth", "isBrushing", "confidence", "reasoning")

FUNCTION_DEFINITION: Dict[str, Any] = {
    "type": "function",
    "name": FUNCTION_NAME,
    "description": (
        "Report what the person in the frame is doing with the toothbrush and toothpaste."
    ),
    "parameters": {
        "type": "object",
        "properties": {
            "isApplyingToothpaste": {
                "type": "boolean",
                "description": "True when toothpaste is being applied onto the brush.",
            },
            "isBrushInMouth": {
                "type": "boolean",
                "description": "True when the brush head is inside the person's mouth.",
            },
            "isBrushing": {
                "type": "boolean",
                "description": "True when the person is actively brushing their teeth.",
            },
            "confidence": {
                "type": "number",
                "description": "Overall confidence in this assessment, from 0 to 1.",
            },
            "reasoning": {
                "type": "string",
                "description": "One or two sentences explaining what was observed.",
            },
        },
        "required": list(DETECTION_FIELDS),
        "additionalProperties": False,
    },
    "strict": True,
}
