"""Prompt builders for toothbrushing detection."""

from config import BRUSH_COLORS, TOOTHPASTE_COLORS
from models.session_models import SessionState


def build_system_prompt(brush_colors: str = BRUSH_COLORS, toothpaste_colors: str = TOOTHPASTE_COLORS) -> str:
    """Return the system prompt for the detector."""
    return (
        "You analyze webcam frames of a person brushing their teeth. "
        f"The toothbrush is {brush_colors}. The toothpaste is {toothpaste_colors}. "
        "Only report what is clearly visible in the frame and lower your confidence "
        "when the view is blurry, dark, or the objects are partly hidden."
    )


def build_user_prompt(current_state: SessionState, brush_colors: str = BRUSH_COLORS, toothpaste_colors: str = TOOTHPASTE_COLORS) -> str:
    """Return the user prompt carrying the current session state as context."""
    return (
        f"Current App State: {current_state.value}\n\n"
        "Tasks:\n"
        f"1. Is the user currently applying the {toothpaste_colors} toothpaste onto the {brush_colors} brush?\n"
        f"2. Is the {brush_colors} brush currently inside the user's mouth?\n"
        "3. Is the user actively brushing their teeth?\n\n"
        "Report isApplyingToothpaste, isBrushInMouth, isBrushing, a confidence between 0 and 1, "
        "and a short reasoning."
    )
