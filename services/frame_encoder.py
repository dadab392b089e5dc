"""Frame encoder service.

Provides a small OOP wrapper around Pillow to normalise camera frames
before they are sent to the vision classifier. Frames may arrive as raw
JPEG/PNG/WebP bytes or as base64 text (optionally a data URL). The result
fits within 640x480 pixels and is returned as base64-encoded JPEG bytes.

Public class: `FrameEncoder`

Example:
    encoder = FrameEncoder(max_size=(640, 480), quality=70)
    frame_b64 = encoder.encode(jpeg_bytes)
"""
from __future__ import annotations

import base64
import binascii
import io
from typing import Tuple

from PIL import Image, UnidentifiedImageError

from config import FRAME_JPEG_QUALITY, FRAME_MAX_SIZE


class FrameEncoder:
    """Normalise camera frames to a bounded-size JPEG.

    Args:
        max_size: Maximum width and height of the encoded frame. Defaults to (640, 480).
        quality: JPEG quality used for re-encoding. Defaults to 70.
        background: Color used when flattening images with alpha to RGB.
    """

    def __init__(
        self,
        max_size: Tuple[int, int] = FRAME_MAX_SIZE,
        quality: int = FRAME_JPEG_QUALITY,
        background: Tuple[int, int, int] | None = None,
    ):
        self.max_size = max_size
        self.quality = quality
        self.background = background or (255, 255, 255)

    def encode(self, data: bytes) -> bytes:
        """Encode raw image bytes into a base64 JPEG.

        Raises:
            ValueError: If the bytes cannot be opened as an image.
        """
        if not data:
            raise ValueError("Frame payload is empty")

        try:
            src = Image.open(io.BytesIO(data))
            src.load()
        except (UnidentifiedImageError, OSError) as exc:
            raise ValueError("Frame bytes are not a supported image format") from exc

        if src.mode in ("RGBA", "LA", "P"):
            src = src.convert("RGBA")
            flattened = Image.new("RGB", src.size, self.background)
            flattened.paste(src, mask=src.split()[3])
            src = flattened
        elif src.mode != "RGB":
            src = src.convert("RGB")

        src.thumbnail(self.max_size, Image.LANCZOS)

        out_io = io.BytesIO()
        src.save(out_io, format="JPEG", quality=self.quality)
        return base64.b64encode(out_io.getvalue())

    def encode_base64(self, data: str | bytes) -> bytes:
        """Encode a base64 (or data URL) frame into a normalised base64 JPEG."""
        if isinstance(data, bytes):
            data = data.decode("utf-8", errors="strict")
        text = data.strip()
        if text.startswith("data:") and "," in text:
            text = text.split(",", 1)[1]
        try:
            raw = base64.b64decode(text, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise ValueError("Invalid base64 frame data provided") from exc
        return self.encode(raw)
