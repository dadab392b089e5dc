"""Render the reward payload as a scannable QR code."""
from __future__ import annotations

import io

import qrcode
from qrcode.constants import ERROR_CORRECT_M
from qrcode.exceptions import DataOverflowError


class RewardCodeGenerator:
    """Encode an opaque reward string as a PNG QR code.

    Args:
        box_size: Pixel size of each QR module.
        border: Quiet-zone width in modules.
    """

    def __init__(self, box_size: int = 8, border: int = 4):
        self.box_size = box_size
        self.border = border

    def render_png(self, payload: str) -> bytes:
        """Return PNG bytes for the payload.

        Raises:
            ValueError: If the payload is empty or too long to encode.
        """
        if not payload:
            raise ValueError("Reward payload is empty")

        qr = qrcode.QRCode(
            error_correction=ERROR_CORRECT_M,
            box_size=self.box_size,
            border=self.border,
        )
        qr.add_data(payload)
        try:
            qr.make(fit=True)
        except DataOverflowError as exc:
            raise ValueError("Reward payload is too long for a QR code") from exc

        image = qr.make_image(fill_color="black", back_color="white")
        out_io = io.BytesIO()
        image.save(out_io, format="PNG")
        return out_io.getvalue()
