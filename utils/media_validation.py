"""Validation helpers for uploaded camera frames."""

from fastapi import HTTPException, UploadFile

ALLOWED_IMAGE_TYPES = {
    "image/jpeg",
    "image/jpg",
    "image/png",
    "image/webp",
    "text/plain",
    "application/octet-stream",
}


def is_base64_text(raw: bytes) -> bool:
    """Return True when the payload looks like base64 text rather than binary image data."""
    try:
        raw.decode("ascii")
    except UnicodeDecodeError:
        return False
    return True


def validate_image_file(image_file: UploadFile) -> None:
    """Validate that the uploaded frame has a supported content type.

    Browsers post canvas snapshots either as JPEG/PNG/WebP blobs or as base64
    text, so plain text and octet-stream bodies are accepted as well.
    """
    if image_file.content_type:
        content_type = image_file.content_type.lower().split(";", 1)[0].strip()
        if content_type not in ALLOWED_IMAGE_TYPES:
            raise HTTPException(status_code=415, detail=f"Unsupported image content type: {image_file.content_type}")


async def read_image_bytes(image_file: UploadFile) -> bytes:
    """Read validated frame bytes, ensuring the upload is not empty."""
    validate_image_file(image_file)
    image_bytes = await image_file.read()
    if not image_bytes:
        raise HTTPException(status_code=400, detail="Uploaded frame is empty.")
    return image_bytes
