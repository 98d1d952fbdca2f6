"""Validation for image uploads.

Runs before the ledger sees an upload; the ledger itself assumes the upload
is valid and does not re-check it.
"""

import io
import struct
from dataclasses import dataclass

from PIL import Image, UnidentifiedImageError

from promptledger.services.exceptions import UploadValidationError

# Pillow format name -> MIME type
IMAGE_FORMAT_MIME_TYPES = {
    "JPEG": "image/jpeg",
    "PNG": "image/png",
    "GIF": "image/gif",
    "WEBP": "image/webp",
}

MAX_FILENAME_LENGTH = 255


@dataclass(frozen=True)
class ImageUpload:
    """A validated image upload ready to be recorded."""

    filename: str
    content: bytes
    mime_type: str

    @property
    def size(self) -> int:
        return len(self.content)


def detect_image_mime_type(content: bytes) -> str | None:
    """Return the MIME type Pillow detects for ``content``, or None if undecodable."""
    try:
        with Image.open(io.BytesIO(content)) as image:
            image_format = image.format
            image.verify()
    except (
        UnidentifiedImageError,
        Image.DecompressionBombError,
        OSError,
        SyntaxError,
        ValueError,
        struct.error,
    ):
        return None
    return IMAGE_FORMAT_MIME_TYPES.get(image_format or "")


def validate_image_upload(
    filename: str | None,
    content: bytes,
    content_type: str | None,
    allowed_types: list[str],
    max_bytes: int,
) -> ImageUpload:
    """Validate an uploaded image.

    Args:
        filename: Client-declared filename
        content: Raw uploaded bytes
        content_type: Client-declared MIME type
        allowed_types: Accepted MIME types (lowercase)
        max_bytes: Maximum accepted payload size in bytes

    Returns:
        ImageUpload carrying the declared filename and MIME type

    Raises:
        UploadValidationError: If the file is missing, empty, too large,
            declared with a disallowed type, or not a decodable image
    """
    if not filename:
        raise UploadValidationError("Image filename is required")

    if len(filename) > MAX_FILENAME_LENGTH:
        raise UploadValidationError(
            f"Image filename exceeds maximum length of {MAX_FILENAME_LENGTH} characters"
        )

    if not content:
        raise UploadValidationError("Image file is empty")

    if len(content) > max_bytes:
        raise UploadValidationError(
            f"Image exceeds maximum size of {max_bytes} bytes (got {len(content)})"
        )

    declared_type = (content_type or "").split(";", 1)[0].strip().lower()
    if declared_type not in allowed_types:
        raise UploadValidationError(
            f"Image type must be one of: {', '.join(allowed_types)} (got {declared_type or 'none'})"
        )

    detected_type = detect_image_mime_type(content)
    if detected_type is None or detected_type not in allowed_types:
        raise UploadValidationError("File is not a valid image")

    return ImageUpload(filename=filename, content=content, mime_type=declared_type)
