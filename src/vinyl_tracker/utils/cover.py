"""Cover image decoding and re-encoding with Pillow."""

from __future__ import annotations

import io
import logging

from PIL import Image, UnidentifiedImageError

logger = logging.getLogger(__name__)

DEFAULT_JPEG_QUALITY = 75


def open_cover(data: bytes) -> Image.Image | None:
    """Decode cover bytes into a loaded Pillow image.

    Args:
        data: Raw image bytes (any format Pillow understands).

    Returns:
        The decoded image, or None if the bytes are empty or undecodable.
    """
    if not data:
        return None
    try:
        img = Image.open(io.BytesIO(data))
        img.load()
    except (UnidentifiedImageError, OSError, ValueError) as e:
        logger.debug("Cover image could not be decoded: %s", e)
        return None
    return img


def encode_jpeg(data: bytes, quality: int = DEFAULT_JPEG_QUALITY) -> bytes | None:
    """Re-encode cover bytes as JPEG.

    Images with alpha or palette modes are converted to RGB first, since
    JPEG has no transparency.

    Args:
        data: Raw image bytes.
        quality: JPEG quality (1-95).

    Returns:
        JPEG bytes, or None if the input could not be decoded.
    """
    img = open_cover(data)
    if img is None:
        return None
    if img.mode not in ("RGB", "L"):
        img = img.convert("RGB")
    buffer = io.BytesIO()
    img.save(buffer, format="JPEG", quality=quality)
    return buffer.getvalue()
