"""Pillow-backed image processor."""

import io
from typing import Optional

from PIL import Image, UnidentifiedImageError

from catalog_api.core.logging_config import get_logger
from catalog_api.imaging.protocol import ImageDecodeError


logger = get_logger(__name__)

_DECODE_ERRORS = (UnidentifiedImageError, OSError, ValueError, Image.DecompressionBombError)

# Multi-picture JPEGs (most phone cameras) are plain JPEGs to clients
FORMAT_ALIASES = {"MPO": "JPEG"}


def sniff_format(data: bytes) -> Optional[str]:
    """Detect an image format from its magic bytes.

    Args:
        data: Raw file contents

    Returns:
        str: Lowercase Pillow format name, or None if not an image
    """
    if not data:
        return None
    try:
        with Image.open(io.BytesIO(data)) as image:
            image_format = FORMAT_ALIASES.get(image.format, image.format)
            return image_format.lower() if image_format else None
    except _DECODE_ERRORS:
        return None


def scaled_size(width: int, height: int, target_width: int) -> tuple:
    """Dimensions after scaling to ``target_width`` with the aspect ratio kept."""
    new_height = max(1, round(height * target_width / width))
    return target_width, new_height


class PillowImageProcessor:
    """Decode, resize and re-encode images with Pillow."""

    def __init__(self, jpeg_quality: int = 90):
        self.jpeg_quality = jpeg_quality

    def detect_format(self, data: bytes) -> Optional[str]:
        return sniff_format(data)

    def scale_to_width(self, data: bytes, width: int) -> bytes:
        """Scale image to ``width`` (up or down), keeping format and aspect ratio.

        Args:
            data: Encoded image bytes
            width: Target width in pixels

        Returns:
            bytes: Re-encoded image in the source format

        Raises:
            ImageDecodeError: If decoding or encoding fails
        """
        try:
            with Image.open(io.BytesIO(data)) as image:
                image_format = FORMAT_ALIASES.get(image.format, image.format)
                image.load()
                original_size = image.size
                new_size = scaled_size(image.width, image.height, width)

                if new_size == original_size:
                    resized = image.copy()
                else:
                    resized = image.resize(new_size, Image.Resampling.LANCZOS)

            buffer = io.BytesIO()
            save_kwargs = {}
            if image_format == "JPEG":
                save_kwargs["quality"] = self.jpeg_quality
            resized.save(buffer, format=image_format, **save_kwargs)
        except _DECODE_ERRORS as exc:
            logger.warning(
                "image_decode_failed",
                error_type=type(exc).__name__,
                error=str(exc),
                bytes_in=len(data),
            )
            raise ImageDecodeError(str(exc)) from exc

        logger.debug(
            "image_scaled",
            format=image_format,
            original_width=original_size[0],
            original_height=original_size[1],
            width=new_size[0],
            height=new_size[1],
        )
        return buffer.getvalue()
