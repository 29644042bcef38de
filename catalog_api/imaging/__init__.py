"""Image decoding and resizing."""

from functools import lru_cache

from .protocol import ImageDecodeError, ImageProcessor
from .pillow import PillowImageProcessor


@lru_cache()
def get_image_processor() -> ImageProcessor:
    """Factory for the image processor used by the upload flow."""
    return PillowImageProcessor()


__all__ = ["get_image_processor", "ImageProcessor", "ImageDecodeError", "PillowImageProcessor"]
