"""Image processor protocol definition."""

from typing import Optional, Protocol


class ImageDecodeError(Exception):
    """Raised when image bytes cannot be decoded or re-encoded."""


class ImageProcessor(Protocol):
    """Interface for decoding and resizing rasters.

    Lets the upload flow run against Pillow in production and a fake in tests.
    """

    def detect_format(self, data: bytes) -> Optional[str]:
        """Return the lowercase format name ("jpeg", "png", "gif", ...) or None."""
        ...

    def scale_to_width(self, data: bytes, width: int) -> bytes:
        """Scale the image to ``width`` pixels, preserving aspect ratio.

        The result is encoded in the same format as the input.

        Raises:
            ImageDecodeError: If the bytes are not a decodable image
        """
        ...
