"""Blob store protocol definition."""

from typing import Protocol, BinaryIO


class BlobStore(Protocol):
    """Protocol defining the interface for blob storage backends.

    Paths are relative keys such as ``images/1700000000_photo.jpg``. This
    allows switching between local filesystem and object storage without
    changing application code.
    """

    async def save(self, file: BinaryIO, path: str) -> str:
        """Save file to storage, replacing any existing object at ``path``.

        Args:
            file: Binary file object to save
            path: Relative path within the store

        Returns:
            str: Storage path identifier
        """
        ...

    async def load(self, path: str) -> bytes:
        """Load file from storage.

        Raises:
            FileNotFoundError: If nothing is stored at ``path``
        """
        ...

    async def delete(self, path: str) -> None:
        """Delete file from storage. Missing files are not an error."""
        ...

    async def get_url(self, path: str) -> str:
        """Get the public URL for a stored file."""
        ...
