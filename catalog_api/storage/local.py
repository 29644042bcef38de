"""Local filesystem blob store."""

import aiofiles
from pathlib import Path
from typing import BinaryIO

from catalog_api.core.logging_config import get_logger


logger = get_logger(__name__)


class LocalBlobStore:
    """Local filesystem storage implementation.

    Files live under ``base_path`` and are served by the application's
    static mount at ``url_prefix``.
    """

    def __init__(self, base_path: str, url_prefix: str = "/storage"):
        """Initialize local storage backend.

        Args:
            base_path: Root directory for file storage
            url_prefix: Public URL prefix the root directory is served under
        """
        self.base_path = Path(base_path).resolve()
        self.base_path.mkdir(parents=True, exist_ok=True)
        self.url_prefix = url_prefix.rstrip("/")

    def get_local_path(self, path: str) -> Path:
        """Get absolute filesystem path.

        Raises:
            ValueError: If ``path`` escapes the storage root
        """
        full_path = (self.base_path / path).resolve()
        if full_path != self.base_path and self.base_path not in full_path.parents:
            raise ValueError(f"Path escapes storage root: {path}")
        return full_path

    async def save(self, file: BinaryIO, path: str) -> str:
        """Save file to local filesystem.

        Args:
            file: Binary file object
            path: File path within the storage root

        Returns:
            str: The relative storage path
        """
        full_path = self.get_local_path(path)
        full_path.parent.mkdir(parents=True, exist_ok=True)

        logger.debug("local_storage_save_started", path=path, full_path=str(full_path))

        try:
            if hasattr(file, "seek"):
                file.seek(0)

            # Write file in chunks for memory efficiency
            bytes_written = 0
            async with aiofiles.open(full_path, 'wb') as f:
                while chunk := file.read(8192):
                    await f.write(chunk)
                    bytes_written += len(chunk)

            logger.info("local_storage_save_success", path=path, bytes_written=bytes_written)

            return path

        except Exception as exc:
            logger.error(
                "local_storage_save_failed",
                path=path,
                error_type=type(exc).__name__,
                error=str(exc),
                exc_info=True,
            )
            raise

    async def load(self, path: str) -> bytes:
        """Load file from local filesystem."""
        full_path = self.get_local_path(path)

        try:
            async with aiofiles.open(full_path, 'rb') as f:
                data = await f.read()

            logger.debug("local_storage_load_success", path=path, bytes_read=len(data))

            return data

        except FileNotFoundError:
            logger.error("local_storage_load_not_found", path=path, full_path=str(full_path))
            raise

    async def delete(self, path: str) -> None:
        """Delete file from local filesystem."""
        full_path = self.get_local_path(path)

        if full_path.exists():
            full_path.unlink()
            logger.info("local_storage_delete_success", path=path)
        else:
            logger.warning("local_storage_delete_not_found", path=path, full_path=str(full_path))

    async def get_url(self, path: str) -> str:
        """Get URL for static file serving.

        Returns:
            str: URL path served via FastAPI StaticFiles
        """
        return f"{self.url_prefix}/{path.lstrip('/')}"
