"""
Upload Service - image storage and resizing

Owns the store-then-resize routine shared by the dedicated upload endpoint
and product create/update:

1. Timestamp-prefixed filename under ``images/``
2. Persist the original bytes to the blob store
3. Load them back, scale to the target width, overwrite in place
4. Resolve the public URL

The overwrite is not atomic: a reader can observe the unresized original
between steps 2 and 3.
"""
import io
import re
import time
from typing import Any, Optional

from fastapi.concurrency import run_in_threadpool
from sqlalchemy.ext.asyncio import AsyncSession

from catalog_api.core.config import settings
from catalog_api.core.errors import ErrorCode, processing_error
from catalog_api.core.logging_config import get_logger
from catalog_api.db.base import MAX_INTEGER
from catalog_api.imaging import ImageDecodeError, ImageProcessor
from catalog_api.imaging.upload import ImageUpload
from catalog_api.repositories.product_repository import ProductRepository
from catalog_api.schemas import StoredImage
from catalog_api.storage.protocol import BlobStore

logger = get_logger(__name__)


def build_filename(image: ImageUpload, prefix: str = "", now: Optional[float] = None) -> str:
    """``<prefix><unix-seconds>_<original name>``.

    Same name + same second collide and the later upload overwrites the
    earlier one.
    """
    timestamp = int(time.time() if now is None else now)
    return f"{prefix}{timestamp}_{image.basename}"


def parse_product_id(value: Any) -> Optional[int]:
    """Product id from form input.

    Anything that is not a positive integer that fits the id column is ignored.
    """
    if value is None or isinstance(value, bool):
        return None
    text = str(value).strip()
    if not re.fullmatch(r"[0-9]{1,19}", text):
        return None
    product_id = int(text)
    return product_id if 0 < product_id <= MAX_INTEGER else None


class UploadService:
    """
    Image upload orchestration.

    Responsibilities:
    - Coordinate between Blob Store, Image Processor and Product Repository
    - Clean up the stored original when it cannot be decoded

    Input is assumed to be validated by the API layer.
    """

    def __init__(
        self,
        session: AsyncSession,
        storage: BlobStore,
        processor: ImageProcessor,
        target_width: int = settings.IMAGE_TARGET_WIDTH,
        directory: str = settings.IMAGE_DIRECTORY,
    ):
        self.session = session
        self.storage = storage
        self.processor = processor
        self.target_width = target_width
        self.directory = directory
        self.product_repo = ProductRepository(session)

    async def store_image(self, image: ImageUpload, prefix: str = "") -> StoredImage:
        """Store an image and resize it in place.

        Args:
            image: Validated upload
            prefix: Filename prefix (``"product_"`` for product images)

        Returns:
            StoredImage: public URL and storage path

        Raises:
            ServiceError: 500 IMAGE_DECODE_FAILED if the image cannot be decoded
        """
        path = f"{self.directory}/{build_filename(image, prefix)}"

        logger.info(
            "image_store_started",
            path=path,
            original_filename=image.filename,
            size_bytes=image.size,
            detected_format=image.detected_format,
        )

        await self.storage.save(io.BytesIO(image.data), path)

        try:
            raw = await self.storage.load(path)
            resized = await run_in_threadpool(self.processor.scale_to_width, raw, self.target_width)
        except ImageDecodeError as exc:
            logger.error("image_resize_failed", path=path, error=str(exc))

            # Cleanup: don't leave an undecodable original behind
            try:
                await self.storage.delete(path)
            except Exception as cleanup_error:
                logger.warning("image_cleanup_failed", path=path, error=str(cleanup_error))

            raise processing_error(
                code=ErrorCode.IMAGE_DECODE_FAILED,
                message="Image could not be processed",
            )

        await self.storage.save(io.BytesIO(resized), path)
        url = await self.storage.get_url(path)

        logger.info(
            "image_stored",
            path=path,
            url=url,
            width=self.target_width,
            size_bytes=len(resized),
        )

        return StoredImage(url=url, path=path)

    async def discard(self, stored: StoredImage) -> None:
        """Best-effort removal of an image whose owning write failed."""
        try:
            await self.storage.delete(stored.path)
        except Exception as exc:
            logger.warning("image_discard_failed", path=stored.path, error=str(exc))

    async def upload(self, image: ImageUpload, product_id: Any = None) -> StoredImage:
        """Store an uploaded image and optionally attach it to a product.

        An unknown or malformed ``product_id`` is ignored.

        Returns:
            StoredImage: ``{url, path}``
        """
        stored = await self.store_image(image)

        resolved_id = parse_product_id(product_id)
        if resolved_id is None:
            if product_id not in (None, ""):
                logger.info("upload_product_id_ignored", product_id=str(product_id))
            return stored

        try:
            product = await self.product_repo.update(resolved_id, image=stored.url)
            if product is None:
                logger.info("upload_product_not_found", product_id=resolved_id)
                return stored
            await self.session.commit()
        except Exception as exc:
            await self.session.rollback()
            logger.error(
                "upload_product_link_failed",
                product_id=resolved_id,
                error_type=type(exc).__name__,
                error=str(exc),
                exc_info=True,
            )
            raise

        logger.info("upload_linked_to_product", product_id=resolved_id, url=stored.url)
        return stored
