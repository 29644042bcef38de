"""
Product Service - catalog CRUD and listing

Writes commit their own unit of work. An image supplied with a create or
update is stored (and resized) through the UploadService before the row is
written; if the row write then fails the stored image is discarded.
"""
from typing import Any, Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from catalog_api.core.errors import ErrorCode, not_found_error
from catalog_api.core.logging_config import get_logger
from catalog_api.db.models import Product
from catalog_api.imaging.upload import ImageUpload
from catalog_api.repositories.product_repository import (
    PageRequest,
    ProductFilters,
    ProductRepository,
    ProductSort,
)
from catalog_api.schemas import ProductOut, StoredImage, paginated
from catalog_api.services.upload_service import UploadService

logger = get_logger(__name__)

PRODUCT_IMAGE_PREFIX = "product_"


class ProductService:
    """Catalog operations over the product repository."""

    def __init__(self, session: AsyncSession, uploads: UploadService):
        self.session = session
        self.uploads = uploads
        self.products = ProductRepository(session)

    async def list_products(
        self,
        filters: ProductFilters,
        sort: ProductSort,
        page: PageRequest,
    ) -> Dict[str, Any]:
        """Filtered, sorted page of products as a paginator payload."""
        result = await self.products.list(filters=filters, sort=sort, page=page)

        logger.debug(
            "products_listed",
            total=result.total,
            page=page.page,
            per_page=page.per_page,
            sort_by=sort.sort_by,
            sort_order=sort.sort_order,
        )

        return paginated(result)

    async def _get_or_404(self, product_id: int) -> Product:
        product = await self.products.get(product_id)
        if product is None:
            raise not_found_error(
                code=ErrorCode.PRODUCT_NOT_FOUND,
                message="Product not found",
            )
        return product

    async def get_product(self, product_id: int) -> ProductOut:
        """
        Raises:
            ServiceError: 404 PRODUCT_NOT_FOUND
        """
        return ProductOut.model_validate(await self._get_or_404(product_id))

    async def _resolve_image(self, fields: Dict[str, Any]) -> Optional[StoredImage]:
        """Replace an uploaded image in ``fields`` with its stored URL."""
        image = fields.get("image")
        if not isinstance(image, ImageUpload):
            return None
        stored = await self.uploads.store_image(image, prefix=PRODUCT_IMAGE_PREFIX)
        fields["image"] = stored.url
        return stored

    async def create_product(self, validated: Dict[str, Any]) -> ProductOut:
        """Create a product from validated fields."""
        fields = dict(validated)
        fields.setdefault("description", None)
        fields.setdefault("image", None)

        stored = await self._resolve_image(fields)

        try:
            product = await self.products.create(**fields)
            await self.session.commit()
        except Exception as exc:
            await self.session.rollback()
            logger.error(
                "product_create_failed",
                error_type=type(exc).__name__,
                error=str(exc),
                exc_info=True,
            )
            if stored is not None:
                await self.uploads.discard(stored)
            raise

        logger.info("product_created", product_id=product.id, has_image=product.image is not None)
        return ProductOut.model_validate(product)

    async def update_product(self, product_id: int, validated: Dict[str, Any]) -> ProductOut:
        """Apply only the supplied fields.

        A supplied-but-empty ``image`` clears the stored URL. The previous
        image file is left in storage.

        Raises:
            ServiceError: 404 PRODUCT_NOT_FOUND
        """
        await self._get_or_404(product_id)

        fields = dict(validated)
        stored = await self._resolve_image(fields)

        try:
            product = await self.products.update(product_id, **fields)
            await self.session.commit()
        except Exception as exc:
            await self.session.rollback()
            logger.error(
                "product_update_failed",
                product_id=product_id,
                error_type=type(exc).__name__,
                error=str(exc),
                exc_info=True,
            )
            if stored is not None:
                await self.uploads.discard(stored)
            raise

        logger.info("product_updated", product_id=product_id, fields=sorted(fields))
        return ProductOut.model_validate(product)

    async def delete_product(self, product_id: int) -> None:
        """Delete a product row. Its image file is left in storage.

        Raises:
            ServiceError: 404 PRODUCT_NOT_FOUND
        """
        await self._get_or_404(product_id)

        try:
            await self.products.delete(product_id)
            await self.session.commit()
        except Exception as exc:
            await self.session.rollback()
            logger.error(
                "product_delete_failed",
                product_id=product_id,
                error_type=type(exc).__name__,
                error=str(exc),
                exc_info=True,
            )
            raise

        logger.info("product_deleted", product_id=product_id)
