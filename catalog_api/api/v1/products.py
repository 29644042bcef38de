"""
Product API endpoints.

Listing and reads are public; writes require a bearer token. Bodies are
validated against the constraint tables in ``catalog_api.api.rules``.
"""

from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status

from catalog_api.api.dependencies import AuthContext, get_auth_context, get_product_service, read_payload
from catalog_api.api.responses import success_response
from catalog_api.api.rules import PRODUCT_CREATE_RULES, PRODUCT_UPDATE_RULES
from catalog_api.api.v1.metrics import record_product_operation
from catalog_api.core.config import settings
from catalog_api.core.logging_config import get_logger
from catalog_api.core.validation import validate
from catalog_api.repositories.product_repository import PageRequest, ProductFilters, ProductSort
from catalog_api.services import ProductService


logger = get_logger(__name__)
router = APIRouter(prefix="/products", tags=["products"])

TRUTHY = ("true", "1")


def parse_in_stock(value: Optional[str]) -> Optional[bool]:
    """``"true"``/``"1"`` select products in stock; any other supplied value selects sold out ones."""
    if value is None:
        return None
    return value.lower() in TRUTHY


@router.get("")
async def list_products(
    per_page: int = Query(settings.DEFAULT_PER_PAGE, ge=1),
    page: int = Query(1, ge=1),
    min_price: Optional[Decimal] = Query(None),
    max_price: Optional[Decimal] = Query(None),
    in_stock: Optional[str] = Query(None),
    sort_by: Optional[str] = Query(None),
    sort_order: Optional[str] = Query(None),
    service: ProductService = Depends(get_product_service),
):
    """List products with filters, sorting and pagination.

    An unknown ``sort_by`` or ``sort_order`` falls back to newest first.
    """
    result = await service.list_products(
        filters=ProductFilters(
            min_price=min_price,
            max_price=max_price,
            in_stock=parse_in_stock(in_stock),
        ),
        sort=ProductSort.resolve(sort_by, sort_order),
        page=PageRequest(page=page, per_page=per_page),
    )
    return success_response("Products retrieved successfully", result)


@router.get("/{product_id}")
async def get_product(product_id: int, service: ProductService = Depends(get_product_service)):
    product = await service.get_product(product_id)
    return success_response("Product retrieved successfully", product)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_product(
    request: Request,
    auth: AuthContext = Depends(get_auth_context),
    service: ProductService = Depends(get_product_service),
):
    """Create a product. An optional ``image`` file is stored and resized first."""
    payload = await read_payload(request)
    validated = await validate(payload, PRODUCT_CREATE_RULES)

    product = await service.create_product(validated)
    record_product_operation("created")

    logger.info("product_create_request_completed", product_id=product.id, user_id=auth.user_id)
    return success_response("Product created successfully", product, status.HTTP_201_CREATED)


@router.put("/{product_id}")
async def update_product(
    product_id: int,
    request: Request,
    auth: AuthContext = Depends(get_auth_context),
    service: ProductService = Depends(get_product_service),
):
    """Partially update a product.

    An unknown id is reported as 404 before the body is validated.
    """
    await service.get_product(product_id)

    payload = await read_payload(request)
    validated = await validate(payload, PRODUCT_UPDATE_RULES)

    product = await service.update_product(product_id, validated)
    record_product_operation("updated")

    logger.info("product_update_request_completed", product_id=product_id, user_id=auth.user_id)
    return success_response("Product updated successfully", product)


@router.delete("/{product_id}")
async def delete_product(
    product_id: int,
    auth: AuthContext = Depends(get_auth_context),
    service: ProductService = Depends(get_product_service),
):
    await service.delete_product(product_id)
    record_product_operation("deleted")

    logger.info("product_delete_request_completed", product_id=product_id, user_id=auth.user_id)
    return success_response("Product deleted successfully")
