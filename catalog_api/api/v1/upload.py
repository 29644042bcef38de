"""
Upload API endpoint.

Stores an image, resizes it to the configured width and optionally attaches
it to a product.
"""

from fastapi import APIRouter, Depends, Request

from catalog_api.api.dependencies import AuthContext, get_auth_context, get_upload_service, read_payload
from catalog_api.api.responses import success_response
from catalog_api.api.rules import UPLOAD_RULES
from catalog_api.api.v1.metrics import record_upload
from catalog_api.core.errors import ErrorCode, ServiceError, ValidationFailed, bad_request
from catalog_api.core.logging_config import get_logger
from catalog_api.core.validation import validate
from catalog_api.services import UploadService


logger = get_logger(__name__)
router = APIRouter(tags=["upload"])


@router.post("/upload-image")
async def upload_image(
    request: Request,
    auth: AuthContext = Depends(get_auth_context),
    service: UploadService = Depends(get_upload_service),
):
    """Upload an image.

    Multipart fields: ``image`` (jpeg, png, jpg or gif, at most 2048 KB) and
    an optional ``product_id``.

    Returns:
        200 with ``{url, path}``

    Raises:
        ServiceError: 400 when no image is sent, 422 on validation failure,
            500 when the image cannot be decoded
    """
    payload = await read_payload(request)

    if payload.get("image") is None:
        record_upload("rejected")
        raise bad_request(ErrorCode.UPLOAD_NO_IMAGE, "No image provided")

    try:
        validated = await validate(payload, UPLOAD_RULES, message="Validation Error")
    except ValidationFailed:
        record_upload("rejected")
        raise

    logger.info(
        "upload_request_received",
        filename=validated["image"].filename,
        size_bytes=validated["image"].size,
        product_id=payload.get("product_id"),
        user_id=auth.user_id,
    )

    try:
        stored = await service.upload(validated["image"], payload.get("product_id"))
    except ServiceError:
        record_upload("failed")
        raise

    record_upload("accepted")
    return success_response("Image uploaded successfully", stored)
