"""FastAPI dependencies for authentication, request payloads and services."""

import json
from typing import Any, Dict, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.datastructures import UploadFile

from catalog_api.core.errors import ErrorCode, bad_request
from catalog_api.core.logging_config import get_logger
from catalog_api.db.session import get_session
from catalog_api.imaging import ImageProcessor, get_image_processor
from catalog_api.imaging.upload import ImageUpload
from catalog_api.schemas import UserOut
from catalog_api.services import AuthService, ProductService, UploadService
from catalog_api.storage import BlobStore, get_storage


# auto_error=False: a missing header must surface as our own 401 envelope
security = HTTPBearer(auto_error=False)
logger = get_logger(__name__)


# ============================================================================
# Data Models
# ============================================================================


class AuthContext(BaseModel):
    """The authenticated user and the token that authenticated the request."""
    user_id: int
    token_id: int
    user: UserOut


# ============================================================================
# Request Payload
# ============================================================================


FORM_CONTENT_TYPES = ("multipart/form-data", "application/x-www-form-urlencoded")


async def read_payload(request: Request) -> Dict[str, Any]:
    """Read a JSON, urlencoded or multipart body into a flat dict.

    Uploaded files become ``ImageUpload`` instances; an empty file part
    (no bytes) is treated as an empty value.

    Raises:
        ServiceError: 400 VAL_MALFORMED_BODY for unparseable JSON
    """
    content_type = request.headers.get("content-type", "").lower()

    if content_type.startswith("application/json"):
        body = await request.body()
        if not body.strip():
            return {}
        try:
            payload = json.loads(body)
        except ValueError as exc:
            logger.warning("malformed_json_body", path=request.url.path, error=str(exc))
            raise bad_request(ErrorCode.VAL_MALFORMED_BODY, "Malformed JSON body")
        if not isinstance(payload, dict):
            raise bad_request(ErrorCode.VAL_MALFORMED_BODY, "JSON body must be an object")
        return payload

    if content_type.startswith(FORM_CONTENT_TYPES):
        form = await request.form()
        payload: Dict[str, Any] = {}
        for key, value in form.multi_items():
            if isinstance(value, UploadFile):
                upload = await ImageUpload.from_upload(value)
                payload[key] = upload if upload.size else None
            else:
                payload[key] = value
        return payload

    return {}


# ============================================================================
# Service Layer Dependencies
# ============================================================================


def get_auth_service(session: AsyncSession = Depends(get_session)) -> AuthService:
    return AuthService(session)


def get_upload_service(
    session: AsyncSession = Depends(get_session),
    storage: BlobStore = Depends(get_storage),
    processor: ImageProcessor = Depends(get_image_processor),
) -> UploadService:
    """Factory for UploadService with dependency injection.

    Storage and processor are dependencies themselves so tests can swap them
    through ``app.dependency_overrides``.
    """
    return UploadService(session, storage, processor)


def get_product_service(
    session: AsyncSession = Depends(get_session),
    uploads: UploadService = Depends(get_upload_service),
) -> ProductService:
    return ProductService(session, uploads)


# ============================================================================
# Authentication Dependencies
# ============================================================================


async def get_auth_context(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    auth_service: AuthService = Depends(get_auth_service),
) -> AuthContext:
    """Resolve the bearer token of the request.

    Runs before the handler reads the body, so unauthenticated requests are
    rejected before any validation.

    Raises:
        ServiceError: 401 AUTH_UNAUTHENTICATED
    """
    token = await auth_service.authenticate(credentials.credentials if credentials else None)
    # Picked up by RequestLoggingMiddleware
    request.state.user_id = token.user_id
    return AuthContext(
        user_id=token.user_id,
        token_id=token.id,
        user=UserOut.model_validate(token.user),
    )
