"""
Custom FastAPI exception handlers for structured error logging.

Every error leaves the service in the response envelope
``{"success": false, "message": ..., "data": ...}`` and is logged with the
request context.
"""

from typing import Dict, List

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from catalog_api.api.responses import error_response
from catalog_api.core.errors import ServiceError, summarize_errors
from catalog_api.core.logging_config import get_logger


logger = get_logger(__name__)


def _client_host(request: Request) -> str:
    return request.client.host if request.client else "unknown"


async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    """Render a business error with its code-specific status and details."""
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        "service_error",
        method=request.method,
        path=str(request.url.path),
        status_code=exc.status_code,
        error_code=exc.code.value,
        message=exc.message,
        client_host=_client_host(request),
    )

    return error_response(exc.message, exc.status_code, exc.details, exc.headers)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Handle HTTP exceptions (unknown routes, wrong methods) with structured logging."""
    logger.warning(
        "http_exception",
        method=request.method,
        path=str(request.url.path),
        status_code=exc.status_code,
        detail=exc.detail,
        client_host=_client_host(request),
    )

    message = exc.detail if isinstance(exc.detail, str) else "An error occurred"
    return error_response(message, exc.status_code, headers=getattr(exc, "headers", None))


def _field_errors(exc: RequestValidationError) -> Dict[str, List[str]]:
    """Group pydantic errors by the offending parameter name."""
    errors: Dict[str, List[str]] = {}
    for error in exc.errors():
        location = [str(part) for part in error.get("loc", ()) if part not in ("query", "path", "body")]
        field = ".".join(location) or "request"
        errors.setdefault(field, []).append(error.get("msg", "Invalid value"))
    return errors


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Reshape typed parameter errors (query/path) into the 422 envelope."""
    errors = _field_errors(exc)

    logger.warning(
        "validation_error",
        method=request.method,
        path=str(request.url.path),
        error_count=len(errors),
        fields=sorted(errors),
        client_host=_client_host(request),
    )

    return error_response(
        summarize_errors(errors),
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        errors,
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions with structured logging."""
    logger.error(
        "unhandled_exception",
        method=request.method,
        path=str(request.url.path),
        error_type=type(exc).__name__,
        error_message=str(exc),
        client_host=_client_host(request),
        exc_info=True,
    )

    return error_response("Internal server error", status.HTTP_500_INTERNAL_SERVER_ERROR)
