"""
Error handling for catalog-api

Standardized error codes and exceptions. Every ServiceError is rendered by
the API layer into the response envelope:

    {"success": false, "message": "...", "data": <details or null>}
"""
from enum import Enum
from typing import Any, Dict, List, Optional
from fastapi import HTTPException, status


class ErrorCode(str, Enum):
    """Standardized error codes for the entire application."""

    # Upload errors (UPLOAD_xxx)
    UPLOAD_NO_IMAGE = "UPLOAD_001"

    # Image processing errors (IMAGE_xxx)
    IMAGE_DECODE_FAILED = "IMAGE_001"

    # Auth errors (AUTH_xxx)
    AUTH_INVALID_CREDENTIALS = "AUTH_001"
    AUTH_UNAUTHENTICATED = "AUTH_002"

    # Validation errors (VAL_xxx)
    VAL_FAILED = "VAL_001"
    VAL_MALFORMED_BODY = "VAL_002"

    # Product errors (PRODUCT_xxx)
    PRODUCT_NOT_FOUND = "PRODUCT_001"


class ServiceError(HTTPException):
    """
    Base class for business logic errors.

    Carries an HTTP status, a stable error code, a human readable message and
    optional details (rendered as the envelope's ``data``).
    """

    def __init__(
        self,
        status_code: int,
        code: ErrorCode,
        message: str,
        details: Optional[Any] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        super().__init__(status_code=status_code, detail=message, headers=headers)
        self.code = code
        self.message = message
        self.details = details

    @property
    def http_status(self) -> int:
        return self.status_code


class ValidationFailed(ServiceError):
    """Field-level validation failure (422).

    ``errors`` maps each field name to the list of violated constraints.
    """

    def __init__(self, errors: Dict[str, List[str]], message: Optional[str] = None):
        super().__init__(
            status.HTTP_422_UNPROCESSABLE_ENTITY,
            ErrorCode.VAL_FAILED,
            message or summarize_errors(errors),
            errors,
        )
        self.errors = errors


def summarize_errors(errors: Dict[str, List[str]]) -> str:
    """First message plus a count of the remaining ones."""
    messages = [message for field_errors in errors.values() for message in field_errors]
    if not messages:
        return "The given data was invalid."
    summary = messages[0]
    remaining = len(messages) - 1
    if remaining:
        summary += f" (and {remaining} more error{'s' if remaining > 1 else ''})"
    return summary


# Convenience functions for common errors
def bad_request(code: ErrorCode, message: str, details: Optional[Any] = None) -> ServiceError:
    """Create a request-level error (400 Bad Request)."""
    return ServiceError(status.HTTP_400_BAD_REQUEST, code, message, details)


def auth_error(code: ErrorCode, message: str) -> ServiceError:
    """Create an authentication error (401 Unauthorized)."""
    return ServiceError(
        status.HTTP_401_UNAUTHORIZED,
        code,
        message,
        headers={"WWW-Authenticate": "Bearer"},
    )


def not_found_error(code: ErrorCode, message: str, details: Optional[Any] = None) -> ServiceError:
    """Create a not-found error (404 Not Found)."""
    return ServiceError(status.HTTP_404_NOT_FOUND, code, message, details)


def processing_error(code: ErrorCode, message: str, details: Optional[Any] = None) -> ServiceError:
    """Create a processing error (500 Internal Server Error)."""
    return ServiceError(status.HTTP_500_INTERNAL_SERVER_ERROR, code, message, details)
