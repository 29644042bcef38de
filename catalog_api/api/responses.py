"""Response envelope shared by every endpoint: ``{success, message, data}``."""

from typing import Any, Dict, Optional

from fastapi import status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse


def envelope(success: bool, message: str, data: Any = None) -> Dict[str, Any]:
    return {"success": success, "message": message, "data": jsonable_encoder(data)}


def success_response(
    message: str,
    data: Any = None,
    status_code: int = status.HTTP_200_OK,
) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=envelope(True, message, data))


def error_response(
    message: str,
    status_code: int,
    data: Any = None,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=envelope(False, message, data),
        headers=headers,
    )
