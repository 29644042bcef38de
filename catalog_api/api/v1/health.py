"""Health endpoint."""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from catalog_api.api.responses import envelope
from catalog_api.core.config import settings
from catalog_api.core.logging_config import get_logger
from catalog_api.db.session import get_session


logger = get_logger(__name__)
router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check(session: AsyncSession = Depends(get_session)):
    """Service status for load balancer checks.

    Reports 503 when the database cannot answer a trivial query.
    """
    database = "ok"
    try:
        await session.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        logger.warning("health_database_unavailable", error=str(exc))
        database = "unavailable"

    healthy = database == "ok"
    data = {
        "status": "healthy" if healthy else "degraded",
        "service": settings.SERVICE_NAME,
        "version": settings.VERSION,
        "database": database,
        "storage_backend": settings.STORAGE_BACKEND,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    return JSONResponse(
        status_code=status.HTTP_200_OK if healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
        content=envelope(healthy, "Service is healthy" if healthy else "Service is degraded", data),
    )
