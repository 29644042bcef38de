"""Prometheus metrics endpoint and metric definitions."""

from fastapi import APIRouter, Response
from prometheus_client import (
    Counter,
    Histogram,
    Gauge,
    Info,
    generate_latest,
    CONTENT_TYPE_LATEST,
    REGISTRY,
)

from catalog_api.core.config import settings


router = APIRouter(tags=["metrics"])


service_info = Info(
    'service',
    'Service information',
    registry=REGISTRY
)
service_info.info({
    'name': settings.SERVICE_NAME,
    'version': settings.VERSION,
    'environment': settings.ENVIRONMENT,
})


# HTTP Request Metrics
http_requests_total = Counter(
    'http_requests_total',
    'Total HTTP requests',
    ['service', 'method', 'endpoint', 'status'],
    registry=REGISTRY
)

http_request_duration_seconds = Histogram(
    'http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['service', 'method', 'endpoint'],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.075, 0.1, 0.25, 0.5, 0.75, 1.0, 2.5, 5.0, 7.5, 10.0),
    registry=REGISTRY
)

http_requests_in_progress = Gauge(
    'http_requests_in_progress',
    'HTTP requests currently in progress',
    ['service', 'method'],
    registry=REGISTRY
)


# Catalog Metrics
image_uploads_total = Counter(
    'image_uploads_total',
    'Total image uploads',
    ['service', 'status'],  # status: accepted, rejected, failed
    registry=REGISTRY
)

products_total = Counter(
    'products_total',
    'Total product write operations',
    ['service', 'operation'],  # operation: created, updated, deleted
    registry=REGISTRY
)


# Error Tracking Metrics
errors_total = Counter(
    'errors_total',
    'Total errors',
    ['service', 'error_type', 'endpoint'],
    registry=REGISTRY
)


def record_upload(status: str) -> None:
    image_uploads_total.labels(service=settings.SERVICE_NAME, status=status).inc()


def record_product_operation(operation: str) -> None:
    products_total.labels(service=settings.SERVICE_NAME, operation=operation).inc()


@router.get("/metrics")
async def metrics():
    """Prometheus metrics endpoint.

    Returns:
        Response: Prometheus metrics in text format
    """
    return Response(
        content=generate_latest(REGISTRY),
        media_type=CONTENT_TYPE_LATEST
    )
