"""
Request middleware for catalog-api.

- Trace IDs shared between log records and response headers
- Request/response logging with the matched route and the caller's user id
- Slow request warnings
- Prometheus metrics labelled by route template
"""

import time
import uuid
from typing import Callable, Optional
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from catalog_api.core.logging_config import get_logger, set_trace_id, clear_trace_id


logger = get_logger(__name__)

TRACE_HEADERS = ("X-Trace-ID", "X-Correlation-ID")

# Label for requests no route matched (404s, scanners)
UNMATCHED_ROUTE = "<unmatched>"


def route_template(request: Request) -> str:
    """Path template of the matched route, e.g. ``/products/{product_id}``.

    Only valid once the router has run. Used as the metrics label so that
    product ids and stored filenames do not each create a new series.
    """
    route = request.scope.get("route")
    return getattr(route, "path", None) or UNMATCHED_ROUTE


def authenticated_user_id(request: Request) -> Optional[int]:
    """User id set by the bearer-token dependency, if the route required one."""
    return getattr(request.state, "user_id", None)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Binds a trace ID to the request and logs its start and outcome.

    The trace ID comes from ``X-Trace-ID`` or ``X-Correlation-ID`` when the
    client sends one; otherwise a UUID4 is generated. It is echoed in both
    headers of the response.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        trace_id = next(
            (request.headers[name] for name in TRACE_HEADERS if request.headers.get(name)),
            None,
        ) or str(uuid.uuid4())
        set_trace_id(trace_id)

        start_time = time.time()
        method = request.method
        path = request.url.path
        client_host = request.client.host if request.client else "unknown"

        logger.info(
            "request_started",
            method=method,
            path=path,
            client_host=client_host,
            user_agent=request.headers.get("user-agent", "unknown"),
            query_params=dict(request.query_params) if request.query_params else {},
        )

        try:
            response = await call_next(request)

            logger.info(
                "request_completed",
                method=method,
                path=path,
                route=route_template(request),
                user_id=authenticated_user_id(request),
                status_code=response.status_code,
                duration_ms=round((time.time() - start_time) * 1000, 2),
            )

            for name in TRACE_HEADERS:
                response.headers[name] = trace_id
            return response

        except Exception as exc:
            logger.error(
                "request_failed",
                method=method,
                path=path,
                route=route_template(request),
                user_id=authenticated_user_id(request),
                client_host=client_host,
                duration_ms=round((time.time() - start_time) * 1000, 2),
                error_type=type(exc).__name__,
                error_message=str(exc),
                exc_info=True,
            )
            # FastAPI's exception handlers build the envelope
            raise
        finally:
            clear_trace_id()


class PerformanceLoggingMiddleware(BaseHTTPMiddleware):
    """Warns about requests slower than ``slow_request_threshold_ms``."""

    def __init__(self, app: ASGIApp, slow_request_threshold_ms: float = 1000.0):
        super().__init__(app)
        self.slow_request_threshold_ms = slow_request_threshold_ms

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.time()
        response = await call_next(request)
        duration_ms = (time.time() - start_time) * 1000

        if duration_ms > self.slow_request_threshold_ms:
            logger.warning(
                "slow_request_detected",
                method=request.method,
                path=request.url.path,
                route=route_template(request),
                duration_ms=round(duration_ms, 2),
                threshold_ms=self.slow_request_threshold_ms,
                status_code=response.status_code,
            )

        return response


class PrometheusMiddleware(BaseHTTPMiddleware):
    """Records request counts, durations, in-flight requests and unhandled errors.

    The ``endpoint`` label is the route template, not the raw path.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        # Deferred: the metrics router imports from this package
        from catalog_api.api.v1.metrics import (
            http_requests_total,
            http_request_duration_seconds,
            http_requests_in_progress,
            errors_total,
        )
        from catalog_api.core.config import settings

        if request.url.path == "/metrics":
            return await call_next(request)

        service = settings.SERVICE_NAME
        method = request.method
        in_progress = http_requests_in_progress.labels(service=service, method=method)
        in_progress.inc()

        start_time = time.time()
        status_code = 500

        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        except Exception as exc:
            errors_total.labels(
                service=service,
                error_type=type(exc).__name__,
                endpoint=route_template(request),
            ).inc()
            raise
        finally:
            in_progress.dec()
            endpoint = route_template(request)
            http_requests_total.labels(
                service=service, method=method, endpoint=endpoint, status=status_code
            ).inc()
            http_request_duration_seconds.labels(
                service=service, method=method, endpoint=endpoint
            ).observe(time.time() - start_time)
