"""Main FastAPI application for the catalog API."""

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from contextlib import asynccontextmanager
from pathlib import Path

from catalog_api.core.config import settings
from catalog_api.core.errors import ServiceError
from catalog_api.core.logging_config import setup_logging, get_logger
from catalog_api.db.session import engine, init_models
from catalog_api.api.v1 import auth, products, upload, health, metrics
from catalog_api.api.middleware import RequestLoggingMiddleware, PerformanceLoggingMiddleware, PrometheusMiddleware
from catalog_api.api.exception_handlers import (
    service_error_handler,
    http_exception_handler,
    validation_exception_handler,
    general_exception_handler,
)


# Initialize logging system (MUST be done before any logging calls)
setup_logging(debug=settings.is_debug_mode, json_logs=settings.use_json_logs)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events (startup and shutdown).

    Handles:
    - Database schema initialization
    - Logging startup information
    - Engine disposal on shutdown
    """
    logger.info(
        "application_startup",
        service=settings.SERVICE_NAME,
        version=settings.VERSION,
        environment=settings.ENVIRONMENT,
        debug_mode=settings.is_debug_mode,
        log_level=settings.LOG_LEVEL,
        storage_backend=settings.STORAGE_BACKEND,
    )

    await init_models()

    yield

    logger.info("application_shutdown_initiated")
    await engine.dispose()
    logger.info("application_shutdown", graceful=True)


app = FastAPI(
    title=settings.SERVICE_NAME,
    description="Product catalog API with token auth and image uploads",
    version=settings.VERSION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc"
)

# Exception handlers: every error leaves in the response envelope
app.add_exception_handler(ServiceError, service_error_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, general_exception_handler)

# Middleware stack (order matters - first added is executed last!)
# 1. Prometheus metrics (outermost - measures everything)
app.add_middleware(PrometheusMiddleware)
# 2. Request logging with correlation IDs
app.add_middleware(RequestLoggingMiddleware)
# 3. Performance monitoring for slow requests
app.add_middleware(PerformanceLoggingMiddleware, slow_request_threshold_ms=1000.0)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth.router)
app.include_router(products.router)
app.include_router(upload.router)
app.include_router(health.router)
app.include_router(metrics.router)

# Mount static files for local storage backend
if settings.STORAGE_BACKEND == "local":
    storage_path = Path(settings.STORAGE_PATH)
    storage_path.mkdir(parents=True, exist_ok=True)

    app.mount(
        settings.STORAGE_URL_PREFIX,
        StaticFiles(directory=settings.STORAGE_PATH),
        name="storage"
    )
    logger.info(
        "static_files_mounted",
        mount_path=settings.STORAGE_URL_PREFIX,
        directory=settings.STORAGE_PATH,
        backend=settings.STORAGE_BACKEND,
    )


@app.get("/")
async def root():
    """Service metadata and useful links."""
    return {
        "service": settings.SERVICE_NAME,
        "version": settings.VERSION,
        "documentation": "/docs",
        "health_check": "/health",
        "storage_backend": settings.STORAGE_BACKEND,
    }
