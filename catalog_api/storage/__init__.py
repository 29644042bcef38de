"""Blob storage abstraction for local and cloud storage."""

from functools import lru_cache
from catalog_api.core.config import settings
from .protocol import BlobStore
from .local import LocalBlobStore
# S3 backend imported lazily when needed


@lru_cache()
def get_storage() -> BlobStore:
    """Factory function for the blob store.

    Returns:
        BlobStore: Backend selected by STORAGE_BACKEND

    Raises:
        ValueError: If unknown storage backend is configured
    """
    if settings.STORAGE_BACKEND == "local":
        return LocalBlobStore(settings.STORAGE_PATH, settings.STORAGE_URL_PREFIX)
    elif settings.STORAGE_BACKEND == "s3":
        # Lazy import to avoid requiring aioboto3 when using local storage
        from .s3 import S3BlobStore
        return S3BlobStore(
            region=settings.AWS_REGION,
            bucket_name=settings.AWS_S3_BUCKET_NAME,
            endpoint_url=settings.AWS_ENDPOINT_URL,
            public_url=settings.AWS_PUBLIC_URL,
        )
    else:
        raise ValueError(f"Unknown storage backend: {settings.STORAGE_BACKEND}")


__all__ = ["get_storage", "BlobStore", "LocalBlobStore"]
