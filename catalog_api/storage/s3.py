"""AWS S3 blob store."""

import aioboto3
from typing import BinaryIO, Optional
from botocore.exceptions import ClientError, BotoCoreError

from catalog_api.core.logging_config import get_logger


logger = get_logger(__name__)


class S3BlobStore:
    """S3 storage implementation using a single bucket.

    Supports both AWS S3 and S3-compatible services (e.g., MinIO) via
    endpoint_url. Objects are expected to be publicly readable (or fronted by
    a CDN configured through ``public_url``).
    """

    def __init__(
        self,
        region: str,
        bucket_name: str,
        endpoint_url: Optional[str] = None,
        public_url: Optional[str] = None,
        session: Optional[aioboto3.Session] = None,
    ):
        """Initialize S3 storage backend.

        Args:
            region: AWS region name (e.g., "eu-west-1")
            bucket_name: Physical S3 bucket name
            endpoint_url: Optional S3-compatible endpoint (e.g., "http://minio:9000")
            public_url: Optional base URL objects are publicly served from
            session: Optional preconfigured aioboto3 session
        """
        self.session = session or aioboto3.Session()
        self.region = region
        self.bucket_name = bucket_name
        self.endpoint_url = endpoint_url
        self.public_url = public_url

        logger.info(
            "s3_storage_backend_initialized",
            region=self.region,
            bucket_name=self.bucket_name,
            endpoint_url=self.endpoint_url,
            s3_compatible=bool(endpoint_url),
        )

    def _get_s3_client(self):
        return self.session.client(
            's3',
            region_name=self.region,
            endpoint_url=self.endpoint_url
        )

    @staticmethod
    def _normalize_key(path: str) -> str:
        """Normalize and validate an S3 object key.

        Raises:
            ValueError: If the path is empty or contains traversal patterns
        """
        if not path or not path.strip():
            raise ValueError("Path parameter cannot be empty")

        key = path.strip().strip('/')
        if not key:
            raise ValueError("Path parameter contains only whitespace or slashes")

        if '..' in key.split('/'):
            raise ValueError("Path traversal patterns (..) are not allowed")

        if len(key.encode('utf-8')) > 1024:
            raise ValueError(
                f"S3 object key too long ({len(key.encode('utf-8'))} bytes, max 1024)"
            )

        return key

    def _handle_s3_error(self, exc: Exception, operation: str, key: str) -> Exception:
        """Translate boto errors into builtin exceptions with context."""
        error_context = {
            "operation": operation,
            "key": key,
            "bucket": self.bucket_name,
        }

        if isinstance(exc, ClientError):
            error_code = exc.response.get('Error', {}).get('Code', 'Unknown')
            error_context["error_code"] = error_code

            if error_code == 'NoSuchBucket':
                return FileNotFoundError(
                    f"S3 bucket '{self.bucket_name}' does not exist. Context: {error_context}"
                )
            if error_code in ('NoSuchKey', '404'):
                return FileNotFoundError(f"Object not found in S3: {key}. Context: {error_context}")
            if error_code in ('AccessDenied', '403'):
                return PermissionError(
                    f"Access denied to S3 bucket '{self.bucket_name}'. Context: {error_context}"
                )

        elif isinstance(exc, BotoCoreError):
            error_context["botocore_error"] = type(exc).__name__

        return RuntimeError(f"{operation.capitalize()} failed: {exc}. Context: {error_context}")

    async def save(self, file: BinaryIO, path: str) -> str:
        """Upload file to S3, replacing any existing object under the key."""
        key = self._normalize_key(path)

        try:
            if hasattr(file, 'seek'):
                file.seek(0)

            async with self._get_s3_client() as s3:
                await s3.upload_fileobj(
                    file,
                    self.bucket_name,
                    key,
                    ExtraArgs={'ServerSideEncryption': 'AES256'}
                )

            logger.info("s3_storage_save_success", bucket=self.bucket_name, key=key)

            return key

        except Exception as exc:
            logger.error(
                "s3_storage_save_failed",
                bucket=self.bucket_name,
                key=key,
                error_type=type(exc).__name__,
                error=str(exc),
                exc_info=True,
            )
            raise self._handle_s3_error(exc, "upload", key) from exc

    async def load(self, path: str) -> bytes:
        """Download file from S3."""
        key = self._normalize_key(path)

        try:
            async with self._get_s3_client() as s3:
                response = await s3.get_object(Bucket=self.bucket_name, Key=key)
                data = await response['Body'].read()

            logger.debug("s3_storage_load_success", bucket=self.bucket_name, key=key, bytes_read=len(data))

            return data

        except Exception as exc:
            logger.error(
                "s3_storage_load_failed",
                bucket=self.bucket_name,
                key=key,
                error_type=type(exc).__name__,
                error=str(exc),
            )
            raise self._handle_s3_error(exc, "download", key) from exc

    async def delete(self, path: str) -> None:
        """Delete file from S3. Deleting a missing object succeeds."""
        key = self._normalize_key(path)

        try:
            async with self._get_s3_client() as s3:
                await s3.delete_object(Bucket=self.bucket_name, Key=key)

            logger.info("s3_storage_delete_success", bucket=self.bucket_name, key=key)

        except Exception as exc:
            logger.error(
                "s3_storage_delete_failed",
                bucket=self.bucket_name,
                key=key,
                error_type=type(exc).__name__,
                error=str(exc),
            )
            raise self._handle_s3_error(exc, "delete", key) from exc

    async def get_url(self, path: str) -> str:
        """Public URL of an object.

        Uses ``public_url`` when configured, then the custom endpoint
        (path-style), then the regional virtual-hosted AWS URL.
        """
        key = self._normalize_key(path)

        if self.public_url:
            return f"{self.public_url}/{key}"
        if self.endpoint_url:
            return f"{self.endpoint_url.rstrip('/')}/{self.bucket_name}/{key}"
        return f"https://{self.bucket_name}.s3.{self.region}.amazonaws.com/{key}"
