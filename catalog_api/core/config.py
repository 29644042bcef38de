"""Application configuration using Pydantic Settings."""

import re
from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings
from typing import List, Optional
import os


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    # Service Identity
    SERVICE_NAME: str = "catalog-api"
    VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"  # development, staging, production

    # Logging Configuration
    LOG_LEVEL: str = "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL
    LOG_JSON: bool = True    # JSON logs (prod) vs pretty console (dev)
    DEBUG: bool = False

    # Database (any SQLAlchemy async URL)
    DATABASE_URL: str = f"sqlite+aiosqlite:///{os.path.join(os.getcwd(), 'catalog.db')}"

    # Storage Backend Configuration
    STORAGE_BACKEND: str = "local"  # Options: "local" or "s3"
    STORAGE_PATH: str = os.path.join(os.getcwd(), "storage")
    STORAGE_URL_PREFIX: str = "/storage"

    # S3 Storage Configuration
    AWS_REGION: str = "eu-west-1"
    AWS_S3_BUCKET_NAME: str = "catalog-api-dev"
    AWS_ENDPOINT_URL: Optional[str] = None  # For MinIO or S3-compatible services
    AWS_PUBLIC_URL: Optional[str] = None    # CDN / public base URL for stored objects

    # Image Upload Constraints
    IMAGE_TARGET_WIDTH: int = 800
    MAX_IMAGE_SIZE_KB: int = 2048
    ALLOWED_IMAGE_TYPES: List[str] = ["jpeg", "png", "jpg", "gif"]
    IMAGE_DIRECTORY: str = "images"

    # Product listing
    DEFAULT_PER_PAGE: int = 10

    # CORS
    CORS_ORIGINS: List[str] = ["*"]

    # Password hashing schemes handed to passlib's CryptContext
    PASSWORD_SCHEMES: List[str] = ["pbkdf2_sha256"]

    @field_validator('IMAGE_TARGET_WIDTH')
    @classmethod
    def validate_target_width(cls, v: int) -> int:
        """Ensure the resize width is positive and reasonable."""
        if v <= 0:
            raise ValueError(f"Image width must be positive, got {v}")
        if v > 8192:
            raise ValueError(f"Image width too large (max 8192), got {v}")
        return v

    @field_validator('MAX_IMAGE_SIZE_KB', 'DEFAULT_PER_PAGE')
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError(f"Value must be positive, got {v}")
        return v

    @field_validator('STORAGE_URL_PREFIX')
    @classmethod
    def validate_url_prefix(cls, v: str) -> str:
        """Mount path for locally stored files: leading slash, no trailing one."""
        if not v.startswith('/') or v.rstrip('/') == '':
            raise ValueError(f"STORAGE_URL_PREFIX must be an absolute path like '/storage', got '{v}'")
        return v.rstrip('/')

    @field_validator('AWS_S3_BUCKET_NAME')
    @classmethod
    def validate_s3_bucket_name(cls, v: str) -> str:
        """Validate S3 bucket name follows AWS naming conventions.

        Rules:
        - 3-63 characters long
        - Lowercase letters, numbers, hyphens, and dots only
        - Must start and end with a letter or number
        - No consecutive dots
        """
        if not v:  # Allow empty for local storage backend
            return v

        if not 3 <= len(v) <= 63:
            raise ValueError(f"S3 bucket name must be 3-63 characters long, got {len(v)}")

        if not re.match(r'^[a-z0-9][a-z0-9.-]*[a-z0-9]$', v):
            raise ValueError(
                f"S3 bucket name '{v}' must start/end with letter or number, "
                "and contain only lowercase letters, numbers, hyphens, and dots"
            )

        if '..' in v:
            raise ValueError("S3 bucket name cannot contain consecutive dots")

        return v

    @field_validator('AWS_ENDPOINT_URL', 'AWS_PUBLIC_URL')
    @classmethod
    def validate_url(cls, v: Optional[str]) -> Optional[str]:
        """Validate optional URL settings."""
        if v is None or v == "":
            return None

        if not re.match(r'^https?://.+', v):
            raise ValueError(f"URL must start with http:// or https://, got '{v}'")

        return v.rstrip('/')

    @model_validator(mode='after')
    def validate_storage_configuration(self):
        """Ensure the selected storage backend has what it needs."""
        if self.STORAGE_BACKEND not in ("local", "s3"):
            raise ValueError(
                f"STORAGE_BACKEND must be 'local' or 's3', got '{self.STORAGE_BACKEND}'"
            )
        if self.STORAGE_BACKEND == "s3":
            if not self.AWS_S3_BUCKET_NAME:
                raise ValueError("AWS_S3_BUCKET_NAME must be set when STORAGE_BACKEND=s3")
            if not self.AWS_REGION:
                raise ValueError("AWS_REGION must be set when STORAGE_BACKEND=s3")
        return self

    @property
    def is_debug_mode(self) -> bool:
        """Check if application is in debug mode."""
        return self.DEBUG or self.LOG_LEVEL.upper() == "DEBUG"

    @property
    def use_json_logs(self) -> bool:
        """Determine if JSON logging should be used.

        In production, always use JSON logs.
        In development, allow override via LOG_JSON setting.
        """
        if self.ENVIRONMENT == "production":
            return True
        if self.DEBUG:
            return self.LOG_JSON
        return True

    @property
    def max_image_size_bytes(self) -> int:
        return self.MAX_IMAGE_SIZE_KB * 1024

    class Config:
        """Pydantic configuration."""
        env_file = ".env"
        case_sensitive = True


# Global settings instance
settings = Settings()
