"""
Services package - Business Logic Layer

Contains all business logic separated from HTTP/API concerns.
"""
from catalog_api.services.auth_service import AuthService
from catalog_api.services.product_service import ProductService
from catalog_api.services.upload_service import UploadService

__all__ = ["AuthService", "ProductService", "UploadService"]
