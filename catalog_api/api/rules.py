"""Input constraint tables for every endpoint that accepts a body."""

from decimal import Decimal

from catalog_api.core.config import settings
from catalog_api.core.validation import IMAGE, INTEGER, NUMERIC, FieldRule


IMAGE_MIMES = tuple(settings.ALLOWED_IMAGE_TYPES)

# Column limits: price is NUMERIC(10, 2), stock_quantity a 32-bit INTEGER
MAX_PRICE = Decimal("99999999.99")
MAX_STOCK_QUANTITY = 2**31 - 1


REGISTER_RULES = {
    "name": FieldRule(required=True, max=255),
    "email": FieldRule(required=True, email=True, max=255, unique=True),
    "password": FieldRule(required=True, min=8, confirmed=True),
}

LOGIN_RULES = {
    "email": FieldRule(required=True, email=True),
    "password": FieldRule(required=True),
}

PRODUCT_CREATE_RULES = {
    "name": FieldRule(required=True, max=255),
    "description": FieldRule(nullable=True),
    "price": FieldRule(required=True, kind=NUMERIC, min=0, max=MAX_PRICE),
    "stock_quantity": FieldRule(required=True, kind=INTEGER, min=0, max=MAX_STOCK_QUANTITY),
    "image": FieldRule(nullable=True, kind=IMAGE, mimes=IMAGE_MIMES, max=settings.MAX_IMAGE_SIZE_KB),
}

# Partial update: absent fields are left alone
PRODUCT_UPDATE_RULES = {
    "name": FieldRule(sometimes=True, required=True, max=255),
    "description": FieldRule(sometimes=True, nullable=True),
    "price": FieldRule(sometimes=True, required=True, kind=NUMERIC, min=0, max=MAX_PRICE),
    "stock_quantity": FieldRule(sometimes=True, required=True, kind=INTEGER, min=0, max=MAX_STOCK_QUANTITY),
    "image": FieldRule(
        sometimes=True, nullable=True, kind=IMAGE, mimes=IMAGE_MIMES, max=settings.MAX_IMAGE_SIZE_KB
    ),
}

UPLOAD_RULES = {
    "image": FieldRule(required=True, kind=IMAGE, mimes=IMAGE_MIMES, max=settings.MAX_IMAGE_SIZE_KB),
}
