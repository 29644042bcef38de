"""Response records returned by the service layer."""

from datetime import datetime
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict

from catalog_api.repositories.product_repository import Page


class UserOut(BaseModel):
    """Public view of a user. The password hash never leaves the service."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    created_at: datetime
    updated_at: datetime


class ProductOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: Optional[str] = None
    price: float
    stock_quantity: int
    image: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class LoginResult(BaseModel):
    user: UserOut
    token: str


class StoredImage(BaseModel):
    """Result of storing and resizing an uploaded image."""
    url: str
    path: str


def paginated(page: Page) -> Dict[str, Any]:
    """Paginator payload for a page of products."""
    data: List[Dict[str, Any]] = [
        ProductOut.model_validate(product).model_dump(mode="json") for product in page.items
    ]
    return {
        "current_page": page.page,
        "data": data,
        "per_page": page.per_page,
        "total": page.total,
        "last_page": page.last_page,
        "from": page.first_item,
        "to": page.last_item,
    }
