"""Repository for Product models, including the listing query."""

import math
from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional, Tuple
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from catalog_api.db.base import MAX_INTEGER
from catalog_api.db.models import Product
from catalog_api.repositories.base import BaseRepository


SORTABLE_COLUMNS = ("name", "price", "created_at")
SORT_ORDERS = ("asc", "desc")
DEFAULT_SORT = ("created_at", "desc")


@dataclass(frozen=True)
class ProductFilters:
    """Conjunctive listing filters. ``None`` means "not supplied"."""

    min_price: Optional[Decimal] = None
    max_price: Optional[Decimal] = None
    # True: stock_quantity > 0, False: stock_quantity == 0
    in_stock: Optional[bool] = None


@dataclass(frozen=True)
class ProductSort:
    sort_by: str = DEFAULT_SORT[0]
    sort_order: str = DEFAULT_SORT[1]

    @classmethod
    def resolve(cls, sort_by: Optional[str], sort_order: Optional[str]) -> "ProductSort":
        """Build a sort, falling back to created_at desc when either part is unknown."""
        sort_by = DEFAULT_SORT[0] if sort_by is None else sort_by
        sort_order = DEFAULT_SORT[1] if sort_order is None else sort_order
        if sort_by in SORTABLE_COLUMNS and sort_order in SORT_ORDERS:
            return cls(sort_by, sort_order)
        return cls(*DEFAULT_SORT)


@dataclass(frozen=True)
class PageRequest:
    page: int = 1
    per_page: int = 10

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.per_page


@dataclass
class Page:
    """One page of results with paginator metadata."""

    items: List[Product]
    total: int
    page: int
    per_page: int

    @property
    def last_page(self) -> int:
        return max(1, math.ceil(self.total / self.per_page))

    @property
    def first_item(self) -> Optional[int]:
        return (self.page - 1) * self.per_page + 1 if self.items else None

    @property
    def last_item(self) -> Optional[int]:
        return (self.page - 1) * self.per_page + len(self.items) if self.items else None


class ProductRepository(BaseRepository[Product]):
    """Repository owning product records and the listing query."""

    def __init__(self, session: AsyncSession):
        super().__init__(Product, session)

    def _conditions(self, filters: ProductFilters) -> list:
        conditions = []
        if filters.min_price is not None:
            conditions.append(self.model.price >= filters.min_price)
        if filters.max_price is not None:
            conditions.append(self.model.price <= filters.max_price)
        if filters.in_stock is True:
            conditions.append(self.model.stock_quantity > 0)
        elif filters.in_stock is False:
            conditions.append(self.model.stock_quantity == 0)
        return conditions

    def _ordering(self, sort: ProductSort) -> Tuple:
        column = getattr(self.model, sort.sort_by)
        if sort.sort_order == "asc":
            return column.asc(), self.model.id.asc()
        return column.desc(), self.model.id.desc()

    async def list(
        self,
        filters: Optional[ProductFilters] = None,
        sort: Optional[ProductSort] = None,
        page: Optional[PageRequest] = None,
    ) -> Page:
        """Filter, sort and paginate products.

        Out-of-range filters or pages simply yield an empty page. A page whose
        offset lies beyond the integer range is known to be empty and is not
        queried.
        """
        filters = filters or ProductFilters()
        sort = sort or ProductSort()
        page = page or PageRequest()

        conditions = self._conditions(filters)

        count_stmt = select(func.count()).select_from(self.model).where(*conditions)
        total = (await self.session.execute(count_stmt)).scalar_one()

        items: List[Product] = []
        if page.offset <= MAX_INTEGER:
            stmt = (
                select(self.model)
                .where(*conditions)
                .order_by(*self._ordering(sort))
                .offset(page.offset)
                .limit(min(page.per_page, MAX_INTEGER))
            )
            result = await self.session.execute(stmt)
            items = list(result.scalars().all())

        return Page(
            items=items,
            total=total,
            page=page.page,
            per_page=page.per_page,
        )
