"""
Repository tests for the product listing query.

Filters, sort fallback and paginator metadata against a real SQLite database.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from catalog_api.repositories.product_repository import (
    PageRequest,
    ProductFilters,
    ProductRepository,
    ProductSort,
)


BASE_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
async def seeded(db_session):
    """Five products with distinct prices, stock levels and creation times."""
    repo = ProductRepository(db_session)
    rows = [
        ("Anvil", "5.00", 0),
        ("Bucket", "15.50", 3),
        ("Crowbar", "25.00", 0),
        ("Drill", "80.00", 12),
        ("Easel", "45.25", 7),
    ]
    for offset, (name, price, stock) in enumerate(rows):
        await repo.create(
            name=name,
            price=Decimal(price),
            stock_quantity=stock,
            created_at=BASE_TIME + timedelta(minutes=offset),
        )
    await db_session.commit()
    return repo


def names(page):
    return [product.name for product in page.items]


# ============================================================================
# Filters
# ============================================================================

@pytest.mark.unit
async def test_list_without_filters_returns_newest_first(seeded):
    page = await seeded.list()

    assert names(page) == ["Easel", "Drill", "Crowbar", "Bucket", "Anvil"]
    assert page.total == 5


@pytest.mark.unit
async def test_price_range_filter(seeded):
    page = await seeded.list(ProductFilters(min_price=Decimal("10"), max_price=Decimal("50")))

    assert sorted(names(page)) == ["Bucket", "Crowbar", "Easel"]


@pytest.mark.unit
async def test_in_stock_true_excludes_sold_out(seeded):
    page = await seeded.list(ProductFilters(in_stock=True))

    assert sorted(names(page)) == ["Bucket", "Drill", "Easel"]
    assert all(product.stock_quantity > 0 for product in page.items)


@pytest.mark.unit
async def test_in_stock_false_selects_sold_out(seeded):
    page = await seeded.list(ProductFilters(in_stock=False))

    assert sorted(names(page)) == ["Anvil", "Crowbar"]


@pytest.mark.unit
async def test_filters_are_conjunctive(seeded):
    filters = ProductFilters(min_price=Decimal("10"), max_price=Decimal("50"), in_stock=True)

    page = await seeded.list(filters)

    assert sorted(names(page)) == ["Bucket", "Easel"]
    for product in page.items:
        assert Decimal("10") <= product.price <= Decimal("50")
        assert product.stock_quantity > 0


@pytest.mark.unit
async def test_out_of_range_filter_yields_empty_page(seeded):
    page = await seeded.list(ProductFilters(min_price=Decimal("1000")))

    assert page.items == []
    assert page.total == 0
    assert page.last_page == 1
    assert page.first_item is None
    assert page.last_item is None


# ============================================================================
# Sorting
# ============================================================================

@pytest.mark.unit
async def test_sort_by_price_ascending(seeded):
    page = await seeded.list(sort=ProductSort.resolve("price", "asc"))

    assert names(page) == ["Anvil", "Bucket", "Crowbar", "Easel", "Drill"]


@pytest.mark.unit
async def test_sort_by_name_descending(seeded):
    page = await seeded.list(sort=ProductSort.resolve("name", "desc"))

    assert names(page) == ["Easel", "Drill", "Crowbar", "Bucket", "Anvil"]


@pytest.mark.unit
@pytest.mark.parametrize("sort_by, sort_order", [
    ("bogus", "asc"),
    ("price", "bogus"),
    ("bogus", None),
])
async def test_unknown_sort_falls_back_to_newest_first(seeded, sort_by, sort_order):
    sort = ProductSort.resolve(sort_by, sort_order)

    assert (sort.sort_by, sort.sort_order) == ("created_at", "desc")
    page = await seeded.list(sort=sort)
    assert names(page) == ["Easel", "Drill", "Crowbar", "Bucket", "Anvil"]


@pytest.mark.unit
def test_sort_defaults():
    sort = ProductSort.resolve(None, None)

    assert (sort.sort_by, sort.sort_order) == ("created_at", "desc")
    assert ProductSort.resolve("name", None).sort_order == "desc"


@pytest.mark.unit
async def test_equal_sort_keys_are_ordered_by_id(db_session):
    repo = ProductRepository(db_session)
    for name in ("First", "Second", "Third"):
        await repo.create(name=name, price=Decimal("1.00"), stock_quantity=1, created_at=BASE_TIME)
    await db_session.commit()

    ascending = await repo.list(sort=ProductSort.resolve("price", "asc"))
    descending = await repo.list(sort=ProductSort.resolve("price", "desc"))

    assert names(ascending) == ["First", "Second", "Third"]
    assert names(descending) == ["Third", "Second", "First"]


# ============================================================================
# Pagination
# ============================================================================

@pytest.mark.unit
async def test_pagination_metadata(seeded):
    page = await seeded.list(page=PageRequest(page=2, per_page=2))

    assert names(page) == ["Crowbar", "Bucket"]
    assert page.total == 5
    assert page.last_page == 3
    assert page.first_item == 3
    assert page.last_item == 4


@pytest.mark.unit
async def test_last_partial_page(seeded):
    page = await seeded.list(page=PageRequest(page=3, per_page=2))

    assert names(page) == ["Anvil"]
    assert (page.first_item, page.last_item) == (5, 5)


@pytest.mark.unit
async def test_page_past_the_end_is_empty(seeded):
    page = await seeded.list(page=PageRequest(page=9, per_page=2))

    assert page.items == []
    assert page.total == 5
    assert page.first_item is None


# ============================================================================
# CRUD
# ============================================================================

@pytest.mark.unit
async def test_update_applies_only_given_fields(seeded):
    product = (await seeded.list(sort=ProductSort.resolve("name", "asc"))).items[0]

    updated = await seeded.update(product.id, stock_quantity=42)

    assert updated.stock_quantity == 42
    assert updated.name == "Anvil"
    assert updated.price == Decimal("5.00")


@pytest.mark.unit
async def test_delete_removes_row(seeded):
    product = (await seeded.list()).items[0]

    assert await seeded.delete(product.id) is True
    assert await seeded.get(product.id) is None
    assert await seeded.delete(product.id) is False
