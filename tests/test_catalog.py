from decimal import Decimal

import pytest

from order_tracking.core.errors import (
    InsufficientStockError,
    InvalidPriceError,
    InvalidStockError,
    NotFoundError,
    ValidationError,
)


def test_add_product_quantizes_price(catalog):
    product = catalog.add("Keyboard", "Mechanical keyboard", price="79.995", stock=200)

    assert product.id is not None
    assert product.price == Decimal("80.00")
    assert product.stock == 200
    assert catalog.find(product.id).description == "Mechanical keyboard"


def test_description_is_optional(catalog):
    product = catalog.add("Mouse", price=Decimal("25.50"), stock=0)
    assert catalog.find(product.id).description is None


def test_zero_price_is_allowed(catalog):
    assert catalog.add("Sticker", price=0, stock=1).price == Decimal("0.00")


@pytest.mark.parametrize("price", [Decimal("-0.01"), -1, "abc"])
def test_add_rejects_invalid_price(catalog, price):
    with pytest.raises(InvalidPriceError):
        catalog.add("Broken", price=price, stock=1)
    assert catalog.list() == []


@pytest.mark.parametrize("stock", [-1, 1.5, "3"])
def test_add_rejects_invalid_stock(catalog, stock):
    with pytest.raises(InvalidStockError):
        catalog.add("Broken", price=1, stock=stock)


def test_add_requires_name(catalog):
    with pytest.raises(ValidationError):
        catalog.add(" ", price=1, stock=1)


def test_find_unknown_product(catalog):
    with pytest.raises(NotFoundError):
        catalog.find(7)


def test_adjust_stock_up_and_down(catalog):
    product = catalog.add("Laptop", price=1200, stock=5)

    assert catalog.adjust_stock(product.id, 10).stock == 15
    assert catalog.adjust_stock(product.id, -15).stock == 0
    assert catalog.find(product.id).stock == 0


def test_adjust_stock_below_zero_fails_without_change(catalog):
    product = catalog.add("Laptop", price=1200, stock=5)

    with pytest.raises(InsufficientStockError) as excinfo:
        catalog.adjust_stock(product.id, -6)

    assert excinfo.value.available == 5
    assert excinfo.value.requested == 6
    assert catalog.find(product.id).stock == 5


def test_adjust_stock_unknown_product(catalog):
    with pytest.raises(NotFoundError):
        catalog.adjust_stock(99, 1)


def test_update_price(catalog):
    product = catalog.add("Laptop", price=1200, stock=5)

    assert catalog.update_price(product.id, "999.99").price == Decimal("999.99")
    with pytest.raises(InvalidPriceError):
        catalog.update_price(product.id, -5)
    assert catalog.find(product.id).price == Decimal("999.99")


def test_low_stock_is_strictly_below_threshold(catalog):
    catalog.add("A", price=1, stock=9)
    catalog.add("B", price=1, stock=10)
    catalog.add("C", price=1, stock=0)

    assert sorted(p.name for p in catalog.low_stock(10)) == ["A", "C"]
    assert catalog.low_stock(0) == []
