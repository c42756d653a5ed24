from decimal import Decimal

import pytest

from order_tracking.core.errors import NotFoundError
from order_tracking.core.reporting import OrderDetail


def test_reports_on_empty_database(reports):
    assert reports.total_revenue() == Decimal("0.00")
    assert reports.average_order_value() is None
    assert reports.order_counts_by_customer() == {}
    assert reports.low_stock_products(10) == []
    assert reports.order_details() == []


def test_sample_store_scenario(store, ledger, catalog, reports):
    customers, products = store
    laptop, headphones = products["laptop"], products["headphones"]

    first = ledger.create_order(customers["alice"].id, [(laptop.id, 1), (headphones.id, 1)])
    assert first.total_amount == Decimal("1350.00")
    assert catalog.find(laptop.id).stock == 49
    assert catalog.find(headphones.id).stock == 99

    second = ledger.create_order(customers["bob"].id, [(headphones.id, 1)])
    assert second.total_amount == Decimal("150.00")
    assert catalog.find(headphones.id).stock == 98

    assert reports.total_revenue() == Decimal("1500.00")
    assert reports.average_order_value() == Decimal("750.00")
    counts = {customer.name: count for customer, count in reports.order_counts_by_customer().items()}
    assert counts == {"Alice Johnson": 1, "Bob Smith": 1, "Charlie Brown": 0}
    assert reports.low_stock_products(10) == []


def test_order_counts_include_every_customer(store, ledger, reports):
    customers, products = store
    for _ in range(3):
        ledger.create_order(customers["charlie"].id, [(products["keyboard"].id, 1)])

    counts = reports.order_counts_by_customer()

    assert {c.id for c in counts} == {c.id for c in customers.values()}
    assert {c.name: n for c, n in counts.items()} == {"Alice Johnson": 0, "Bob Smith": 0, "Charlie Brown": 3}


def test_average_rounds_half_up(directory, catalog, ledger, reports):
    customer = directory.register("Dana", "dana@example.com")
    a = catalog.add("A", price="0.01", stock=10)
    b = catalog.add("B", price="0.02", stock=10)
    ledger.create_order(customer.id, [(a.id, 1)])
    ledger.create_order(customer.id, [(b.id, 1)])

    assert reports.total_revenue() == Decimal("0.03")
    assert reports.average_order_value() == Decimal("0.02")


def test_order_details_one_row_per_item(store, ledger, reports):
    customers, products = store
    first = ledger.create_order(customers["alice"].id, [(products["laptop"].id, 1), (products["headphones"].id, 1)])
    second = ledger.create_order(customers["bob"].id, [(products["headphones"].id, 2)])

    rows = reports.order_details()

    assert all(isinstance(row, OrderDetail) for row in rows)
    assert [(r.order_id, r.customer_name, r.product_name, r.quantity, r.unit_price) for r in rows] == [
        (first.id, "Alice Johnson", "Laptop", 1, Decimal("1200.00")),
        (first.id, "Alice Johnson", "Headphones", 1, Decimal("150.00")),
        (second.id, "Bob Smith", "Headphones", 2, Decimal("150.00")),
    ]
    assert rows[0].order_date is not None


def test_low_stock_products_delegates_to_catalog(store, catalog, reports):
    _, products = store
    catalog.adjust_stock(products["laptop"].id, -45)

    assert [p.name for p in reports.low_stock_products(10)] == ["Laptop"]
    assert reports.low_stock_products(5) == []


def test_reports_do_not_write(store, ledger, reports, snapshot):
    customers, products = store
    ledger.create_order(customers["alice"].id, [(products["laptop"].id, 1)])
    before = snapshot()

    reports.total_revenue()
    reports.average_order_value()
    reports.order_counts_by_customer()
    reports.order_details()
    reports.low_stock_products(100)

    assert snapshot() == before


def test_find_customer_is_the_only_raising_report(store, reports):
    customers, _ = store
    assert reports.find_customer(customers["bob"].id).name == "Bob Smith"
    with pytest.raises(NotFoundError):
        reports.find_customer(404)
