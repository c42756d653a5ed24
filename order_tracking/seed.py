"""
Load the sample store (three customers, three products, two orders) and print the
standard reports.

Usage:
    python -m order_tracking.seed [--database-url URL] [--reset]
"""

from __future__ import annotations

import argparse
from decimal import Decimal
from typing import Dict, List, Optional, Sequence

import structlog

from order_tracking.core.catalog import Catalog
from order_tracking.core.customers import CustomerDirectory
from order_tracking.core.ledger import OrderLedger
from order_tracking.core.logging import configure_logging
from order_tracking.core.reporting import ReportingEngine
from order_tracking.db.models import Customer, Order, Product
from order_tracking.db.session import Database

logger = structlog.get_logger(__name__)

SAMPLE_CUSTOMERS = [
    {"name": "Alice Johnson", "email": "alice@example.com"},
    {"name": "Bob Smith", "email": "bob@example.com"},
    {"name": "Charlie Brown", "email": "charlie@example.com"},
]

SAMPLE_PRODUCTS = [
    {"name": "Laptop", "description": "High-performance laptop", "price": Decimal("1200.00"), "stock": 50},
    {"name": "Headphones", "description": "Noise-cancelling headphones", "price": Decimal("150.00"), "stock": 100},
    {"name": "Keyboard", "description": "Mechanical keyboard", "price": Decimal("80.00"), "stock": 200},
]

# (customer email, [(product name, quantity), ...])
SAMPLE_ORDERS = [
    ("alice@example.com", [("Laptop", 1), ("Headphones", 1)]),
    ("bob@example.com", [("Headphones", 1)]),
]

LOW_STOCK_THRESHOLD = 10


def create_customers(directory: CustomerDirectory) -> Dict[str, Customer]:
    """Register the sample customers, keyed by email."""
    return {data["email"]: directory.register(data["name"], data["email"]) for data in SAMPLE_CUSTOMERS}


def create_products(catalog: Catalog) -> Dict[str, Product]:
    """Add the sample products, keyed by name."""
    return {
        data["name"]: catalog.add(data["name"], data["description"], price=data["price"], stock=data["stock"])
        for data in SAMPLE_PRODUCTS
    }


def create_orders(ledger: OrderLedger, customers: Dict[str, Customer], products: Dict[str, Product]) -> List[Order]:
    orders = []
    for email, lines in SAMPLE_ORDERS:
        order = ledger.create_order(
            customers[email].id,
            [(products[name].id, quantity) for name, quantity in lines],
        )
        orders.append(order)
    return orders


def seed(database: Database) -> List[Order]:
    """Populate an empty database with the sample store."""
    directory = CustomerDirectory(database)
    catalog = Catalog(database)
    ledger = OrderLedger(database)

    customers = create_customers(directory)
    products = create_products(catalog)
    orders = create_orders(ledger, customers, products)
    logger.info("seed_complete", customers=len(customers), products=len(products), orders=len(orders))
    return orders


def print_reports(reports: ReportingEngine, threshold: int = LOW_STOCK_THRESHOLD) -> None:
    print("Order details:")
    for row in reports.order_details():
        print(
            f"  #{row.order_id} {row.customer_name}: {row.quantity} x {row.product_name} "
            f"@ {row.unit_price} ({row.order_date:%Y-%m-%d %H:%M:%S})"
        )

    print(f"Total revenue: {reports.total_revenue()}")
    average = reports.average_order_value()
    print(f"Average order value: {average if average is not None else 'n/a'}")

    print("Orders per customer:")
    for customer, count in reports.order_counts_by_customer().items():
        print(f"  {customer.name}: {count}")

    low = reports.low_stock_products(threshold)
    print(f"Products with stock below {threshold}: {', '.join(p.name for p in low) or 'none'}")


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Seed the order-tracking database with sample data.")
    parser.add_argument("--database-url", default=None, help="SQLAlchemy URL; defaults to DATABASE_URL / DB_* env.")
    parser.add_argument("--reset", action="store_true", help="Drop and recreate the schema first.")
    args = parser.parse_args(argv)

    configure_logging()
    database = Database(args.database_url)
    try:
        if args.reset:
            database.drop_schema()
        database.create_schema()
        seed(database)
        print_reports(ReportingEngine(database))
    finally:
        database.dispose()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
