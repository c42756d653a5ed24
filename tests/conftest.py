from decimal import Decimal

import pytest
from sqlalchemy import func, select

from order_tracking.core.catalog import Catalog
from order_tracking.core.customers import CustomerDirectory
from order_tracking.core.ledger import OrderLedger
from order_tracking.core.reporting import ReportingEngine
from order_tracking.db.models import Customer, Order, OrderItem, Product
from order_tracking.db.session import Database


@pytest.fixture
def database():
    db = Database("sqlite://")
    db.create_schema()
    yield db
    db.drop_schema()
    db.dispose()


@pytest.fixture
def directory(database):
    return CustomerDirectory(database)


@pytest.fixture
def catalog(database):
    return Catalog(database)


@pytest.fixture
def ledger(database):
    return OrderLedger(database)


@pytest.fixture
def reports(database, catalog, directory):
    return ReportingEngine(database, catalog=catalog, directory=directory)


@pytest.fixture
def store(directory, catalog):
    """The sample store: Alice/Bob/Charlie and Laptop/Headphones/Keyboard."""
    customers = {
        "alice": directory.register("Alice Johnson", "alice@example.com"),
        "bob": directory.register("Bob Smith", "bob@example.com"),
        "charlie": directory.register("Charlie Brown", "charlie@example.com"),
    }
    products = {
        "laptop": catalog.add("Laptop", "High-performance laptop", price=Decimal("1200.00"), stock=50),
        "headphones": catalog.add("Headphones", "Noise-cancelling headphones", price=Decimal("150.00"), stock=100),
        "keyboard": catalog.add("Keyboard", "Mechanical keyboard", price=Decimal("80.00"), stock=200),
    }
    return customers, products


@pytest.fixture
def snapshot(database):
    return lambda: _snapshot(database)


def _snapshot(database):
    """Row counts and stock levels, for before/after comparisons."""
    with database.transaction() as session:
        return {
            "customers": session.scalar(select(func.count()).select_from(Customer)),
            "orders": session.scalar(select(func.count()).select_from(Order)),
            "order_items": session.scalar(select(func.count()).select_from(OrderItem)),
            "stock": dict(session.execute(select(Product.id, Product.stock)).all()),
        }
