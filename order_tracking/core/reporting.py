"""
Read-only reports over customers, products and orders.

Nothing here writes. Aggregates over empty tables return zero or empty values;
only lookups by id raise.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Dict, List, NamedTuple, Optional

import structlog
from sqlalchemy import func, select

from order_tracking.core.catalog import Catalog
from order_tracking.core.customers import CustomerDirectory
from order_tracking.core.money import ZERO, mean, to_money
from order_tracking.db.models import Customer, Order, OrderItem, Product
from order_tracking.db.session import Database

logger = structlog.get_logger(__name__)


class OrderDetail(NamedTuple):
    """One order line joined with its customer and product names."""

    order_id: int
    customer_name: str
    product_name: str
    quantity: int
    unit_price: Decimal
    order_date: datetime


class ReportingEngine:
    def __init__(self, database: Database, catalog: Optional[Catalog] = None,
                 directory: Optional[CustomerDirectory] = None) -> None:
        self.database = database
        self.catalog = catalog or Catalog(database)
        self.directory = directory or CustomerDirectory(database)

    def _revenue_and_count(self):
        with self.database.transaction() as session:
            total, count = session.execute(
                select(func.coalesce(func.sum(Order.total_amount), 0), func.count(Order.id))
            ).one()
        return to_money(total), count

    # PUBLIC_INTERFACE
    def total_revenue(self) -> Decimal:
        """Sum of every order's total; 0.00 when there are no orders."""
        total, count = self._revenue_and_count()
        logger.debug("report_total_revenue", orders=count, total=str(total))
        return total if count else ZERO

    # PUBLIC_INTERFACE
    def average_order_value(self) -> Optional[Decimal]:
        """Mean order total, or None when no orders exist."""
        total, count = self._revenue_and_count()
        if not count:
            return None
        return mean(total, count)

    # PUBLIC_INTERFACE
    def order_counts_by_customer(self) -> Dict[Customer, int]:
        """Every customer with their number of orders, including those with none."""
        stmt = (
            select(Customer, func.count(Order.id))
            .outerjoin(Order, Order.customer_id == Customer.id)
            .group_by(Customer.id)
            .order_by(Customer.id)
        )
        with self.database.transaction() as session:
            return {customer: count for customer, count in session.execute(stmt)}

    # PUBLIC_INTERFACE
    def low_stock_products(self, threshold: int) -> List[Product]:
        return self.catalog.low_stock(threshold)

    # PUBLIC_INTERFACE
    def order_details(self) -> List[OrderDetail]:
        stmt = (
            select(
                Order.id,
                Customer.name,
                Product.name,
                OrderItem.quantity,
                OrderItem.unit_price,
                Order.order_date,
            )
            .join(Customer, Order.customer_id == Customer.id)
            .join(OrderItem, OrderItem.order_id == Order.id)
            .join(Product, OrderItem.product_id == Product.id)
            .order_by(Order.id, OrderItem.id)
        )
        with self.database.transaction() as session:
            return [OrderDetail(*row) for row in session.execute(stmt)]

    def find_customer(self, customer_id: int) -> Customer:
        return self.directory.find(customer_id)
