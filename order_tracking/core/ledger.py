"""
Order ledger: the authoritative record of orders and their items.

An order is written in one transaction together with the stock decrements it
causes. Either the order, every item and every decrement are committed, or none
of them are.
"""

from __future__ import annotations

from collections import OrderedDict
from decimal import Decimal
from typing import Dict, Iterable, List, Sequence, Tuple

import structlog
from sqlalchemy import select, update

from order_tracking.core.errors import (
    EmptyOrderError,
    InsufficientStockError,
    InvalidQuantityError,
    NotFoundError,
    OrderTrackingError,
    UnknownCustomerError,
    UnknownProductError,
)
from order_tracking.core.money import sum_lines
from order_tracking.db.models import Customer, Order, OrderItem, Product
from order_tracking.db.session import Database

logger = structlog.get_logger(__name__)

LineRequest = Tuple[int, int]


def _validate_lines(items: Iterable[LineRequest]) -> List[LineRequest]:
    lines = []
    for product_id, quantity in items:
        if isinstance(quantity, bool) or not isinstance(quantity, int):
            raise InvalidQuantityError(f"Quantity must be an integer: {quantity!r}")
        if quantity <= 0:
            raise InvalidQuantityError(f"Quantity must be positive, got {quantity} for product {product_id}")
        lines.append((product_id, quantity))
    if not lines:
        raise EmptyOrderError()
    return lines


def _requested_by_product(lines: Sequence[LineRequest]) -> Dict[int, int]:
    """Total quantity per product id, keeping first-seen order."""
    requested: Dict[int, int] = OrderedDict()
    for product_id, quantity in lines:
        requested[product_id] = requested.get(product_id, 0) + quantity
    return requested


class OrderLedger:
    def __init__(self, database: Database) -> None:
        self.database = database

    # PUBLIC_INTERFACE
    def create_order(self, customer_id: int, items: Iterable[LineRequest]) -> Order:
        """
        Place an order for `customer_id` with `(product_id, quantity)` lines.

        Unit prices are copied from the products at this moment and the total is
        computed here; callers cannot supply either.

        Raises:
            EmptyOrderError / InvalidQuantityError: before the backend is touched.
            UnknownCustomerError, UnknownProductError: referenced rows are missing.
            InsufficientStockError: some product cannot cover its total quantity.
        """
        lines = _validate_lines(items)
        requested = _requested_by_product(lines)

        try:
            with self.database.transaction() as session:
                if session.get(Customer, customer_id) is None:
                    raise UnknownCustomerError(customer_id)

                # Lock rows in id order so concurrent orders never deadlock on each other.
                products = {
                    product.id: product
                    for product in session.scalars(
                        select(Product)
                        .where(Product.id.in_(list(requested)))
                        .order_by(Product.id)
                        .with_for_update()
                    )
                }
                for product_id in requested:
                    if product_id not in products:
                        raise UnknownProductError(product_id)

                for product_id, quantity in requested.items():
                    available = products[product_id].stock
                    if available < quantity:
                        raise InsufficientStockError(product_id, available, quantity)

                priced = [(product_id, quantity, products[product_id].price) for product_id, quantity in lines]
                order = Order(
                    customer_id=customer_id,
                    total_amount=sum_lines((quantity, price) for _, quantity, price in priced),
                )
                session.add(order)
                session.flush()

                session.add_all(
                    OrderItem(order_id=order.id, product_id=product_id, quantity=quantity, unit_price=price)
                    for product_id, quantity, price in priced
                )

                for product_id, quantity in requested.items():
                    result = session.execute(
                        update(Product)
                        .where(Product.id == product_id, Product.stock >= quantity)
                        .values(stock=Product.stock - quantity)
                        .execution_options(synchronize_session=False)
                    )
                    if result.rowcount == 0:
                        # Drained by a concurrent writer after our read.
                        raise InsufficientStockError(product_id, None, quantity)
        except OrderTrackingError as exc:
            logger.warning("order_rejected", customer_id=customer_id, reason=type(exc).__name__, detail=str(exc))
            raise

        logger.info(
            "order_created",
            order_id=order.id,
            customer_id=customer_id,
            items=len(lines),
            total_amount=str(order.total_amount),
        )
        return order

    # PUBLIC_INTERFACE
    def get_order(self, order_id: int) -> Tuple[Order, List[OrderItem]]:
        with self.database.transaction() as session:
            order = session.get(Order, order_id)
            if order is None:
                raise NotFoundError(order_id, "Order")
            items = list(session.scalars(select(OrderItem).where(OrderItem.order_id == order_id).order_by(OrderItem.id)))
        return order, items

    # PUBLIC_INTERFACE
    def list_orders_for_customer(self, customer_id: int) -> List[Order]:
        with self.database.transaction() as session:
            if session.get(Customer, customer_id) is None:
                raise NotFoundError(customer_id, "Customer")
            return list(
                session.scalars(
                    select(Order).where(Order.customer_id == customer_id).order_by(Order.order_date, Order.id)
                )
            )

    def list_orders(self) -> List[Order]:
        with self.database.transaction() as session:
            return list(session.scalars(select(Order).order_by(Order.order_date, Order.id)))

    @staticmethod
    def items_total(items: Iterable[OrderItem]) -> Decimal:
        """Recompute an order total from its items, for consistency checks."""
        return sum_lines((item.quantity, item.unit_price) for item in items)
