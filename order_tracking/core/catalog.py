"""Product catalog: prices and stock levels."""

from __future__ import annotations

from decimal import Decimal
from typing import List, Optional

import structlog
from sqlalchemy import select, update

from order_tracking.core.errors import (
    InsufficientStockError,
    InvalidPriceError,
    InvalidStockError,
    NotFoundError,
    ValidationError,
)
from order_tracking.core.money import MoneyLike, to_money
from order_tracking.db.models import Product
from order_tracking.db.session import Database

logger = structlog.get_logger(__name__)


def _validate_price(price: MoneyLike) -> Decimal:
    try:
        amount = to_money(price)
    except ValueError as exc:
        raise InvalidPriceError(str(exc)) from exc
    if amount < 0:
        raise InvalidPriceError(f"Price cannot be negative: {amount}")
    return amount


def _validate_stock(stock: int) -> int:
    if isinstance(stock, bool) or not isinstance(stock, int):
        raise InvalidStockError(f"Stock must be an integer: {stock!r}")
    if stock < 0:
        raise InvalidStockError(f"Stock cannot be negative: {stock}")
    return stock


class Catalog:
    def __init__(self, database: Database) -> None:
        self.database = database

    # PUBLIC_INTERFACE
    def add(self, name: str, description: Optional[str] = None, *, price: MoneyLike, stock: int) -> Product:
        """
        Add a product to the catalog.

        Raises:
            ValidationError: blank name.
            InvalidPriceError: price is negative or not a number.
            InvalidStockError: stock is negative or not an integer.
        """
        name = (name or "").strip()
        if not name:
            raise ValidationError("Product name is required")
        amount = _validate_price(price)
        stock = _validate_stock(stock)

        with self.database.transaction() as session:
            product = Product(name=name, description=description, price=amount, stock=stock)
            session.add(product)
            session.flush()

        logger.info("product_added", product_id=product.id, name=name, price=str(amount), stock=stock)
        return product

    # PUBLIC_INTERFACE
    def find(self, product_id: int) -> Product:
        with self.database.transaction() as session:
            product = session.get(Product, product_id)
        if product is None:
            raise NotFoundError(product_id, "Product")
        return product

    def list(self) -> List[Product]:
        with self.database.transaction() as session:
            return list(session.scalars(select(Product).order_by(Product.id)))

    # PUBLIC_INTERFACE
    def adjust_stock(self, product_id: int, delta: int) -> Product:
        """
        Add `delta` (possibly negative) to a product's stock.

        The change is a single conditional UPDATE, so concurrent adjustments cannot
        overwrite each other and stock never goes below zero.
        """
        if isinstance(delta, bool) or not isinstance(delta, int):
            raise InvalidStockError(f"Stock adjustment must be an integer: {delta!r}")

        with self.database.transaction() as session:
            result = session.execute(
                update(Product)
                .where(Product.id == product_id, Product.stock + delta >= 0)
                .values(stock=Product.stock + delta)
                .execution_options(synchronize_session=False)
            )
            product = session.get(Product, product_id, populate_existing=True)
            if product is None:
                raise NotFoundError(product_id, "Product")
            if result.rowcount == 0:
                raise InsufficientStockError(product_id, product.stock, -delta)

        logger.info("stock_adjusted", product_id=product_id, delta=delta, stock=product.stock)
        return product

    def update_price(self, product_id: int, price: MoneyLike) -> Product:
        """Change the list price. Order items already placed keep their snapshot price."""
        amount = _validate_price(price)
        with self.database.transaction() as session:
            product = session.get(Product, product_id, with_for_update=True)
            if product is None:
                raise NotFoundError(product_id, "Product")
            product.price = amount

        logger.info("price_updated", product_id=product_id, price=str(amount))
        return product

    # PUBLIC_INTERFACE
    def low_stock(self, threshold: int) -> List[Product]:
        """Products whose stock is strictly below `threshold`, in no guaranteed order."""
        with self.database.transaction() as session:
            return list(session.scalars(select(Product).where(Product.stock < threshold)))
