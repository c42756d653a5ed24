"""
Typed failures raised by the order-tracking core.

Every operation raises one of these instead of returning a status flag. The HTTP
layer maps them to status codes; nothing in the core catches them.
"""

from __future__ import annotations

from typing import Any


class OrderTrackingError(Exception):
    """Base class for every domain failure."""


class NotFoundError(OrderTrackingError):
    """A referenced entity id does not exist."""

    entity = "Entity"

    def __init__(self, entity_id: Any, entity: str | None = None) -> None:
        if entity is not None:
            self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{self.entity} with ID {entity_id} does not exist")


class UnknownCustomerError(NotFoundError):
    entity = "Customer"


class UnknownProductError(NotFoundError):
    entity = "Product"


class DuplicateEmailError(OrderTrackingError):
    def __init__(self, email: str) -> None:
        self.email = email
        super().__init__(f"Email already exists: {email}")


class ValidationError(OrderTrackingError):
    """Input rejected before anything was written."""


class InvalidPriceError(ValidationError):
    pass


class InvalidStockError(ValidationError):
    pass


class InvalidQuantityError(ValidationError):
    pass


class EmptyOrderError(ValidationError):
    def __init__(self) -> None:
        super().__init__("At least one item is required to place an order")


class InsufficientStockError(OrderTrackingError):
    """Applying the change would drive a product's stock below zero."""

    def __init__(self, product_id: int, available: int | None, requested: int) -> None:
        self.product_id = product_id
        self.available = available
        self.requested = requested
        if available is None:
            message = f"Out of stock: product {product_id} cannot cover {requested}"
        else:
            message = f"Out of stock: product {product_id} has {available}, {requested} requested"
        super().__init__(message)
