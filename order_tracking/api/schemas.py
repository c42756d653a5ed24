"""
Request/response bodies for the HTTP layer.

Money is carried as Decimal; pydantic serializes it as a string so no precision is
lost in JSON.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ORMModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class CustomerIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: str = Field(..., min_length=3, max_length=100)


class CustomerOut(ORMModel):
    id: int
    name: str
    email: str
    created_at: datetime


class ProductIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    # Range checks live in the catalog so the API reports the same errors as the core.
    price: Decimal
    stock: int


class ProductOut(ORMModel):
    id: int
    name: str
    description: Optional[str] = None
    price: Decimal
    stock: int
    created_at: datetime


class StockAdjustment(BaseModel):
    delta: int


class OrderLineIn(BaseModel):
    product_id: int
    quantity: int


class OrderIn(BaseModel):
    customer_id: int
    items: List[OrderLineIn]


class OrderItemOut(ORMModel):
    id: int
    product_id: int
    quantity: int
    unit_price: Decimal


class OrderOut(ORMModel):
    id: int
    customer_id: int
    order_date: datetime
    total_amount: Decimal


class OrderWithItemsOut(OrderOut):
    items: List[OrderItemOut]


class RevenueSummary(BaseModel):
    total_revenue: Decimal
    average_order_value: Optional[Decimal] = None


class CustomerOrderCount(BaseModel):
    customer_id: int
    customer_name: str
    total_orders: int


class OrderDetailOut(BaseModel):
    order_id: int
    customer_name: str
    product_name: str
    quantity: int
    unit_price: Decimal
    order_date: datetime
