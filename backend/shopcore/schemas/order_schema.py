from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import Field

from shopcore.models.order import OrderStatus
from shopcore.schemas.base import CamelModel


class OrderLineIn(CamelModel):
    product_id: str = Field(..., min_length=1)
    quantity: int = Field(..., ge=1)


class CreateDirectOrderIn(CamelModel):
    items: List[OrderLineIn] = Field(..., min_length=1)


class UpdateStatusIn(CamelModel):
    status: OrderStatus


class OrderItemOut(CamelModel):
    id: int
    product_id: str
    name: Optional[str] = None
    quantity: int
    price: Decimal
    subtotal: Decimal


class OrderOut(CamelModel):
    id: int
    order_number: str
    user_id: str
    status: OrderStatus
    total_price: Decimal
    items: List[OrderItemOut]
    created_at: datetime
    updated_at: datetime


class Pagination(CamelModel):
    total: int
    page: int
    limit: int
    total_pages: int


class OrderPageOut(CamelModel):
    data: List[OrderOut]
    pagination: Pagination
