from decimal import Decimal
from typing import List

from pydantic import Field

from shopcore.schemas.base import CamelModel


class AddItemIn(CamelModel):
    product_id: str = Field(..., min_length=1)
    quantity: int = Field(..., ge=1)


class UpdateItemIn(CamelModel):
    quantity: int = Field(..., ge=1)


class CartLineOut(CamelModel):
    id: int
    product_id: str
    product_name: str
    price: Decimal
    quantity: int
    subtotal: Decimal


class CartOut(CamelModel):
    id: int
    user_id: str
    items: List[CartLineOut]
    item_count: int
    total_price: Decimal
