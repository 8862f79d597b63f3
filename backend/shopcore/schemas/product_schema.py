from decimal import Decimal
from typing import List, Optional

from shopcore.schemas.base import CamelModel


class ProductOut(CamelModel):
    id: str
    name: str
    description: Optional[str] = None
    price: Decimal
    image: Optional[str] = None
    stock_quantity: int
    active: bool


class ProductPageOut(CamelModel):
    items: List[ProductOut]
    total: int


class StockOut(CamelModel):
    product_id: str
    stock_quantity: int
