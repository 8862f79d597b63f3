from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from shopcore.api.deps import http_error
from shopcore.db import get_db
from shopcore.schemas.product_schema import StockOut
from shopcore.services.exceptions import ShopError
from shopcore.services.inventory_service import InventoryService

router = APIRouter(prefix="/api/inventory", tags=["inventory"])


@router.get("/{product_id}", response_model=StockOut, summary="Current stock (display only)")
def peek(product_id: str, db: Session = Depends(get_db)):
    """
    Stock as of this read. Informational: it can change before an order
    is placed, and order placement does its own check.
    """
    try:
        qty = InventoryService(db).peek(product_id)
    except ShopError as e:
        raise http_error(e)
    return StockOut(product_id=product_id, stock_quantity=qty)
