import logging
from typing import Iterable, Optional

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from shopcore.models.product import Product
from shopcore.services.exceptions import (
    InsufficientStock,
    InvalidQuantity,
    ProductNotFound,
)
from shopcore.utils.locks import stock_lock

log = logging.getLogger("shopcore.inventory")


class InventoryService:
    """
    Authoritative available-stock count per product.

    Stock is only ever changed here, and only through a single conditional
    UPDATE per call, so two concurrent reservations of the same product are
    linearised by the database and can never oversell.
    """

    def __init__(self, db: Session):
        self.db = db

    def stock_lock(self, product_ids: Iterable[str], timeout: Optional[float] = None):
        """Per-product file locks held across a multi-step unit of work."""
        return stock_lock(product_ids, timeout=timeout)

    def peek(self, product_id: str) -> int:
        """
        Current stock for display. Non-authoritative: it can be stale by the
        time a reservation is attempted.
        """
        qty = self.db.execute(
            select(Product.stock_quantity).where(Product.id == product_id)
        ).scalar_one_or_none()
        if qty is None:
            raise ProductNotFound(product_id)
        return qty

    def reserve(self, product_id: str, quantity: int) -> int:
        """
        Atomically take ``quantity`` units of stock. Returns the stock left.

        Check and decrement happen in the same statement
        (``... WHERE stock_quantity >= :quantity``); there is no gap between
        observing the stock and writing it.
        """
        if quantity <= 0:
            raise InvalidQuantity(quantity)
        result = self.db.execute(
            update(Product)
            .where(Product.id == product_id, Product.stock_quantity >= quantity)
            .values(stock_quantity=Product.stock_quantity - quantity)
            .execution_options(synchronize_session=False)
        )
        self._expire_cached(product_id)
        if result.rowcount != 1:
            available = self.peek(product_id)
            log.warning(
                "reserve refused product=%s requested=%s available=%s",
                product_id,
                quantity,
                available,
            )
            raise InsufficientStock(product_id, quantity, available)
        remaining = self.peek(product_id)
        log.debug("reserved product=%s qty=%s remaining=%s", product_id, quantity, remaining)
        return remaining

    def release(self, product_id: str, quantity: int) -> int:
        """Atomically give back ``quantity`` units. Returns the new stock."""
        if quantity <= 0:
            raise InvalidQuantity(quantity)
        result = self.db.execute(
            update(Product)
            .where(Product.id == product_id)
            .values(stock_quantity=Product.stock_quantity + quantity)
            .execution_options(synchronize_session=False)
        )
        self._expire_cached(product_id)
        if result.rowcount != 1:
            raise ProductNotFound(product_id)
        remaining = self.peek(product_id)
        log.debug("released product=%s qty=%s remaining=%s", product_id, quantity, remaining)
        return remaining

    def _expire_cached(self, product_id: str):
        # the bulk UPDATE bypasses the identity map; drop any loaded copy of
        # the counter so attribute reads go back to the database
        product = self.db.identity_map.get(self.db.identity_key(Product, product_id))
        if product is not None:
            self.db.expire(product, ["stock_quantity"])
