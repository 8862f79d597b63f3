import logging
import math
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Tuple
from uuid import uuid4

from sqlalchemy.orm import Session

from shopcore.models.order import Order, OrderItem, OrderStatus
from shopcore.models.product import Product
from shopcore.repositories.cart_repo import CartRepository
from shopcore.repositories.order_repo import OrderRepository
from shopcore.repositories.product_repo import ProductRepository
from shopcore.services.exceptions import (
    EmptyCart,
    EmptyOrder,
    InvalidQuantity,
    OrderNotFound,
    ProductNotFound,
)
from shopcore.services.inventory_service import InventoryService
from shopcore.utils.transactions import smart_transaction

log = logging.getLogger("shopcore.orders")

# (product, quantity) with the product row as loaded inside the unit of work
Line = Tuple[Product, int]


class OrderService:
    """
    Turns a cart, or an explicit list of lines, into an immutable Order.

    Reservation of every line, creation of the order rows and (for the
    cart flow) emptying the cart are one unit of work: they commit together
    or not at all.
    """

    def __init__(self, db: Session):
        self.db = db
        self.cart_repo = CartRepository(db)
        self.product_repo = ProductRepository(db)
        self.order_repo = OrderRepository(db)
        self.inventory = InventoryService(db)

    def _gen_order_number(self) -> str:
        return f"ORD-{uuid4().hex[:10].upper()}"

    def create_from_cart(self, user_id: str) -> Order:
        # the lock set is read before the unit of work; a line added in
        # between is reserved without its file lock, which only costs
        # queueing since reserve() itself refuses to oversell
        with self.inventory.stock_lock(self._cart_product_ids(user_id)):
            with smart_transaction(self.db):
                cart = self.cart_repo.get_by_user(user_id)
                if not cart or not cart.items:
                    raise EmptyCart(user_id)
                lines = []
                for it in cart.items:
                    if not it.product.active:
                        raise ProductNotFound(it.product_id)
                    lines.append((it.product, it.quantity))
                order = self._place(user_id, lines)
                self.cart_repo.clear_items(cart)
        log.info(
            "order created from cart order=%s user=%s lines=%s total=%s",
            order.order_number,
            user_id,
            len(lines),
            order.total_price,
        )
        return order

    def create_direct(self, user_id: str, items: Iterable[Dict]) -> Order:
        """
        items: list of {product_id: str, quantity: int}; repeated product ids
        are merged into one line.
        """
        requested = self._merge_lines(items)
        with self.inventory.stock_lock(requested):
            with smart_transaction(self.db):
                products = self.product_repo.get_many(requested)
                for product_id in requested:
                    if product_id not in products:
                        raise ProductNotFound(product_id)
                order = self._place(
                    user_id, [(products[pid], qty) for pid, qty in requested.items()]
                )
        log.info(
            "order created directly order=%s user=%s lines=%s total=%s",
            order.order_number,
            user_id,
            len(requested),
            order.total_price,
        )
        return order

    def _place(self, user_id: str, lines: List[Line]) -> Order:
        # must run inside the caller's unit of work: a refused reservation
        # raises and takes every earlier reservation down with it
        order = Order(
            order_number=self._gen_order_number(),
            user_id=user_id,
            status=OrderStatus.PENDING,
        )
        total = Decimal("0")
        for product, quantity in lines:
            self.inventory.reserve(product.id, quantity)
            price = product.price
            order.items.append(
                OrderItem(
                    product_id=product.id,
                    name=product.name,
                    quantity=quantity,
                    price=price,
                )
            )
            total += price * quantity
        order.total_price = total
        return self.order_repo.add(order)

    def _merge_lines(self, items: Iterable[Dict]) -> Dict[str, int]:
        merged: Dict[str, int] = {}
        for it in items:
            product_id = it["product_id"]
            quantity = int(it["quantity"])
            if quantity <= 0:
                raise InvalidQuantity(quantity)
            merged[product_id] = merged.get(product_id, 0) + quantity
        if not merged:
            raise EmptyOrder()
        return merged

    def _cart_product_ids(self, user_id: str) -> List[str]:
        # short-lived session: only picks which stock locks to take, and
        # must not open a transaction on the caller's session
        with Session(bind=self.db.get_bind()) as s:
            return CartRepository(s).product_ids_for_user(user_id)

    # --- queries ---

    def get(self, order_id: int) -> Order:
        order = self.order_repo.get(order_id)
        if not order:
            raise OrderNotFound(order_id)
        return order

    def list_orders(
        self, user_id: Optional[str] = None, page: int = 1, limit: int = 10
    ) -> Dict:
        """Newest first; ``user_id=None`` lists every user's orders."""
        orders, total = self.order_repo.list(user_id=user_id, page=page, limit=limit)
        return {
            "data": orders,
            "pagination": {
                "total": total,
                "page": page,
                "limit": limit,
                "total_pages": math.ceil(total / limit) if limit else 0,
            },
        }
