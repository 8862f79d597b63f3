import logging
from decimal import Decimal

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from shopcore.models.cart import Cart
from shopcore.repositories.cart_repo import CartRepository
from shopcore.repositories.product_repo import ProductRepository
from shopcore.schemas.cart_schema import CartLineOut, CartOut
from shopcore.services.exceptions import (
    CartNotFound,
    InsufficientStock,
    InvalidQuantity,
    ItemNotInCart,
    ProductNotFound,
)
from shopcore.services.inventory_service import InventoryService
from shopcore.utils.transactions import smart_transaction

log = logging.getLogger("shopcore.cart")


class CartService:
    """
    One mutable cart per user. Stock checks here are soft: they keep the
    cart honest for display, while the authoritative check happens when the
    order is placed.
    """

    def __init__(self, db: Session):
        self.db = db
        self.cart_repo = CartRepository(db)
        self.product_repo = ProductRepository(db)
        self.inventory = InventoryService(db)

    def get_or_create(self, user_id: str) -> CartOut:
        with smart_transaction(self.db):
            return self._view(self._get_or_create(user_id))

    def add_item(self, user_id: str, product_id: str, quantity: int) -> CartOut:
        if quantity <= 0:
            raise InvalidQuantity(quantity)
        with smart_transaction(self.db):
            if not self.product_repo.get(product_id):
                raise ProductNotFound(product_id)
            cart = self._get_or_create(user_id)
            existing = self.cart_repo.get_item(cart, product_id)
            if existing:
                in_cart = existing.quantity
                if self.cart_repo.increment_item(cart, product_id, quantity):
                    return self._reload(user_id)
                if self.cart_repo.get_item(cart, product_id):
                    raise InsufficientStock(
                        product_id,
                        in_cart + quantity,
                        self.inventory.peek(product_id),
                        in_cart=in_cart,
                    )
                # line was removed meanwhile: add it as a new one
            available = self.inventory.peek(product_id)
            if quantity > available:
                raise InsufficientStock(product_id, quantity, available)
            self.cart_repo.add_item(cart, product_id, quantity)
            return self._reload(user_id)

    def update_item(self, user_id: str, product_id: str, quantity: int) -> CartOut:
        if quantity <= 0:
            raise InvalidQuantity(quantity)
        with smart_transaction(self.db):
            cart = self._require_cart(user_id)
            if not self.cart_repo.get_item(cart, product_id):
                raise ItemNotInCart(product_id)
            if not self.cart_repo.set_item_quantity(cart, product_id, quantity):
                raise InsufficientStock(
                    product_id, quantity, self.inventory.peek(product_id)
                )
            return self._reload(user_id)

    def remove_item(self, user_id: str, product_id: str) -> CartOut:
        with smart_transaction(self.db):
            cart = self._require_cart(user_id)
            if not self.cart_repo.remove_item(cart, product_id):
                raise ItemNotInCart(product_id)
            return self._reload(user_id)

    def clear(self, user_id: str) -> CartOut:
        with smart_transaction(self.db):
            cart = self._get_or_create(user_id)
            removed = self.cart_repo.clear_items(cart)
            if removed:
                log.info("cart cleared user=%s lines=%s", user_id, removed)
            return self._reload(user_id)

    def _get_or_create(self, user_id: str) -> Cart:
        cart = self.cart_repo.get_by_user(user_id)
        if cart:
            return cart
        try:
            with self.db.begin_nested():
                return self.cart_repo.create_for_user(user_id)
        except IntegrityError:
            # another request created it first
            return self.cart_repo.get_by_user(user_id)

    def _require_cart(self, user_id: str) -> Cart:
        cart = self.cart_repo.get_by_user(user_id)
        if not cart:
            raise CartNotFound(user_id)
        return cart

    def _reload(self, user_id: str) -> CartOut:
        return self._view(self.cart_repo.get_by_user(user_id))

    def _view(self, cart: Cart) -> CartOut:
        # priced at the current catalog price: nothing is crystallized until
        # the cart becomes an order
        lines = [
            CartLineOut(
                id=it.id,
                product_id=it.product_id,
                product_name=it.product.name,
                price=it.product.price,
                quantity=it.quantity,
                subtotal=it.product.price * it.quantity,
            )
            for it in cart.items
        ]
        return CartOut(
            id=cart.id,
            user_id=cart.user_id,
            items=lines,
            item_count=len(lines),
            total_price=sum((ln.subtotal for ln in lines), Decimal("0")),
        )
