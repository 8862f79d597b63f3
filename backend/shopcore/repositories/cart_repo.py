from typing import List, Optional

from sqlalchemy import delete, select, update
from sqlalchemy.orm import Session, selectinload

from shopcore.models.cart import Cart
from shopcore.models.cart_item import CartItem
from shopcore.models.product import Product


class CartRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_user(self, user_id: str) -> Optional[Cart]:
        return self.db.execute(
            select(Cart)
            .where(Cart.user_id == user_id)
            .options(selectinload(Cart.items))
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def create_for_user(self, user_id: str) -> Cart:
        c = Cart(user_id=user_id)
        self.db.add(c)
        self.db.flush()
        return c

    def product_ids_for_user(self, user_id: str) -> List[str]:
        return list(
            self.db.execute(
                select(CartItem.product_id)
                .join(Cart, Cart.id == CartItem.cart_id)
                .where(Cart.user_id == user_id)
            ).scalars()
        )

    def get_item(self, cart: Cart, product_id: str) -> Optional[CartItem]:
        return self.db.execute(
            select(CartItem).where(
                CartItem.cart_id == cart.id, CartItem.product_id == product_id
            )
        ).scalar_one_or_none()

    def add_item(self, cart: Cart, product_id: str, quantity: int) -> CartItem:
        item = CartItem(cart_id=cart.id, product_id=product_id, quantity=quantity)
        self.db.add(item)
        self.db.flush()
        return item

    def _within_stock(self, product_id: str, new_quantity):
        stock = (
            select(Product.stock_quantity)
            .where(Product.id == product_id)
            .scalar_subquery()
        )
        return new_quantity <= stock

    def increment_item(self, cart: Cart, product_id: str, quantity: int) -> bool:
        """
        Add ``quantity`` to an existing line, only if the new total still
        fits the product's current stock. The comparison and the write are
        one statement. Returns False when no row matched.
        """
        result = self.db.execute(
            update(CartItem)
            .where(
                CartItem.cart_id == cart.id,
                CartItem.product_id == product_id,
                self._within_stock(product_id, CartItem.quantity + quantity),
            )
            .values(quantity=CartItem.quantity + quantity)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def set_item_quantity(self, cart: Cart, product_id: str, quantity: int) -> bool:
        """Set a line's quantity exactly, guarded by current stock in the same statement."""
        result = self.db.execute(
            update(CartItem)
            .where(
                CartItem.cart_id == cart.id,
                CartItem.product_id == product_id,
                self._within_stock(product_id, quantity),
            )
            .values(quantity=quantity)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def remove_item(self, cart: Cart, product_id: str) -> bool:
        result = self.db.execute(
            delete(CartItem)
            .where(CartItem.cart_id == cart.id, CartItem.product_id == product_id)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def clear_items(self, cart: Cart) -> int:
        result = self.db.execute(
            delete(CartItem)
            .where(CartItem.cart_id == cart.id)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount
