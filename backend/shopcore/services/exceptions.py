from typing import Any, Dict, Optional


class ShopError(Exception):
    """Base class for every failure the cart/order engine reports to callers."""

    status_code = 400
    code = "shop_error"

    def detail(self) -> Dict[str, Any]:
        return {"code": self.code, "message": str(self)}


class NotFound(ShopError):
    status_code = 404
    code = "not_found"


class ProductNotFound(NotFound):
    code = "product_not_found"

    def __init__(self, product_id: str):
        super().__init__(f"Product with ID {product_id} not found")
        self.product_id = product_id

    def detail(self):
        return {**super().detail(), "productId": self.product_id}


class CartNotFound(NotFound):
    code = "cart_not_found"

    def __init__(self, user_id: str):
        super().__init__("Cart not found")
        self.user_id = user_id


class ItemNotInCart(NotFound):
    code = "item_not_in_cart"

    def __init__(self, product_id: str):
        super().__init__(f"Product {product_id} not found in cart")
        self.product_id = product_id

    def detail(self):
        return {**super().detail(), "productId": self.product_id}


class OrderNotFound(NotFound):
    code = "order_not_found"

    def __init__(self, order_id: int):
        super().__init__(f"Order with ID {order_id} not found")
        self.order_id = order_id


class InsufficientStock(ShopError):
    code = "insufficient_stock"

    def __init__(
        self,
        product_id: str,
        requested: int,
        available: int,
        in_cart: Optional[int] = None,
    ):
        msg = f"Insufficient stock for product {product_id}. Available: {available}"
        if in_cart is not None:
            msg += f", current in cart: {in_cart}"
        super().__init__(msg)
        self.product_id = product_id
        self.requested = requested
        self.available = available
        self.in_cart = in_cart

    def detail(self):
        d = {
            **super().detail(),
            "productId": self.product_id,
            "requested": self.requested,
            "available": self.available,
        }
        if self.in_cart is not None:
            d["inCart"] = self.in_cart
        return d


class EmptyCart(ShopError):
    code = "empty_cart"

    def __init__(self, user_id: str):
        super().__init__("Cart is empty")
        self.user_id = user_id


class EmptyOrder(ShopError):
    code = "empty_order"

    def __init__(self):
        super().__init__("Order must contain at least one item")


class InvalidQuantity(ShopError):
    code = "invalid_quantity"

    def __init__(self, quantity: int):
        super().__init__(f"Quantity must be positive, got {quantity}")
        self.quantity = quantity


class InvalidTransition(ShopError):
    code = "invalid_transition"

    def __init__(self, order_id: int, current, target, reason: Optional[str] = None):
        current = getattr(current, "value", current)
        target = getattr(target, "value", target)
        msg = reason or f"Cannot move order {order_id} from {current} to {target}"
        super().__init__(msg)
        self.order_id = order_id
        self.current = current
        self.target = target

    def detail(self):
        return {**super().detail(), "currentStatus": self.current, "targetStatus": self.target}


class StockLockTimeout(ShopError):
    status_code = 409
    code = "stock_lock_timeout"

    def __init__(self, product_id: str):
        super().__init__(
            f"Could not acquire stock lock for product {product_id}; try again"
        )
        self.product_id = product_id
