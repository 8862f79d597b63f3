import logging
from typing import List

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from shopcore.models.order import STATUS_FLOW, TERMINAL_STATUSES, Order, OrderItem, OrderStatus
from shopcore.repositories.order_repo import OrderRepository
from shopcore.services.exceptions import InvalidTransition, OrderNotFound
from shopcore.services.inventory_service import InventoryService
from shopcore.utils.transactions import smart_transaction

log = logging.getLogger("shopcore.orders")


class OrderLifecycleService:
    """
    Order status transitions.

    PENDING is the initial status, DELIVERED and CANCELLED are terminal.
    Cancelling gives every line's quantity back to the inventory in the
    same unit of work that flips the status. Administrative updates are
    plain field writes with no inventory effect, and only move forward
    along PENDING, PROCESSING, SHIPPED, DELIVERED.
    """

    def __init__(self, db: Session):
        self.db = db
        self.order_repo = OrderRepository(db)
        self.inventory = InventoryService(db)

    def cancel(self, order_id: int) -> Order:
        with self.inventory.stock_lock(self._order_product_ids(order_id)):
            with smart_transaction(self.db):
                order = self._require(order_id)
                current = order.status
                # claim the transition first; a concurrent cancel of the same
                # order matches zero rows here and never releases stock twice
                if not self._move(order_id, OrderStatus.CANCELLED):
                    current = self._require(order_id).status
                    log.warning("cancel refused order=%s status=%s", order_id, current.value)
                    raise InvalidTransition(
                        order_id,
                        current,
                        OrderStatus.CANCELLED,
                        reason=f"Cannot cancel order with status {current.value}",
                    )
                for item in order.items:
                    self.inventory.release(item.product_id, item.quantity)
                order = self._require(order_id)
        log.info("order cancelled order=%s previous=%s", order_id, current.value)
        return order

    def update_status(self, order_id: int, status: OrderStatus) -> Order:
        status = OrderStatus(status)
        with smart_transaction(self.db):
            order = self._require(order_id)
            current = order.status
            if status == OrderStatus.CANCELLED:
                raise InvalidTransition(
                    order_id,
                    current,
                    status,
                    reason="Orders are cancelled through the cancel operation",
                )
            earlier = STATUS_FLOW[: STATUS_FLOW.index(status)]
            if not self._move(order_id, status, earlier):
                current = self._require(order_id).status
                if current.is_terminal:
                    reason = f"Order {order_id} is {current.value} and can no longer change"
                else:
                    reason = (
                        f"Order {order_id} cannot go from {current.value} to {status.value}; "
                        "status only moves forward"
                    )
                raise InvalidTransition(order_id, current, status, reason=reason)
            order = self._require(order_id)
        log.info(
            "order status updated order=%s %s -> %s", order_id, current.value, status.value
        )
        return order

    def _move(self, order_id: int, status: OrderStatus, from_statuses=None) -> bool:
        if from_statuses is None:
            allowed = Order.status.not_in(TERMINAL_STATUSES)
        else:
            allowed = Order.status.in_(from_statuses)
        result = self.db.execute(
            update(Order)
            .where(Order.id == order_id, allowed)
            .values(status=status)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def _require(self, order_id: int) -> Order:
        order = self.order_repo.get(order_id, for_update=True)
        if not order:
            raise OrderNotFound(order_id)
        return order

    def _order_product_ids(self, order_id: int) -> List[str]:
        # order lines never change after creation, so a separate read is safe
        with Session(bind=self.db.get_bind()) as s:
            return list(
                s.execute(
                    select(OrderItem.product_id).where(OrderItem.order_id == order_id)
                ).scalars()
            )
