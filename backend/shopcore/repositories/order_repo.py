from typing import List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from shopcore.models.order import Order


class OrderRepository:
    def __init__(self, db: Session):
        self.db = db

    def add(self, order: Order) -> Order:
        self.db.add(order)
        self.db.flush()
        return order

    def get(self, order_id: int, for_update: bool = False) -> Optional[Order]:
        stmt = (
            select(Order)
            .where(Order.id == order_id)
            .options(selectinload(Order.items))
            .execution_options(populate_existing=True)
        )
        if for_update:
            # row lock on backends that have one; sqlite ignores it
            stmt = stmt.with_for_update()
        return self.db.execute(stmt).scalar_one_or_none()

    def list(
        self, user_id: Optional[str] = None, page: int = 1, limit: int = 10
    ) -> Tuple[List[Order], int]:
        query = select(Order)
        count = select(func.count(Order.id))
        if user_id is not None:
            query = query.where(Order.user_id == user_id)
            count = count.where(Order.user_id == user_id)
        total = self.db.execute(count).scalar_one()
        orders = (
            self.db.execute(
                query.options(selectinload(Order.items))
                .order_by(Order.created_at.desc(), Order.id.desc())
                .offset((page - 1) * limit)
                .limit(limit)
            )
            .scalars()
            .all()
        )
        return orders, total
