from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from shopcore.models.product import Product


class ProductRepository:
    """Read side of the external product catalog, plus the seed helper."""

    def __init__(self, db: Session):
        self.db = db

    def get(self, product_id: str) -> Optional[Product]:
        return self.db.execute(
            select(Product).where(Product.id == product_id, Product.active == True)  # noqa: E712
        ).scalar_one_or_none()

    def get_many(self, product_ids: Iterable[str]) -> Dict[str, Product]:
        ids = set(product_ids)
        if not ids:
            return {}
        rows = self.db.execute(
            select(Product).where(Product.id.in_(ids), Product.active == True)  # noqa: E712
        ).scalars()
        return {p.id: p for p in rows}

    def list(
        self, q: Optional[str] = None, page: int = 1, size: int = 20
    ) -> Tuple[List[Product], int]:
        query = select(Product).where(Product.active == True)  # noqa: E712
        if q:
            like = f"%{q}%"
            query = query.where(Product.name.ilike(like) | Product.description.ilike(like))
        total = self.db.execute(
            select(func.count()).select_from(query.subquery())
        ).scalar_one()
        items = (
            self.db.execute(
                query.order_by(Product.name).offset((page - 1) * size).limit(size)
            )
            .scalars()
            .all()
        )
        return items, total

    def create_or_update(
        self,
        product_id: str,
        name: str,
        price: Decimal,
        stock_quantity: int = 0,
        description: Optional[str] = None,
        image: Optional[str] = None,
    ) -> Product:
        # catalog maintenance path (seeding); orders never write stock here
        p = self.db.get(Product, product_id)
        if p:
            p.name = name
            p.price = price
            p.stock_quantity = stock_quantity
            p.description = description
            p.image = image
        else:
            p = Product(
                id=product_id,
                name=name,
                price=price,
                stock_quantity=stock_quantity,
                description=description,
                image=image,
            )
            self.db.add(p)
        self.db.flush()
        return p
