from sqlalchemy import Boolean, CheckConstraint, Column, Integer, Numeric, String, Text

from shopcore.db import Base


class Product(Base):
    __tablename__ = "products"
    __table_args__ = (
        CheckConstraint("stock_quantity >= 0", name="ck_products_stock_non_negative"),
        CheckConstraint("price >= 0", name="ck_products_price_non_negative"),
    )

    id = Column(String(64), primary_key=True, index=True)
    name = Column(String(256), nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Numeric(12, 2), nullable=False, default=0)
    image = Column(String(512), nullable=True)
    active = Column(Boolean, default=True, nullable=False)
    # only ever changed through InventoryService.reserve / release
    stock_quantity = Column(Integer, default=0, nullable=False)

    def __repr__(self):
        return f"<Product id={self.id} name={self.name}>"
