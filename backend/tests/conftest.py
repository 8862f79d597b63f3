import os
import tempfile

# point the app at a throwaway database before anything imports shopcore
_tmp = tempfile.mkdtemp(prefix="shopcore-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_tmp, 'test.db')}"
os.environ["STOCK_LOCK_DIR"] = os.path.join(_tmp, "locks")
os.environ["ADMIN_USER_IDS"] = '["admin"]'
os.environ["LOG_LEVEL"] = "WARNING"

from decimal import Decimal

import pytest

from shopcore.db import SessionLocal, init_db
from shopcore.models.product import Product
from shopcore.services.inventory_service import InventoryService


@pytest.fixture(autouse=True)
def fresh_db():
    init_db(reset=True)
    yield


@pytest.fixture
def db():
    s = SessionLocal()
    try:
        yield s
    finally:
        s.close()


@pytest.fixture
def make_product():
    def _make(product_id, price="10.00", stock=5, name=None):
        s = SessionLocal()
        try:
            s.add(
                Product(
                    id=product_id,
                    name=name or f"Product {product_id}",
                    price=Decimal(price),
                    stock_quantity=stock,
                )
            )
            s.commit()
        finally:
            s.close()

    return _make


@pytest.fixture
def stock_of():
    def _stock(product_id):
        s = SessionLocal()
        try:
            return InventoryService(s).peek(product_id)
        finally:
            s.close()

    return _stock


@pytest.fixture
def set_price():
    def _set(product_id, price):
        s = SessionLocal()
        try:
            s.get(Product, product_id).price = Decimal(price)
            s.commit()
        finally:
            s.close()

    return _set
