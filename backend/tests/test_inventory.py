import concurrent.futures

import pytest
from fastapi.testclient import TestClient

from shopcore.config import settings
from shopcore.main import app
from shopcore.models.product import Product
from shopcore.services.exceptions import (
    InsufficientStock,
    InvalidQuantity,
    ProductNotFound,
    StockLockTimeout,
)
from shopcore.services.inventory_service import InventoryService
from shopcore.services.order_lifecycle_service import OrderLifecycleService
from shopcore.services.order_service import OrderService
from shopcore.utils.locks import stock_lock
from shopcore.utils.transactions import smart_transaction

client = TestClient(app)


def test_reserve_then_refuse_then_release(db, make_product, stock_of):
    make_product("P1", stock=5)
    svc = InventoryService(db)

    with db.begin():
        assert svc.reserve("P1", 3) == 2
    assert stock_of("P1") == 2

    with pytest.raises(InsufficientStock) as exc:
        with db.begin():
            svc.reserve("P1", 3)
    assert exc.value.available == 2
    assert exc.value.product_id == "P1"
    assert stock_of("P1") == 2

    with db.begin():
        assert svc.release("P1", 3) == 5
    assert stock_of("P1") == 5


def test_reserve_whole_stock_leaves_zero(db, make_product, stock_of):
    make_product("P1", stock=4)
    with db.begin():
        InventoryService(db).reserve("P1", 4)
    assert stock_of("P1") == 0


def test_reserve_and_release_unknown_product(db):
    svc = InventoryService(db)
    with pytest.raises(ProductNotFound):
        svc.reserve("NOPE", 1)
    with pytest.raises(ProductNotFound):
        svc.release("NOPE", 1)
    with pytest.raises(ProductNotFound):
        svc.peek("NOPE")


@pytest.mark.parametrize("qty", [0, -2])
def test_reserve_rejects_non_positive_quantity(db, make_product, stock_of, qty):
    make_product("P1", stock=5)
    with pytest.raises(InvalidQuantity):
        InventoryService(db).reserve("P1", qty)
    assert stock_of("P1") == 5


def test_loaded_product_sees_reservation(db, make_product):
    make_product("P1", stock=5)
    product = db.get(Product, "P1")
    assert product.stock_quantity == 5
    InventoryService(db).reserve("P1", 2)
    assert product.stock_quantity == 3
    db.rollback()


def test_order_scenario_reserve_refuse_cancel(db, make_product, stock_of):
    make_product("P1", stock=5)
    orders = OrderService(db)

    first = orders.create_direct("u1", [{"product_id": "P1", "quantity": 3}])
    assert stock_of("P1") == 2

    with pytest.raises(InsufficientStock) as exc:
        orders.create_direct("u2", [{"product_id": "P1", "quantity": 3}])
    assert exc.value.available == 2

    OrderLifecycleService(db).cancel(first.id)
    assert stock_of("P1") == 5


def test_peek_endpoint(make_product):
    make_product("P1", stock=7)
    res = client.get("/api/inventory/P1")
    assert res.status_code == 200
    assert res.json() == {"productId": "P1", "stockQuantity": 7}


def test_peek_endpoint_unknown_product():
    res = client.get("/api/inventory/NOPE")
    assert res.status_code == 404
    assert res.json()["detail"]["code"] == "product_not_found"


def test_stock_lock_times_out_while_held(tmp_path):
    with stock_lock(["P1"], lock_dir=str(tmp_path)):
        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as ex:
            fut = ex.submit(_take_lock, ["P1"], str(tmp_path))
            with pytest.raises(StockLockTimeout) as exc:
                fut.result()
    assert exc.value.product_id == "P1"
    # released on exit
    _take_lock(["P1"], str(tmp_path))


def _take_lock(product_ids, lock_dir):
    with stock_lock(product_ids, timeout=0.1, lock_dir=lock_dir):
        pass


def test_order_waiting_on_stock_lock_is_409(make_product, stock_of, monkeypatch):
    make_product("P1", stock=5)
    monkeypatch.setattr(settings, "STOCK_LOCK_TIMEOUT_SECONDS", 0.1)
    with stock_lock(["P1"]):
        res = client.post(
            "/api/orders/direct",
            json={"items": [{"productId": "P1", "quantity": 1}]},
            headers={"X-User-Id": "alice"},
        )
    assert res.status_code == 409
    assert res.json()["detail"]["code"] == "stock_lock_timeout"
    assert stock_of("P1") == 5


def test_nested_unit_of_work_follows_caller_rollback(db, make_product, stock_of):
    make_product("P1", stock=5)
    svc = InventoryService(db)
    db.begin()
    with smart_transaction(db):
        svc.reserve("P1", 3)
    assert svc.peek("P1") == 2
    db.rollback()
    assert stock_of("P1") == 5
