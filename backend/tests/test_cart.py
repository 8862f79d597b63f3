from decimal import Decimal
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from shopcore.db import SessionLocal
from shopcore.main import app
from shopcore.models.cart import Cart
from shopcore.services.cart_service import CartService
from shopcore.services.exceptions import CartNotFound, InsufficientStock, ItemNotInCart

client = TestClient(app)

ALICE = {"X-User-Id": "alice"}
BOB = {"X-User-Id": "bob"}


def _add(headers, product_id, quantity):
    return client.post(
        "/api/cart/items", json={"productId": product_id, "quantity": quantity}, headers=headers
    )


def test_get_cart_creates_empty_cart():
    res = client.get("/api/cart", headers=ALICE)
    assert res.status_code == 200
    body = res.json()
    assert body["userId"] == "alice"
    assert body["items"] == []
    assert body["itemCount"] == 0
    assert Decimal(body["totalPrice"]) == 0

    # same cart the second time
    assert client.get("/api/cart", headers=ALICE).json()["id"] == body["id"]


def test_cart_requires_user_header():
    assert client.get("/api/cart").status_code == 401


def test_add_item_to_cart(make_product):
    make_product("P1", price="10.00", stock=5, name="Tea 100g")
    res = _add(ALICE, "P1", 2)
    assert res.status_code == 200
    body = res.json()
    assert body["itemCount"] == 1
    line = body["items"][0]
    assert line["productId"] == "P1"
    assert line["productName"] == "Tea 100g"
    assert line["quantity"] == 2
    assert Decimal(line["subtotal"]) == Decimal("20")
    assert Decimal(body["totalPrice"]) == Decimal("20")


def test_add_item_accepts_snake_case_body(make_product):
    make_product("P1")
    res = client.post("/api/cart/items", json={"product_id": "P1", "quantity": 1}, headers=ALICE)
    assert res.status_code == 200


def test_add_quantity_equal_to_stock_succeeds_one_more_fails(make_product):
    make_product("P1", stock=5)
    assert _add(ALICE, "P1", 5).status_code == 200

    res = _add(BOB, "P1", 6)
    assert res.status_code == 400
    detail = res.json()["detail"]
    assert detail["code"] == "insufficient_stock"
    assert detail["productId"] == "P1"
    assert detail["available"] == 5


def test_add_existing_item_increments_up_to_stock(make_product):
    make_product("P1", stock=5)
    _add(ALICE, "P1", 2)
    body = _add(ALICE, "P1", 2).json()
    assert body["itemCount"] == 1
    assert body["items"][0]["quantity"] == 4

    res = _add(ALICE, "P1", 2)
    assert res.status_code == 400
    assert res.json()["detail"]["inCart"] == 4
    # rejected increment left the line alone
    assert client.get("/api/cart", headers=ALICE).json()["items"][0]["quantity"] == 4


def test_add_unknown_product_is_404():
    res = _add(ALICE, "NOPE", 1)
    assert res.status_code == 404
    assert res.json()["detail"]["code"] == "product_not_found"


def test_add_zero_quantity_is_rejected(make_product):
    make_product("P1")
    assert _add(ALICE, "P1", 0).status_code == 422


def test_update_item_sets_quantity_exactly(make_product):
    make_product("P1", stock=5)
    _add(ALICE, "P1", 3)
    res = client.patch("/api/cart/items/P1", json={"quantity": 1}, headers=ALICE)
    assert res.status_code == 200
    assert res.json()["items"][0]["quantity"] == 1


def test_update_item_over_stock_is_400(make_product):
    make_product("P1", stock=5)
    _add(ALICE, "P1", 3)
    res = client.patch("/api/cart/items/P1", json={"quantity": 6}, headers=ALICE)
    assert res.status_code == 400
    assert res.json()["detail"]["available"] == 5
    assert client.get("/api/cart", headers=ALICE).json()["items"][0]["quantity"] == 3


def test_update_item_missing_cart_or_line(make_product):
    make_product("P1")
    make_product("P2")
    res = client.patch("/api/cart/items/P1", json={"quantity": 1}, headers=ALICE)
    assert res.status_code == 404
    assert res.json()["detail"]["code"] == "cart_not_found"

    _add(ALICE, "P1", 1)
    res = client.patch("/api/cart/items/P2", json={"quantity": 1}, headers=ALICE)
    assert res.status_code == 404
    assert res.json()["detail"]["code"] == "item_not_in_cart"


def test_remove_item(make_product):
    make_product("P1")
    make_product("P2")
    _add(ALICE, "P1", 1)
    _add(ALICE, "P2", 1)
    res = client.delete("/api/cart/items/P1", headers=ALICE)
    assert res.status_code == 200
    assert [it["productId"] for it in res.json()["items"]] == ["P2"]

    res = client.delete("/api/cart/items/P1", headers=ALICE)
    assert res.status_code == 404
    assert res.json()["detail"]["code"] == "item_not_in_cart"


def test_clear_twice_leaves_empty_cart(make_product):
    make_product("P1")
    _add(ALICE, "P1", 2)
    first = client.delete("/api/cart", headers=ALICE)
    second = client.delete("/api/cart", headers=ALICE)
    assert first.status_code == second.status_code == 200
    assert first.json() == second.json()
    assert second.json()["itemCount"] == 0


def test_clear_without_cart_creates_it():
    res = client.delete("/api/cart", headers=BOB)
    assert res.status_code == 200
    assert res.json()["userId"] == "bob"


def test_cart_total_follows_current_price(make_product, set_price):
    make_product("P1", price="10.00")
    _add(ALICE, "P1", 2)
    set_price("P1", "12.50")
    body = client.get("/api/cart", headers=ALICE).json()
    assert Decimal(body["items"][0]["price"]) == Decimal("12.50")
    assert Decimal(body["totalPrice"]) == Decimal("25")


def test_carts_are_per_user(make_product):
    make_product("P1")
    _add(ALICE, "P1", 1)
    assert client.get("/api/cart", headers=BOB).json()["itemCount"] == 0


def test_cart_service_errors(db, make_product):
    make_product("P1", stock=2)
    svc = CartService(db)
    with pytest.raises(CartNotFound):
        svc.remove_item("carol", "P1")
    svc.add_item("carol", "P1", 2)
    with pytest.raises(InsufficientStock):
        svc.add_item("carol", "P1", 1)
    with pytest.raises(ItemNotInCart):
        svc.update_item("carol", "P2", 1)
    view = svc.get_or_create("carol")
    assert view.item_count == 1
    assert view.items[0].quantity == 2


def _cart_count():
    s = SessionLocal()
    try:
        return s.query(Cart).count()
    finally:
        s.close()


def test_failed_first_add_leaves_no_cart(db, make_product):
    make_product("P1", stock=1)
    with pytest.raises(InsufficientStock):
        CartService(db).add_item("newbie", "P1", 2)
    assert _cart_count() == 0

    res = _add(ALICE, "P1", 2)
    assert res.status_code == 400
    assert _cart_count() == 0


def test_add_item_when_line_vanished_before_increment(db, make_product, monkeypatch):
    make_product("P1", stock=5)
    svc = CartService(db)
    svc.add_item("carol", "P1", 1)
    svc.remove_item("carol", "P1")

    # first lookup still sees the line another request just deleted
    real_get_item = svc.cart_repo.get_item
    stale = [SimpleNamespace(quantity=1)]

    def get_item(cart, product_id):
        return stale.pop() if stale else real_get_item(cart, product_id)

    monkeypatch.setattr(svc.cart_repo, "get_item", get_item)
    view = svc.add_item("carol", "P1", 2)
    assert view.item_count == 1
    assert view.items[0].quantity == 2
