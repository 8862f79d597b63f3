from decimal import Decimal

from fastapi.testclient import TestClient

from shopcore.main import app

client = TestClient(app)


def test_list_products(make_product):
    make_product("TEST-001", price="4.99", stock=10, name="Test Coffee")
    make_product("TEST-002", price="1.00", stock=0, name="Test Tea")
    res = client.get("/api/products")
    assert res.status_code == 200
    body = res.json()
    assert body["total"] == 2
    ids = [it["id"] for it in body["items"]]
    assert "TEST-001" in ids


def test_search_products(make_product):
    make_product("TEST-001", name="Test Coffee")
    make_product("TEST-002", name="Test Tea")
    body = client.get("/api/products", params={"q": "coffee"}).json()
    assert [it["id"] for it in body["items"]] == ["TEST-001"]


def test_get_product(make_product):
    make_product("TEST-001", price="4.99", stock=10, name="Test Coffee")
    res = client.get("/api/products/TEST-001")
    assert res.status_code == 200
    body = res.json()
    assert Decimal(body["price"]) == Decimal("4.99")
    assert body["stockQuantity"] == 10
    assert client.get("/api/products/NOPE").status_code == 404
