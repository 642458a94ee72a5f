"""HTTP tests for cart checkout and order history."""

import pytest

from cleanpro.models import Order, Product
from tests.conftest import auth_header, make_admin, make_customer, make_product


@pytest.fixture
def customer(db):
    return make_customer(db)


def test_checkout_decrements_stock(client, db, customer):
    cloth = make_product(db, stock_quantity=3, price=4.5)
    spray = make_product(db, name="Glass Spray", price=7.25, stock_quantity=10)

    response = client.post(
        "/api/orders",
        json={"items": [{"Product_ID": cloth.id, "Quantity": 2}, {"Product_ID": spray.id}, {"Product_ID": cloth.id}]},
        headers=auth_header(customer),
    )

    assert response.status_code == 201
    body = response.json()
    assert len(body["orders"]) == 2
    assert body["total"] == pytest.approx(3 * 4.5 + 7.25)

    db.expire_all()
    cloth = db.get(Product, cloth.id)
    assert cloth.stock_quantity == 0
    assert cloth.is_available is False
    assert cloth.popularity == 3
    assert db.get(Product, spray.id).stock_quantity == 9


def test_insufficient_stock_changes_nothing(client, db, customer):
    cloth = make_product(db, stock_quantity=1)
    spray = make_product(db, name="Glass Spray", stock_quantity=10)

    response = client.post(
        "/api/orders",
        json={"items": [{"Product_ID": spray.id, "Quantity": 1}, {"Product_ID": cloth.id, "Quantity": 2}]},
        headers=auth_header(customer),
    )

    assert response.status_code == 400
    assert "left in stock" in response.json()["message"]
    db.expire_all()
    assert db.get(Product, spray.id).stock_quantity == 10
    assert db.query(Order).count() == 0


def test_unknown_and_unavailable_products(client, db, customer):
    hidden = make_product(db, is_available=False)
    headers = auth_header(customer)

    missing = client.post("/api/orders", json={"items": [{"Product_ID": 404}]}, headers=headers)
    assert missing.status_code == 404

    unavailable = client.post("/api/orders", json={"items": [{"Product_ID": hidden.id}]}, headers=headers)
    assert unavailable.status_code == 400


def test_empty_cart_and_bad_quantity(client, customer):
    headers = auth_header(customer)
    assert client.post("/api/orders", json={"items": []}, headers=headers).status_code == 400
    assert (
        client.post("/api/orders", json={"items": [{"Product_ID": 1, "Quantity": 0}]}, headers=headers).status_code
        == 400
    )


def test_order_history(client, db, customer):
    product = make_product(db)
    other = make_customer(db, email="other@example.com", full_name="Other Person")
    client.post("/api/orders", json={"items": [{"Product_ID": product.id}]}, headers=auth_header(customer))
    client.post("/api/orders", json={"items": [{"Product_ID": product.id}]}, headers=auth_header(other))

    mine = client.get("/api/orders", headers=auth_header(customer)).json()["orders"]
    assert len(mine) == 1
    assert mine[0]["Product_Name"] == "Microfiber Cloth"

    admin = make_admin(db)
    everything = client.get("/api/admin/orders", headers=auth_header(admin)).json()["orders"]
    assert len(everything) == 2


def test_checkout_requires_login(client):
    assert client.post("/api/orders", json={"items": [{"Product_ID": 1}]}).status_code == 401
