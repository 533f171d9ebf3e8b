import pytest

from models.order import Order
from models.product import Product


@pytest.fixture
def nasi(make_product):
    return make_product("Nasi Goreng", price="50000", quantity=10)


def add(client, headers, product_id, quantity=1):
    return client.post("/cart/add", json={"product_id": product_id, "quantity": quantity}, headers=headers)


def test_empty_cart(client, cashier_headers):
    res = client.get("/cart", headers=cashier_headers)

    assert res.status_code == 200
    body = res.json()
    assert body["items"] == []
    assert body["total"] == "0.00"
    assert body["tax_enabled"] is True


def test_cart_totals(client, cashier_headers, nasi):
    add(client, cashier_headers, nasi.id, 2)
    res = client.put("/cart/discount", json={"value": "10", "type": "PERCENTAGE"}, headers=cashier_headers)

    body = res.json()
    assert body["subtotal"] == "100000.00"
    assert body["discount_amount"] == "10000.00"
    assert body["tax_amount"] == "9900.00"
    assert body["total"] == "99900.00"


def test_cart_survives_between_requests(client, cashier_headers, nasi):
    add(client, cashier_headers, nasi.id, 3)
    body = client.get("/cart", headers=cashier_headers).json()

    assert body["item_count"] == 3
    assert body["items"][0]["max_quantity"] == 10


def test_carts_are_per_user(client, cashier_headers, admin_headers, nasi):
    add(client, cashier_headers, nasi.id)
    assert client.get("/cart", headers=admin_headers).json()["items"] == []


def test_add_beyond_stock(client, cashier_headers, make_product):
    product = make_product("Rendang", quantity=3)
    add(client, cashier_headers, product.id, 3)

    res = add(client, cashier_headers, product.id, 1)

    assert res.status_code == 409
    assert res.json()["detail"] == "Only 3 items available in stock"
    assert res.json()["available"] == 3
    assert client.get("/cart", headers=cashier_headers).json()["item_count"] == 3


def test_add_unknown_or_unavailable_product(client, cashier_headers, make_product):
    hidden = make_product("Sate", is_available=False)

    assert add(client, cashier_headers, 999).status_code == 404
    assert add(client, cashier_headers, hidden.id).status_code == 400


def test_update_and_remove_items(client, cashier_headers, nasi, make_product):
    teh = make_product("Es Teh", price="8000", track_inventory=False, quantity=0)
    add(client, cashier_headers, nasi.id)
    add(client, cashier_headers, teh.id)

    res = client.put(f"/cart/items/{teh.id}", json={"quantity": 4}, headers=cashier_headers)
    assert res.json()["item_count"] == 5

    res = client.put(f"/cart/items/{nasi.id}", json={"quantity": 0}, headers=cashier_headers)
    assert [i["name"] for i in res.json()["items"]] == ["Es Teh"]

    res = client.delete(f"/cart/items/{teh.id}", headers=cashier_headers)
    assert res.json()["items"] == []

    assert client.put("/cart/items/999", json={"quantity": 1}, headers=cashier_headers).status_code == 404


def set_stock(db, product, quantity):
    product.quantity = quantity
    db.commit()


def test_update_sees_restock(client, db, cashier_headers, make_product):
    product = make_product("Rendang", quantity=3)
    add(client, cashier_headers, product.id, 1)
    set_stock(db, product, 10)

    res = client.put(f"/cart/items/{product.id}", json={"quantity": 5}, headers=cashier_headers)

    assert res.status_code == 200
    assert res.json()["items"][0]["quantity"] == 5
    assert res.json()["items"][0]["max_quantity"] == 10


def test_update_sees_sell_out(client, db, cashier_headers, nasi):
    add(client, cashier_headers, nasi.id, 1)
    set_stock(db, nasi, 2)

    res = client.put(f"/cart/items/{nasi.id}", json={"quantity": 8}, headers=cashier_headers)

    assert res.status_code == 409
    assert res.json()["available"] == 2
    assert client.get("/cart", headers=cashier_headers).json()["items"][0]["quantity"] == 1

    res = client.put(f"/cart/items/{nasi.id}", json={"quantity": 2}, headers=cashier_headers)
    assert res.status_code == 200
    assert res.json()["items"][0]["max_quantity"] == 2


def test_item_note(client, cashier_headers, nasi):
    add(client, cashier_headers, nasi.id)
    res = client.put(f"/cart/items/{nasi.id}/note", json={"note": "pedas"}, headers=cashier_headers)
    assert res.json()["items"][0]["note"] == "pedas"


def test_percentage_discount_over_100_rejected(client, cashier_headers):
    res = client.put("/cart/discount", json={"value": "120", "type": "PERCENTAGE"}, headers=cashier_headers)
    assert res.status_code == 422


def test_tax_toggle(client, cashier_headers, nasi):
    add(client, cashier_headers, nasi.id)
    res = client.put("/cart/tax", json={"enabled": False}, headers=cashier_headers)

    assert res.json()["tax_amount"] == "0.00"
    assert res.json()["total"] == "50000.00"


def test_order_type_resets_customer(client, cashier_headers):
    client.put("/cart/customer", json={"name": "Budi", "table_number": "7"}, headers=cashier_headers)
    res = client.put("/cart/order-type", json={"order_type": "TAKEAWAY"}, headers=cashier_headers)

    assert res.json()["order_type"] == "TAKEAWAY"
    assert res.json()["customer"]["name"] is None


def test_clear_cart(client, cashier_headers, nasi):
    add(client, cashier_headers, nasi.id, 2)
    res = client.delete("/cart", headers=cashier_headers)
    assert res.json()["items"] == []


def test_hold_and_recall(client, cashier_headers, nasi):
    add(client, cashier_headers, nasi.id, 2)

    res = client.post("/cart/hold", headers=cashier_headers)
    assert res.status_code == 201
    held = res.json()
    assert held["item_count"] == 2
    assert held["order_number"].startswith("ORD-")
    assert client.get("/cart", headers=cashier_headers).json()["items"] == []

    listed = client.get("/held-orders", headers=cashier_headers).json()
    assert [h["id"] for h in listed] == [held["id"]]

    res = client.post(f"/held-orders/{held['id']}/recall", headers=cashier_headers)
    assert res.status_code == 200
    assert res.json()["item_count"] == 2
    assert client.get("/held-orders", headers=cashier_headers).json() == []


def test_recall_into_busy_cart(client, cashier_headers, nasi, make_product):
    add(client, cashier_headers, nasi.id)
    held = client.post("/cart/hold", headers=cashier_headers).json()
    teh = make_product("Es Teh", price="8000")
    add(client, cashier_headers, teh.id)

    res = client.post(f"/held-orders/{held['id']}/recall", headers=cashier_headers)
    assert res.status_code == 409

    res = client.post(f"/held-orders/{held['id']}/recall", params={"replace": "true"}, headers=cashier_headers)
    assert res.status_code == 200
    assert [i["name"] for i in res.json()["items"]] == ["Nasi Goreng"]


def test_hold_skips_order_numbers_in_use(client, cashier_headers, nasi, monkeypatch):
    add(client, cashier_headers, nasi.id)
    order = client.post("/cart/checkout", json={"payment_method": "CASH"}, headers=cashier_headers).json()["order"]

    numbers = iter([order["order_number"], "ORD-1700000000000-HELD1"])
    monkeypatch.setattr("routes.cart.generate_order_number", lambda: next(numbers))
    add(client, cashier_headers, nasi.id)

    held = client.post("/cart/hold", headers=cashier_headers).json()

    assert held["order_number"] == "ORD-1700000000000-HELD1"


def test_checkout_skips_held_order_numbers(client, cashier_headers, nasi, monkeypatch):
    numbers = iter(["ORD-1700000000000-AAAAA", "ORD-1700000000000-AAAAA", "ORD-1700000000000-BBBBB"])
    monkeypatch.setattr("routes.cart.generate_order_number", lambda: next(numbers))
    add(client, cashier_headers, nasi.id)
    client.post("/cart/hold", headers=cashier_headers)
    add(client, cashier_headers, nasi.id)

    res = client.post("/cart/checkout", json={"payment_method": "CASH"}, headers=cashier_headers)

    assert res.json()["order"]["order_number"] == "ORD-1700000000000-BBBBB"


def test_hold_empty_cart(client, cashier_headers):
    res = client.post("/cart/hold", headers=cashier_headers)
    assert res.status_code == 422


def test_delete_held_order(client, cashier_headers, admin_headers, nasi):
    add(client, cashier_headers, nasi.id)
    held = client.post("/cart/hold", headers=cashier_headers).json()

    # Held orders belong to the cashier who parked them
    assert client.delete(f"/held-orders/{held['id']}", headers=admin_headers).status_code == 404
    assert client.delete(f"/held-orders/{held['id']}", headers=cashier_headers).status_code == 204
    assert client.get("/held-orders", headers=cashier_headers).json() == []


def test_cash_checkout(client, db, cashier_headers, nasi):
    add(client, cashier_headers, nasi.id, 2)

    res = client.post("/cart/checkout", json={"payment_method": "CASH"}, headers=cashier_headers)

    assert res.status_code == 201
    body = res.json()
    assert body["requires_redirect"] is False
    order = body["order"]
    assert order["status"] == "AWAITING_CONFIRMATION"
    assert order["payment_status"] == "PENDING"
    assert order["total_amount"] == "111000.00"
    assert order["items"][0]["quantity"] == 2
    assert client.get("/cart", headers=cashier_headers).json()["items"] == []

    # Stock only moves once the order is paid
    db.expire_all()
    assert db.get(Product, nasi.id).quantity == 10


def test_gateway_checkout(client, cashier_headers, nasi):
    add(client, cashier_headers, nasi.id)
    res = client.post("/cart/checkout", json={"payment_method": "QRIS"}, headers=cashier_headers)

    assert res.json()["requires_redirect"] is True
    assert res.json()["order"]["status"] == "PENDING_PAYMENT"


def test_delivery_checkout_requires_customer(client, db, cashier_headers, nasi):
    add(client, cashier_headers, nasi.id)
    client.put("/cart/order-type", json={"order_type": "DELIVERY"}, headers=cashier_headers)
    client.put("/cart/customer", json={"name": "Budi"}, headers=cashier_headers)

    res = client.post("/cart/checkout", json={}, headers=cashier_headers)

    assert res.status_code == 422
    assert res.json()["fields"] == ["phone", "address"]
    assert db.query(Order).count() == 0
    assert client.get("/cart", headers=cashier_headers).json()["item_count"] == 1


def test_checkout_empty_cart(client, cashier_headers):
    assert client.post("/cart/checkout", json={}, headers=cashier_headers).status_code == 422


def test_checkout_rechecks_stock(client, db, cashier_headers, nasi):
    add(client, cashier_headers, nasi.id, 4)
    nasi.quantity = 2
    db.commit()

    res = client.post("/cart/checkout", json={}, headers=cashier_headers)
    assert res.status_code == 409
