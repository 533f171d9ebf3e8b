def product_payload(**overrides):
    payload = {"name": "Kopi Susu", "sku": "ks-01", "price": "18000", "quantity": 12}
    payload.update(overrides)
    return payload


def test_create_product_records_opening_stock(client, admin_headers):
    res = client.post("/products", json=product_payload(), headers=admin_headers)

    assert res.status_code == 201
    body = res.json()
    assert body["sku"] == "KS-01"
    assert body["quantity"] == 12

    movements = client.get("/stock", params={"product_id": body["id"]}, headers=admin_headers).json()
    assert movements["total"] == 1
    assert movements["items"][0]["type"] == "IN"
    assert movements["items"][0]["current_stock"] == 12


def test_duplicate_sku_rejected(client, admin_headers):
    client.post("/products", json=product_payload(), headers=admin_headers)
    res = client.post("/products", json=product_payload(name="Kopi Hitam", sku="KS-01"), headers=admin_headers)
    assert res.status_code == 409


def test_cashier_cannot_create_product(client, cashier_headers):
    res = client.post("/products", json=product_payload(), headers=cashier_headers)
    assert res.status_code == 403


def test_cashier_can_browse_catalog(client, make_product, cashier_headers):
    make_product("Es Jeruk")
    make_product("Teh Manis", is_available=False)

    res = client.get("/products", params={"available": True}, headers=cashier_headers)

    assert res.status_code == 200
    assert [p["name"] for p in res.json()["items"]] == ["Es Jeruk"]


def test_stock_adjustment(client, make_product, admin_headers):
    product = make_product(quantity=5)

    res = client.post(
        "/stock/adjust",
        json={"product_id": product.id, "quantity_change": -2, "type": "LOSS", "reason": "spilled"},
        headers=admin_headers,
    )
    assert res.status_code == 200
    assert res.json()["previous_stock"] == 5
    assert res.json()["current_stock"] == 3

    res = client.post(
        "/stock/adjust",
        json={"product_id": product.id, "quantity_change": -10, "type": "OUT"},
        headers=admin_headers,
    )
    assert res.status_code == 400
