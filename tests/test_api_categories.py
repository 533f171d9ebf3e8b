import pytest


@pytest.fixture
def make_category(client, admin_headers):
    def _make(name="Makanan", **fields):
        res = client.post("/categories", json={"name": name, **fields}, headers=admin_headers)
        assert res.status_code == 201
        return res.json()
    return _make


def test_create_category_derives_slug(make_category):
    category = make_category("Minuman Dingin", color="#00AAFF", sort_order=2)

    assert category["slug"] == "minuman-dingin"
    assert category["color"] == "#00AAFF"
    assert category["is_active"] is True
    assert category["product_count"] == 0


def test_duplicate_slug_rejected(client, admin_headers, make_category):
    make_category("Makanan")
    res = client.post("/categories", json={"name": "Makanan Berat", "slug": "makanan"}, headers=admin_headers)
    assert res.status_code == 409


def test_cashier_can_view_but_not_create(client, cashier_headers, make_category):
    make_category("Makanan")

    assert client.get("/categories", headers=cashier_headers).json()["total"] == 1
    res = client.post("/categories", json={"name": "Snack"}, headers=cashier_headers)
    assert res.status_code == 403


def test_list_filters_and_order(client, cashier_headers, make_category):
    make_category("Snack", sort_order=3)
    make_category("Minuman", sort_order=1)
    make_category("Promo", sort_order=2, is_active=False)

    res = client.get("/categories", params={"is_active": True}, headers=cashier_headers)
    assert [c["name"] for c in res.json()["items"]] == ["Minuman", "Snack"]

    res = client.get("/categories", params={"search": "prom"}, headers=cashier_headers)
    assert [c["name"] for c in res.json()["items"]] == ["Promo"]


def test_update_category(client, admin_headers, make_category):
    category = make_category("Makanan")

    res = client.patch(f"/categories/{category['id']}", json={"name": "Makanan Utama", "slug": "utama"},
                       headers=admin_headers)

    assert res.status_code == 200
    assert res.json()["name"] == "Makanan Utama"
    assert res.json()["slug"] == "utama"
    assert res.json()["updated_at"] is not None


def test_products_reference_categories(client, admin_headers, cashier_headers, make_category):
    category = make_category("Kopi")
    res = client.post(
        "/products",
        json={"name": "Kopi Susu", "sku": "KS-01", "price": "18000", "category_id": category["id"]},
        headers=admin_headers,
    )
    assert res.status_code == 201
    assert res.json()["category"] == {"id": category["id"], "name": "Kopi", "slug": "kopi"}

    listed = client.get("/products", params={"category_id": category["id"]}, headers=cashier_headers).json()
    assert [p["name"] for p in listed["items"]] == ["Kopi Susu"]
    detail = client.get(f"/categories/{category['id']}", headers=cashier_headers).json()
    assert detail["product_count"] == 1


def test_product_with_unknown_category_rejected(client, admin_headers):
    res = client.post(
        "/products",
        json={"name": "Kopi Susu", "sku": "KS-01", "price": "18000", "category_id": 999},
        headers=admin_headers,
    )
    assert res.status_code == 400


def test_delete_category(client, admin_headers, make_category, make_product, db):
    empty = make_category("Musiman")
    used = make_category("Kopi")
    product = make_product("Kopi Hitam")
    product.category_id = used["id"]
    db.commit()

    assert client.delete(f"/categories/{used['id']}", headers=admin_headers).status_code == 409
    assert client.delete(f"/categories/{empty['id']}", headers=admin_headers).status_code == 204

    assert client.get(f"/categories/{empty['id']}", headers=admin_headers).status_code == 404
    assert [c["name"] for c in client.get("/categories", headers=admin_headers).json()["items"]] == ["Kopi"]
