import pytest


@pytest.fixture
def admin_h(factory):
    return factory.headers(factory.admin())


def test_public_list_sorted(client, factory):
    factory.product("Soy Milk", "حليب الصويا", order=2)
    factory.product("Oat Milk", order=1)
    factory.product("Rice Milk", "حليب الأرز", order=1, available=False)

    names = [p["nameEn"] for p in client.get("/api/products").get_json()["products"]]
    assert names == ["Oat Milk", "Rice Milk", "Soy Milk"]

    names = [p["nameEn"] for p in client.get("/api/products?available=1").get_json()["products"]]
    assert names == ["Oat Milk", "Soy Milk"]


def test_admin_creates_product_with_slug(client, admin_h):
    r = client.post("/api/products", headers=admin_h, json={"nameEn": "Lactose  Free Milk", "nameAr": "حليب"})
    assert r.status_code == 201
    p = r.get_json()["product"]
    assert p["slug"] == "lactose-free-milk"
    assert p["image"] == "/images/placeholder.png"
    assert p["isAvailable"] is True

    dup = client.post("/api/products", headers=admin_h, json={"nameEn": "lactose free milk", "nameAr": "x"})
    assert dup.status_code == 400


def test_create_requires_both_names(client, admin_h):
    assert client.post("/api/products", headers=admin_h, json={"nameEn": "Only English"}).status_code == 400


def test_customers_cannot_manage_products(client, factory):
    h = factory.headers(factory.user())
    assert client.post("/api/products", headers=h, json={"nameEn": "A", "nameAr": "B"}).status_code == 403
    assert client.post("/api/products", json={"nameEn": "A", "nameAr": "B"}).status_code == 401


def test_update_and_delete(client, factory, admin_h):
    pid = factory.product("Oat Milk")
    r = client.put(f"/api/products/{pid}", headers=admin_h, json={"isAvailable": False, "nameEn": "Oat Drink"})
    assert r.status_code == 200
    p = r.get_json()["product"]
    assert p["isAvailable"] is False
    assert p["slug"] == "oat-drink"

    assert client.delete(f"/api/products/{pid}", headers=admin_h).status_code == 200
    assert client.get(f"/api/products/{pid}").status_code == 404
    assert client.put(f"/api/products/{pid}", headers=admin_h, json={}).status_code == 404


def test_non_numeric_order_is_rejected(client, factory, admin_h):
    r = client.post("/api/products", headers=admin_h, json={"nameEn": "Oat Milk", "nameAr": "حليب", "order": "first"})
    assert r.status_code == 400
    assert r.get_json() == {"error": "order must be a number"}

    pid = factory.product("Soy Milk")
    r = client.put(f"/api/products/{pid}", headers=admin_h, json={"order": "last"})
    assert r.status_code == 400

    r = client.put(f"/api/products/{pid}", headers=admin_h, json={"order": "3"})
    assert r.get_json()["product"]["order"] == 3
