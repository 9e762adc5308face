import pytest

from utils.clock import utcnow


@pytest.fixture
def world(client, factory):
    admin = factory.admin()
    customer = factory.user()
    other = factory.user("966502223344", name="Omar", email="omar@example.com")
    oat = factory.product("Oat Milk", order=1)
    soy = factory.product("Soy Milk", "حليب الصويا", order=2)

    def place(uid, oat_qty, soy_qty):
        r = client.post("/api/orders", headers=factory.headers(uid), json={"items": [
            {"product": str(oat), "quantity": oat_qty},
            {"product": str(soy), "quantity": soy_qty},
        ]})
        assert r.status_code == 201
        return r.get_json()["order"]

    orders = [place(customer, 2, 1), place(customer, 1, 1), place(other, 5, 1)]
    client.put(f"/api/orders/{orders[0]['id']}", headers=factory.headers(admin), json={"status": "received"})
    return {"admin": admin, "customer": customer, "other": other, "orders": orders,
            "h": factory.headers(admin)}


def test_admin_routes_need_admin(client, factory, world):
    h = factory.headers(world["customer"])
    for path in ("/api/admin/stats", "/api/admin/orders", "/api/admin/settings", "/api/admin/customers"):
        assert client.get(path, headers=h).status_code == 403
        assert client.get(path).status_code == 401


def test_stats(client, world):
    for mode in ("today", "all"):
        stats = client.get(f"/api/admin/stats?filter={mode}", headers=world["h"]).get_json()["stats"]
        assert stats["totalOrders"] == 3
        assert stats["newOrders"] == 2
        assert stats["receivedOrders"] == 1
        assert stats["totalCustomers"] == 2
        qty = {p["nameEn"]: p["quantity"] for p in stats["productQuantities"]}
        assert qty == {"Oat Milk": 8, "Soy Milk": 3}

    r = client.get("/api/admin/stats?filter=custom&date=2001-01-01", headers=world["h"])
    assert r.get_json()["stats"]["totalOrders"] == 0
    assert client.get("/api/admin/stats?filter=custom", headers=world["h"]).status_code == 400


def test_orders_paging_and_filters(client, world):
    body = client.get("/api/admin/orders?limit=2", headers=world["h"]).get_json()
    assert len(body["orders"]) == 2
    assert body["pagination"] == {"page": 1, "limit": 2, "total": 3, "pages": 2}

    page2 = client.get("/api/admin/orders?limit=2&page=2", headers=world["h"]).get_json()["orders"]
    assert len(page2) == 1

    new = client.get("/api/admin/orders?status=new", headers=world["h"]).get_json()["orders"]
    assert len(new) == 2

    number = world["orders"][1]["orderNumber"]
    found = client.get(f"/api/admin/orders?search={number[-4:]}", headers=world["h"]).get_json()["orders"]
    assert [o["orderNumber"] for o in found] == [number]

    by_customer = client.get(f"/api/admin/orders?customerId={world['other']}", headers=world["h"]).get_json()
    assert by_customer["pagination"]["total"] == 1

    today = utcnow().date().isoformat()
    ranged = client.get(f"/api/admin/orders?startDate={today}&endDate={today}", headers=world["h"]).get_json()
    assert ranged["pagination"]["total"] == 3


def test_report(client, world):
    today = utcnow().date().isoformat()
    report = client.get(f"/api/admin/reports?startDate={today}&endDate={today}",
                        headers=world["h"]).get_json()["report"]

    assert report["summary"]["totalOrders"] == 3
    assert report["summary"]["totalItems"] == 11
    assert report["summary"]["uniqueCustomers"] == 2
    assert report["summary"]["averageOrderSize"] == round(11 / 3, 2)
    assert report["statusDistribution"] == {"new": 2, "received": 1}
    assert report["dailyTrend"] == [{"date": today, "orders": 3, "items": 11}]
    assert report["topProducts"][0]["nameEn"] == "Oat Milk"
    assert report["topCustomers"][0]["name"] == "Sara"

    rows = {r["name"]: r for r in report["matrix"]["rows"]}
    assert rows["Omar"]["total"] == 6
    assert rows["Sara"]["total"] == 5


def test_report_csv(client, world):
    r = client.get("/api/admin/reports/export.csv", headers=world["h"])
    assert r.status_code == 200
    assert r.mimetype == "text/csv"
    assert "attachment" in r.headers["Content-Disposition"]
    lines = r.get_data(as_text=True).strip().splitlines()
    assert lines[0] == "Customer,Phone,Oat Milk,Soy Milk,Total"
    assert lines[1].startswith("Omar,966502223344,5,1,6")


def test_settings(client, world):
    s = client.get("/api/admin/settings", headers=world["h"]).get_json()["settings"]
    assert s["orders"] == {"editTimeLimit": 2, "autoArchiveDays": 30}

    r = client.put("/api/admin/settings", headers=world["h"], json={
        "orders": {"editTimeLimit": 6},
        "notifications": {"soundEnabled": False},
        "system": {"backupFrequency": "weekly"},
    })
    assert r.status_code == 200
    s = r.get_json()["settings"]
    assert s["orders"]["editTimeLimit"] == 6
    assert s["notifications"]["soundEnabled"] is False
    assert s["system"]["backupFrequency"] == "weekly"

    for bad in ({"orders": {"editTimeLimit": 0}}, {"orders": {"editTimeLimit": 25}},
                {"orders": {"autoArchiveDays": 6}}, {"orders": {"autoArchiveDays": 366}},
                {"system": {"backupFrequency": "hourly"}}):
        assert client.put("/api/admin/settings", headers=world["h"], json=bad).status_code == 400


def test_customer_management(client, factory, world):
    listing = client.get("/api/admin/customers", headers=world["h"]).get_json()
    counts = {c["name"]: c["orderCount"] for c in listing["customers"]}
    assert counts == {"Sara": 2, "Omar": 1}

    found = client.get("/api/admin/customers?search=omar", headers=world["h"]).get_json()["customers"]
    assert [c["name"] for c in found] == ["Omar"]

    r = client.post("/api/admin/customers", headers=world["h"],
                    json={"phone": "+966 50 777 8888", "name": "Huda", "companyName": "H Co"})
    assert r.status_code == 201
    new_id = r.get_json()["customer"]["id"]
    dup = client.post("/api/admin/customers", headers=world["h"], json={"phone": "966507778888", "name": "Again"})
    assert dup.status_code == 400

    r = client.patch(f"/api/admin/customers/{new_id}", headers=world["h"], json={"isActive": False})
    assert r.get_json()["customer"]["isActive"] is False
    inactive = client.get("/api/admin/customers?status=inactive", headers=world["h"]).get_json()["customers"]
    assert [c["name"] for c in inactive] == ["Huda"]

    assert client.put(f"/api/admin/customers/{world['admin']}", headers=world["h"], json={"name": "x"}).status_code == 403
    r = client.delete(f"/api/admin/customers/{world['other']}", headers=world["h"])
    assert r.status_code == 400
    assert r.get_json()["orderCount"] == 1
    assert client.get("/api/admin/orders", headers=world["h"]).get_json()["pagination"]["total"] == 3

    assert client.delete(f"/api/admin/customers/{new_id}", headers=world["h"]).status_code == 200
    names = {c["name"] for c in client.get("/api/admin/customers", headers=world["h"]).get_json()["customers"]}
    assert names == {"Sara", "Omar"}


def test_admin_accounts(client, world):
    h = world["h"]
    assert client.delete(f"/api/admin/admins/{world['admin']}", headers=h).status_code == 403

    r = client.post("/api/admin/admins", headers=h, json={"phone": "966500000002", "name": "Second", "email": "two@example.com"})
    assert r.status_code == 201
    second = r.get_json()["admin"]["id"]
    assert r.get_json()["admin"]["isAdmin"] is True
    assert len(client.get("/api/admin/admins", headers=h).get_json()["admins"]) == 2

    r = client.put(f"/api/admin/admins/{second}", headers=h, json={"name": "Second Admin"})
    assert r.get_json()["admin"]["name"] == "Second Admin"
    assert client.post("/api/admin/admins", headers=h, json={"phone": "966500000003"}).status_code == 400

    assert client.delete(f"/api/admin/admins/{second}", headers=h).status_code == 200
    assert client.delete(f"/api/admin/admins/{world['customer']}", headers=h).status_code == 404


def test_backup_download(client, world):
    r = client.post("/api/admin/backup", headers=world["h"])
    assert r.status_code == 200
    assert "attachment; filename=backup-" in r.headers["Content-Disposition"]
    data = r.get_json()
    assert len(data["orders"]) == 3
    assert len(data["users"]) == 3
    assert len(data["products"]) == 2
    assert data["favorites"] == []
