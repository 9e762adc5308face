import pytest


@pytest.fixture
def people(factory):
    return {
        "customer": factory.user(),
        "other": factory.user("966502223344", name="Omar", email="omar@example.com"),
        "admin": factory.admin(),
        "oat": factory.product("Oat Milk"),
    }


def _save(client, factory, uid, name="Weekly", items=None):
    return client.post("/api/favorites", headers=factory.headers(uid), json={
        "name": name,
        "items": items or [{"product": "1", "quantity": 3}],
    })


def test_save_and_list(client, factory, people):
    r = _save(client, factory, people["customer"], items=[{"product": str(people["oat"]), "quantity": 3}])
    assert r.status_code == 201
    fav = r.get_json()["favorite"]
    assert fav["name"] == "Weekly"
    assert fav["totalItems"] == 3
    assert fav["items"][0]["product"]["name"]["en"] == "Oat Milk"

    _save(client, factory, people["customer"], name="Monthly", items=[{"product": str(people["oat"]), "quantity": 1}])
    listed = client.get("/api/favorites", headers=factory.headers(people["customer"])).get_json()["favorites"]
    assert [f["name"] for f in listed] == ["Monthly", "Weekly"]

    assert client.get("/api/favorites", headers=factory.headers(people["other"])).get_json()["favorites"] == []


def test_name_rules(client, factory, people):
    items = [{"product": str(people["oat"]), "quantity": 1}]
    assert _save(client, factory, people["customer"], name="", items=items).status_code == 400
    assert _save(client, factory, people["customer"], name="n" * 51, items=items).status_code == 400
    assert _save(client, factory, people["customer"], name="n" * 50, items=items).status_code == 201


def test_unknown_product(client, factory, people):
    r = _save(client, factory, people["customer"], items=[{"product": "777", "quantity": 1}])
    assert r.status_code == 400


def test_at_most_ten(client, factory, people):
    items = [{"product": str(people["oat"]), "quantity": 1}]
    for i in range(10):
        assert _save(client, factory, people["customer"], name=f"fav {i}", items=items).status_code == 201
    r = _save(client, factory, people["customer"], name="one too many", items=items)
    assert r.status_code == 400


def test_admins_have_no_favorites(client, factory, people):
    assert client.get("/api/favorites", headers=factory.headers(people["admin"])).status_code == 403


def test_delete_only_own(client, factory, people):
    items = [{"product": str(people["oat"]), "quantity": 1}]
    fid = _save(client, factory, people["customer"], items=items).get_json()["favorite"]["id"]

    assert client.delete(f"/api/favorites/{fid}", headers=factory.headers(people["other"])).status_code == 403
    assert client.delete(f"/api/favorites/{fid}", headers=factory.headers(people["customer"])).status_code == 200
    assert client.delete(f"/api/favorites/{fid}", headers=factory.headers(people["customer"])).status_code == 404
