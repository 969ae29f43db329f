from syndicate.models import db
from syndicate.seed import seed_economy

from conftest import make_app


def build_app():
    app = make_app()
    with app.app_context():
        seed_economy()
    return app


def register(client, handle):
    r = client.post("/api/auth/register", json={"email": f"{handle}@example.com", "handle": handle})
    assert r.status_code == 201
    return r.get_json()["character_id"]


def test_shop_flow():
    app = build_app()
    with app.test_client() as client:
        cid = register(client, "alice")

        r = client.get(f"/api/characters/{cid}/balances")
        assert r.status_code == 200
        assert r.get_json()["money"] == 1500

        r = client.post(f"/api/characters/{cid}/purchase", json={"item_type": "weapon", "item_id": 1, "quantity": 2})
        assert r.status_code == 200
        assert r.get_json()["remaining_balance"] == 1200

        r = client.post(f"/api/characters/{cid}/equip", json={"item_type": "weapon", "item_id": 1, "slot": "weapon1"})
        assert r.status_code == 200
        assert r.get_json()["equipped"]["weapon1"]["name"] == "Knuckle Duster"

        r = client.get(f"/api/characters/{cid}/inventory")
        items = r.get_json()["items"]
        assert sum(i["quantity"] for i in items) == 2
        assert any(i["slot"] == "weapon1" for i in items)

        r = client.post(f"/api/characters/{cid}/unequip", json={"slot": "weapon1"})
        assert r.status_code == 200
        assert r.get_json()["released"]["item_id"] == 1

        r = client.post(f"/api/characters/{cid}/sell", json={"item_type": "weapon", "item_id": 1})
        assert r.status_code == 200
        assert r.get_json()["sell_price"] == 75


def test_errors_are_typed_json():
    app = build_app()
    with app.test_client() as client:
        cid = register(client, "bob")

        r = client.post(f"/api/characters/{cid}/sell", json={"item_type": "armor", "item_id": 7})
        assert r.status_code == 400
        body = r.get_json()
        assert set(body) == {"code", "message", "retryable"}
        assert body["code"] == "E_ITEM_NOT_OWNED" and body["retryable"] is False

        r = client.post(f"/api/characters/{cid}/purchase", json={"item_type": "weapon", "item_id": 999})
        assert r.status_code == 404
        assert r.get_json()["code"] == "E_ITEM_NOT_FOUND"

        r = client.post(f"/api/characters/{cid}/purchase", json={"item_type": "weapon", "item_id": 1, "quantity": 0})
        assert r.get_json()["code"] == "E_INVALID_AMOUNT"

        r = client.post(f"/api/characters/{cid}/bank/withdraw", json={"amount": 10})
        assert r.status_code == 400
        assert r.get_json()["code"] == "E_INSUFFICIENT_FUNDS"

        r = client.post(f"/api/characters/{cid}/equip", json={"item_type": "weapon", "item_id": 1, "slot": "house"})
        assert r.get_json()["code"] == "E_SLOT_INVALID"

        r = client.post(f"/api/characters/{cid}/tasks/2/claim")
        assert r.get_json()["code"] == "E_NOT_COMPLETED"

        r = client.get("/api/characters/nobody/balances")
        assert r.status_code == 404
        assert r.get_json()["code"] == "E_NO_CHAR"


def test_bank_and_tasks():
    app = build_app()
    with app.test_client() as client:
        cid = register(client, "carol")
        r = client.post(f"/api/characters/{cid}/bank/deposit", json={"amount": "500"})
        assert r.status_code == 200
        assert r.get_json() == {"bank_balance": 500, "money": 1000}

        r = client.post(f"/api/characters/{cid}/bank/withdraw", json={"amount": 200})
        assert r.get_json()["bank_balance"] == 300

        r = client.get(f"/api/characters/{cid}/tasks")
        data = r.get_json()
        assert data["unclaimed"] == 0
        saver = next(t for t in data["tasks"] if t["metric"] == "bank_balance")
        assert saver["progress"] == 500


def test_mutations_require_owner():
    app = build_app()
    alice = app.test_client()
    mallory = app.test_client()
    victim = register(alice, "alice")
    register(mallory, "mallory")

    r = mallory.post(f"/api/characters/{victim}/bank/deposit", json={"amount": 100})
    assert r.status_code == 403

    anonymous = app.test_client()
    r = anonymous.post(f"/api/characters/{victim}/purchase", json={"item_type": "weapon", "item_id": 1})
    assert r.status_code == 401
    assert r.get_json()["code"] == "E_AUTH"

    with app.app_context():
        from syndicate.models import Character
        assert db.session.get(Character, victim).money == 1500


def test_contract_flow():
    app = build_app()
    poster = app.test_client()
    assassin = app.test_client()
    register(poster, "poster")
    target = register(app.test_client(), "target")
    assassin_cid = register(assassin, "hitman")

    r = poster.post("/api/contracts", json={"target_id": target, "price": 300})
    assert r.status_code == 201
    contract_id = r.get_json()["id"]

    r = poster.post("/api/contracts", json={"target_id": "", "price": 300})
    assert r.status_code == 400

    r = poster.get("/api/contracts")
    assert [c["id"] for c in r.get_json()["contracts"]] == [contract_id]

    r = assassin.post(f"/api/contracts/{contract_id}/fulfill")
    assert r.status_code == 200
    assert r.get_json()["reward"] == 300

    r = assassin.post(f"/api/contracts/{contract_id}/fulfill")
    assert r.status_code == 409
    assert r.get_json()["code"] == "E_CONFLICT"
    assert r.get_json()["retryable"] is True

    r = assassin.get(f"/api/characters/{assassin_cid}/balances")
    assert r.get_json()["money"] == 1800
