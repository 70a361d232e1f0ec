"""API заказов: оформление из корзины и история заказов."""
from decimal import Decimal

from openpyxl import load_workbook

from mangastore.models.catalog import Volume

ORDER_URL = "/api/order"
SHIPPING = {"shippingAddress": "1-2-3 Akihabara", "city": "Tokyo", "phoneNumber": "+81 3 1234 5678"}


def add(client, headers, volume_id, quantity):
    r = client.post("/api/cart/add", json={"volumeId": volume_id, "quantity": quantity}, headers=headers)
    assert r.status_code == 201
    return r


def test_create_order_flow(client, db, make_user, make_volume, auth_headers):
    user = make_user(display_name="Reader One")
    headers = auth_headers(user)
    volume = make_volume(price="10.00", discount="0.10", stock=5, title="Vagabond")
    add(client, headers, volume.id, 5)

    r = client.post(f"{ORDER_URL}/create", json=SHIPPING, headers=headers)

    assert r.status_code == 201
    body = r.json()
    assert body["success"] is True
    assert body["message"] == "Order created successfully"
    order = body["data"]
    assert order["status"] == "pending"
    assert order["isPaid"] is False
    assert order["totalAmount"] == 45.0
    assert order["shippingAddress"] == "1-2-3 Akihabara"
    assert order["items"][0]["unitPrice"] == 9.0
    assert order["items"][0]["lineTotal"] == 45.0
    assert order["items"][0]["title"] == "Vagabond"

    db.expire_all()
    assert db.get(Volume, volume.id).stock == 0
    assert client.get("/api/cart/count", headers=headers).json()["data"]["count"] == 0

    rows = list(load_workbook(client.audit_path)["Orders"].iter_rows(values_only=True))
    assert rows[1][0] == "Reader One"
    assert rows[1][5] == "Vagabond"
    assert Decimal(str(rows[1][-1])) == Decimal("45.00")

    again = client.post(f"{ORDER_URL}/create", json=SHIPPING, headers=headers)
    assert again.status_code == 400
    assert again.json() == {"success": False, "message": "Cart is empty", "data": None}


def test_create_order_without_cart(client, make_user, auth_headers):
    r = client.post(f"{ORDER_URL}/create", json=SHIPPING, headers=auth_headers(make_user()))
    assert r.status_code == 404
    assert r.json()["message"] == "Cart not found"


def test_create_order_insufficient_stock(client, db, make_user, make_volume, auth_headers):
    user = make_user()
    headers = auth_headers(user)
    volume = make_volume(stock=3)
    add(client, headers, volume.id, 3)
    db.expire_all()
    stored = db.get(Volume, volume.id)
    stored.stock = 1
    db.commit()

    r = client.post(f"{ORDER_URL}/create", json=SHIPPING, headers=headers)

    assert r.status_code == 409
    assert "Available: 1" in r.json()["message"]
    assert client.get(ORDER_URL, headers=headers).json()["data"] == []


def test_create_order_validation(client, make_user, auth_headers):
    payload = dict(SHIPPING, phoneNumber="call me")
    r = client.post(f"{ORDER_URL}/create", json=payload, headers=auth_headers(make_user()))
    assert r.status_code == 422
    assert r.json()["success"] is False


def test_order_history_is_private(client, make_user, make_volume, auth_headers):
    owner = make_user()
    stranger = make_user()
    add(client, auth_headers(owner), make_volume().id, 1)
    created = client.post(f"{ORDER_URL}/create", json=SHIPPING, headers=auth_headers(owner)).json()["data"]

    mine = client.get(ORDER_URL, headers=auth_headers(owner)).json()["data"]
    assert [o["id"] for o in mine] == [created["id"]]

    r = client.get(f"{ORDER_URL}/{created['id']}", headers=auth_headers(owner))
    assert r.status_code == 200
    assert r.json()["data"]["totalAmount"] == created["totalAmount"]

    r = client.get(f"{ORDER_URL}/{created['id']}", headers=auth_headers(stranger))
    assert r.status_code == 404
    assert r.json()["message"] == "Order not found"
