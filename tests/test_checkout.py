from datetime import datetime, timezone

from models import Order
from sqlalchemy import select


def test_summary_delivery_charges(client, buyer, product_factory):
    _, headers = buyer
    assert client.get("/api/checkout/summary", headers=headers).json() == {
        "items": [], "subtotal": 0, "delivery_charge": 0, "total": 0,
    }

    product = product_factory(price=2000)
    client.post("/api/cart/add", headers=headers, json={"product_id": product["id"], "quantity": 2})

    home = client.get("/api/checkout/summary", headers=headers).json()
    assert home["subtotal"] == 4000
    assert home["delivery_charge"] == 1300
    assert home["total"] == 5300

    store = client.get("/api/checkout/summary?delivery_method=store", headers=headers).json()
    assert store["delivery_charge"] == 0
    assert store["total"] == 4000


def test_place_order_snapshots_cart_and_profile(client, buyer, product_factory, place_order, outbox):
    user, headers = buyer
    product = product_factory(price=2000)

    placed = place_order(headers, [(product, 2)], notes="Ring the bell")
    today = datetime.now(timezone.utc).strftime("%Y%m%d")
    assert placed["order_number"] == f"ORD-{today}-1"
    assert placed["status"] == "pending"
    assert placed["total"] == 5300

    assert client.get("/api/cart/", headers=headers).json()["items"] == []

    order = client.get(f"/api/orders/{placed['order_id']}", headers=headers).json()
    assert order["user_id"] == user["id"]
    assert order["items"][0]["quantity"] == 2
    assert order["customer"] == {"username": "Nimal Perera", "email": "nimal@rebuy.lk", "phone": ""}
    assert order["address"] == {"line1": "12 Galle Road", "city": "Colombo", "postal_code": "00300", "country": "Sri Lanka"}
    assert order["payment_status"] == "unpaid"
    assert order["notes"] == "Ring the bell"
    assert [(h["status"], h["updated_by"]) for h in order["history"]] == [("pending", "customer")]

    assert ("email", "nimal@rebuy.lk", f"Order Placed - {placed['order_number']}") in outbox


def test_order_numbers_increase(client, buyer, product_factory, place_order):
    product = product_factory(quantity=10)
    first = place_order(buyer[1], [(product, 1)])
    second = place_order(buyer[1], [(product, 1)])
    assert first["order_number"].endswith("-1")
    assert second["order_number"].endswith("-2")


def test_place_order_addresses(client, buyer, product_factory, place_order):
    product = product_factory(quantity=10)

    different = place_order(buyer[1], [(product, 1)], delivery_method="different", address={"line1": "7 Temple Lane"})
    order = client.get(f"/api/orders/{different['order_id']}", headers=buyer[1]).json()
    assert order["address"]["line1"] == "7 Temple Lane"

    store = place_order(buyer[1], [(product, 1)], delivery_method="store")
    order = client.get(f"/api/orders/{store['order_id']}", headers=buyer[1]).json()
    assert order["address"]["line1"] == "Store Pickup"
    assert order["delivery_charge"] == 0


def test_place_order_errors(client, buyer, product_factory):
    _, headers = buyer
    response = client.post("/api/checkout/place", headers=headers, json={"payment_method": "bank"})
    assert response.status_code == 400
    assert response.json()["detail"] == "Cart is empty"

    product = product_factory()
    client.post("/api/cart/add", headers=headers, json={"product_id": product["id"]})
    response = client.post("/api/checkout/place", headers=headers, json={})
    assert response.status_code == 400
    assert response.json()["detail"] == "Payment method is required"

    response = client.post("/api/checkout/place", headers=headers, json={"payment_method": "crypto"})
    assert response.status_code == 400


def test_placing_does_not_touch_stock(client, admin_headers, buyer, product_factory, place_order):
    product = product_factory(quantity=3)
    place_order(buyer[1], [(product, 2)])
    stock = client.get(f"/api/stock/{product['stock']['id']}", headers=admin_headers).json()
    assert stock["quantity"] == 3


def test_order_row_has_history_json(buyer, product_factory, place_order, run_db):
    product = product_factory()
    placed = place_order(buyer[1], [(product, 1)], payment_method="bank")

    async def load(db):
        return (await db.execute(select(Order))).scalar_one()

    order = run_db(load)
    assert order.order_number == placed["order_number"]
    assert order.payment_method == "bank"
    assert order.history[0]["note"] == "Order placed"
