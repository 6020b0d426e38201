import uuid

from conftest import PNG_BYTES


def stock_quantity(client, admin_headers, product):
    return client.get(f"/api/stock/{product['stock']['id']}", headers=admin_headers).json()["quantity"]


def test_confirm_and_cancel_move_stock(client, admin_headers, buyer, product_factory, place_order, outbox):
    product = product_factory(quantity=5)
    placed = place_order(buyer[1], [(product, 2)])

    response = client.put(f"/api/orders/{placed['order_id']}/status", headers=admin_headers, json={"status": "confirmed"})
    assert response.status_code == 200
    order = response.json()
    assert order["status"] == "confirmed"
    assert len(order["history"]) == 2
    assert order["history"][-1]["updated_by"] == "admin"
    assert order["history"][-1]["note"] == "Status changed to confirmed"
    assert stock_quantity(client, admin_headers, product) == 3

    response = client.put(f"/api/orders/{placed['order_id']}/status", headers=admin_headers,
                          json={"status": "cancelled", "note": "Customer changed mind"})
    assert len(response.json()["history"]) == 3
    assert response.json()["history"][-1]["note"] == "Customer changed mind"
    assert stock_quantity(client, admin_headers, product) == 5

    assert any(kind == "email" and "cancelled" in subject for kind, _, subject in outbox)


def test_confirming_clamps_stock_at_zero(client, admin_headers, buyer, product_factory, place_order):
    product = product_factory(quantity=2)
    placed = place_order(buyer[1], [(product, 2)])
    client.put(f"/api/stock/{product['stock']['id']}", headers=admin_headers, json={"quantity": 1})

    client.put(f"/api/orders/{placed['order_id']}/status", headers=admin_headers, json={"status": "confirmed"})
    assert stock_quantity(client, admin_headers, product) == 0


def test_other_statuses_leave_stock_alone(client, admin_headers, buyer, product_factory, place_order):
    product = product_factory(quantity=5)
    placed = place_order(buyer[1], [(product, 1)])

    for new_status in ("shipped", "delivered", "pending"):
        response = client.put(f"/api/orders/{placed['order_id']}/status", headers=admin_headers, json={"status": new_status})
        assert response.status_code == 200
    assert stock_quantity(client, admin_headers, product) == 5

    history = client.get(f"/api/orders/admin/{placed['order_id']}", headers=admin_headers).json()["history"]
    assert [h["status"] for h in history] == ["pending", "shipped", "delivered", "pending"]


def test_status_update_validation(client, admin_headers, buyer, product_factory, place_order):
    product = product_factory()
    placed = place_order(buyer[1], [(product, 1)])

    response = client.put(f"/api/orders/{placed['order_id']}/status", headers=admin_headers, json={"status": "lost"})
    assert response.status_code == 400

    response = client.put(f"/api/orders/{uuid.uuid4()}/status", headers=admin_headers, json={"status": "shipped"})
    assert response.status_code == 404

    response = client.put(f"/api/orders/{placed['order_id']}/status", headers=buyer[1], json={"status": "confirmed"})
    assert response.status_code == 403


def test_order_access(client, buyer, user_factory, product_factory, place_order):
    product = product_factory()
    placed = place_order(buyer[1], [(product, 1)])
    _, stranger = user_factory(email="stranger@rebuy.lk")

    assert client.get(f"/api/orders/{placed['order_id']}", headers=stranger).status_code == 403
    assert client.get(f"/api/orders/{placed['order_id']}/invoice", headers=stranger).status_code == 403
    assert client.get("/api/orders/user", headers=stranger).json() == []

    mine = client.get("/api/orders/user", headers=buyer[1]).json()
    assert [o["id"] for o in mine] == [placed["order_id"]]


def test_invoice_pdf(client, buyer, product_factory, place_order):
    product = product_factory()
    placed = place_order(buyer[1], [(product, 1)])

    response = client.get(f"/api/orders/{placed['order_id']}/invoice", headers=buyer[1])
    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert placed["order_number"] in response.headers["content-disposition"]
    assert response.content.startswith(b"%PDF")


def test_bank_slip_upload(client, admin_headers, buyer, product_factory, place_order):
    product = product_factory()
    placed = place_order(buyer[1], [(product, 1)], payment_method="bank")

    response = client.post(f"/api/orders/{placed['order_id']}/upload-slip", headers=buyer[1])
    assert response.status_code == 400

    response = client.post(
        f"/api/orders/{placed['order_id']}/upload-slip",
        headers=buyer[1],
        files={"slip": ("slip.png", PNG_BYTES, "image/png")},
    )
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "transfer_pending"
    assert body["slip"]["url"].startswith("/uploads/slips/")

    slip_orders = client.get("/api/orders/admin", headers=admin_headers).json()
    assert [o["id"] for o in slip_orders] == [placed["order_id"]]
    history = slip_orders[0]["history"]
    assert (history[-1]["status"], history[-1]["updated_by"], history[-1]["note"]) == (
        "transfer_pending", "customer", "Bank slip uploaded",
    )


def test_checkout_slip_route_matches_orders_route(client, buyer, product_factory, place_order):
    product = product_factory()
    placed = place_order(buyer[1], [(product, 1)], payment_method="bank")

    response = client.post(
        f"/api/checkout/upload-slip/{placed['order_id']}",
        headers=buyer[1],
        files={"slip": ("slip.pdf", b"%PDF-1.4 slip", "application/pdf")},
    )
    assert response.status_code == 200
    assert response.json()["status"] == "transfer_pending"


def test_slip_only_for_bank_orders(client, buyer, product_factory, place_order):
    product = product_factory()
    placed = place_order(buyer[1], [(product, 1)], payment_method="cash_on_delivery")
    response = client.post(
        f"/api/orders/{placed['order_id']}/upload-slip",
        headers=buyer[1],
        files={"slip": ("slip.png", PNG_BYTES, "image/png")},
    )
    assert response.status_code == 400


def test_admin_order_listing_filters(client, admin_headers, buyer, product_factory, place_order):
    product = product_factory(quantity=10)
    first = place_order(buyer[1], [(product, 1)])
    place_order(buyer[1], [(product, 1)])
    client.put(f"/api/orders/{first['order_id']}/status", headers=admin_headers, json={"status": "shipped"})

    all_orders = client.get("/api/orders/admin/all", headers=admin_headers).json()
    assert len(all_orders) == 2

    shipped = client.get("/api/orders/admin/all?status=shipped", headers=admin_headers).json()
    assert [o["id"] for o in shipped] == [first["order_id"]]

    assert client.get("/api/orders/admin", headers=admin_headers).json() == []
    assert client.get("/api/orders/admin/all", headers=buyer[1]).status_code == 403
