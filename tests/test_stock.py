import uuid


def test_create_and_read_stock(client, admin_headers, stock_factory, supplier):
    stock = stock_factory(name="Galaxy S Ten", category="Smartphone", quantity=4, reorder_level=5)
    assert stock["supplier_id"] == supplier[0]["id"]

    response = client.get(f"/api/stock/{stock['id']}", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["name"] == "Galaxy S Ten"

    response = client.get("/api/stock/", headers=admin_headers)
    assert [s["id"] for s in response.json()] == [stock["id"]]


def test_stock_validation(client, admin_headers, supplier):
    base = {"name": "iPad Air", "category": "Tablet", "quantity": 3, "reorder_level": 1, "supplier_id": supplier[0]["id"]}

    response = client.post("/api/stock/", headers=admin_headers, json={**base, "name": "iPad Air 2"})
    assert response.status_code == 400

    response = client.post("/api/stock/", headers=admin_headers, json={**base, "category": "Fridge"})
    assert response.status_code == 400

    response = client.post("/api/stock/", headers=admin_headers, json={**base, "quantity": -1})
    assert response.status_code == 400

    response = client.post("/api/stock/", headers=admin_headers, json={**base, "supplier_id": str(uuid.uuid4())})
    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid supplier selected"


def test_buyer_cannot_be_stock_supplier(client, admin_headers, buyer):
    response = client.post("/api/stock/", headers=admin_headers, json={
        "name": "iPad Air", "category": "Tablet", "quantity": 3, "reorder_level": 1, "supplier_id": buyer[0]["id"],
    })
    assert response.status_code == 400


def test_low_stock_listing(client, admin_headers, stock_factory):
    stock_factory(name="Plenty", quantity=50, reorder_level=5)
    edge = stock_factory(name="Edge", quantity=5, reorder_level=5)
    empty = stock_factory(name="Empty", quantity=0, reorder_level=2)

    response = client.get("/api/stock/low-stock", headers=admin_headers)
    assert response.status_code == 200
    assert [s["id"] for s in response.json()] == [empty["id"], edge["id"]]


def test_update_stock(client, admin_headers, stock_factory):
    stock = stock_factory(quantity=10)
    response = client.put(f"/api/stock/{stock['id']}", headers=admin_headers, json={"quantity": 3})
    assert response.status_code == 200
    assert response.json()["stock"]["quantity"] == 3
    assert response.json()["stock"]["name"] == stock["name"]

    response = client.put(f"/api/stock/{uuid.uuid4()}", headers=admin_headers, json={"quantity": 3})
    assert response.status_code == 404


def test_deleting_stock_removes_its_products(client, admin_headers, product_factory, stock_factory):
    stock = stock_factory()
    product = product_factory(stock=stock)

    response = client.delete(f"/api/stock/{stock['id']}", headers=admin_headers)
    assert response.status_code == 200
    assert client.get(f"/api/products/{product['id']}").status_code == 404


def test_stock_is_admin_only(client, buyer, supplier):
    assert client.get("/api/stock/", headers=buyer[1]).status_code == 403
    assert client.get("/api/stock/low-stock", headers=supplier[1]).status_code == 403
