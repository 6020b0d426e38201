import os
import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from conftest import PNG_BYTES, UPLOAD_ROOT


def stored_product_images():
    directory = os.path.join(UPLOAD_ROOT, "products")
    return set(os.listdir(directory)) if os.path.isdir(directory) else set()


async def failing_commit(self):
    raise RuntimeError("database went away")


def test_create_product_copies_stock_details(client, product_factory):
    product = product_factory(price=95000)
    assert product["name"] == "Dell Latitude"
    assert product["category"] == "Laptop"
    assert product["stock"]["quantity"] == 10
    assert product["image"].startswith("/uploads/products/")
    assert os.path.exists(os.path.join(UPLOAD_ROOT, product["image"][len("/uploads/"):]))

    response = client.get(product["image"])
    assert response.status_code == 200
    assert response.content == PNG_BYTES


def test_catalogue_is_public(client, product_factory):
    product = product_factory()
    response = client.get("/api/products/")
    assert response.status_code == 200
    assert [p["id"] for p in response.json()] == [product["id"]]

    response = client.get(f"/api/products/{product['id']}")
    assert response.json()["stock"]["name"] == "Dell Latitude"

    assert client.get(f"/api/products/{uuid.uuid4()}").status_code == 404
    assert client.get("/api/products/bogus").status_code == 400


def test_create_product_requires_image_and_valid_stock(client, admin_headers, stock_factory):
    stock = stock_factory()

    response = client.post("/api/products/", headers=admin_headers, data={
        "stock_id": stock["id"], "description": "No picture", "price": "1000",
    })
    assert response.status_code == 400
    assert response.json()["detail"] == "Product image is required"

    response = client.post(
        "/api/products/",
        headers=admin_headers,
        data={"stock_id": str(uuid.uuid4()), "description": "Ghost stock", "price": "1000"},
        files={"image": ("ghost.png", PNG_BYTES, "image/png")},
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid stock selected"

    response = client.post(
        "/api/products/",
        headers=admin_headers,
        data={"stock_id": stock["id"], "description": "Wrong file", "price": "1000"},
        files={"image": ("notes.txt", b"hello", "text/plain")},
    )
    assert response.status_code == 400


def test_update_product_replaces_image(client, admin_headers, product_factory):
    product = product_factory(price=1000)
    old_path = os.path.join(UPLOAD_ROOT, product["image"][len("/uploads/"):])

    response = client.put(
        f"/api/products/{product['id']}",
        headers=admin_headers,
        data={"price": "1500"},
        files={"image": ("new.png", PNG_BYTES, "image/png")},
    )
    assert response.status_code == 200
    updated = response.json()["product"]
    assert updated["price"] == 1500
    assert updated["description"] == product["description"]
    assert updated["image"] != product["image"]
    assert not os.path.exists(old_path)


def test_update_product_moves_to_other_stock(client, admin_headers, product_factory, stock_factory):
    product = product_factory()
    tablet = stock_factory(name="Galaxy Tab", category="Tablet", quantity=3)

    response = client.put(f"/api/products/{product['id']}", headers=admin_headers, data={"stock_id": tablet["id"]})
    assert response.status_code == 200
    assert response.json()["product"]["category"] == "Tablet"
    assert response.json()["product"]["name"] == "Galaxy Tab"


def test_delete_product(client, admin_headers, product_factory):
    product = product_factory()
    assert client.delete(f"/api/products/{product['id']}", headers=admin_headers).status_code == 200
    assert client.get(f"/api/products/{product['id']}").status_code == 404


def test_product_writes_are_admin_only(client, buyer, product_factory):
    product = product_factory()
    response = client.delete(f"/api/products/{product['id']}", headers=buyer[1])
    assert response.status_code == 403


def test_failed_create_removes_stored_image(client, admin_headers, stock_factory, monkeypatch):
    stock = stock_factory()
    before = stored_product_images()
    monkeypatch.setattr(AsyncSession, "commit", failing_commit)

    response = client.post(
        "/api/products/",
        headers=admin_headers,
        data={"stock_id": stock["id"], "description": "Grade B", "price": "1000"},
        files={"image": ("laptop.png", PNG_BYTES, "image/png")},
    )
    assert response.status_code == 500
    assert stored_product_images() == before


def test_failed_update_keeps_old_image_only(client, admin_headers, product_factory, monkeypatch):
    product = product_factory()
    before = stored_product_images()
    monkeypatch.setattr(AsyncSession, "commit", failing_commit)

    response = client.put(
        f"/api/products/{product['id']}",
        headers=admin_headers,
        files={"image": ("new.png", PNG_BYTES, "image/png")},
    )
    assert response.status_code == 500
    assert stored_product_images() == before
    assert os.path.basename(product["image"]) in before
