from datetime import timedelta

from routers.auth.helpers import auth_helpers
from conftest import auth


def test_admin_login_returns_token_and_profile(admin_factory, client):
    admin, headers = admin_factory()
    assert admin["email"] == "owner@rebuy.lk"
    assert admin["role"] == "super_admin"
    assert "password_hash" not in admin

    response = client.get("/api/admin/auth/me", headers=headers)
    assert response.status_code == 200
    assert response.json()["id"] == admin["id"]


def test_admin_login_failures(admin_factory, client):
    admin_factory()

    response = client.post("/api/admin/auth/login", json={"email": "owner@rebuy.lk", "password": "wrong"})
    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid credentials"

    response = client.post("/api/admin/auth/login", json={"email": "nobody@rebuy.lk", "password": "adminpass"})
    assert response.status_code == 404
    assert response.json()["detail"] == "Admin not found or disabled"

    response = client.post("/api/admin/auth/login", json={"email": "owner@rebuy.lk"})
    assert response.status_code == 400


def test_admin_email_is_case_insensitive(admin_factory, client):
    admin_factory()
    response = client.post("/api/admin/auth/login", json={"email": "OWNER@ReBuy.lk", "password": "adminpass"})
    assert response.status_code == 200


def test_create_admin_requires_super_admin(admin_factory, client):
    _, super_headers = admin_factory()

    response = client.post("/api/admin/admins", headers=super_headers, json={
        "username": "clerk", "email": "clerk@rebuy.lk", "password": "clerkpass",
    })
    assert response.status_code == 201
    assert response.json()["admin"]["role"] == "admin"

    response = client.post("/api/admin/admins", headers=super_headers, json={
        "username": "clerk", "email": "other@rebuy.lk", "password": "clerkpass",
    })
    assert response.status_code == 400

    login = client.post("/api/admin/auth/login", json={"email": "clerk@rebuy.lk", "password": "clerkpass"})
    clerk_headers = auth(login.json()["token"])
    response = client.post("/api/admin/admins", headers=clerk_headers, json={
        "username": "intern", "email": "intern@rebuy.lk", "password": "internpass",
    })
    assert response.status_code == 403

    response = client.get("/api/admin/admins", headers=clerk_headers)
    assert response.status_code == 200
    assert {a["username"] for a in response.json()} == {"owner", "clerk"}


def test_disabled_admin_is_locked_out(admin_factory, client):
    _, super_headers = admin_factory()
    clerk, clerk_headers = admin_factory(email="clerk@rebuy.lk", username="clerk", role="admin")

    response = client.patch(f"/api/admin/admins/{clerk['id']}/status", headers=super_headers, json={"status": "disabled"})
    assert response.status_code == 200
    assert response.json()["admin"]["status"] == "disabled"

    response = client.get("/api/admin/auth/me", headers=clerk_headers)
    assert response.status_code == 401
    assert response.json()["detail"] == "Admin not found or disabled"

    response = client.post("/api/admin/auth/login", json={"email": "clerk@rebuy.lk", "password": "adminpass"})
    assert response.status_code == 404


def test_admin_cannot_disable_self(admin_factory, client):
    admin, headers = admin_factory()
    response = client.patch(f"/api/admin/admins/{admin['id']}/status", headers=headers, json={"status": "disabled"})
    assert response.status_code == 400


def test_admin_routes_reject_buyers(buyer, client):
    _, headers = buyer
    assert client.get("/api/admin/dashboard", headers=headers).status_code == 403
    assert client.get("/api/admin/auth/me", headers=headers).status_code == 403


def test_expired_and_invalid_tokens(client, admin_factory):
    admin, _ = admin_factory()
    expired = auth_helpers.create_token(admin["id"], "super_admin", timedelta(seconds=-10))

    response = client.get("/api/admin/auth/me", headers=auth(expired))
    assert response.status_code == 401
    assert response.json()["detail"] == "Token expired"

    response = client.get("/api/admin/auth/me", headers=auth("not-a-jwt"))
    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid token"

    response = client.get("/api/admin/auth/me")
    assert response.status_code in (401, 403)


def test_dashboard_counts(client, admin_headers, buyer, product_factory, stock_factory, place_order):
    product = product_factory(price=1000, quantity=5)
    stock_factory(name="Charger", category="Accessories", quantity=1, reorder_level=3)
    place_order(buyer[1], [(product, 2)])
    client.post("/api/finance/", headers=admin_headers, json={"type": "Income", "amount": 500, "description": "Repair job"})
    client.post("/api/finance/", headers=admin_headers, json={"type": "Expense", "amount": 200, "description": "Courier"})

    response = client.get("/api/admin/dashboard", headers=admin_headers)
    assert response.status_code == 200
    body = response.json()
    assert body["buyers"] == 1
    assert body["suppliers"] == 1
    assert body["products"] == 1
    assert body["orders_by_status"] == {"pending": 1}
    assert body["total_orders"] == 1
    assert body["revenue"] == 3300
    assert body["low_stock_count"] == 1
    assert body["low_stock"][0]["name"] == "Charger"
    assert body["pending_offers"] == 0
    assert body["finance"] == {"income": 500, "expense": 200, "balance": 300}
