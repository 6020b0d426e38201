import asyncio
import os
import sys
import tempfile

import pytest

# Ensure project root is on sys.path
PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

# Settings are read at import time, so they must be in place before the app loads
UPLOAD_ROOT = tempfile.mkdtemp(prefix="rebuy-uploads-")
os.environ["DATABASE_URL"] = ""
os.environ["JWT_SECRET_KEY"] = "test-secret-key"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["UPLOAD_DIR"] = UPLOAD_ROOT
os.environ["ENVIRONMENT"] = "test"
os.environ["STRIPE_WEBHOOK_SECRET"] = "whsec_test"
for key in ("SMTP_SERVER", "TWILIO_ACCOUNT_SID"):
    os.environ.pop(key, None)

from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import NullPool  # noqa: E402

from config import get_db  # noqa: E402
from main import app  # noqa: E402
from models import Base  # noqa: E402
from scripts.create_admin import create_admin  # noqa: E402

PNG_BYTES = (
    b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR\x00\x00\x00\x01\x00\x00\x00\x01\x08\x06"
    b"\x00\x00\x00\x1f\x15\xc4\x89\x00\x00\x00\rIDATx\x9cc\xf8\x0f\x00\x00\x01\x01\x00"
    b"\x05\x18\xd8N\x00\x00\x00\x00IEND\xaeB`\x82"
)

BUYER_PAYLOAD = {
    "username": "Nimal Perera",
    "email": "nimal@rebuy.lk",
    "password": "secret123",
    "role": "buyer",
    "address": "12 Galle Road",
    "city": "Colombo",
    "country": "Sri Lanka",
    "postal_code": "00300",
}

SUPPLIER_PAYLOAD = {
    "username": "techsource",
    "email": "sales@techsource.lk",
    "password": "secret123",
    "role": "supplier",
    "company": "TechSource Lanka",
    "phone": "0771234567",
    "address": "45 Kandy Road",
    "city": "Kandy",
    "country": "Sri Lanka",
}


@pytest.fixture
def session_factory(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'rebuy.db'}", poolclass=NullPool)

    async def create_tables():
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    asyncio.run(create_tables())
    yield sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)
    asyncio.run(engine.dispose())


@pytest.fixture
def run_db(session_factory):
    """Run an async callable with a fresh session, for seeding and assertions"""
    def run(fn):
        async def wrapper():
            async with session_factory() as session:
                return await fn(session)
        return asyncio.run(wrapper())
    return run


@pytest.fixture
def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def outbox(monkeypatch):
    """Capture notifications instead of talking to SMTP and Twilio"""
    sent = []
    monkeypatch.setattr("utils.notifications.send_email", lambda to, subject, body: sent.append(("email", to, subject)) or True)
    monkeypatch.setattr("utils.notifications.send_sms", lambda to, body: sent.append(("sms", to, body)) or True)
    return sent


def auth(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_factory(client, run_db):
    def create(email="owner@rebuy.lk", username="owner", role="super_admin", password="adminpass"):
        run_db(lambda db: create_admin(db, username, email, password, role))
        response = client.post("/api/admin/auth/login", json={"email": email, "password": password})
        assert response.status_code == 200, response.text
        body = response.json()
        return body["admin"], auth(body["token"])
    return create


@pytest.fixture
def admin_headers(admin_factory):
    _, headers = admin_factory()
    return headers


@pytest.fixture
def user_factory(client):
    def create(**overrides):
        payload = dict(BUYER_PAYLOAD if overrides.get("role", "buyer") == "buyer" else SUPPLIER_PAYLOAD)
        payload.update(overrides)
        response = client.post("/api/user/register", json=payload)
        assert response.status_code == 201, response.text
        body = response.json()
        return body["user"], auth(body["token"])
    return create


@pytest.fixture
def buyer(user_factory):
    return user_factory()


@pytest.fixture
def supplier(user_factory):
    return user_factory(role="supplier")


@pytest.fixture
def stock_factory(client, admin_headers, supplier):
    def create(name="Dell Latitude", category="Laptop", quantity=10, reorder_level=2, unit_price=80000):
        response = client.post("/api/stock/", headers=admin_headers, json={
            "name": name,
            "category": category,
            "quantity": quantity,
            "reorder_level": reorder_level,
            "unit_price": unit_price,
            "supplier_id": supplier[0]["id"],
        })
        assert response.status_code == 201, response.text
        return response.json()["stock"]
    return create


@pytest.fixture
def product_factory(client, admin_headers, stock_factory):
    def create(price=95000, quantity=10, stock=None, description="Refurbished, grade A"):
        stock = stock or stock_factory(quantity=quantity)
        response = client.post(
            "/api/products/",
            headers=admin_headers,
            data={"stock_id": stock["id"], "description": description, "price": str(price)},
            files={"image": ("laptop.png", PNG_BYTES, "image/png")},
        )
        assert response.status_code == 201, response.text
        return response.json()["product"]
    return create


@pytest.fixture
def place_order(client):
    """Fill the buyer's cart with the given (product, quantity) lines and check out"""
    def place(headers, lines, payment_method="cash_on_delivery", delivery_method="home", **extra):
        for product, quantity in lines:
            response = client.post("/api/cart/add", headers=headers, json={"product_id": product["id"], "quantity": quantity})
            assert response.status_code == 201, response.text
        response = client.post("/api/checkout/place", headers=headers, json={
            "payment_method": payment_method,
            "delivery_method": delivery_method,
            **extra,
        })
        assert response.status_code == 201, response.text
        return response.json()
    return place
