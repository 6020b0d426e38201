import uuid
from datetime import datetime, timedelta, timezone

from models import SupplierOffer, User
from utils.response_helpers import offer_to_dict

OFFER = {
    "title": "Bulk iPhone 11 lot",
    "description": "Fifty grade B units with new batteries",
    "price_per_unit": 65000,
    "quantity_offered": 50,
}


def create_offer(client, headers, **overrides):
    response = client.post("/api/offer/", headers=headers, json={**OFFER, **overrides})
    assert response.status_code == 201, response.text
    return response.json()["offer"]


def test_supplier_creates_offer(client, supplier):
    user, headers = supplier
    delivery = (datetime.now(timezone.utc) + timedelta(days=7)).isoformat()
    offer = create_offer(client, headers, delivery_date=delivery)
    assert offer["status"] == "Pending"
    assert offer["supplier_id"] == user["id"]
    assert offer["supplier_name"] == "techsource"

    mine = client.get("/api/offer/my-offers", headers=headers).json()
    assert [o["id"] for o in mine] == [offer["id"]]


def test_offer_validation(client, supplier, buyer):
    _, headers = supplier
    past = (datetime.now(timezone.utc) - timedelta(days=1)).isoformat()
    response = client.post("/api/offer/", headers=headers, json={**OFFER, "delivery_date": past})
    assert response.status_code == 400
    assert response.json()["detail"] == "Delivery date cannot be in the past"

    response = client.post("/api/offer/", headers=headers, json={**OFFER, "quantity_offered": 0})
    assert response.status_code == 400

    assert client.post("/api/offer/", headers=buyer[1], json=OFFER).status_code == 403


def test_only_owner_edits_pending_offers(client, supplier, user_factory, admin_headers):
    _, headers = supplier
    offer = create_offer(client, headers)
    _, rival = user_factory(role="supplier", email="rival@supply.lk", username="rival")

    response = client.put(f"/api/offer/{offer['id']}", headers=rival, json={"price_per_unit": 1})
    assert response.status_code == 403
    assert response.json()["detail"] == "Not allowed"

    response = client.put(f"/api/offer/{offer['id']}", headers=headers, json={"price_per_unit": 60000})
    assert response.status_code == 200
    assert response.json()["offer"]["price_per_unit"] == 60000

    client.patch(f"/api/offer/{offer['id']}/approve", headers=admin_headers)

    response = client.put(f"/api/offer/{offer['id']}", headers=headers, json={"price_per_unit": 1})
    assert response.status_code == 400
    assert response.json()["detail"] == "Cannot edit non-pending offer"

    response = client.delete(f"/api/offer/{offer['id']}", headers=headers)
    assert response.status_code == 400
    assert response.json()["detail"] == "Cannot delete non-pending offer"


def test_delete_pending_offer(client, supplier):
    _, headers = supplier
    offer = create_offer(client, headers)
    assert client.delete(f"/api/offer/{offer['id']}", headers=headers).status_code == 200
    assert client.get("/api/offer/my-offers", headers=headers).json() == []


def test_admin_review_and_decisions(client, admin_factory, supplier, outbox):
    admin, admin_headers = admin_factory()
    _, headers = supplier
    first = create_offer(client, headers)
    second = create_offer(client, headers, title="Galaxy A52 lot")

    response = client.patch(f"/api/offer/{first['id']}/approve", headers=admin_headers)
    assert response.status_code == 200
    approved = response.json()["offer"]
    assert approved["status"] == "Approved"
    assert approved["decision_by"] == admin["id"]
    assert approved["decision_at"] is not None

    client.patch(f"/api/offer/{second['id']}/reject", headers=admin_headers)

    listing = client.get("/api/offer/", headers=admin_headers).json()["offers"]
    assert {o["status"] for o in listing} == {"Approved", "Rejected"}

    rejected = client.get("/api/offer/?status=Rejected", headers=admin_headers).json()["offers"]
    assert [o["id"] for o in rejected] == [second["id"]]

    assert ("email", "sales@techsource.lk", 'Your offer "Bulk iPhone 11 lot" was approved') in outbox


def test_suppliers_cannot_decide(client, supplier):
    _, headers = supplier
    offer = create_offer(client, headers)
    assert client.patch(f"/api/offer/{offer['id']}/approve", headers=headers).status_code == 403
    assert client.get("/api/offer/", headers=headers).status_code == 403


def test_offer_dict_uses_supplier_only_when_loaded():
    fields = {
        "id": uuid.uuid4(),
        "supplier_id": uuid.uuid4(),
        "title": "Refurbished ThinkPads",
        "description": "Twenty T480 units",
        "price_per_unit": 72000,
        "quantity_offered": 20,
        "status": "Pending",
    }
    assert offer_to_dict(SupplierOffer(**fields))["supplier_name"] is None

    with_supplier = SupplierOffer(**fields, supplier=User(username="techsource"))
    assert offer_to_dict(with_supplier)["supplier_name"] == "techsource"
