REQUEST = {
    "title": "ThinkPad restock",
    "quantity": 20,
    "category": "Laptops",
    "priority": "High",
    "description": "Need twenty refurbished ThinkPads before the school season",
}


def test_admin_creates_and_everyone_reads(client, admin_headers, buyer, supplier):
    response = client.post("/api/reorders/", headers=admin_headers, json=REQUEST)
    assert response.status_code == 201
    created = response.json()["request"]
    assert created["replies"] == []

    for headers in (buyer[1], supplier[1], admin_headers):
        listing = client.get("/api/reorders/", headers=headers)
        assert listing.status_code == 200
        assert [r["id"] for r in listing.json()] == [created["id"]]

    assert client.get(f"/api/reorders/{created['id']}", headers=buyer[1]).json()["title"] == "ThinkPad restock"


def test_reorder_validation(client, admin_headers):
    response = client.post("/api/reorders/", headers=admin_headers, json={**REQUEST, "description": "too short"})
    assert response.status_code == 400

    response = client.post("/api/reorders/", headers=admin_headers, json={**REQUEST, "priority": "Urgent"})
    assert response.status_code == 400

    response = client.post("/api/reorders/", headers=admin_headers, json={**REQUEST, "quantity": 0})
    assert response.status_code == 400

    response = client.post("/api/reorders/", headers=admin_headers, json={**REQUEST, "title": "   ab   "})
    assert response.status_code == 400


def test_only_admins_manage_requests(client, admin_headers, supplier):
    assert client.post("/api/reorders/", headers=supplier[1], json=REQUEST).status_code == 403

    created = client.post("/api/reorders/", headers=admin_headers, json=REQUEST).json()["request"]
    response = client.put(f"/api/reorders/{created['id']}", headers=admin_headers, json={"priority": "Low"})
    assert response.json()["request"]["priority"] == "Low"
    assert response.json()["request"]["quantity"] == 20

    assert client.delete(f"/api/reorders/{created['id']}", headers=supplier[1]).status_code == 403
    assert client.delete(f"/api/reorders/{created['id']}", headers=admin_headers).status_code == 200
    assert client.get(f"/api/reorders/{created['id']}", headers=admin_headers).status_code == 404


def test_supplier_replies(client, admin_headers, buyer, supplier):
    created = client.post("/api/reorders/", headers=admin_headers, json=REQUEST).json()["request"]

    response = client.post(f"/api/reorders/{created['id']}/replies", headers=supplier[1], json={"reply": "  Can deliver 15 units  "})
    assert response.status_code == 201
    replies = response.json()["request"]["replies"]
    assert len(replies) == 1
    assert replies[0]["supplier_name"] == "TechSource Lanka"
    assert replies[0]["supplier_id"] == supplier[0]["id"]
    assert replies[0]["reply"] == "Can deliver 15 units"

    client.post(f"/api/reorders/{created['id']}/replies", headers=supplier[1], json={"reply": "And 5 more next week"})
    stored = client.get(f"/api/reorders/{created['id']}", headers=admin_headers).json()
    assert [r["reply"] for r in stored["replies"]] == ["Can deliver 15 units", "And 5 more next week"]

    response = client.post(f"/api/reorders/{created['id']}/replies", headers=buyer[1], json={"reply": "me too"})
    assert response.status_code == 403
