import uuid


def test_ledger_entries_and_summary(client, admin_headers):
    response = client.post("/api/finance/", headers=admin_headers, json={
        "type": "Income", "amount": 12000, "description": "Screen repairs", "date": "2025-03-01T10:00:00Z",
    })
    assert response.status_code == 201
    assert response.json()["message"] == "Entry added"

    client.post("/api/finance/", headers=admin_headers, json={
        "type": "Expense", "amount": 4500.5, "description": "Shop rent", "date": "2025-03-05T10:00:00Z",
    })

    entries = client.get("/api/finance/", headers=admin_headers).json()
    assert [e["description"] for e in entries] == ["Shop rent", "Screen repairs"]

    summary = client.get("/api/finance/summary", headers=admin_headers).json()
    assert summary == {"income": 12000, "expense": 4500.5, "balance": 7499.5}


def test_empty_summary(client, admin_headers):
    assert client.get("/api/finance/summary", headers=admin_headers).json() == {"income": 0, "expense": 0, "balance": 0}


def test_entry_validation(client, admin_headers):
    response = client.post("/api/finance/", headers=admin_headers, json={"type": "Gift", "amount": 1, "description": "x"})
    assert response.status_code == 400

    response = client.post("/api/finance/", headers=admin_headers, json={"type": "Income", "amount": -1, "description": "x"})
    assert response.status_code == 400


def test_delete_entry(client, admin_headers):
    entry = client.post("/api/finance/", headers=admin_headers, json={
        "type": "Expense", "amount": 300, "description": "Tea",
    }).json()["entry"]

    assert client.delete(f"/api/finance/{entry['id']}", headers=admin_headers).status_code == 200
    assert client.delete(f"/api/finance/{entry['id']}", headers=admin_headers).status_code == 404
    assert client.delete(f"/api/finance/{uuid.uuid4()}", headers=admin_headers).status_code == 404


def test_finance_is_admin_only(client, buyer, supplier):
    assert client.get("/api/finance/", headers=buyer[1]).status_code == 403
    assert client.get("/api/finance/summary", headers=supplier[1]).status_code == 403
