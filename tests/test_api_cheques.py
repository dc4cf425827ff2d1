"""
Tests for the JSON cheque API.

Walks the full lifecycle scenario and checks authorization on each verb.
"""


def _body(**overrides) -> dict:
    data = {
        "number": "A1",
        "payee_name": "Bob",
        "amount": "100.00",
        "currency": "JOD",
        "issue_date": "2024-01-01",
        "due_date": "2024-02-01",
    }
    data.update(overrides)
    return data


def test_requires_authentication(client):
    response = client.get("/api/cheques")

    assert response.status_code == 401


def test_read_only_user_cannot_create(client, user_headers):
    response = client.post("/api/cheques", json=_body(), headers=user_headers)

    assert response.status_code == 403
    assert client.get("/api/cheques", headers=user_headers).json() == []


def test_me_reports_role(client, admin_headers):
    response = client.get("/api/auth/me", headers=admin_headers)

    assert response.status_code == 200
    assert response.json()["role"] == "Admin"


def test_bad_credentials_are_rejected(client):
    response = client.post("/api/auth/login", json={"email": "nobody@example.com", "password": "x"})

    assert response.status_code == 401


def test_lifecycle_scenario(client, admin_headers):
    created = client.post("/api/cheques", json=_body(), headers=admin_headers)
    assert created.status_code == 201
    cheque = created.json()
    assert cheque["id"] > 0
    assert cheque["status"] == 0

    duplicate = client.post("/api/cheques", json=_body(payee_name="Other"), headers=admin_headers)
    assert duplicate.status_code == 422
    assert duplicate.json()["detail"] == [
        {"field": "number", "message": "Cheque number already exists."}
    ]

    found = client.get("/api/cheques", params={"q": "Bob"}, headers=admin_headers).json()
    assert [c["id"] for c in found] == [cheque["id"]]

    before = client.get(f"/api/cheques/{cheque['id']}", headers=admin_headers).json()
    updated = client.put(
        f"/api/cheques/{cheque['id']}",
        json=_body(id=cheque["id"], status=2, created_at_utc="1999-01-01T00:00:00Z"),
        headers=admin_headers,
    )
    assert updated.status_code == 200
    after = client.get(f"/api/cheques/{cheque['id']}", headers=admin_headers).json()
    assert after["status"] == 2
    assert after["created_at_utc"] == before["created_at_utc"]

    cleared = client.get("/api/cheques", params={"status": 2}, headers=admin_headers).json()
    assert len(cleared) == 1

    assert client.delete(f"/api/cheques/{cheque['id']}", headers=admin_headers).status_code == 204
    assert client.delete(f"/api/cheques/{cheque['id']}", headers=admin_headers).status_code == 204
    assert client.get(f"/api/cheques/{cheque['id']}", headers=admin_headers).status_code == 404


def test_update_with_mismatched_id(client, admin_headers):
    cheque = client.post("/api/cheques", json=_body(), headers=admin_headers).json()

    response = client.put(
        f"/api/cheques/{cheque['id']}",
        json=_body(id=cheque["id"] + 1, payee_name="Changed"),
        headers=admin_headers,
    )

    assert response.status_code == 422
    assert response.json()["detail"][0]["message"] == "Invalid request: id mismatch."
    stored = client.get(f"/api/cheques/{cheque['id']}", headers=admin_headers).json()
    assert stored["payee_name"] == "Bob"


def test_validation_errors_are_field_scoped(client, admin_headers):
    response = client.post(
        "/api/cheques",
        json=_body(amount="0", currency="DOLLAR"),
        headers=admin_headers,
    )

    assert response.status_code == 422
    fields = {e["field"] for e in response.json()["detail"]}
    assert fields == {"amount", "currency"}


def test_pdf_download(client, admin_headers, user_headers):
    cheque = client.post("/api/cheques", json=_body(notes="Rent"), headers=admin_headers).json()

    response = client.get(f"/api/cheques/{cheque['id']}/pdf", headers=user_headers)

    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert response.content.startswith(b"%PDF")


def test_pdf_of_missing_cheque(client, user_headers):
    assert client.get("/api/cheques/999/pdf", headers=user_headers).status_code == 404
