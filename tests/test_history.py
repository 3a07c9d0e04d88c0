from uuid import uuid4

import pytest
from fastapi.testclient import TestClient


@pytest.fixture
def commitment_id(client: TestClient, auth_headers):
    payload = {
        "pay_for": "Laptop",
        "pay_type": 1,
        "category": 1,
        "total_emi": 4,
        "emi_amount": "250.00",
        "status": 1,
        "due_date": 10,
    }
    r = client.post("/commitments/", json=payload, headers=auth_headers)
    assert r.status_code == 200
    return r.json()["commitment_id"]


def _pay(client, headers, commitment_id, amount="250", current_emi=1, **extra):
    return client.post(
        "/commitments/history/",
        json={"commitment_id": commitment_id, "amount": amount, "current_emi": current_emi, **extra},
        headers=headers,
    )


def test_payment_lifecycle(client: TestClient, auth_headers, commitment_id):
    r = _pay(client, auth_headers, commitment_id, remarks="first", paid_date="2025-01-10T09:00:00Z")
    assert r.status_code == 200
    event = r.json()
    assert event["amount"] == "250.00"
    assert event["remarks"] == "first"

    commitment = client.get(f"/commitments/{commitment_id}", headers=auth_headers).json()
    assert (commitment["paid"], commitment["pending"]) == (1, 3)
    assert commitment["paid_amount"] == "250.00"
    assert commitment["balance_amount"] == "750.00"

    r = client.put(f"/commitments/history/{event['event_id']}", json={"amount": "100"}, headers=auth_headers)
    assert r.status_code == 200
    assert r.json()["remarks"] == "first"
    commitment = client.get(f"/commitments/{commitment_id}", headers=auth_headers).json()
    assert commitment["balance_amount"] == "900.00"

    r = client.get(f"/commitments/history/{event['event_id']}", headers=auth_headers)
    assert r.status_code == 200
    assert r.json()["amount"] == "100.00"

    r = client.delete(f"/commitments/history/{event['event_id']}", headers=auth_headers)
    assert r.status_code == 200
    assert r.json()["commitment_id"] == commitment_id
    commitment = client.get(f"/commitments/{commitment_id}", headers=auth_headers).json()
    assert (commitment["paid"], commitment["pending"]) == (0, 4)
    assert commitment["balance_amount"] == "1000.00"

    r = client.get(f"/commitments/history/{event['event_id']}", headers=auth_headers)
    assert r.status_code == 404


def test_list_payments_page_shape(client: TestClient, auth_headers, commitment_id):
    for n in range(1, 6):
        assert _pay(client, auth_headers, commitment_id, current_emi=n).status_code == 200

    r = client.get(
        f"/commitments/history/commitment/{commitment_id}",
        params={"page": 2, "limit": 2},
        headers=auth_headers,
    )
    assert r.status_code == 200
    page = r.json()
    assert page["total_items"] == 5
    assert page["total_pages"] == 3
    assert page["current_page"] == 2
    assert [e["current_emi"] for e in page["data"]] == [3, 2]


def test_invalid_payments_are_rejected(client: TestClient, auth_headers, commitment_id):
    assert _pay(client, auth_headers, commitment_id, amount="0").status_code == 422
    assert _pay(client, auth_headers, commitment_id, amount="-10").status_code == 422
    assert _pay(client, auth_headers, commitment_id, current_emi=0).status_code == 422

    r = _pay(client, auth_headers, str(uuid4()))
    assert r.status_code == 404
    assert r.json()["code"] == "NOT_FOUND"

    commitment = client.get(f"/commitments/{commitment_id}", headers=auth_headers).json()
    assert commitment["paid"] == 0


def test_payments_on_other_users_commitment_are_forbidden(client: TestClient, auth_headers, another_user, commitment_id):
    event_id = _pay(client, auth_headers, commitment_id).json()["event_id"]
    _, other_headers = another_user

    assert _pay(client, other_headers, commitment_id).status_code == 403
    assert client.get(f"/commitments/history/{event_id}", headers=other_headers).status_code == 403
    assert client.delete(f"/commitments/history/{event_id}", headers=other_headers).status_code == 403
    assert client.get(f"/commitments/history/commitment/{commitment_id}", headers=other_headers).status_code == 403


def test_payment_attachment(client: TestClient, auth_headers, commitment_id):
    event_id = _pay(client, auth_headers, commitment_id).json()["event_id"]

    files = {"file": ("receipt.png", b"\x89PNG fake", "image/png")}
    r = client.post(f"/commitments/history/{event_id}/attachments", files=files, headers=auth_headers)
    assert r.status_code == 200
    assert r.json()["attachment"][0].startswith("attachments/commitment_histories/")
    assert r.json()["amount"] == "250.00"

    files = {"file": ("receipt-2.pdf", b"%PDF-1.4 fake", "application/pdf")}
    r = client.post(f"/commitments/history/{event_id}/attachments", files=files, headers=auth_headers)
    assert r.status_code == 200
    assert len(r.json()["attachment"]) == 2

    r = client.post(
        f"/commitments/history/{event_id}/attachments",
        files={"file": ("empty.pdf", b"", "application/pdf")},
        headers=auth_headers,
    )
    assert r.status_code == 422
