from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from app.models.amount import Amount
from app.models.enums import CommitmentCategory
from app.services import commitments, ledger
from app.services.errors import Forbidden, InvalidInput, NotFound
from app.services.recalculation import recalculate


COMMITMENT_PAYLOAD = {
    "pay_for": "Car Loan",
    "pay_type": 1,
    "category": 1,
    "total_emi": 12,
    "emi_amount": "1000.00",
    "status": 1,
    "due_date": 5,
    "remarks": "bank A",
}


# --- service level ---

def test_full_commitment_is_created_with_fixed_shape(make_commitment):
    commitment = make_commitment(category=2, total_emi=3, emi_amount="5000")
    assert commitment.category == CommitmentCategory.full
    assert (commitment.paid, commitment.pending) == (0, 1)
    assert commitment.paid_amount == Amount.zero()
    assert commitment.balance_amount == Amount("5000")


def test_client_supplied_totals_are_ignored(owner):
    commitment = commitments.create_commitment(
        {**COMMITMENT_PAYLOAD, "paid": 7, "paid_amount": "7000"}, owner_id=owner.user_id
    )
    assert commitment.paid == 0
    assert commitment.paid_amount == Amount.zero()
    assert commitment.balance_amount == Amount("12000")


@pytest.mark.parametrize("field,value", [
    ("total_emi", 0),
    ("emi_amount", "0"),
    ("emi_amount", "abc"),
    ("pay_for", "   "),
    ("due_date", 32),
])
def test_invalid_definitions_are_rejected(owner, field, value):
    with pytest.raises(InvalidInput):
        commitments.create_commitment({**COMMITMENT_PAYLOAD, field: value}, owner_id=owner.user_id)


def test_create_requires_an_owner():
    with pytest.raises(InvalidInput):
        commitments.create_commitment(COMMITMENT_PAYLOAD, owner_id=None)


def test_update_keeps_derived_totals(make_commitment):
    commitment = make_commitment()
    ledger.add_event(commitment.commitment_id, "1000", 1)

    updated = commitments.update_commitment(commitment.commitment_id, {"pay_for": "Car Loan (refinanced)"})
    assert updated.pay_for == "Car Loan (refinanced)"
    assert (updated.paid, updated.pending) == (1, 11)
    assert updated.balance_amount == Amount("11000")


def test_update_to_full_applies_fixed_shape(make_commitment):
    commitment = make_commitment()
    ledger.add_event(commitment.commitment_id, "1000", 1)

    updated = commitments.update_commitment(commitment.commitment_id, {"category": 2, "emi_amount": "9000"})
    assert (updated.paid, updated.pending) == (0, 1)
    assert updated.paid_amount == Amount.zero()
    assert updated.balance_amount == Amount("9000")


def test_changed_schedule_is_reconciled_by_recalculate(make_commitment):
    commitment = make_commitment(total_emi=12, emi_amount="1000")
    ledger.add_event(commitment.commitment_id, "1000", 1)

    updated = commitments.update_commitment(commitment.commitment_id, {"total_emi": 24})
    assert updated.pending == 11

    reconciled = recalculate(commitment.commitment_id)
    assert (reconciled.paid, reconciled.pending) == (1, 23)
    assert reconciled.balance_amount == Amount("23000")


def test_update_unknown_commitment_raises_not_found():
    with pytest.raises(NotFound):
        commitments.update_commitment(uuid4(), {"remarks": "x"})


def test_delete_requires_admin(make_commitment, owner):
    commitment = make_commitment()
    with pytest.raises(Forbidden):
        commitments.delete_commitment(commitment.commitment_id, requesting_user_id=owner.user_id)
    assert commitments.get_commitment(commitment.commitment_id).commitment_id == commitment.commitment_id


def test_delete_checks_permission_before_existence(owner):
    with pytest.raises(Forbidden):
        commitments.delete_commitment(uuid4(), requesting_user_id=owner.user_id)


def test_admin_delete_cascades_to_payments(make_commitment, admin):
    commitment = make_commitment()
    other = make_commitment(pay_for="Phone")
    events = [ledger.add_event(commitment.commitment_id, "1000", n) for n in (1, 2, 3)]
    ledger.add_event(other.commitment_id, "1000", 1)

    deleted, count = commitments.delete_commitment(commitment.commitment_id, requesting_user_id=admin.user_id)
    assert deleted.is_deleted
    assert count == 3

    with pytest.raises(NotFound):
        commitments.get_commitment(commitment.commitment_id)
    for event in events:
        with pytest.raises(NotFound):
            ledger.get_event(event.event_id)
    assert ledger.list_events(commitment.commitment_id) == ([], 0)
    assert ledger.list_events(other.commitment_id)[1] == 1


def test_admin_delete_unknown_commitment_raises_not_found(admin):
    with pytest.raises(NotFound):
        commitments.delete_commitment(uuid4(), requesting_user_id=admin.user_id)


def test_list_commitments_newest_first(make_commitment, owner):
    created = [make_commitment(pay_for=f"Item {n}") for n in range(3)]
    items, total = commitments.list_commitments(owner.user_id, page=1, limit=2)
    assert total == 3
    assert [c.commitment_id for c in items] == [created[2].commitment_id, created[1].commitment_id]


# --- HTTP surface ---

def test_commitment_crud_over_http(client: TestClient, auth_headers):
    r = client.post("/commitments/", json=COMMITMENT_PAYLOAD, headers=auth_headers)
    assert r.status_code == 200
    commitment_id = r.json()["commitment_id"]

    r = client.get(f"/commitments/{commitment_id}", headers=auth_headers)
    assert r.status_code == 200
    body = r.json()
    assert body["emi_amount"] == "1000.00"
    assert body["balance_amount"] == "12000.00"
    assert (body["paid"], body["pending"]) == (0, 12)

    r = client.put(f"/commitments/{commitment_id}", json={"remarks": "renegotiated"}, headers=auth_headers)
    assert r.status_code == 200
    assert r.json()["remarks"] == "renegotiated"
    assert r.json()["pay_for"] == "Car Loan"

    r = client.get("/commitments/", params={"limit": 10}, headers=auth_headers)
    assert r.status_code == 200
    listing = r.json()
    assert listing["total"] == 1
    assert listing["total_pages"] == 1
    assert listing["data"][0]["commitment_id"] == commitment_id


def test_commitment_validation_errors(client: TestClient, auth_headers):
    r = client.post("/commitments/", json={**COMMITMENT_PAYLOAD, "total_emi": 0}, headers=auth_headers)
    assert r.status_code == 422

    r = client.post("/commitments/", json={**COMMITMENT_PAYLOAD, "emi_amount": "-1"}, headers=auth_headers)
    assert r.status_code == 422


def test_unknown_commitment_returns_not_found(client: TestClient, auth_headers):
    r = client.get(f"/commitments/{uuid4()}", headers=auth_headers)
    assert r.status_code == 404
    assert r.json() == {"status": "error", "code": "NOT_FOUND", "message": r.json()["message"]}


def test_other_users_commitment_is_forbidden(client: TestClient, auth_headers, another_user):
    r = client.post("/commitments/", json=COMMITMENT_PAYLOAD, headers=auth_headers)
    commitment_id = r.json()["commitment_id"]
    _, other_headers = another_user

    r = client.get(f"/commitments/{commitment_id}", headers=other_headers)
    assert r.status_code == 403
    assert r.json()["code"] == "FORBIDDEN"

    r = client.put(f"/commitments/{commitment_id}", json={"remarks": "mine now"}, headers=other_headers)
    assert r.status_code == 403


def test_delete_over_http_is_admin_only(client: TestClient, auth_headers, admin_user):
    r = client.post("/commitments/", json=COMMITMENT_PAYLOAD, headers=auth_headers)
    commitment_id = r.json()["commitment_id"]
    r = client.post(
        "/commitments/history/",
        json={"commitment_id": commitment_id, "amount": "1000", "current_emi": 1},
        headers=auth_headers,
    )
    assert r.status_code == 200

    r = client.delete(f"/commitments/{commitment_id}", headers=auth_headers)
    assert r.status_code == 403
    assert client.get(f"/commitments/{commitment_id}", headers=auth_headers).status_code == 200

    _, admin_headers = admin_user
    r = client.delete(f"/commitments/{commitment_id}", headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["deleted_events"] == 1
    assert client.get(f"/commitments/{commitment_id}", headers=auth_headers).status_code == 404


def test_upload_attachment(client: TestClient, auth_headers):
    r = client.post("/commitments/", json=COMMITMENT_PAYLOAD, headers=auth_headers)
    commitment_id = r.json()["commitment_id"]

    files = {"file": ("contract.pdf", b"%PDF-1.4 fake", "application/pdf")}
    r = client.post(f"/commitments/{commitment_id}/attachments", files=files, headers=auth_headers)
    assert r.status_code == 200
    attachment = r.json()["attachment"]
    assert len(attachment) == 1
    assert attachment[0].startswith("attachments/commitments/")
    assert attachment[0].endswith(".pdf")

    files = {"file": ("script.exe", b"MZ", "application/octet-stream")}
    r = client.post(f"/commitments/{commitment_id}/attachments", files=files, headers=auth_headers)
    assert r.status_code == 422
    assert r.json()["code"] == "INVALID_INPUT"


def test_recalculate_endpoint(client: TestClient, auth_headers):
    r = client.post("/commitments/", json=COMMITMENT_PAYLOAD, headers=auth_headers)
    commitment_id = r.json()["commitment_id"]
    client.post(
        "/commitments/history/",
        json={"commitment_id": commitment_id, "amount": "1000", "current_emi": 1},
        headers=auth_headers,
    )
    client.put(f"/commitments/{commitment_id}", json={"total_emi": 6}, headers=auth_headers)

    r = client.post(f"/commitments/{commitment_id}/recalculate", headers=auth_headers)
    assert r.status_code == 200
    assert (r.json()["paid"], r.json()["pending"]) == (1, 5)
    assert r.json()["balance_amount"] == "5000.00"


@pytest.mark.parametrize("definition", [
    {"pay_for": "   "},
    {"pay_for": ""},
    {"total_emi": 0},
    {"total_emi": 1201},
    {"emi_amount": "0"},
    {"emi_amount": "9" * 26 + ".99"},
    {"due_date": 0},
])
def test_invalid_updates_are_rejected(make_commitment, definition):
    commitment = make_commitment()
    with pytest.raises(InvalidInput):
        commitments.update_commitment(commitment.commitment_id, definition)
    assert commitments.get_commitment(commitment.commitment_id).pay_for == "Car Loan"


def test_update_strips_pay_for(make_commitment):
    commitment = make_commitment()
    updated = commitments.update_commitment(commitment.commitment_id, {"pay_for": "  Home Loan  "})
    assert updated.pay_for == "Home Loan"


@pytest.mark.parametrize("field,value", [
    ("emi_amount", "9" * 26 + ".99"),
    ("emi_amount", "1000000000000"),
    ("total_emi", 1201),
])
def test_oversized_definitions_are_rejected(owner, field, value):
    with pytest.raises(InvalidInput):
        commitments.create_commitment({**COMMITMENT_PAYLOAD, field: value}, owner_id=owner.user_id)


def test_oversized_amount_over_http_is_a_validation_error(client: TestClient, auth_headers):
    r = client.post(
        "/commitments/", json={**COMMITMENT_PAYLOAD, "emi_amount": "9" * 26 + ".99"}, headers=auth_headers
    )
    assert r.status_code == 422
