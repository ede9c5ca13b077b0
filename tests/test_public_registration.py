"""
Tests: public intake under /api/v1/public/library/<code>.

    1. Registration form reference data
    2. Submitting a request — validation, derived due amount, duplicates
    3. Status lookup by phone
"""

import pytest

from studyhall.core.exceptions import ValidationError
from studyhall.models import db
from studyhall.models.admission import AdmissionRequest
from studyhall.models.library import Locker, Schedule
from studyhall.models.student import Student
from studyhall.services import public_registration_service

BASE = "/api/v1/public/library"


def _payload(branch_id, **overrides):
    data = {
        "name": "Ravi Kumar",
        "phone": "9876543210",
        "email": "ravi@example.com",
        "branch_id": branch_id,
        "seat_id": 5,
        "shift_ids": [10, 11],
        "locker_id": 3,
        "membership_start": "2029-01-01",
        "membership_end": "2029-06-30",
        "total_fee": "2000",
        "discount": 200,
        "amount_paid": 500,
        "cash": 500,
    }
    data.update(overrides)
    return data


# ═════════════════════════════════════════════════════════════════════════════
# 1. Registration form
# ═════════════════════════════════════════════════════════════════════════════


def test_form_lists_reference_data_and_free_lockers(client, library, reference_data):
    db.session.add(Locker(library_id=library.id, locker_number="L-99", is_assigned=True))
    db.session.commit()

    res = client.get(f"{BASE}/csh001/")

    assert res.status_code == 200
    body = res.get_json()
    assert body["library"]["code"] == "CSH001"
    assert [b["name"] for b in body["branches"]] == ["Main Branch"]
    assert [s["seat_number"] for s in body["seats"]] == ["A-05"]
    assert [s["id"] for s in body["shifts"]] == [10, 11]
    assert [lk["locker_number"] for lk in body["lockers"]] == ["L-03"]


def test_form_orders_shifts_by_time(client, library, reference_data):
    db.session.add(Schedule(id=9, library_id=library.id, title="Dawn", time="04:00-06:00"))
    db.session.commit()

    res = client.get(f"{BASE}/CSH001/")

    assert [s["title"] for s in res.get_json()["shifts"]] == ["Dawn", "Morning", "Evening"]


def test_form_unknown_code_is_404(client, library):
    res = client.get(f"{BASE}/NOPE/")
    assert res.status_code == 404


def test_form_inactive_library_is_404(client, make_library):
    make_library(code="SHUT01", is_active=False)
    assert client.get(f"{BASE}/SHUT01/").status_code == 404


# ═════════════════════════════════════════════════════════════════════════════
# 2. Submitting
# ═════════════════════════════════════════════════════════════════════════════


def test_register_creates_pending_request(client, library, reference_data):
    res = client.post(f"{BASE}/CSH001/register", json=_payload(reference_data["branch_id"]))

    assert res.status_code == 201
    body = res.get_json()
    assert body["status"] == "pending"
    assert body["submitted_at"]

    req = db.session.get(AdmissionRequest, body["request_id"])
    assert req.library_id == library.id
    assert req.shift_ids == [10, 11]
    assert float(req.due_amount) == 1300.0
    assert float(req.online) == 0.0
    assert req.membership_end.isoformat() == "2029-06-30"


def test_register_ignores_client_due_amount(library, reference_data):
    result = public_registration_service.submit_request(
        "CSH001", _payload(reference_data["branch_id"], due_amount=5),
    )
    req = db.session.get(AdmissionRequest, result["request_id"])
    assert float(req.due_amount) == 1300.0


def test_register_missing_required_fields(client, library):
    res = client.post(f"{BASE}/CSH001/register", json={"name": "  "})

    assert res.status_code == 400
    body = res.get_json()
    assert body["code"] == "ERR_VALIDATION_REQUIRED"
    assert set(body["details"]) == {"name", "phone", "branch_id"}


@pytest.mark.parametrize("overrides,fragment", [
    ({"shift_ids": "[10, 11]"}, "shift_ids"),
    ({"shift_ids": [10, "x"]}, "shift_ids"),
    ({"total_fee": "lots"}, "total_fee"),
    ({"total_fee": "1e400"}, "total_fee"),
    ({"amount_paid": "Infinity"}, "amount_paid"),
    ({"total_fee": "NaN"}, "total_fee"),
    ({"total_fee": 10_000_000_000}, "total_fee"),
    ({"total_fee": "9999999999", "discount": "-9999999999"}, "due_amount"),
    ({"membership_end": "31/31/2029"}, "Invalid date"),
    ({"email": "not-an-email"}, "Invalid email"),
    ({"membership_start": "2029-07-01"}, "membership_end"),
])
def test_register_rejects_malformed_fields(library, reference_data, overrides, fragment):
    with pytest.raises(ValidationError, match=fragment):
        public_registration_service.submit_request(
            "CSH001", _payload(reference_data["branch_id"], **overrides),
        )


def test_register_out_of_range_fee_is_400_and_stores_nothing(client, library, reference_data):
    res = client.post(
        f"{BASE}/CSH001/register",
        json=_payload(reference_data["branch_id"], total_fee="1e400"),
    )

    assert res.status_code == 400
    assert res.get_json()["code"] == "ERR_VALIDATION_INVALID"
    assert db.session.query(AdmissionRequest).count() == 0


def test_register_branch_from_other_library_is_400(client, library, other_library, make_reference_data):
    foreign = make_reference_data(other_library.id, seat_id=50, shift_ids=(60, 61), locker_id=70)
    res = client.post(f"{BASE}/CSH001/register", json=_payload(foreign["branch_id"]))
    assert res.status_code == 400
    assert res.get_json()["details"] == {"branch_id": "unknown"}


def test_register_duplicate_pending_is_400(client, library, reference_data):
    payload = _payload(reference_data["branch_id"])
    assert client.post(f"{BASE}/CSH001/register", json=payload).status_code == 201

    res = client.post(f"{BASE}/CSH001/register", json=payload)

    assert res.status_code == 400
    assert res.get_json()["code"] == "ERR_CONFLICT_DUPLICATE"


def test_register_existing_student_is_400(client, library, reference_data):
    db.session.add(Student(library_id=library.id, name="Ravi", phone="9876543210"))
    db.session.commit()

    res = client.post(f"{BASE}/CSH001/register", json=_payload(reference_data["branch_id"]))
    assert res.status_code == 400


def test_register_after_rejection_is_allowed(client, library, reference_data, make_request):
    make_request(library.id, phone="9876543210", status="rejected")
    res = client.post(f"{BASE}/CSH001/register", json=_payload(reference_data["branch_id"]))
    assert res.status_code == 201


def test_register_requires_json_object(client, library):
    res = client.post(f"{BASE}/CSH001/register", json=["not", "an", "object"])
    assert res.status_code == 400


# ═════════════════════════════════════════════════════════════════════════════
# 3. Status lookup
# ═════════════════════════════════════════════════════════════════════════════


def test_status_returns_latest_request(client, library, make_request):
    make_request(library.id, phone="9876543210", status="rejected", rejection_reason="Full")
    latest = make_request(library.id, phone="9876543210")

    res = client.get(f"{BASE}/CSH001/status/9876543210")

    assert res.status_code == 200
    body = res.get_json()
    assert body["id"] == latest.id
    assert body["status"] == "pending"
    assert body["rejection_reason"] is None


def test_status_unknown_phone_is_404(client, library):
    res = client.get(f"{BASE}/CSH001/status/0000000000")
    assert res.status_code == 404
    assert res.get_json()["code"] == "ERR_NOT_FOUND"


@pytest.mark.parametrize("field,value", [
    ("seat_id", 50),
    ("locker_id", 70),
    ("shift_ids", [10, 60]),
])
def test_register_foreign_resources_are_rejected(library, other_library, reference_data, make_reference_data, field, value):
    make_reference_data(other_library.id, seat_id=50, shift_ids=(60, 61), locker_id=70)
    with pytest.raises(ValidationError) as exc_info:
        public_registration_service.submit_request(
            "CSH001", _payload(reference_data["branch_id"], **{field: value}),
        )
    assert exc_info.value.details == {field: "unknown"}
