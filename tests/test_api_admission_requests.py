"""
Tests: /api/v1/admission-requests HTTP surface.

Covers status codes, response envelopes and the error body
``{"error", "code", "details"?}`` for every route.
"""

from datetime import date

from sqlalchemy import func, select

from studyhall.models import db
from studyhall.models.admission import AdmissionRequest
from studyhall.models.student import Student

BASE = "/api/v1/admission-requests"


# ── List ─────────────────────────────────────────────────────────────────────


def test_list_returns_requests_and_pagination(client, owner_headers, library, make_request):
    make_request(library.id, phone="1000000001")
    make_request(library.id, phone="1000000002", status="accepted")

    res = client.get(f"{BASE}/?status=pending&page=1&limit=10", headers=owner_headers)

    assert res.status_code == 200
    body = res.get_json()
    assert [r["phone"] for r in body["requests"]] == ["1000000001"]
    assert body["pagination"] == {"page": 1, "limit": 10, "total": 1, "total_pages": 1}


def test_list_rejects_non_integer_paging(client, owner_headers):
    res = client.get(f"{BASE}/?page=abc", headers=owner_headers)
    assert res.status_code == 400
    assert res.get_json()["code"] == "ERR_VALIDATION_INVALID"


def test_list_rejects_unknown_status(client, owner_headers):
    res = client.get(f"{BASE}/?status=archived", headers=owner_headers)
    assert res.status_code == 400


def test_list_only_shows_own_library(client, other_owner_headers, library, make_request):
    make_request(library.id)
    res = client.get(f"{BASE}/", headers=other_owner_headers)
    assert res.status_code == 200
    assert res.get_json()["pagination"]["total"] == 0


# ── Detail ───────────────────────────────────────────────────────────────────


def test_detail_includes_shifts(client, owner_headers, library, reference_data, make_request):
    req = make_request(library.id, **reference_data)

    res = client.get(f"{BASE}/{req.id}", headers=owner_headers)

    assert res.status_code == 200
    body = res.get_json()
    assert body["shift_ids"] == [10, 11]
    assert [s["title"] for s in body["shifts"]] == ["Morning", "Evening"]
    assert body["branch_name"] == "Main Branch"


def test_detail_of_other_library_is_404(client, other_owner_headers, library, make_request):
    req = make_request(library.id)
    res = client.get(f"{BASE}/{req.id}", headers=other_owner_headers)
    assert res.status_code == 404
    assert res.get_json()["code"] == "ERR_NOT_FOUND"


# ── Accept ───────────────────────────────────────────────────────────────────


def test_accept_scenario_returns_student(client, staff_headers, library, reference_data, make_request):
    req = make_request(library.id, **reference_data)

    res = client.post(f"{BASE}/{req.id}/accept", headers=staff_headers)

    assert res.status_code == 200
    body = res.get_json()
    assert body["message"] == "Admission request accepted and student created"
    student = body["student"]
    assert student["status"] == "active"
    assert student["locker_id"] == 3
    assert isinstance(student["amount_paid"], float)


def test_accept_expired_membership(client, owner_headers, library, make_request):
    req = make_request(library.id, membership_end=date(2000, 1, 1))
    res = client.post(f"{BASE}/{req.id}/accept", headers=owner_headers)
    assert res.status_code == 200
    assert res.get_json()["student"]["status"] == "expired"


def test_accept_duplicate_phone_is_400_and_request_stays_pending(client, owner_headers, library, make_request):
    db.session.add(Student(library_id=library.id, name="Existing", phone="9999999999"))
    db.session.commit()
    req = make_request(library.id)

    res = client.post(f"{BASE}/{req.id}/accept", headers=owner_headers)

    assert res.status_code == 400
    body = res.get_json()
    assert body["code"] == "ERR_CONFLICT_DUPLICATE"
    assert body["details"] == {"field": "phone"}
    assert db.session.get(AdmissionRequest, req.id).status == "pending"
    assert db.session.execute(select(func.count(Student.id))).scalar() == 1


def test_accept_twice_is_404(client, owner_headers, library, make_request):
    req = make_request(library.id)
    assert client.post(f"{BASE}/{req.id}/accept", headers=owner_headers).status_code == 200

    res = client.post(f"{BASE}/{req.id}/accept", headers=owner_headers)
    assert res.status_code == 404


def test_accept_storage_failure_is_500_with_cause(client, owner_headers, library, make_request):
    req = make_request(library.id, seat_id=404, shift_ids=[405])

    res = client.post(f"{BASE}/{req.id}/accept", headers=owner_headers)

    assert res.status_code == 500
    body = res.get_json()
    assert body["code"] == "ERR_INTERNAL"
    assert "cause" in body["details"]
    assert db.session.get(AdmissionRequest, req.id).status == "pending"


def test_accept_requires_token(client, library, make_request):
    req = make_request(library.id)
    res = client.post(f"{BASE}/{req.id}/accept")
    assert res.status_code == 401
    assert db.session.get(AdmissionRequest, req.id).status == "pending"


# ── Reject ───────────────────────────────────────────────────────────────────


def test_reject_with_reason(client, staff_headers, library, make_request):
    req = make_request(library.id)

    res = client.post(f"{BASE}/{req.id}/reject", json={"reason": "  Seat unavailable "}, headers=staff_headers)

    assert res.status_code == 200
    body = res.get_json()
    assert body["message"] == "Admission request rejected"
    assert body["request"]["status"] == "rejected"
    assert body["request"]["rejection_reason"] == "Seat unavailable"
    assert body["request"]["processed_by_name"] == "Front Desk"


def test_reject_without_body(client, owner_headers, library, make_request):
    req = make_request(library.id)
    res = client.post(f"{BASE}/{req.id}/reject", headers=owner_headers)
    assert res.status_code == 200
    assert res.get_json()["request"]["rejection_reason"] is None


def test_reject_twice_is_404(client, owner_headers, library, make_request):
    req = make_request(library.id)
    client.post(f"{BASE}/{req.id}/reject", json={}, headers=owner_headers)
    res = client.post(f"{BASE}/{req.id}/reject", json={}, headers=owner_headers)
    assert res.status_code == 404


def test_reject_then_accept_is_404(client, owner_headers, library, make_request):
    req = make_request(library.id)
    client.post(f"{BASE}/{req.id}/reject", json={}, headers=owner_headers)
    res = client.post(f"{BASE}/{req.id}/accept", headers=owner_headers)
    assert res.status_code == 404


def test_reject_non_string_reason_is_400(client, owner_headers, library, make_request):
    req = make_request(library.id)
    res = client.post(f"{BASE}/{req.id}/reject", json={"reason": 5}, headers=owner_headers)
    assert res.status_code == 400


# ── Stats ────────────────────────────────────────────────────────────────────


def test_stats_summary(client, owner_headers, library, make_request):
    make_request(library.id, phone="1000000001")
    make_request(library.id, phone="1000000002", status="rejected")

    res = client.get(f"{BASE}/stats/summary", headers=owner_headers)

    assert res.status_code == 200
    assert res.get_json() == {"pending": 1, "accepted": 0, "rejected": 1, "total": 2}


def test_responses_carry_request_id_header(client, owner_headers):
    res = client.get(f"{BASE}/stats/summary", headers={**owner_headers, "X-Request-ID": "abc123"})
    assert res.headers["X-Request-ID"] == "abc123"
    assert "X-Request-Duration-Ms" in res.headers
