"""
Shared pytest fixtures for the Study-Hall Admissions test suite.

Provides:
    - app: one "testing" application per session
    - _setup_db: schema created once, dropped at session end
    - session (autouse): app context per test, fresh schema afterwards
    - client: test client
    - library / other_library: two active tenants
    - staff_user: admin StaffUser in ``library``
    - owner_ctx / staff_ctx: TenantContext values for service-level tests
    - owner_headers / staff_headers / other_owner_headers: Bearer auth headers
    - reference_data: branch, seat 5, shifts 10 + 11, locker 3
    - make_library / make_staff / make_request / make_reference_data /
      bearer: factory fixtures

ORM helpers COMMIT rather than flush: the services under test roll the
session back on failure, and fixture rows must survive that.
"""

from datetime import date

import pytest

from studyhall import create_app
from studyhall.models import db as _db
from studyhall.models.admission import AdmissionRequest
from studyhall.models.library import Branch, Library, Locker, Schedule, Seat, StaffUser
from studyhall.services.jwt_service import generate_owner_token, generate_staff_token
from studyhall.tenant import TenantContext


# ── App & DB fixtures ────────────────────────────────────────────────────


@pytest.fixture(scope="session")
def app():
    return create_app("testing")


@pytest.fixture(scope="session")
def _setup_db(app):
    with app.app_context():
        _db.create_all()
    yield
    with app.app_context():
        _db.drop_all()


@pytest.fixture(autouse=True)
def session(app, _setup_db):
    """Every test gets an empty schema; leftovers from a failed service call are rolled back."""
    with app.app_context():
        yield
        _db.session.rollback()
        _db.drop_all()
        _db.create_all()


@pytest.fixture()
def client(app):
    return app.test_client()


# ── ORM helpers ──────────────────────────────────────────────────────────


def _make_library(name="Central Study Hall", code="CSH001", is_active=True) -> Library:
    lib = Library(name=name, library_code=code, owner_name="Owner", is_active=is_active)
    _db.session.add(lib)
    _db.session.commit()
    return lib


def _make_staff(library_id, email="desk@csh.test", role="admin", is_active=True) -> StaffUser:
    user = StaffUser(
        library_id=library_id, email=email, full_name="Front Desk",
        role=role, is_active=is_active,
    )
    _db.session.add(user)
    _db.session.commit()
    return user


def _make_admission_request(library_id, **overrides) -> AdmissionRequest:
    """Pending request with sensible defaults; any column can be overridden."""
    fields = {
        "name": "Asha Rao",
        "phone": "9999999999",
        "email": "asha@example.com",
        "total_fee": 1500,
        "amount_paid": 1000,
        "discount": 100,
        "due_amount": 400,
        "membership_start": date(2029, 1, 1),
        "membership_end": date(2030, 1, 1),
        "shift_ids": [],
        "status": "pending",
    }
    fields.update(overrides)
    req = AdmissionRequest(library_id=library_id, **fields)
    _db.session.add(req)
    _db.session.commit()
    return req


def _make_reference_data(library_id, seat_id=5, shift_ids=(10, 11), locker_id=3) -> dict:
    """Branch, one seat, two shifts and one locker with fixed ids."""
    branch = Branch(library_id=library_id, name="Main Branch")
    _db.session.add(branch)
    _db.session.flush()
    seat = Seat(id=seat_id, library_id=library_id, seat_number="A-05", branch_id=branch.id)
    morning = Schedule(id=shift_ids[0], library_id=library_id, title="Morning", time="06:00-12:00")
    evening = Schedule(id=shift_ids[1], library_id=library_id, title="Evening", time="12:00-18:00")
    locker = Locker(id=locker_id, library_id=library_id, locker_number="L-03")
    _db.session.add_all([seat, morning, evening, locker])
    _db.session.commit()
    return {
        "branch_id": branch.id,
        "seat_id": seat.id,
        "shift_ids": [morning.id, evening.id],
        "locker_id": locker.id,
    }


# ── Tenant fixtures ──────────────────────────────────────────────────────


@pytest.fixture()
def library():
    return _make_library()


@pytest.fixture()
def other_library():
    return _make_library(name="Riverside Reading Room", code="RRR002")


@pytest.fixture()
def staff_user(library):
    return _make_staff(library.id)


@pytest.fixture()
def owner_ctx(library):
    return TenantContext(library_id=library.id, actor_id=None, principal_type="owner")


@pytest.fixture()
def staff_ctx(staff_user):
    return TenantContext(
        library_id=staff_user.library_id, actor_id=staff_user.id, principal_type="staff",
    )


@pytest.fixture()
def other_ctx(other_library):
    return TenantContext(library_id=other_library.id)


@pytest.fixture()
def reference_data(library):
    return _make_reference_data(library.id)


def _bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def owner_headers(library):
    return _bearer(generate_owner_token(library.id))


@pytest.fixture()
def staff_headers(staff_user):
    return _bearer(generate_staff_token(staff_user))


@pytest.fixture()
def other_owner_headers(other_library):
    return _bearer(generate_owner_token(other_library.id))


# ── Factory fixtures ─────────────────────────────────────────────────────


@pytest.fixture()
def make_library():
    return _make_library


@pytest.fixture()
def make_staff():
    return _make_staff


@pytest.fixture()
def make_request():
    """Factory: make_request(library_id, **column_overrides) → AdmissionRequest."""
    return _make_admission_request


@pytest.fixture()
def bearer():
    """Factory: bearer(token) → Authorization header dict."""
    return _bearer


@pytest.fixture()
def make_reference_data():
    """Factory: make_reference_data(library_id, seat_id=, shift_ids=, locker_id=)."""
    return _make_reference_data
