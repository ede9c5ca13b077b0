"""
Public intake — unauthenticated admission submissions addressed by library code.

The library is resolved from its public ``library_code`` (case-insensitive).
Nothing here trusts a client-supplied library id.

    get_registration_form   reference data for the sign-up form
    submit_request          create a pending AdmissionRequest
    get_request_status      latest request for a phone number
"""

from __future__ import annotations

import logging

from email_validator import EmailNotValidError, validate_email
from sqlalchemy import select

from studyhall.core.exceptions import ConflictError, NotFoundError, ValidationError
from studyhall.models import db
from studyhall.models.admission import MONEY_FIELDS, AdmissionRequest
from studyhall.models.library import Branch, Library, Locker, Schedule, Seat
from studyhall.models.student import Student
from studyhall.services.helpers.scoped_queries import get_scoped_or_none
from studyhall.utils.helpers import (
    MAX_MONEY,
    parse_date_input,
    parse_id_list,
    parse_money,
    parse_optional_id,
)

logger = logging.getLogger(__name__)

_TEXT_FIELDS = (
    "address", "registration_number", "father_name", "aadhar_number", "remark",
    "profile_image_url", "aadhaar_front_url", "aadhaar_back_url",
)


def _clean(value):
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _library_by_code(library_code: str) -> Library:
    code = (library_code or "").strip().upper()
    library = db.session.execute(
        select(Library).where(Library.library_code == code, Library.is_active.is_(True))
    ).scalar_one_or_none()
    if library is None:
        raise NotFoundError(resource="Library", resource_id=code, message="Library not found")
    return library


def _all(model, library_id: int, *order_by):
    return db.session.execute(
        select(model).where(model.library_id == library_id).order_by(*order_by)
    ).scalars().all()


# ── Public API ─────────────────────────────────────────────────────────────────


def get_registration_form(library_code: str) -> dict:
    """Library summary plus branches, seats, shifts and free lockers."""
    library = _library_by_code(library_code)
    free_lockers = db.session.execute(
        select(Locker)
        .where(Locker.library_id == library.id, Locker.is_assigned.is_(False))
        .order_by(Locker.locker_number)
    ).scalars().all()
    return {
        "library": library.to_dict(),
        "branches": [b.to_dict() for b in _all(Branch, library.id, Branch.name)],
        "seats": [s.to_dict() for s in _all(Seat, library.id, Seat.seat_number)],
        "shifts": [s.to_dict() for s in _all(Schedule, library.id, Schedule.time, Schedule.id)],
        "lockers": [lk.to_dict() for lk in free_lockers],
    }


def submit_request(library_code: str, data: dict) -> dict:
    """Validate *data* and store it as a pending AdmissionRequest.

    Required: name, phone, branch_id. ``due_amount`` is always derived as
    total_fee − discount − amount_paid; a client-supplied value is ignored.

    Raises:
        NotFoundError:   unknown library code.
        ValidationError: missing / malformed fields, or a branch, seat, locker
                         or shift that is not part of the library.
        ConflictError:   a pending request or a student already uses the phone.
    """
    library = _library_by_code(library_code)
    data = data or {}

    name = _clean(data.get("name"))
    phone = _clean(data.get("phone"))
    missing = {f: "required" for f, v in (("name", name), ("phone", phone)) if not v}
    if data.get("branch_id") in (None, ""):
        missing["branch_id"] = "required"
    if missing:
        raise ValidationError("Name, phone and branch are required", details=missing)

    try:
        branch_id = parse_optional_id(data.get("branch_id"), "branch_id")
        seat_id = parse_optional_id(data.get("seat_id"), "seat_id")
        locker_id = parse_optional_id(data.get("locker_id"), "locker_id")
        shift_ids = parse_id_list(data.get("shift_ids"), "shift_ids")
        membership_start = parse_date_input(data.get("membership_start"))
        membership_end = parse_date_input(data.get("membership_end"))
        money = {f: parse_money(data.get(f), f) for f in MONEY_FIELDS if f != "due_amount"}
    except ValueError as exc:
        raise ValidationError(str(exc)) from exc
    money["due_amount"] = money["total_fee"] - money["discount"] - money["amount_paid"]
    if abs(money["due_amount"]) >= MAX_MONEY:
        raise ValidationError("due_amount is out of range", details={"due_amount": "invalid"})

    if membership_start and membership_end and membership_end < membership_start:
        raise ValidationError(
            "membership_end must not be before membership_start",
            details={"membership_end": "before membership_start"},
        )

    email = _clean(data.get("email"))
    if email:
        try:
            email = validate_email(email, check_deliverability=False).normalized
        except EmailNotValidError as exc:
            raise ValidationError(f"Invalid email: {exc}", details={"email": "invalid"}) from exc

    for model, value, field in (
        (Branch, branch_id, "branch_id"),
        (Seat, seat_id, "seat_id"),
        (Locker, locker_id, "locker_id"),
    ):
        if value is not None and get_scoped_or_none(model, value, library_id=library.id) is None:
            raise ValidationError(
                f"{model.__name__} not found for this library", details={field: "unknown"},
            )
    if shift_ids:
        known = set(db.session.execute(
            select(Schedule.id).where(Schedule.library_id == library.id, Schedule.id.in_(shift_ids))
        ).scalars().all())
        if any(sid not in known for sid in shift_ids):
            raise ValidationError("Shift not found for this library", details={"shift_ids": "unknown"})

    pending = db.session.execute(
        select(AdmissionRequest.id).where(
            AdmissionRequest.library_id == library.id,
            AdmissionRequest.phone == phone,
            AdmissionRequest.status == "pending",
        ).limit(1)
    ).scalar()
    if pending is not None:
        raise ConflictError(
            resource="AdmissionRequest", field="phone", value=phone,
            message="A pending admission request already exists for this phone number",
        )
    student = db.session.execute(
        select(Student.id).where(Student.library_id == library.id, Student.phone == phone).limit(1)
    ).scalar()
    if student is not None:
        raise ConflictError(
            resource="Student", field="phone", value=phone,
            message="A student with this phone number is already registered",
        )

    req = AdmissionRequest(
        library_id=library.id,
        name=name,
        phone=phone,
        email=email,
        branch_id=branch_id,
        seat_id=seat_id,
        shift_ids=shift_ids,
        locker_id=locker_id,
        membership_start=membership_start,
        membership_end=membership_end,
        status="pending",
        **{f: _clean(data.get(f)) for f in _TEXT_FIELDS},
        **money,
    )
    db.session.add(req)
    db.session.commit()

    logger.info(
        "Admission request %s submitted",
        req.id,
        extra={"library_id": library.id, "request_pk": req.id},
    )
    return {
        "message": "Admission request submitted successfully",
        "request_id": req.id,
        "submitted_at": req.created_at.isoformat() if req.created_at else None,
        "status": req.status,
    }


def get_request_status(library_code: str, phone: str) -> dict:
    """Latest admission request for *phone* in the library."""
    library = _library_by_code(library_code)
    phone = _clean(phone)
    req = db.session.execute(
        select(AdmissionRequest)
        .where(AdmissionRequest.library_id == library.id, AdmissionRequest.phone == phone)
        .order_by(AdmissionRequest.created_at.desc(), AdmissionRequest.id.desc())
        .limit(1)
    ).scalar_one_or_none()
    if req is None:
        raise NotFoundError(
            resource="AdmissionRequest", library_id=library.id,
            message="No admission request found for this phone number",
        )
    return {
        "id": req.id,
        "name": req.name,
        "status": req.status,
        "submitted_at": req.created_at.isoformat() if req.created_at else None,
        "last_updated": req.updated_at.isoformat() if req.updated_at else None,
        "processed_at": req.processed_at.isoformat() if req.processed_at else None,
        "rejection_reason": req.rejection_reason,
    }
