"""
Conversion Transaction Coordinator — accept an admission request.

Accepting turns one pending AdmissionRequest into a provisioned member in a
single unit of work:

    1. claim      conditional UPDATE pending → accepted (compare-and-swap)
    2. precheck   no Student with the same phone in the library
    3. status     active / expired derived from membership_end
    4. member     Student row copied from the request terms
    5. resources  SeatAssignment per shift, locker binding
    6. history    one MembershipHistory snapshot
    7. account    StudentAccount for the phone, unless one exists
    8. commit

The claim is the first statement, so two concurrent accepts of the same
request serialise on the row: the loser matches zero rows and gets
NotFoundError. Any failure after the claim rolls the whole unit back and the
request is left pending.

The initial account credential is the member's phone number (hashed at
rest). Members are expected to change it on first login.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, time, timezone

from flask import current_app
from sqlalchemy import select, update

from studyhall.core.exceptions import ConflictError, NotFoundError
from studyhall.models import db
from studyhall.models.admission import AdmissionRequest, admission_sources
from studyhall.models.student import Student, StudentAccount
from studyhall.services import membership_history, resource_allocator
from studyhall.tenant import TenantContext
from studyhall.utils.crypto import hash_password

logger = logging.getLogger(__name__)


# ── Private helpers ────────────────────────────────────────────────────────────


def derive_member_status(membership_end: date | None, now: datetime | None = None) -> str:
    """``expired`` when membership_end (midnight UTC) lies before *now*."""
    if membership_end is None:
        return "active"
    now = now or datetime.now(timezone.utc)
    end_at = datetime.combine(membership_end, time.min, tzinfo=timezone.utc)
    return "expired" if end_at < now else "active"


def _claim(ctx: TenantContext, request_id: int, now: datetime) -> AdmissionRequest:
    """Flip the request pending → accepted or raise NotFoundError."""
    result = db.session.execute(
        update(AdmissionRequest)
        .where(
            AdmissionRequest.id == request_id,
            AdmissionRequest.library_id == ctx.library_id,
            AdmissionRequest.status.in_(admission_sources("accepted")),
        )
        .values(
            status="accepted",
            processed_at=now,
            processed_by=ctx.actor_id,
            updated_at=now,
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise NotFoundError(
            resource="AdmissionRequest", resource_id=request_id,
            library_id=ctx.library_id, message="Pending admission request not found",
        )
    return db.session.execute(
        select(AdmissionRequest)
        .where(AdmissionRequest.id == request_id)
        .execution_options(populate_existing=True)
    ).scalar_one()


def _ensure_phone_unused(library_id: int, phone: str | None) -> None:
    if not phone:
        return
    existing = db.session.execute(
        select(Student.id).where(Student.library_id == library_id, Student.phone == phone).limit(1)
    ).scalar()
    if existing is not None:
        raise ConflictError(
            resource="Student", field="phone", value=phone,
            message="A student with this phone number already exists",
        )


def _provision_account(student: Student) -> StudentAccount | None:
    """Create the member's login unless the phone already has one here."""
    if not student.phone:
        return None
    existing = db.session.execute(
        select(StudentAccount.id).where(
            StudentAccount.library_id == student.library_id,
            StudentAccount.phone == student.phone,
        )
    ).scalar()
    if existing is not None:
        return None
    account = StudentAccount(
        library_id=student.library_id,
        phone=student.phone,
        password_hash=hash_password(student.phone),
        student_id=student.id,
        name=student.name,
        email=student.email,
        registration_number=student.registration_number,
    )
    db.session.add(account)
    db.session.flush()
    return account


# ── Public API ─────────────────────────────────────────────────────────────────


def accept_request(ctx: TenantContext, request_id: int) -> dict:
    """Convert a pending admission request into a member.

    Returns:
        The created Student as a dict (money fields as floats).

    Raises:
        NotFoundError: no pending request with this id in the acting library,
            or (strict allocation) a referenced seat / shift / locker is missing.
        ConflictError: duplicate phone, or (strict allocation) a seat/shift or
            locker is already taken.
        Any storage error, after rolling back.
    """
    strict = bool(current_app.config.get("ADMISSION_STRICT_ALLOCATION", False))
    now = datetime.now(timezone.utc)
    log_extra = {"library_id": ctx.library_id, "request_pk": request_id, "actor_id": ctx.actor_id}

    try:
        req = _claim(ctx, request_id, now)
        _ensure_phone_unused(ctx.library_id, req.phone)

        shift_ids = [int(s) for s in (req.shift_ids or [])]
        if strict:
            resource_allocator.validate_allocation(
                ctx.library_id, req.seat_id, shift_ids, req.locker_id,
            )

        student = Student(
            library_id=ctx.library_id,
            status=derive_member_status(req.membership_end, now),
            is_active=True,
            **req.copy_terms(),
        )
        db.session.add(student)
        db.session.flush()

        primary_shift_id = resource_allocator.allocate(
            student, req.seat_id, shift_ids, req.locker_id,
        )
        membership_history.record_membership_snapshot(
            student, seat_id=req.seat_id, shift_id=primary_shift_id,
        )
        account = _provision_account(student)

        db.session.commit()
    except Exception:
        db.session.rollback()
        logger.warning("Admission request %s not accepted; rolled back", request_id, extra=log_extra)
        raise

    logger.info(
        "Admission request %s accepted as student %s (%s, %d shift(s), account %s)",
        request_id, student.id, student.status, len(shift_ids),
        "created" if account else "existing",
        extra={**log_extra, "student_id": student.id},
    )
    return student.to_dict()
