"""
Resource allocator — seat × shift assignments and locker binding.

By default the ids carried on the admission request are trusted as-is and
written straight through. With ``ADMISSION_STRICT_ALLOCATION`` enabled every
resource is re-validated inside the library before anything is written:

    seat       must exist in the library
    shift ids  must all exist in the library
    seat/shift no existing assignment may belong to an active student
    locker     must exist in the library and be unassigned

Validation runs before the member row is written. All writes flush only;
the conversion coordinator owns the transaction.
"""

import logging

from sqlalchemy import select, update

from studyhall.core.exceptions import ConflictError, NotFoundError
from studyhall.models import db
from studyhall.models.library import Locker, Schedule, Seat
from studyhall.models.student import SeatAssignment, Student
from studyhall.services.helpers.scoped_queries import get_scoped

logger = logging.getLogger(__name__)


# ── Strict validation ─────────────────────────────────────────────────────────


def validate_allocation(library_id: int, seat_id, shift_ids, locker_id) -> None:
    """Raise NotFoundError / ConflictError if any requested resource is unusable."""
    if seat_id and shift_ids:
        get_scoped(Seat, seat_id, library_id=library_id)

        found = set(db.session.execute(
            select(Schedule.id).where(
                Schedule.library_id == library_id,
                Schedule.id.in_(shift_ids),
            )
        ).scalars().all())
        missing = [sid for sid in shift_ids if sid not in found]
        if missing:
            raise NotFoundError(
                resource="Schedule", resource_id=missing[0], library_id=library_id,
                message=f"Shift id={missing[0]} not found",
            )

        taken = db.session.execute(
            select(SeatAssignment.shift_id)
            .join(Student, Student.id == SeatAssignment.student_id)
            .where(
                SeatAssignment.library_id == library_id,
                SeatAssignment.seat_id == seat_id,
                SeatAssignment.shift_id.in_(shift_ids),
                Student.status == "active",
                Student.is_active.is_(True),
            )
            .limit(1)
        ).scalar()
        if taken is not None:
            raise ConflictError(
                resource="SeatAssignment", field="seat_id/shift_id",
                value=f"{seat_id}/{taken}",
                message=f"Seat {seat_id} is already taken for shift {taken}",
            )

    if locker_id:
        locker = get_scoped(Locker, locker_id, library_id=library_id)
        if locker.is_assigned:
            raise ConflictError(
                resource="Locker", field="locker_id", value=str(locker_id),
                message=f"Locker {locker.locker_number} is already assigned",
            )


# ── Allocation ────────────────────────────────────────────────────────────────


def assign_seat_shifts(student: Student, seat_id, shift_ids) -> int | None:
    """One SeatAssignment per shift id, in order.

    Returns the primary (first) shift id, or None when nothing was assigned.
    """
    if not seat_id or not shift_ids:
        return None
    for shift_id in shift_ids:
        db.session.add(SeatAssignment(
            library_id=student.library_id,
            seat_id=seat_id,
            shift_id=shift_id,
            student_id=student.id,
        ))
    db.session.flush()
    return shift_ids[0]


def bind_locker(student: Student, locker_id) -> bool:
    """Mark *locker_id* assigned to *student* within the student's library.

    The student's own locker_id is set only when the locker row was updated.
    """
    if not locker_id:
        return False
    result = db.session.execute(
        update(Locker)
        .where(Locker.id == locker_id, Locker.library_id == student.library_id)
        .values(is_assigned=True, student_id=student.id)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        logger.warning(
            "Locker %s not found in library %s; student %s left without a locker binding",
            locker_id, student.library_id, student.id,
            extra={"library_id": student.library_id, "student_id": student.id},
        )
        return False
    student.locker_id = locker_id
    db.session.flush()
    return True


def allocate(student: Student, seat_id, shift_ids, locker_id) -> int | None:
    """Grant seat/shift/locker resources to a freshly created student.

    Returns the primary shift id used for the membership snapshot.
    """
    shift_ids = [int(s) for s in (shift_ids or [])]
    primary_shift_id = assign_seat_shifts(student, seat_id, shift_ids)
    bind_locker(student, locker_id)
    return primary_shift_id
