"""
Membership history recorder.

MembershipHistory is APPEND-ONLY: this module inserts snapshots and reads
them back, and never updates or deletes a row. Snapshots copy the member's
terms at write time; later profile edits do not rewrite them.
"""

import logging

from sqlalchemy import select

from studyhall.models import db
from studyhall.models.student import MembershipHistory, Student
from studyhall.services.helpers.scoped_queries import get_scoped

logger = logging.getLogger(__name__)


def record_membership_snapshot(student: Student, seat_id=None, shift_id=None) -> MembershipHistory:
    """Append a snapshot of *student*'s current terms.

    Flushes only; the caller owns the transaction.
    """
    entry = MembershipHistory(
        library_id=student.library_id,
        student_id=student.id,
        seat_id=seat_id,
        shift_id=shift_id,
        locker_id=student.locker_id,
        status=student.status,
        **student.copy_terms(),
    )
    db.session.add(entry)
    db.session.flush()
    logger.debug(
        "Membership snapshot %s recorded for student %s",
        entry.id, student.id,
        extra={"library_id": student.library_id, "student_id": student.id},
    )
    return entry


def list_membership_history(ctx, student_id: int) -> list[dict]:
    """Snapshots for one student, oldest first.

    Raises:
        NotFoundError: the student does not exist in the acting library.
    """
    get_scoped(Student, student_id, library_id=ctx.library_id)
    rows = db.session.execute(
        select(MembershipHistory)
        .where(
            MembershipHistory.library_id == ctx.library_id,
            MembershipHistory.student_id == student_id,
        )
        .order_by(MembershipHistory.changed_at.asc(), MembershipHistory.id.asc())
    ).scalars().all()
    return [r.to_dict() for r in rows]
