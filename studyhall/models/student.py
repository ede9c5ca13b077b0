"""
Member domain models.

Models:
    - Student:            member created from an accepted admission request
    - SeatAssignment:     one (seat, shift) pair granted to a student
    - MembershipHistory:  append-only snapshot of a student's terms
    - StudentAccount:     self-service login binding, unique per (library, phone)

MembershipHistory and StudentAccount copy name / email / registration number
at write time. The copies are point-in-time values and are not refreshed when
the student profile is edited later.
"""

from datetime import datetime, timezone

from studyhall.models import db
from studyhall.models.admission import MemberTermsMixin
from studyhall.models.base import TenantModel


def _utcnow():
    return datetime.now(timezone.utc)


# ═════════════════════════════════════════════════════════════════════════════
# 1. Student
# ═════════════════════════════════════════════════════════════════════════════


class Student(MemberTermsMixin, TenantModel):
    __tablename__ = "students"
    __table_args__ = (
        db.Index("ix_students_library_phone", "library_id", "phone"),
    )

    id = db.Column(db.Integer, primary_key=True)
    locker_id = db.Column(db.Integer, db.ForeignKey("lockers.id", ondelete="SET NULL"))
    status = db.Column(db.String(20), nullable=False, default="active", comment="active | expired")
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=_utcnow)

    seat_assignments = db.relationship(
        "SeatAssignment", back_populates="student",
        lazy="dynamic", cascade="all, delete-orphan",
    )

    def to_dict(self) -> dict:
        d = {"id": self.id, "library_id": self.library_id}
        d.update(self.terms_dict())
        d.update({
            "locker_id": self.locker_id,
            "status": self.status,
            "is_active": self.is_active,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        })
        return d

    def __repr__(self):
        return f"<Student {self.id}: {self.phone} {self.status}>"


# ═════════════════════════════════════════════════════════════════════════════
# 2. SeatAssignment
# ═════════════════════════════════════════════════════════════════════════════


class SeatAssignment(TenantModel):
    __tablename__ = "seat_assignments"
    __table_args__ = (
        db.Index("ix_seat_assignments_seat_shift", "seat_id", "shift_id"),
    )

    id = db.Column(db.Integer, primary_key=True)
    seat_id = db.Column(db.Integer, db.ForeignKey("seats.id", ondelete="CASCADE"), nullable=False)
    shift_id = db.Column(db.Integer, db.ForeignKey("schedules.id", ondelete="CASCADE"), nullable=False)
    student_id = db.Column(
        db.Integer, db.ForeignKey("students.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=_utcnow)

    student = db.relationship("Student", back_populates="seat_assignments")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "library_id": self.library_id,
            "seat_id": self.seat_id,
            "shift_id": self.shift_id,
            "student_id": self.student_id,
        }


# ═════════════════════════════════════════════════════════════════════════════
# 3. MembershipHistory
# ═════════════════════════════════════════════════════════════════════════════


class MembershipHistory(MemberTermsMixin, TenantModel):
    """
    Immutable membership snapshot.

    Business rules:
    - Rows are NEVER updated or deleted by the admission pipeline.
    - ``shift_id`` holds a single primary shift even when the student holds
      several; the full set lives in seat_assignments.
    """

    __tablename__ = "student_membership_history"
    __table_args__ = (
        db.Index("ix_membership_history_student", "library_id", "student_id"),
    )

    id = db.Column(db.Integer, primary_key=True)
    student_id = db.Column(
        db.Integer, db.ForeignKey("students.id", ondelete="CASCADE"), nullable=False,
    )
    seat_id = db.Column(db.Integer)
    shift_id = db.Column(db.Integer)
    locker_id = db.Column(db.Integer)
    status = db.Column(db.String(20))
    changed_at = db.Column(db.DateTime(timezone=True), nullable=False, default=_utcnow)

    def to_dict(self) -> dict:
        d = {"id": self.id, "library_id": self.library_id, "student_id": self.student_id}
        d.update(self.terms_dict())
        d.update({
            "seat_id": self.seat_id,
            "shift_id": self.shift_id,
            "locker_id": self.locker_id,
            "status": self.status,
            "changed_at": self.changed_at.isoformat() if self.changed_at else None,
        })
        return d


# ═════════════════════════════════════════════════════════════════════════════
# 4. StudentAccount
# ═════════════════════════════════════════════════════════════════════════════


class StudentAccount(TenantModel):
    __tablename__ = "student_accounts"
    __table_args__ = (
        db.UniqueConstraint("library_id", "phone", name="uq_student_account_library_phone"),
    )

    id = db.Column(db.Integer, primary_key=True)
    phone = db.Column(db.String(15), nullable=False)
    password_hash = db.Column(db.String(256), nullable=False)
    student_id = db.Column(db.Integer, db.ForeignKey("students.id", ondelete="CASCADE"))
    name = db.Column(db.String(255))
    email = db.Column(db.String(255))
    registration_number = db.Column(db.String(50))
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=_utcnow)

    def to_dict(self) -> dict:
        """Serialize, never exposing password_hash."""
        return {
            "id": self.id,
            "library_id": self.library_id,
            "phone": self.phone,
            "student_id": self.student_id,
            "name": self.name,
            "email": self.email,
            "registration_number": self.registration_number,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
