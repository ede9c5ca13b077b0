"""
Admission domain model.

Models:
    - MemberTermsMixin:  profile + membership + financial columns shared by
                         AdmissionRequest, Student and MembershipHistory
    - AdmissionRequest:  an enrollment application awaiting staff review

Lifecycle:
    AdmissionRequest:  pending → accepted | pending → rejected
    accepted / rejected are terminal.
"""

from datetime import datetime, timezone

from studyhall.models import db
from studyhall.models.base import TenantModel, to_money


# ── Constants ────────────────────────────────────────────────────────────────

ADMISSION_STATUSES = ("pending", "accepted", "rejected")

ADMISSION_TRANSITIONS = {
    "pending":  ["accepted", "rejected"],
    "accepted": [],
    "rejected": [],
}

MONEY_FIELDS = (
    "total_fee", "amount_paid", "due_amount",
    "cash", "online", "security_money", "discount",
)

PROFILE_FIELDS = (
    "name", "email", "phone", "address", "registration_number",
    "father_name", "aadhar_number", "remark",
    "profile_image_url", "aadhaar_front_url", "aadhaar_back_url",
)


def admission_sources(new_status):
    """Statuses a request may be in for a move to *new_status*.

    Conditional UPDATEs filter on these, so the table above is the only
    place the state machine is written down.
    """
    return tuple(old for old, targets in ADMISSION_TRANSITIONS.items() if new_status in targets)


def _utcnow():
    return datetime.now(timezone.utc)


class MemberTermsMixin:
    """Columns copied verbatim from an application onto the member it becomes."""

    name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255))
    phone = db.Column(db.String(15), index=True)
    address = db.Column(db.Text)
    registration_number = db.Column(db.String(50))
    father_name = db.Column(db.String(255), comment="Guardian name")
    aadhar_number = db.Column(db.String(20), comment="Government-id number")
    remark = db.Column(db.Text)

    profile_image_url = db.Column(db.Text)
    aadhaar_front_url = db.Column(db.Text)
    aadhaar_back_url = db.Column(db.Text)

    branch_id = db.Column(db.Integer)
    membership_start = db.Column(db.Date)
    membership_end = db.Column(db.Date)

    total_fee = db.Column(db.Numeric(12, 2), default=0)
    amount_paid = db.Column(db.Numeric(12, 2), default=0)
    due_amount = db.Column(db.Numeric(12, 2), default=0)
    cash = db.Column(db.Numeric(12, 2), default=0)
    online = db.Column(db.Numeric(12, 2), default=0)
    security_money = db.Column(db.Numeric(12, 2), default=0)
    discount = db.Column(db.Numeric(12, 2), default=0)

    def terms_dict(self) -> dict:
        """Profile + membership + money fields, money normalised to float."""
        d = {f: getattr(self, f) for f in PROFILE_FIELDS}
        d["branch_id"] = self.branch_id
        d["membership_start"] = self.membership_start.isoformat() if self.membership_start else None
        d["membership_end"] = self.membership_end.isoformat() if self.membership_end else None
        for f in MONEY_FIELDS:
            d[f] = to_money(getattr(self, f))
        return d

    def copy_terms(self) -> dict:
        """Raw column values for constructing a sibling model from this row."""
        fields = PROFILE_FIELDS + MONEY_FIELDS + ("branch_id", "membership_start", "membership_end")
        return {f: getattr(self, f) for f in fields}


class AdmissionRequest(MemberTermsMixin, TenantModel):
    """
    Enrollment application submitted through public intake.

    ``shift_ids`` is an ordered list of Schedule ids held in a JSON column so
    the list stays typed end-to-end; it is never exposed as an encoded string.
    """

    __tablename__ = "admission_requests"
    __table_args__ = (
        db.Index("ix_admission_library_status", "library_id", "status"),
        db.Index("ix_admission_library_phone", "library_id", "phone"),
        db.Index("ix_admission_created_at", "created_at"),
    )

    id = db.Column(db.Integer, primary_key=True)

    seat_id = db.Column(db.Integer, db.ForeignKey("seats.id", ondelete="SET NULL"))
    shift_ids = db.Column(db.JSON, nullable=False, default=list)
    locker_id = db.Column(db.Integer, db.ForeignKey("lockers.id", ondelete="SET NULL"))

    status = db.Column(
        db.String(20), nullable=False, default="pending",
        comment="pending | accepted | rejected",
    )
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = db.Column(
        db.DateTime(timezone=True), nullable=False,
        default=_utcnow, onupdate=_utcnow,
    )
    processed_at = db.Column(db.DateTime(timezone=True))
    processed_by = db.Column(
        db.Integer,
        db.ForeignKey("staff_users.id", ondelete="SET NULL"),
        nullable=True,
        comment="Staff user who accepted/rejected; NULL when the owner acted",
    )
    rejection_reason = db.Column(db.Text)

    def to_dict(self) -> dict:
        d = {
            "id": self.id,
            "library_id": self.library_id,
        }
        d.update(self.terms_dict())
        d.update({
            "seat_id": self.seat_id,
            "shift_ids": [int(s) for s in (self.shift_ids or [])],
            "locker_id": self.locker_id,
            "status": self.status,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
            "processed_at": self.processed_at.isoformat() if self.processed_at else None,
            "processed_by": self.processed_by,
            "rejection_reason": self.rejection_reason,
        })
        return d

    def __repr__(self):
        return f"<AdmissionRequest {self.id}: {self.status}>"
