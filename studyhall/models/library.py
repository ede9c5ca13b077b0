"""
Library (tenant) and reference-data models.

Models:
    - Library:    the tenant; one study-hall business, also the owner principal
    - StaffUser:  admin / staff login inside a library
    - Branch:     physical branch of a library
    - Seat:       numbered seat
    - Schedule:   named recurring time window ("shift")
    - Locker:     storage resource bound to at most one student

Branch, Seat, Schedule and Locker are owned by the generic CRUD modules; the
admission pipeline only reads them (Locker is mutated on conversion).
"""

from datetime import datetime, timezone

from studyhall.models import db
from studyhall.models.base import TenantModel


STAFF_ROLES = {"admin", "staff"}


# ═══════════════════════════════════════════════════════════════
# 1. LIBRARIES (tenants)
# ═══════════════════════════════════════════════════════════════
class Library(db.Model):
    __tablename__ = "libraries"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    library_code = db.Column(db.String(20), unique=True, nullable=False)
    owner_name = db.Column(db.String(255))
    owner_email = db.Column(db.String(255))
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(
        db.DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "code": self.library_code,
            "owner": self.owner_name,
            "is_active": self.is_active,
        }

    def __repr__(self):
        return f"<Library {self.id}: {self.library_code}>"


# ═══════════════════════════════════════════════════════════════
# 2. STAFF USERS
# ═══════════════════════════════════════════════════════════════
class StaffUser(TenantModel):
    __tablename__ = "staff_users"

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(200), nullable=False)
    password_hash = db.Column(db.String(256))
    full_name = db.Column(db.String(200))
    role = db.Column(db.String(20), nullable=False, default="staff")  # admin | staff
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        db.UniqueConstraint("library_id", "email", name="uq_staff_library_email"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "library_id": self.library_id,
            "email": self.email,
            "full_name": self.full_name,
            "role": self.role,
            "is_active": self.is_active,
        }


# ═══════════════════════════════════════════════════════════════
# 3. REFERENCE DATA
# ═══════════════════════════════════════════════════════════════
class Branch(TenantModel):
    __tablename__ = "branches"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)

    def to_dict(self):
        return {"id": self.id, "name": self.name}


class Seat(TenantModel):
    __tablename__ = "seats"

    id = db.Column(db.Integer, primary_key=True)
    seat_number = db.Column(db.String(20), nullable=False)
    branch_id = db.Column(db.Integer, db.ForeignKey("branches.id", ondelete="SET NULL"))

    def to_dict(self):
        return {"id": self.id, "seat_number": self.seat_number}


class Schedule(TenantModel):
    """A shift: named recurring time window a member is allotted at a seat."""

    __tablename__ = "schedules"

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text)
    time = db.Column(db.String(100), comment="Display window, e.g. '06:00-12:00'")

    def to_dict(self):
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "time": self.time,
        }


class Locker(TenantModel):
    __tablename__ = "lockers"

    id = db.Column(db.Integer, primary_key=True)
    locker_number = db.Column(db.String(20), nullable=False)
    is_assigned = db.Column(db.Boolean, default=False, nullable=False)
    student_id = db.Column(
        db.Integer,
        db.ForeignKey(
            "students.id", ondelete="SET NULL",
            use_alter=True, name="fk_lockers_student_id",
        ),
        nullable=True,
    )

    def to_dict(self):
        return {
            "id": self.id,
            "locker_number": self.locker_number,
            "is_assigned": self.is_assigned,
            "student_id": self.student_id,
        }
